"""DigitalOcean provider: create/get/delete droplets via the v2 REST API."""

import json
import logging

import httpx

from dropletdriver.config import DEFAULT_API_URL
from dropletdriver.errors import ProviderError
from dropletdriver.provisioning.types import ComputeProvider, ServerHandle

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 60


def _error_message(resp):
    """Pull the API's ``message`` field out of an error response, if any."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text.strip() or resp.reason_phrase
    if isinstance(body, dict):
        return body.get("message") or body.get("id") or json.dumps(body)
    return str(body)


def _public_ipv4(droplet):
    """Return the first public IPv4 address of a droplet dict, or None."""
    networks = droplet.get("networks") or {}
    for net in networks.get("v4", []):
        if net.get("type") == "public" and net.get("ip_address"):
            return net["ip_address"]
    return None


def _droplet_from(resp, context):
    """Return the ``droplet`` object of a 2xx response, or raise ProviderError."""
    try:
        body = resp.json()
    except ValueError as e:
        raise ProviderError(f"{context} returned a non-JSON body: {resp.text[:200]!r}", status_code=resp.status_code) from e
    droplet = body.get("droplet") if isinstance(body, dict) else None
    if not isinstance(droplet, dict) or "id" not in droplet:
        raise ProviderError(f"No droplet returned from {context}.", status_code=resp.status_code)
    return droplet


def _to_handle(droplet):
    return ServerHandle(
        id=str(droplet["id"]),
        name=droplet.get("name", ""),
        status=droplet.get("status", ""),
        public_address=_public_ipv4(droplet),
    )


class DigitalOceanClient(ComputeProvider):
    """Minimal droplet client authenticated with a bearer token.

    Args:
        transport: optional httpx transport, e.g. ``httpx.MockTransport``
            in tests.
    """

    def __init__(self, access_token, api_url=DEFAULT_API_URL, transport=None):
        self.api_url = api_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.api_url,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
            },
            timeout=REQUEST_TIMEOUT,
            transport=transport,
        )

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(self, method, path, payload=None):
        """Make an authenticated API request and return the response.

        404 responses are returned to the caller; every other non-2xx status
        and any transport error raises ProviderError.
        """
        try:
            resp = self._client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            raise ProviderError(f"{method} {self.api_url}{path} failed: {e}") from e
        if resp.status_code == 404:
            return resp
        if resp.is_error:
            raise ProviderError(
                f"{method} {path} returned {resp.status_code}: {_error_message(resp)}",
                status_code=resp.status_code,
            )
        return resp

    def create_server(self, request):
        """POST /v2/droplets"""
        resp = self._request("POST", "/v2/droplets", request)
        if resp.status_code == 404:
            raise ProviderError(f"POST /v2/droplets returned 404: {_error_message(resp)}", status_code=404)
        return _to_handle(_droplet_from(resp, "create API"))

    def get_server(self, server_id):
        """GET /v2/droplets/{id}"""
        resp = self._request("GET", f"/v2/droplets/{server_id}")
        if resp.status_code == 404:
            return None
        return _to_handle(_droplet_from(resp, f"GET /v2/droplets/{server_id}"))

    def delete_server(self, server_id):
        """DELETE /v2/droplets/{id}"""
        resp = self._request("DELETE", f"/v2/droplets/{server_id}")
        if resp.status_code == 404:
            logger.debug(f"Droplet {server_id} was already gone.")
            return False
        return True
