"""Server provisioning: create request, status polling, address resolution."""

import logging
import time

from dropletdriver.errors import (
    NoPublicAddress,
    ProviderError,
    ProvisionError,
    ProvisionFailed,
    ServerNotReady,
)

logger = logging.getLogger(__name__)

READY_STATUS = "active"
FAIL_STATUSES = frozenset({"errored", "archive"})

# Optional config attributes forwarded to the create request when set
_OPTIONAL_ATTRS = ("private_networking", "ipv6", "monitoring", "user_data")


def _parse_ssh_key_ids(ssh_key_ids):
    """Split a comma-separated key list; numeric ids become ints, fingerprints stay strings."""
    keys = []
    for raw in str(ssh_key_ids).split(","):
        key = raw.strip()
        if not key:
            continue
        keys.append(int(key) if key.isdigit() else key)
    return keys


def build_create_request(config):
    """Build the create payload from a resolved DriverConfig.

    Unset optional attributes are left out entirely; the API treats a
    missing key differently from an empty one.
    """
    request = {
        "name": config.server_name,
        "image": config.image,
        "size": config.size,
        "region": config.region,
    }
    if config.ssh_key_ids:
        request["ssh_keys"] = _parse_ssh_key_ids(config.ssh_key_ids)
    for attr in _OPTIONAL_ATTRS:
        value = getattr(config, attr)
        if value is not None:
            request[attr] = value
    if config.tags is not None:
        request["tags"] = list(config.tags)
    return request


def wait_for_status(
    provider,
    server_id,
    target_status=READY_STATUS,
    timeout=600,
    interval=5,
    fail_statuses=FAIL_STATUSES,
    logger=None,
):
    """Poll server status until it matches *target_status* or the deadline passes.

    Returns:
        The ServerHandle in *target_status*.

    Raises:
        ProvisionFailed: the server reported one of *fail_statuses*, or
            disappeared while waiting.
        ServerNotReady: *timeout* elapsed first.
    """
    logger = logger or logging.getLogger(__name__)
    deadline = time.monotonic() + timeout
    status = None
    while True:
        try:
            server = provider.get_server(server_id)
        except ProviderError as e:
            raise ProvisionError(f"Status lookup for server {server_id} failed: {e}", server_id=server_id) from e
        if server is None:
            raise ProvisionFailed(f"Server {server_id} disappeared while waiting for '{target_status}'", server_id=server_id)

        status = server.status
        if status == target_status:
            return server
        if status in fail_statuses:
            logger.error(f"Server {server_id} reached fail status '{status}'")
            raise ProvisionFailed(f"Server {server_id} reached fail status '{status}'", server_id=server_id, status=status)

        if time.monotonic() + interval > deadline:
            break
        time.sleep(interval)

    logger.error(f"Timeout after {timeout}s waiting for status '{target_status}' (last: '{status}')")
    raise ServerNotReady(
        f"Server {server_id} not '{target_status}' after {timeout}s (last: '{status}')",
        server_id=server_id,
        status=status,
    )


def provision(provider, config, on_created=None, logger=None):
    """Create a server and wait until it is active with a public address.

    Args:
        config: resolved DriverConfig; ``server_name`` must already be set.
        on_created: called with the new ServerHandle as soon as the create
            request returns, before any waiting, so the caller can record
            the id for cleanup.

    Returns:
        The active ServerHandle.

    Raises:
        ProvisionError: ``server_id`` is set on every error raised after
            the server object was obtained.
    """
    logger = logger or logging.getLogger(__name__)
    request = build_create_request(config)
    logger.info(f"Creating server '{config.server_name}' (image={config.image}, size={config.size}, region={config.region})...")

    try:
        server = provider.create_server(request)
    except ProviderError as e:
        raise ProvisionError(f"Create request for '{config.server_name}' was rejected: {e}") from e

    logger.info(f"Server created (id={server.id}). Waiting for '{READY_STATUS}' status (timeout: {config.ready_timeout}s)...")
    if on_created is not None:
        on_created(server)

    return await_active(provider, server.id, config, logger=logger)


def await_active(provider, server_id, config, logger=None):
    """Wait for an existing server to become active and resolve its address."""
    logger = logger or logging.getLogger(__name__)
    server = wait_for_status(
        provider,
        server_id,
        timeout=config.ready_timeout,
        interval=config.ready_interval,
        logger=logger,
    )
    if not server.public_address:
        raise NoPublicAddress(f"Server {server_id} is {server.status} but has no public address", server_id=server_id)

    logger.info(f"Server {server_id} is active at {server.public_address}.")
    return server
