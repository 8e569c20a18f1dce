"""Lifecycle driver: create and destroy one droplet against a caller-owned state record."""

import dataclasses
import logging
import os

from dropletdriver.config import resolve_config, require_provisioning_options
from dropletdriver.errors import ConfigurationError, ReachabilityTimeout
from dropletdriver.naming import default_name
from dropletdriver.provisioning.digitalocean import DigitalOceanClient
from dropletdriver.provisioning.readiness import wait_for_port
from dropletdriver.provisioning.server import await_active, provision
from dropletdriver.provisioning.teardown import destroy_server


class DigitalOceanDriver:
    """Provision and tear down a single droplet for one test instance.

    Args:
        config: explicit option overrides (highest precedence).
        instance: InstanceContext for the test instance.
        provider: ComputeProvider to use; built from the config when omitted.
        environ: environment mapping; defaults to ``os.environ``. Read only
            here, at construction.
    """

    def __init__(self, config, instance, provider=None, environ=None):
        self.instance = instance
        self.logger = instance.logger or logging.getLogger(__name__)
        self.config = resolve_config(
            config,
            platform=instance.platform,
            environ=os.environ if environ is None else environ,
        )
        self._provider = provider
        self._owns_provider = False

    def __getitem__(self, key):
        return self.config[key]

    @property
    def provider(self):
        """The compute provider, created on first use."""
        if self._provider is None:
            if not self.config.access_token:
                raise ConfigurationError("An access token is required to talk to DigitalOcean.")
            self._provider = DigitalOceanClient(self.config.access_token, api_url=self.config.api_url)
            self._owns_provider = True
        return self._provider

    def close(self):
        """Close the provider client if this driver built it."""
        if self._owns_provider:
            self._provider.close()
            self._provider = None
            self._owns_provider = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def default_name(self):
        return default_name(self.instance.name)

    def create(self, state):
        """Create the server and wait until it is reachable.

        ``server_id`` is written to *state* as soon as the provider returns
        it, so a later ``destroy`` can clean up after any failure.
        """
        if state.get("server_id") and state.get("hostname"):
            # hostname is written before the port check; verify it again
            self.logger.info(f"[{self.instance.name}] Server {state['server_id']} already exists at {state['hostname']}.")
            self._await_reachable(state["hostname"], state["server_id"])
            return

        if state.get("server_id"):
            server_id = state["server_id"]
            self.logger.info(f"[{self.instance.name}] Resuming server {server_id} from an earlier create.")
            server = await_active(self.provider, server_id, self.config, logger=self.logger)
        else:
            require_provisioning_options(self.config)
            if not self.config.server_name:
                self.config = dataclasses.replace(self.config, server_name=self.default_name())

            def record(created):
                state["server_id"] = created.id

            server = provision(self.provider, self.config, on_created=record, logger=self.logger)

        state["hostname"] = server.public_address
        self._await_reachable(server.public_address, server.id)
        self.logger.info(f"[{self.instance.name}] Server {server.id} ready at {server.public_address}:{self.config.port}.")

    def _await_reachable(self, host, server_id):
        self.logger.info(f"Waiting for {host}:{self.config.port} to accept connections...")
        try:
            wait_for_port(
                host,
                self.config.port,
                timeout=self.config.ssh_timeout,
                interval=self.config.ssh_interval,
            )
        except ReachabilityTimeout as e:
            e.server_id = server_id
            raise

    def destroy(self, state):
        """Destroy the recorded server, if any, and clear it from *state*."""
        server_id = state.get("server_id")
        if not server_id:
            return

        if destroy_server(self.provider, server_id, logger=self.logger):
            del state["server_id"]
            if "hostname" in state:
                del state["hostname"]
            self.logger.info(f"[{self.instance.name}] Cleared server {server_id} from state.")
