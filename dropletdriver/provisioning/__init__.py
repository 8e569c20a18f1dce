"""Droplet provisioning: provider boundary, status polling, readiness, teardown."""

from dropletdriver.provisioning.digitalocean import DigitalOceanClient
from dropletdriver.provisioning.readiness import wait_for_port
from dropletdriver.provisioning.server import (
    await_active,
    build_create_request,
    provision,
    wait_for_status,
)
from dropletdriver.provisioning.teardown import destroy_server
from dropletdriver.provisioning.types import ComputeProvider, ServerHandle

__all__ = [
    "ComputeProvider",
    "ServerHandle",
    "DigitalOceanClient",
    "build_create_request",
    "wait_for_status",
    "provision",
    "await_active",
    "wait_for_port",
    "destroy_server",
]
