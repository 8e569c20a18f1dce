"""Shared pytest fixtures for all test modules."""

import logging
import os
import socket
import subprocess
import sys

import pytest

from dropletdriver.provisioning.types import ComputeProvider, ServerHandle
from dropletdriver.state import InstanceContext

PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))


class FakeProvider(ComputeProvider):
    """In-memory ComputeProvider.

    ``statuses`` is consumed one entry per ``get_server`` call; the last
    entry repeats. ``errors`` maps a method name to an exception to raise.
    """

    def __init__(self, server_id="1234", address="1.2.3.4", statuses=("new", "active"), errors=None):
        self.server_id = server_id
        self.address = address
        self.statuses = list(statuses)
        self.errors = errors or {}
        self.servers = {}
        self.calls = []

    def _maybe_raise(self, method):
        if method in self.errors:
            raise self.errors[method]

    def create_server(self, request):
        self.calls.append(("create_server", request))
        self._maybe_raise("create_server")
        self.servers[self.server_id] = request.get("name", "")
        return ServerHandle(id=self.server_id, name=request.get("name", ""), status="new")

    def get_server(self, server_id):
        self.calls.append(("get_server", server_id))
        self._maybe_raise("get_server")
        if server_id not in self.servers:
            return None
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        address = self.address if status == "active" else None
        return ServerHandle(id=server_id, name=self.servers[server_id], status=status, public_address=address)

    def delete_server(self, server_id):
        self.calls.append(("delete_server", server_id))
        self._maybe_raise("delete_server")
        return self.servers.pop(server_id, None) is not None

    def method_calls(self):
        return [name for name, _ in self.calls]


@pytest.fixture
def make_provider():
    """Factory for FakeProvider instances."""
    return FakeProvider


@pytest.fixture
def instance():
    """Instance context matching a kitchen suite named 'potatoes'."""
    return InstanceContext(name="potatoes", platform="ubuntu", logger=logging.getLogger("tests.instance"))


@pytest.fixture
def do_env():
    """Environment with a DigitalOcean token and SSH key ids."""
    return {
        "DIGITALOCEAN_ACCESS_TOKEN": "access_token",
        "DIGITALOCEAN_SSH_KEY_IDS": "1234",
    }


@pytest.fixture
def listening_port():
    """A local TCP port that accepts connections for the duration of the test."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(8)
    yield server.getsockname()[1]
    server.close()


@pytest.fixture
def closed_port():
    """A local TCP port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture(scope="session")
def run_cli():
    """Return a callable that invokes the dropletdriver CLI as a subprocess."""

    def _run(*args, env=None, cwd=None):
        full_env = {k: v for k, v in os.environ.items() if not k.startswith("DIGITALOCEAN_")}
        full_env["PYTHONPATH"] = PROJECT_ROOT
        full_env.update(env or {})
        result = subprocess.run(
            [sys.executable, "-m", "dropletdriver.dropletdriver", *args],
            capture_output=True,
            text=True,
            cwd=cwd or PROJECT_ROOT,
            env=full_env,
        )
        return result.returncode, result.stdout, result.stderr

    return _run
