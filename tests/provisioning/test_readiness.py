"""Tests for TCP reachability polling."""

import socket
import time

import pytest

from dropletdriver.errors import ProvisionError, ReachabilityTimeout
from dropletdriver.provisioning.readiness import wait_for_port


def test_wait_for_port_succeeds(listening_port):
    assert wait_for_port("127.0.0.1", listening_port, timeout=2, interval=0.05) is None


def test_wait_for_port_times_out(closed_port):
    start = time.monotonic()
    with pytest.raises(ReachabilityTimeout) as exc:
        wait_for_port("127.0.0.1", closed_port, timeout=0.3, interval=0.05, connect_timeout=0.1)
    assert time.monotonic() - start < 5
    assert exc.value.host == "127.0.0.1"
    assert exc.value.port == closed_port
    assert f"127.0.0.1:{closed_port}" in str(exc.value)


def test_reachability_timeout_is_not_a_provision_error():
    assert not issubclass(ReachabilityTimeout, ProvisionError)


def test_wait_for_port_retries_until_listening(monkeypatch, listening_port):
    attempts = []
    real_create_connection = socket.create_connection

    def _flaky(address, timeout=None):
        attempts.append(address)
        if len(attempts) < 3:
            raise ConnectionRefusedError("not yet")
        return real_create_connection(address, timeout=timeout)

    monkeypatch.setattr("dropletdriver.provisioning.readiness.socket.create_connection", _flaky)
    wait_for_port("127.0.0.1", listening_port, timeout=2, interval=0.01)
    assert len(attempts) == 3
