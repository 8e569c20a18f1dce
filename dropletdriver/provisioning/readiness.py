"""Provider-agnostic TCP readiness polling."""

import logging
import socket
import time

from dropletdriver.errors import ReachabilityTimeout

logger = logging.getLogger(__name__)


def wait_for_port(host, port, timeout=300, interval=5, connect_timeout=5):
    """Poll until *host*:*port* accepts a TCP connection.

    The connection is closed as soon as it is established; this only
    certifies reachability, not login.

    Raises:
        ReachabilityTimeout: if no connection succeeded before *timeout*.
    """
    deadline = time.monotonic() + timeout
    attempts = 0
    while True:
        attempts += 1
        remaining = deadline - time.monotonic()
        try:
            conn = socket.create_connection((host, port), timeout=max(min(connect_timeout, remaining), 0.1))
        except OSError as e:
            logger.debug(f"{host}:{port} not reachable yet (attempt {attempts}): {e}")
        else:
            conn.close()
            logger.info(f"{host}:{port} is accepting connections.")
            return

        if time.monotonic() + interval > deadline:
            break
        time.sleep(interval)

    logger.error(f"Timeout after {timeout}s waiting for {host}:{port} ({attempts} attempts)")
    raise ReachabilityTimeout(host, port, timeout)
