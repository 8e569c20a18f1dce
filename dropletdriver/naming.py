"""Default server names."""

import getpass
import socket
import uuid


def default_name(instance_name, user=None, host=None, token=None):
    """Build ``<instance>-<user>-<token>-<host>``.

    The random token keeps names unique across concurrent runs by the same
    user on the same host.
    """
    user = user or getpass.getuser()
    host = host or socket.gethostname()
    token = token or uuid.uuid4().hex[:8]
    return f"{instance_name}-{user}-{token}-{host}"
