"""Idempotent server teardown."""

import logging

from dropletdriver.errors import ProviderError, TeardownError

logger = logging.getLogger(__name__)


def destroy_server(provider, server_id, logger=None):
    """Delete a server, tolerating one that is already gone.

    Returns:
        True if the caller should clear ``server_id``/``hostname`` from its
        state (deleted, or not found), False if there was nothing to do.

    Raises:
        TeardownError: the provider failed; the caller must keep its state.
    """
    logger = logger or logging.getLogger(__name__)
    if not server_id:
        return False

    try:
        server = provider.get_server(server_id)
        if server is None:
            logger.info(f"Server {server_id} not found; already destroyed.")
            return True

        logger.info(f"Destroying server {server_id} ({server.name})...")
        if provider.delete_server(server_id):
            logger.info(f"Server {server_id} destroyed.")
        else:
            logger.info(f"Server {server_id} disappeared before delete; already destroyed.")
    except ProviderError as e:
        raise TeardownError(f"Failed to destroy server {server_id}: {e}", server_id=server_id) from e
    return True
