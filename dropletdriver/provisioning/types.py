"""Shared data types for the compute provider boundary."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ServerHandle:
    """Provider's view of a server. The driver only reads it."""

    id: str
    name: str = ""
    status: str = ""
    public_address: str | None = None


class ComputeProvider(ABC):
    """Capability the driver needs from a cloud API.

    Implementations raise ``ProviderError`` for rejected requests and
    transport failures.
    """

    @abstractmethod
    def create_server(self, request: dict) -> ServerHandle:
        """Submit a create request and return the new server."""

    @abstractmethod
    def get_server(self, server_id: str) -> ServerHandle | None:
        """Look up a server by id. Returns None if it does not exist."""

    @abstractmethod
    def delete_server(self, server_id: str) -> bool:
        """Delete a server. Returns False if it did not exist."""
