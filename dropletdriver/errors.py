"""Error kinds raised by the droplet lifecycle driver."""


class DriverError(Exception):
    """Base class for all driver errors."""


class ConfigurationError(DriverError):
    """A required option is missing and has no derivable default."""


class ProviderError(DriverError):
    """The compute provider rejected a request or could not be reached."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class ProvisionError(DriverError):
    """Server creation failed.

    ``server_id`` is set when the server object was obtained before the
    failure, so the caller can still tear it down.
    """

    def __init__(self, message, server_id=None):
        super().__init__(message)
        self.server_id = server_id


class ServerNotReady(ProvisionError):
    """The server did not reach the ready status before the deadline."""

    def __init__(self, message, server_id=None, status=None):
        super().__init__(message, server_id)
        self.status = status


class ProvisionFailed(ProvisionError):
    """The provider reported a failure status for the server."""

    def __init__(self, message, server_id=None, status=None):
        super().__init__(message, server_id)
        self.status = status


class NoPublicAddress(ProvisionError):
    """The server is active but has no public network address."""


class ReachabilityTimeout(DriverError):
    """The server was created but its port never accepted connections."""

    def __init__(self, host, port, timeout, server_id=None):
        super().__init__(f"Timeout after {timeout}s waiting for {host}:{port} to accept connections")
        self.host = host
        self.port = port
        self.timeout = timeout
        self.server_id = server_id


class TeardownError(DriverError):
    """Deleting the server failed; its id must stay recorded for a retry."""

    def __init__(self, message, server_id=None):
        super().__init__(message)
        self.server_id = server_id


class StateError(DriverError):
    """The persisted state record could not be read."""
