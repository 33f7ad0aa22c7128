class SyncError(Exception):
    """Base class for every failure that aborts a sync run."""

    def __init__(self, message, details=None):
        super().__init__(message)
        self.details = list(details or [])


class ConfigurationError(SyncError):
    """Missing API credentials/endpoint or an unknown sync target."""


class TransportError(SyncError):
    """The remote API or the cache store could not be reached."""


class CircuitOpenError(TransportError):
    """Fetches are short-circuited after too many consecutive failures."""


class ProtocolError(SyncError):
    """The remote API answered, but with application-level errors."""


class ReconciliationError(SyncError):
    """A cache write batch failed."""


class SyncInProgressError(SyncError):
    """Another run already holds the lock for this target."""
