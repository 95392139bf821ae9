"""
Switchboard exception hierarchy.

All switchboard exceptions inherit from SwitchboardError, making it easy for
consumers to catch library-level errors while still distinguishing specific
failure modes.
"""


class SwitchboardError(Exception):
    """Base exception class for all switchboard errors."""


class ConfigurationError(SwitchboardError):
    """Raised for configuration errors (missing keys, invalid values)."""


class APIError(SwitchboardError):
    """Raised for backend communication errors."""


class FetchError(APIError):
    """Raised when the channel list cannot be loaded."""


class PersistError(APIError):
    """Raised when a channel order cannot be saved."""


class DataProcessingError(SwitchboardError):
    """Raised for data processing errors."""


class ChannelDataError(DataProcessingError):
    """Raised when a channel record from the backend is malformed."""


class OrderingError(SwitchboardError):
    """Raised when an ordering is not a permutation of the known channel ids."""
