"""Exception types for SyncReeper."""

from typing import Optional


class SyncReeperError(Exception):
    """Base class for errors raised by SyncReeper."""


class ConfigurationError(SyncReeperError, ValueError):
    """Raised when required configuration is missing or malformed."""


class InventoryError(SyncReeperError):
    """Raised when the remote repository inventory cannot be fetched."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
