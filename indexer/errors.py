"""Store error hierarchy."""

from typing import Optional


class StoreError(Exception):
    """Base class for all document store failures."""


class NotInitializedError(StoreError):
    """Raised when the store is used before ``initialize()`` has completed."""

    def __init__(self, operation: str):
        super().__init__(f"Document store not initialized (operation: {operation}). Call initialize() first.")
        self.operation = operation


class StorageError(StoreError):
    """Wraps an underlying SQLite failure; the original is kept as ``cause``."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        message = f"Storage failure during {operation}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
        self.operation = operation
        self.cause = cause
