"""Custom exceptions for memory storage operations."""


class MemoryError(Exception):
    """Base exception for memory-related errors."""

    pass


class PersistenceError(MemoryError):
    """Exception raised when a storage backend cannot be opened, read or written."""

    def __init__(self, backend: str, message: str):
        """Initialize with backend name.

        Args:
            backend: Name of the backend that failed
            message: Description of the failure
        """
        self.backend = backend
        super().__init__(f"[{backend}] {message}")


class ImportValidationError(MemoryError):
    """Exception raised when an import payload is malformed."""

    pass
