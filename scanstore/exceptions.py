"""Custom exceptions for the scan result storage."""


class ScanStoreError(Exception):
    """Base exception for all scan result storage errors."""


class ConfigurationError(ScanStoreError):
    """Raised when a required storage configuration field is blank."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class StorageError(ScanStoreError):
    """Raised when a storage backend cannot complete an operation."""


class SchemaError(StorageError):
    """Raised when the scan results table cannot be verified or created."""
