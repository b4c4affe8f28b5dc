"""scanstore: cached, attributable storage of license scan results."""

__version__ = "0.1.0"

from scanstore.exceptions import ConfigurationError, SchemaError, ScanStoreError, StorageError
from scanstore.model import (
    Identifier,
    Package,
    Provenance,
    ScannerDetails,
    ScanResult,
    ScanResultContainer,
)
from scanstore.storage import ScanResultsStorageHandle
from scanstore.storages import ArtifactoryStorage, NoStorage, PostgresStorage, ScanResultsStorage

__all__ = [
    "ArtifactoryStorage",
    "ConfigurationError",
    "Identifier",
    "NoStorage",
    "Package",
    "PostgresStorage",
    "Provenance",
    "ScanResult",
    "ScanResultContainer",
    "ScanResultsStorage",
    "ScanResultsStorageHandle",
    "ScanStoreError",
    "ScannerDetails",
    "SchemaError",
    "StorageError",
]
