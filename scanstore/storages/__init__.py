"""Scan results storage backends."""

from scanstore.storages.artifactory import ArtifactoryStorage
from scanstore.storages.base import (
    FetchResult,
    FetchStatus,
    ScanResultsStorage,
    rejection_reason,
)
from scanstore.storages.null import NoStorage
from scanstore.storages.postgres import PostgresStorage

__all__ = [
    "ArtifactoryStorage",
    "FetchResult",
    "FetchStatus",
    "NoStorage",
    "PostgresStorage",
    "ScanResultsStorage",
    "rejection_reason",
]
