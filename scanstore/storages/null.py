"""Storage that stores nothing: the default until a real backend is configured."""

from __future__ import annotations

from scanstore.model import Identifier, ScanResult
from scanstore.storages.base import FetchResult, ScanResultsStorage


class NoStorage(ScanResultsStorage):
    """Always misses on read and rejects every write."""

    @property
    def name(self) -> str:
        return "none"

    def _fetch(self, id: Identifier) -> FetchResult:
        return FetchResult.missing(id)

    def _store(self, id: Identifier, scan_result: ScanResult) -> bool:
        return False

    def list_packages(self) -> list[Identifier]:
        return []
