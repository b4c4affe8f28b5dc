"""Storage backend contract shared by all scan results storages."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import structlog

from scanstore.exceptions import StorageError
from scanstore.model import (
    CompatibilityPolicy,
    Identifier,
    Package,
    ScannerDetails,
    ScanResult,
    ScanResultContainer,
)
from scanstore.model.scanner import DEFAULT_POLICY

log = structlog.get_logger("scanstore.storage")


class FetchStatus(Enum):
    """Outcome of asking a backend for the stored results of one identifier."""

    FOUND = "found"
    MISSING = "missing"
    FAILED = "failed"


@dataclass
class FetchResult:
    status: FetchStatus
    container: ScanResultContainer
    error: Exception | None = None

    @classmethod
    def found(cls, container: ScanResultContainer) -> FetchResult:
        return cls(FetchStatus.FOUND, container)

    @classmethod
    def missing(cls, id: Identifier) -> FetchResult:
        return cls(FetchStatus.MISSING, ScanResultContainer(id=id))

    @classmethod
    def failed(cls, id: Identifier, error: Exception) -> FetchResult:
        return cls(FetchStatus.FAILED, ScanResultContainer(id=id), error)


def rejection_reason(scan_result: ScanResult) -> str | None:
    """Return why *scan_result* must not be stored, or None if it may be.

    Empty scans and scans without raw output most likely failed and are cheap
    to redo. Results without provenance can never be matched to a source
    revision again.
    """
    if scan_result.summary.file_count == 0:
        return "no files were scanned"
    if scan_result.raw_result is None:
        return "the raw result is missing"
    if not scan_result.provenance.has_source():
        return "no provenance information is available"
    return None


class ScanResultsStorage(ABC):
    """
    Abstract base class for scan results storages.
    Subclasses implement fetching, storing and listing; filtering of
    results for a package and validation of new results live here.
    """

    def __init__(self, compatibility: CompatibilityPolicy | None = None) -> None:
        self.compatibility = compatibility or DEFAULT_POLICY

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier, e.g. 'postgres', 'artifactory'."""
        ...

    # ── backend hooks ──

    @abstractmethod
    def _fetch(self, id: Identifier) -> FetchResult:
        """Fetch all stored results for *id*. Must not raise for backend failures."""
        ...

    @abstractmethod
    def _store(self, id: Identifier, scan_result: ScanResult) -> bool:
        """Persist an already validated result. May raise StorageError."""
        ...

    @abstractmethod
    def list_packages(self) -> list[Identifier]:
        """Sorted identifiers with at least one stored result. May raise StorageError."""
        ...

    def _patch_results(self, results: list[ScanResult]) -> list[ScanResult]:
        """In-memory fix-ups applied to package reads; never written back."""
        return results

    def close(self) -> None:
        """Release resources held by the backend."""

    def __enter__(self) -> ScanResultsStorage:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ── public API ──

    def read(self, id: Identifier) -> ScanResultContainer:
        """Return all stored results for *id*; empty if none or the backend is unavailable."""
        outcome = self._fetch(id)
        if outcome.status is FetchStatus.FAILED:
            log.warning(
                "storage.read_failed",
                storage=self.name,
                id=id.to_coordinates(),
                error=str(outcome.error),
            )
        return outcome.container

    def read_package(self, pkg: Package, scanner_details: ScannerDetails) -> ScanResultContainer:
        """Return the stored results for *pkg* that can stand in for a scan with *scanner_details*.

        Results are kept if their provenance matches the package's current
        source location, then if their scanner is compatible.
        """
        results = list(self.read(pkg.id).results)
        if not results:
            return ScanResultContainer(id=pkg.id)

        matching = [r for r in results if r.provenance.matches(pkg)]
        if not matching:
            log.info(
                "storage.provenance_mismatch",
                storage=self.name,
                id=pkg.id.to_coordinates(),
                ignored=[r.provenance.model_dump(mode="json") for r in results],
            )
            return ScanResultContainer(id=pkg.id)

        compatible = [
            r for r in matching if scanner_details.is_compatible(r.scanner, self.compatibility)
        ]
        if not compatible:
            log.info(
                "storage.scanner_mismatch",
                storage=self.name,
                id=pkg.id.to_coordinates(),
                scanner=str(scanner_details),
                ignored=[str(r.scanner) for r in matching],
            )
            return ScanResultContainer(id=pkg.id)

        log.info(
            "storage.compatible_results",
            storage=self.name,
            id=pkg.id.to_coordinates(),
            scanner=str(scanner_details),
            count=len(compatible),
        )
        return ScanResultContainer(id=pkg.id, results=self._patch_results(compatible))

    def add(self, id: Identifier, scan_result: ScanResult) -> bool:
        """Store *scan_result* for *id*. Returns whether it was stored."""
        reason = rejection_reason(scan_result)
        if reason is not None:
            log.info(
                "storage.add_rejected", storage=self.name, id=id.to_coordinates(), reason=reason
            )
            return False

        try:
            stored = self._store(id, scan_result)
        except StorageError as exc:
            log.warning(
                "storage.add_failed",
                storage=self.name,
                id=id.to_coordinates(),
                error=str(exc),
                cause=repr(exc.__cause__) if exc.__cause__ else None,
            )
            return False

        if stored:
            log.info("storage.added", storage=self.name, id=id.to_coordinates())
        return stored
