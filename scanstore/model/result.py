"""Scan result model: findings, summaries and the per-identifier container."""

from __future__ import annotations

import fnmatch
import posixpath
from datetime import datetime
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer

from scanstore.model.identifier import Identifier
from scanstore.model.provenance import Provenance
from scanstore.model.scanner import ScannerDetails

# File name patterns whose findings apply to the whole source tree.
LICENSE_FILE_PATTERNS = [
    "copying*",
    "copyright",
    "licence*",
    "license*",
    "*.licence",
    "*.license",
    "patents",
    "unlicence",
    "unlicense",
]


def is_license_file(path: str) -> bool:
    name = posixpath.basename(path).lower()
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in LICENSE_FILE_PATTERNS)


def _sorted_unique(items: Iterable, key) -> tuple:
    unique = {key(item): item for item in items}
    return tuple(unique[k] for k in sorted(unique))


class TextLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    start_line: int
    end_line: int

    def sort_key(self) -> tuple[str, int, int]:
        return (self.path, self.start_line, self.end_line)


class CopyrightFinding(BaseModel):
    model_config = ConfigDict(frozen=True)

    statement: str
    locations: tuple[TextLocation, ...] = ()

    @field_validator("locations", mode="after")
    @classmethod
    def _sort_locations(cls, value: tuple[TextLocation, ...]) -> tuple[TextLocation, ...]:
        return _sorted_unique(value, TextLocation.sort_key)

    def sort_key(self) -> tuple:
        return (self.statement, tuple(loc.sort_key() for loc in self.locations))


class LicenseFinding(BaseModel):
    """A license expression, where it was found, and the copyrights next to it."""

    model_config = ConfigDict(frozen=True)

    license: str
    locations: tuple[TextLocation, ...] = ()
    copyrights: tuple[CopyrightFinding, ...] = ()

    @field_validator("locations", mode="after")
    @classmethod
    def _sort_locations(cls, value: tuple[TextLocation, ...]) -> tuple[TextLocation, ...]:
        return _sorted_unique(value, TextLocation.sort_key)

    @field_validator("copyrights", mode="after")
    @classmethod
    def _sort_copyrights(cls, value: tuple[CopyrightFinding, ...]) -> tuple[CopyrightFinding, ...]:
        return _sorted_unique(value, CopyrightFinding.sort_key)

    def sort_key(self) -> tuple:
        return (
            self.license,
            tuple(loc.sort_key() for loc in self.locations),
            tuple(c.sort_key() for c in self.copyrights),
        )


class ScanSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_time: datetime | None = None
    end_time: datetime | None = None
    file_count: int = 0
    license_findings: tuple[LicenseFinding, ...] = ()
    errors: tuple[str, ...] = ()

    @field_validator("license_findings", mode="after")
    @classmethod
    def _sort_findings(cls, value: tuple[LicenseFinding, ...]) -> tuple[LicenseFinding, ...]:
        return _sorted_unique(value, LicenseFinding.sort_key)

    @property
    def licenses(self) -> set[str]:
        return {finding.license for finding in self.license_findings}


class ScanResult(BaseModel):
    """One scanner run over one provenance.

    ``raw_result`` is the scanner's native output. It may be None while a
    result is passed around in memory but must be set for it to be stored.
    """

    model_config = ConfigDict(frozen=True)

    provenance: Provenance
    scanner: ScannerDetails
    summary: ScanSummary = Field(default_factory=ScanSummary)
    raw_result: Any = None

    @model_serializer(mode="wrap")
    def _omit_missing_raw_result(self, handler):
        data = handler(self)
        if isinstance(data, dict) and data.get("raw_result") is None:
            data.pop("raw_result", None)
        return data

    def filter_path(self, path: str) -> ScanResult:
        """Restrict the findings to the subdirectory *path* of the scanned tree.

        Findings in license files are kept wherever they are located. The raw
        result is dropped because it still describes the whole tree.
        """
        prefix = path.strip("/") + "/"

        def keep(locations: tuple[TextLocation, ...]) -> tuple[TextLocation, ...]:
            return tuple(
                loc for loc in locations if loc.path.startswith(prefix) or is_license_file(loc.path)
            )

        findings = []
        for finding in self.summary.license_findings:
            locations = keep(finding.locations)
            if not locations:
                continue
            copyrights = []
            for cf in finding.copyrights:
                cf_locations = keep(cf.locations)
                if cf_locations:
                    copyrights.append(CopyrightFinding(statement=cf.statement, locations=cf_locations))
            findings.append(
                LicenseFinding(license=finding.license, locations=locations, copyrights=copyrights)
            )

        file_count = len({loc.path for finding in findings for loc in finding.locations})

        provenance = self.provenance
        updates: dict[str, Any] = {}
        if provenance.vcs_info is not None:
            updates["vcs_info"] = provenance.vcs_info.model_copy(update={"path": path})
        if provenance.original_vcs_info is not None:
            updates["original_vcs_info"] = provenance.original_vcs_info.model_copy(
                update={"path": path}
            )

        return ScanResult(
            provenance=provenance.model_copy(update=updates),
            scanner=self.scanner,
            summary=ScanSummary(
                start_time=self.summary.start_time,
                end_time=self.summary.end_time,
                file_count=file_count,
                license_findings=findings,
                errors=self.summary.errors,
            ),
        )


class ScanResultContainer(BaseModel):
    """All stored scan results for one identifier, in insertion order."""

    model_config = ConfigDict(frozen=True)

    id: Identifier
    results: tuple[ScanResult, ...] = ()

    def is_empty(self) -> bool:
        return not self.results

    def appended(self, result: ScanResult) -> ScanResultContainer:
        return ScanResultContainer(id=self.id, results=self.results + (result,))
