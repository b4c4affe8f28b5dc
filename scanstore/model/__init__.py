"""Value types shared by the storage backends: identity, provenance, scanners, results."""

from scanstore.model.identifier import Identifier
from scanstore.model.package import Hash, Package, RemoteArtifact, VcsInfo
from scanstore.model.provenance import Provenance
from scanstore.model.result import (
    CopyrightFinding,
    LicenseFinding,
    ScanResult,
    ScanResultContainer,
    ScanSummary,
    TextLocation,
)
from scanstore.model.scanner import (
    CompatibilityPolicy,
    ExactVersionPolicy,
    SameMajorVersionPolicy,
    SameMinorVersionPolicy,
    ScannerDetails,
    VersionRangePolicy,
    policy_from_name,
)
from scanstore.model.stats import AccessStatistics

__all__ = [
    "AccessStatistics",
    "CompatibilityPolicy",
    "CopyrightFinding",
    "ExactVersionPolicy",
    "Hash",
    "Identifier",
    "LicenseFinding",
    "Package",
    "Provenance",
    "RemoteArtifact",
    "SameMajorVersionPolicy",
    "SameMinorVersionPolicy",
    "ScanResult",
    "ScanResultContainer",
    "ScanSummary",
    "ScannerDetails",
    "TextLocation",
    "VcsInfo",
    "VersionRangePolicy",
    "policy_from_name",
]
