"""Scanner details and the policies deciding when stored results can be reused."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version
from pydantic import BaseModel, ConfigDict


def _parse_version(value: str) -> Version | None:
    try:
        return Version(value)
    except InvalidVersion:
        return None


@runtime_checkable
class CompatibilityPolicy(Protocol):
    """Decides whether a stored scanner version can stand in for a requested one."""

    def versions_compatible(self, requested: str, stored: str) -> bool: ...


class ExactVersionPolicy:
    def versions_compatible(self, requested: str, stored: str) -> bool:
        return requested == stored


class _ReleasePrefixPolicy:
    """Versions are compatible if the first ``depth`` release numbers agree."""

    depth = 2

    def versions_compatible(self, requested: str, stored: str) -> bool:
        req, sto = _parse_version(requested), _parse_version(stored)
        if req is None or sto is None:
            return requested == stored
        pad = (0,) * self.depth
        return (req.release + pad)[: self.depth] == (sto.release + pad)[: self.depth]


class SameMinorVersionPolicy(_ReleasePrefixPolicy):
    depth = 2


class SameMajorVersionPolicy(_ReleasePrefixPolicy):
    depth = 1


class VersionRangePolicy:
    """Accepts any stored version inside *specifier*, e.g. ``">=3.0,<3.3"``."""

    def __init__(self, specifier: str) -> None:
        try:
            self.specifier = SpecifierSet(specifier)
        except InvalidSpecifier as exc:
            raise ValueError(f"invalid version range: {specifier!r}") from exc

    def versions_compatible(self, requested: str, stored: str) -> bool:
        version = _parse_version(stored)
        if version is None:
            return False
        return self.specifier.contains(version, prereleases=True)


DEFAULT_POLICY: CompatibilityPolicy = SameMinorVersionPolicy()

_NAMED_POLICIES: dict[str, type] = {
    "exact": ExactVersionPolicy,
    "minor": SameMinorVersionPolicy,
    "major": SameMajorVersionPolicy,
}

POLICY_NAMES = frozenset(_NAMED_POLICIES)


def policy_from_name(name: str) -> CompatibilityPolicy:
    """Resolve a policy by configuration name (``exact``, ``minor``, ``major``)."""
    try:
        return _NAMED_POLICIES[name.strip().lower()]()
    except KeyError:
        raise ValueError(
            f"unknown compatibility policy {name!r}, expected one of {sorted(_NAMED_POLICIES)}"
        ) from None


class ScannerDetails(BaseModel):
    """Name, version and configuration fingerprint of a scanner."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    configuration: str = ""

    def is_compatible(
        self, other: ScannerDetails, policy: CompatibilityPolicy | None = None
    ) -> bool:
        """Return True if results of *other* can be reused in place of a scan by this scanner."""
        policy = policy or DEFAULT_POLICY
        return (
            self.name.lower() == other.name.lower()
            and self.configuration == other.configuration
            and policy.versions_compatible(self.version, other.version)
        )

    def __str__(self) -> str:
        return f"{self.name} {self.version}"
