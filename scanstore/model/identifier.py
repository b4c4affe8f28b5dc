"""Package identifier: the primary cache key of every storage backend."""

from __future__ import annotations

from functools import total_ordering
from typing import Any
from urllib.parse import quote, unquote

from pydantic import BaseModel, ConfigDict, model_serializer, model_validator

# Path component used for blank identifier fields.
UNKNOWN_COMPONENT = "unknown"


def file_system_encode(value: str) -> str:
    """Percent-encode *value* so it is safe as a single path component."""
    encoded = quote(value, safe="")
    # A literal "unknown" must not read back as the blank-component marker.
    if encoded == UNKNOWN_COMPONENT:
        encoded = "%75" + encoded[1:]
    # "." and ".." are valid percent-encoding results but not valid path segments.
    if encoded in (".", ".."):
        encoded = encoded.replace(".", "%2E")
    return encoded


def file_system_decode(value: str) -> str:
    return unquote(value)


@total_ordering
class Identifier(BaseModel):
    """Four-part coordinate naming a package or project.

    Serialized as its coordinates string ``type:namespace:name:version``.
    """

    model_config = ConfigDict(frozen=True)

    type: str = ""
    namespace: str = ""
    name: str = ""
    version: str = ""

    @model_validator(mode="before")
    @classmethod
    def _parse_coordinates(cls, data: Any) -> Any:
        if isinstance(data, str):
            return cls._split(data)
        return data

    @model_serializer(mode="plain")
    def _serialize(self) -> str:
        return self.to_coordinates()

    @staticmethod
    def _split(coordinates: str) -> dict[str, str]:
        parts = coordinates.split(":", 3)
        parts += [""] * (4 - len(parts))
        return dict(zip(("type", "namespace", "name", "version"), parts))

    @classmethod
    def from_coordinates(cls, coordinates: str) -> Identifier:
        """Parse ``type:namespace:name:version``; missing trailing parts are empty."""
        return cls(**cls._split(coordinates.strip()))

    @classmethod
    def from_path(cls, path: str) -> Identifier:
        """Invert :meth:`to_path` for the last four components of *path*."""
        components = [c for c in path.strip("/").split("/") if c]
        if len(components) < 4:
            raise ValueError(f"path has fewer than four components: {path!r}")
        values = [
            "" if c == UNKNOWN_COMPONENT else file_system_decode(c) for c in components[-4:]
        ]
        return cls(**dict(zip(("type", "namespace", "name", "version"), values)))

    def as_tuple(self) -> tuple[str, str, str, str]:
        return (self.type, self.namespace, self.name, self.version)

    def to_coordinates(self) -> str:
        return ":".join(self.as_tuple())

    def to_path(self) -> str:
        """Filesystem-safe ``type/namespace/name/version`` path."""
        return "/".join(
            file_system_encode(c) if c else UNKNOWN_COMPONENT for c in self.as_tuple()
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Identifier):
            return NotImplemented
        return self.as_tuple() < other.as_tuple()

    def __str__(self) -> str:
        return self.to_coordinates()
