"""Scanner configuration: which scan results storage to use and how to reach it."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from scanstore.model.scanner import POLICY_NAMES


class ArtifactoryStorageConfiguration(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: str = ""
    repository: str = ""
    api_token: str = ""
    timeout: float = 30.0
    # Number of downloaded blobs kept for conditional requests.
    cache_size: int = Field(default=256, ge=1)


class PostgresStorageConfiguration(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    url: str = ""
    schema_name: str = Field(default="", validation_alias=AliasChoices("schema", "schema_name"))
    username: str = ""
    password: str = ""


class ScannerConfiguration(BaseModel):
    """Storage selection and the scanner compatibility policy."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    artifactory_storage: ArtifactoryStorageConfiguration | None = Field(
        default=None,
        validation_alias=AliasChoices("artifactory_storage", "artifactory_cache"),
    )
    postgres_storage: PostgresStorageConfiguration | None = None
    compatibility: str = "minor"

    @field_validator("compatibility")
    @classmethod
    def _known_policy(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in POLICY_NAMES:
            raise ValueError(f"must be one of {sorted(POLICY_NAMES)}")
        return value


def load_configuration(path: str | Path) -> ScannerConfiguration:
    """Load a YAML configuration file.

    The settings may sit at the top level or under a single ``scanner`` key.
    """
    data: Any = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"configuration file {path} is not a mapping")
    if set(data) == {"scanner"}:
        data = data["scanner"] or {}
    return ScannerConfiguration.model_validate(data)
