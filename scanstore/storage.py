"""Process-wide scan results storage handle with access statistics.

Usage::

    from scanstore.storage import storage

    storage.configure(ArtifactoryStorageConfiguration(url=..., repository=..., api_token=...))
    container = storage.read_package(pkg, scanner_details)
"""

from __future__ import annotations

import structlog
from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url

from scanstore.config import (
    ArtifactoryStorageConfiguration,
    PostgresStorageConfiguration,
    ScannerConfiguration,
)
from scanstore.exceptions import ConfigurationError, SchemaError
from scanstore.model import (
    AccessStatistics,
    CompatibilityPolicy,
    Identifier,
    Package,
    ScannerDetails,
    ScanResult,
    ScanResultContainer,
    policy_from_name,
)
from scanstore.storages import ArtifactoryStorage, NoStorage, PostgresStorage, ScanResultsStorage

log = structlog.get_logger("scanstore.storage")

StorageConfiguration = ArtifactoryStorageConfiguration | PostgresStorageConfiguration


def _require(value: str, field: str, message: str) -> None:
    if not value or not value.strip():
        raise ConfigurationError(field, message)


class ScanResultsStorageHandle:
    """Wraps the configured storage and records read statistics.

    Starts out with :class:`NoStorage`, so use before configuration is safe.
    """

    def __init__(self, backend: ScanResultsStorage | None = None) -> None:
        self.backend: ScanResultsStorage = backend or NoStorage()
        self.stats = AccessStatistics()

    # ── configuration ──

    def configure(
        self,
        config: StorageConfiguration,
        *,
        engine: Engine | None = None,
        compatibility: CompatibilityPolicy | None = None,
    ) -> ScanResultsStorage:
        """Validate *config*, build the matching backend and make it the active one.

        For Postgres a caller-owned *engine* is used if given, otherwise one is
        created from the configuration.
        """
        if isinstance(config, ArtifactoryStorageConfiguration):
            _require(config.url, "url", "URL for Artifactory storage is missing.")
            _require(config.repository, "repository", "Repository for Artifactory storage is missing.")
            _require(config.api_token, "api_token", "API token for Artifactory storage is missing.")
            backend: ScanResultsStorage = ArtifactoryStorage(
                config.url,
                config.repository,
                config.api_token,
                compatibility=compatibility,
                timeout=config.timeout,
                cache_size=config.cache_size,
            )
            log.info("storage.configured", storage=backend.name, url=config.url)
        elif isinstance(config, PostgresStorageConfiguration):
            _require(config.url, "url", "URL for PostgreSQL storage is missing.")
            _require(config.schema_name, "schema", "Schema for PostgreSQL storage is missing.")
            _require(config.username, "username", "Username for PostgreSQL storage is missing.")
            owns_engine = engine is None
            if engine is None:
                url = make_url(config.url).set(
                    username=config.username, password=config.password or None
                )
                engine = create_engine(url, pool_pre_ping=True)
            backend = PostgresStorage(
                engine,
                config.schema_name,
                compatibility=compatibility,
                owns_engine=owns_engine,
            )
            try:
                backend.init()
            except SchemaError:
                backend.close()
                raise
            log.info("storage.configured", storage=backend.name, schema=config.schema_name)
        else:
            raise TypeError(f"unsupported storage configuration: {type(config).__name__}")

        self._install(backend)
        return backend

    def configure_from(
        self, config: ScannerConfiguration, *, engine: Engine | None = None
    ) -> ScanResultsStorage:
        """Configure from a scanner configuration, preferring Artifactory over Postgres."""
        compatibility = policy_from_name(config.compatibility)
        if config.artifactory_storage is not None:
            return self.configure(config.artifactory_storage, compatibility=compatibility)
        if config.postgres_storage is not None:
            return self.configure(
                config.postgres_storage, engine=engine, compatibility=compatibility
            )
        log.info("storage.not_configured")
        backend = NoStorage(compatibility)
        self._install(backend)
        return backend

    def reset(self) -> None:
        self._install(NoStorage())

    def _install(self, backend: ScanResultsStorage) -> None:
        """Make *backend* the active storage and release the one it replaces."""
        previous, self.backend = self.backend, backend
        if previous is not backend:
            previous.close()

    # ── storage operations ──

    def read(self, id: Identifier) -> ScanResultContainer:
        container = self.backend.read(id)
        self.stats.record_read(hit=not container.is_empty())
        return container

    def read_package(self, pkg: Package, scanner_details: ScannerDetails) -> ScanResultContainer:
        container = self.backend.read_package(pkg, scanner_details)
        self.stats.record_read(hit=not container.is_empty())
        return container

    def add(self, id: Identifier, scan_result: ScanResult) -> bool:
        return self.backend.add(id, scan_result)

    def list_packages(self) -> list[Identifier]:
        return self.backend.list_packages()


storage = ScanResultsStorageHandle()
