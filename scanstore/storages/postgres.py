"""Relational scan results storage: one append-only row per stored result."""

from __future__ import annotations

import structlog
from pydantic import ValidationError
from sqlalchemy import (
    JSON,
    Column,
    Engine,
    Index,
    Integer,
    MetaData,
    Sequence,
    Table,
    Text,
    inspect,
    insert,
    select,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import SQLAlchemyError

from scanstore.exceptions import SchemaError, StorageError
from scanstore.model import CompatibilityPolicy, Identifier, ScanResult, ScanResultContainer
from scanstore.serialization import scan_result_from_payload, scan_result_to_payload
from scanstore.storages.base import FetchResult, ScanResultsStorage

log = structlog.get_logger("scanstore.storage")

TABLE_NAME = "scan_results"


def build_table(metadata: MetaData, schema: str | None, dialect: str) -> Table:
    """Define the scan results table.

    The shape (sequence fed ``id``, ``identifier`` text, JSON ``scan_result``
    and the ``identifier`` index) is the on-disk format and must stay stable.
    """
    seq = Sequence(f"{TABLE_NAME}_id_seq", schema=schema, metadata=metadata)
    id_kwargs = {"server_default": seq.next_value()} if dialect == "postgresql" else {}
    return Table(
        TABLE_NAME,
        metadata,
        Column("id", Integer, seq, primary_key=True, **id_kwargs),
        Column("identifier", Text, nullable=False),
        Column("scan_result", JSON().with_variant(JSONB(), "postgresql"), nullable=False),
        Index("identifier", "identifier"),
        schema=schema,
    )


class PostgresStorage(ScanResultsStorage):
    """
    Scan results stored as rows of a single table.
    Writes only ever insert, so concurrent writers never conflict; identical
    results stored twice are kept twice.
    """

    def __init__(
        self,
        engine: Engine,
        schema: str | None = None,
        compatibility: CompatibilityPolicy | None = None,
        owns_engine: bool = False,
    ) -> None:
        super().__init__(compatibility)
        self._engine = engine
        self._schema = schema or None
        self._owns_engine = owns_engine
        self._metadata = MetaData()
        self.table = build_table(self._metadata, self._schema, engine.dialect.name)

    @property
    def name(self) -> str:
        return "postgres"

    @property
    def qualified_table(self) -> str:
        return f"{self._schema}.{TABLE_NAME}" if self._schema else TABLE_NAME

    # ── Schema Management ──

    def init(self) -> None:
        """Create the table, its sequence and index unless the table already exists."""
        try:
            if self._table_exists():
                return
            log.info("postgres.create_table", table=self.qualified_table)
            with self._engine.begin() as conn:
                self._metadata.create_all(conn)
            created = self._table_exists()
        except SQLAlchemyError as exc:
            raise SchemaError(f"could not set up table {self.qualified_table}: {exc}") from exc

        if not created:
            raise SchemaError(f"table {self.qualified_table} does not exist after creation")
        log.info("postgres.created_table", table=self.qualified_table)

    def _table_exists(self) -> bool:
        return inspect(self._engine).has_table(TABLE_NAME, schema=self._schema)

    def close(self) -> None:
        if self._owns_engine:
            self._engine.dispose()

    # ── Storage Operations ──

    def _fetch(self, id: Identifier) -> FetchResult:
        coordinates = id.to_coordinates()
        log.info("postgres.read", id=coordinates)

        stmt = (
            select(self.table.c.id, self.table.c.scan_result)
            .where(self.table.c.identifier == coordinates)
            .order_by(self.table.c.id)
        )
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(stmt).all()
        except SQLAlchemyError as exc:
            return FetchResult.failed(id, exc)

        results: list[ScanResult] = []
        for row_id, payload in rows:
            try:
                results.append(scan_result_from_payload(payload))
            except (ValidationError, ValueError) as exc:
                log.warning("postgres.undecodable_row", id=coordinates, row=row_id, error=str(exc))

        log.info("postgres.found", id=coordinates, count=len(results))
        if not results:
            return FetchResult.missing(id)
        return FetchResult.found(ScanResultContainer(id=id, results=results))

    def _store(self, id: Identifier, scan_result: ScanResult) -> bool:
        stmt = insert(self.table).values(
            identifier=id.to_coordinates(),
            scan_result=scan_result_to_payload(scan_result),
        )
        try:
            with self._engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError(f"could not insert into {self.qualified_table}") from exc
        return True

    def list_packages(self) -> list[Identifier]:
        stmt = select(self.table.c.identifier).distinct()
        try:
            with self._engine.connect() as conn:
                coordinates = conn.scalars(stmt).all()
        except SQLAlchemyError as exc:
            raise StorageError(f"could not list packages in {self.qualified_table}") from exc
        return sorted({Identifier.from_coordinates(c) for c in coordinates})
