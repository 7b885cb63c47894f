"""
SQLAlchemy Core implementation of the backing store.

    engine = create_store_engine(get_settings())
    store = SqlStore(engine, metadata)
    users = store.collection("users")

Every collection is a table of `metadata`, looked up by the collection name with
`COLLECTION_PREFIX` prepended. Writes run in their own transaction; integrity
failures are classified and raised as `StoreError`.
"""

import logging
from typing import Any, Sequence

from sqlalchemy import MetaData, Select, Table, delete, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine

from recordmodel.config import get_settings
from recordmodel.database.filters import build_order, build_where
from recordmodel.database.protocols import Filter, Order, Record
from recordmodel.exceptions.integrity_classifier import to_store_error

logger = logging.getLogger(__name__)


class SqlCursor:
    """A not yet executed SELECT. Nothing touches the database before `to_list`."""

    def __init__(self, engine: AsyncEngine, statement: Select):
        self._engine = engine
        self._statement = statement

    async def to_list(self) -> list[Record]:
        async with self._engine.connect() as conn:
            result = await conn.execute(self._statement)
            return [dict(row) for row in result.mappings()]


class SqlCollection:
    def __init__(self, engine: AsyncEngine, table: Table):
        self._engine = engine
        self.table = table

    @property
    def name(self) -> str:
        return self.table.name

    def _select(self, filter: Filter | None, limit: int | None = None, offset: int | None = None,
                order: Order | None = None) -> SqlCursor:
        stmt = select(self.table).where(build_where(self.table, filter))
        order_by = build_order(self.table, order)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)
        return SqlCursor(self._engine, stmt)

    def find(self, filter: Filter, limit: int | None = None, offset: int | None = None,
             order: Order | None = None) -> SqlCursor:
        return self._select(filter, limit, offset, order)

    def find_by_id(self, key_map: Filter) -> SqlCursor:
        return self._select(key_map)

    def find_by_ids(self, key_map: Filter, limit: int | None = None, offset: int | None = None) -> SqlCursor:
        """Like find_by_id, but list values match any of their elements."""
        filter = {
            field: {"op": "in", "val": value} if isinstance(value, (list, tuple)) else value
            for field, value in key_map.items()
        }
        return self._select(filter, limit, offset)

    async def insert(self, records: Sequence[Record], returning: Sequence[str] = ()) -> list[Record]:
        """
        Insert all records in one transaction.

        Returns, for each record in order, a dict of the `returning` columns as
        generated by the database.
        """
        if not records:
            return []

        stmt = insert(self.table)
        if returning:
            stmt = stmt.returning(*(self.table.c[field] for field in returning), sort_by_parameter_order=True)

        logger.debug("store.insert.start", extra={"collection": self.name, "count": len(records)})
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(stmt, [dict(record) for record in records])
                if not returning:
                    return [{} for _ in records]
                return [dict(row) for row in result.mappings().all()]
        except IntegrityError as exc:
            raise to_store_error(exc) from exc

    async def update_one(self, key_filter: Filter, values: Record) -> None:
        stmt = update(self.table).where(build_where(self.table, key_filter)).values(**values)
        try:
            async with self._engine.begin() as conn:
                await conn.execute(stmt)
        except IntegrityError as exc:
            raise to_store_error(exc) from exc

    async def remove(self, filter: Filter | Sequence[Filter]) -> None:
        """
        Delete the matching rows in a single statement.

        `filter` may be a sequence of filters, in which case a row is deleted when
        it matches any of them.
        """
        if isinstance(filter, (list, tuple)):
            where = or_(*(build_where(self.table, f) for f in filter))
        else:
            where = build_where(self.table, filter)

        logger.debug("store.remove.start", extra={"collection": self.name})
        try:
            async with self._engine.begin() as conn:
                await conn.execute(delete(self.table).where(where))
        except IntegrityError as exc:
            raise to_store_error(exc) from exc


class SqlStore:
    """
    Store over the tables of a `MetaData`.

    Args:
        engine: AsyncEngine the collections run their statements on.
        metadata: MetaData holding (or reflected with) the collection tables.
        prefix: Prepended to every collection name. Defaults to settings.COLLECTION_PREFIX.
    """

    def __init__(self, engine: AsyncEngine, metadata: MetaData, prefix: str | None = None):
        self.engine = engine
        self.metadata = metadata
        self.prefix = get_settings().COLLECTION_PREFIX if prefix is None else prefix

    def collection(self, name: str) -> SqlCollection:
        table_name = f"{self.prefix}{name}"
        try:
            table = self.metadata.tables[table_name]
        except KeyError:
            raise ValueError(f"Unknown collection {table_name!r}") from None
        return SqlCollection(self.engine, table)

    # SQL keys are already plain ints or strings
    def to_id(self, value: Any) -> Any:
        return value

    def from_id(self, value: Any) -> Any:
        return value
