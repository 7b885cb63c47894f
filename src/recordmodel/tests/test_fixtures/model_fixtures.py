"""Fixtures for model tests: test tables, schemas and the model classes built from them."""

import itertools
from typing import Any

import pytest
from sqlalchemy import Column, ForeignKeyConstraint, Integer, MetaData, PrimaryKeyConstraint, String, Table, Text

from recordmodel.database.protocols import Filter, Record
from recordmodel.exceptions import StoreError, StoreErrorCode
from recordmodel.models import use_model


def build_test_metadata() -> MetaData:
    """
    Tables used by the model tests.

    users2 and comment have an auto id inside a composite primary key. SQLite only
    generates values for a single INTEGER PRIMARY KEY, so those ids come from a
    client-side counter instead.
    """
    metadata = MetaData()
    users2_ids = itertools.count(1)
    comment_ids = itertools.count(1)

    Table(
        "users",
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("test", Integer, nullable=False),
        Column("a", Integer),
    )
    Table(
        "users2",
        metadata,
        Column("id", Integer, nullable=False, default=lambda: next(users2_ids)),
        Column("test", Integer, nullable=False),
        Column("a", Integer),
        PrimaryKeyConstraint("id", "test"),
    )
    Table(
        "users3",
        metadata,
        Column("email", String(128), nullable=False),
        Column("name", String(128), nullable=False),
        Column("a", Integer),
        PrimaryKeyConstraint("name", "email"),
    )
    Table(
        "comment",
        metadata,
        Column("id", Integer, nullable=False, default=lambda: next(comment_ids)),
        Column("userid", Integer, nullable=False),
        Column("comment", Text),
        PrimaryKeyConstraint("id", "userid"),
        ForeignKeyConstraint(["userid"], ["users.id"]),
    )
    Table(
        "derived",
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("test", Integer, nullable=False),
    )
    return metadata


USER_SCHEMA = {
    "id": {"type": "id", "key": True, "auto": True},
    "test": {"type": "int"},
    "a": {"type": "int", "optional": True},
}

MULTI_KEY_SCHEMA = {
    "id": {"type": "id", "key": True, "auto": True},
    "test": {"type": "int", "key": True},
    "a": {"type": "int", "optional": True},
}

NO_AUTO_SCHEMA = {
    "email": {"type": "email", "key": True},
    "name": {"type": "string", "key": True},
    "a": {"type": "int", "optional": True},
}

FOREIGN_SCHEMA = {
    "id": {"type": "id", "key": True, "auto": True},
    "userid": {"type": "id", "key": True},
    "comment": {"type": "string", "optional": True},
}


async def _derived_async(record, model):
    return "test"


DERIVED_SCHEMA = {
    "id": {"type": "id", "key": True, "auto": True},
    "test": {"type": "int", "public": True},
    "derivedId": {"type": "id", "derived": lambda record, model: record["id"], "public": True},
    "derivedAsync": {"type": "string", "derived": _derived_async, "public": True},
}

Users, User, NoUser = use_model(USER_SCHEMA, "users")
Users2, User2, NoUser2 = use_model(MULTI_KEY_SCHEMA, "users2")
Users3, User3, NoUser3 = use_model(NO_AUTO_SCHEMA, "users3")
Comments, Comment, NoComment = use_model(FOREIGN_SCHEMA, "comment")
DerivedItems, DerivedItem, NoDerivedItem = use_model(DERIVED_SCHEMA, "derived")


@pytest.fixture
def table_metadata() -> MetaData:
    """Fresh table definitions (and fresh id counters) for every test."""
    return build_test_metadata()


# ------------------------------------------------------------------------------------------------
# In-memory store, for engine tests that do not need SQL
# ------------------------------------------------------------------------------------------------


def _matches(record: Record, filter: Filter) -> bool:
    for field, expected in filter.items():
        value = record.get(field)
        if isinstance(expected, dict) and "op" in expected:
            if expected["op"] == "in" and value not in expected["val"]:
                return False
        elif isinstance(expected, list):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


class MemoryCursor:
    def __init__(self, rows: list[Record]):
        self._rows = rows

    async def to_list(self) -> list[Record]:
        return [dict(row) for row in self._rows]


class MemoryCollection:
    """
    List-backed collection. Store-native ids are strings ("id-1"), so identifier
    conversion is observable. `unique` names a field whose duplicates raise UNIQUE.
    """

    def __init__(self, unique: str | None = None):
        self.rows: list[Record] = []
        self.unique = unique
        self.updates: list[tuple[Filter, Record]] = []
        self.removed: list[Any] = []
        self._ids = itertools.count(1)

    def find(self, filter, limit=None, offset=None, order=None):
        rows = [row for row in self.rows if _matches(row, filter)]
        rows = rows[offset or 0:]
        return MemoryCursor(rows[:limit] if limit is not None else rows)

    def find_by_id(self, key_map):
        return self.find(key_map)

    def find_by_ids(self, key_map, limit=None, offset=None):
        return self.find(key_map, limit, offset)

    async def insert(self, records, returning=()):
        if self.unique:
            seen = {row.get(self.unique) for row in self.rows}
            for record in records:
                if record.get(self.unique) in seen:
                    raise StoreError(StoreErrorCode.UNIQUE, "duplicate")
                seen.add(record.get(self.unique))
        generated = []
        for record in records:
            values = {field: f"id-{next(self._ids)}" for field in returning}
            self.rows.append({**record, **values})
            generated.append(values)
        return generated

    async def update_one(self, key_filter, values):
        self.updates.append((dict(key_filter), dict(values)))
        for row in self.rows:
            if _matches(row, key_filter):
                row.update(values)

    async def remove(self, filter):
        self.removed.append(filter)
        filters = filter if isinstance(filter, list) else [filter]
        self.rows = [row for row in self.rows if not any(_matches(row, f) for f in filters)]


class MemoryStore:
    def __init__(self, **collections: MemoryCollection):
        self.collections = collections

    def collection(self, name: str) -> MemoryCollection:
        return self.collections.setdefault(name, MemoryCollection())

    def to_id(self, value):
        return f"id-{value}"

    def from_id(self, value):
        return int(str(value).removeprefix("id-"))


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()
