"""
Backing store contract.

Models only ever talk to a store through these protocols, so anything that
implements them (the SQLAlchemy store in store.py, an in-memory fake in tests)
can back a model. Writes that violate a store constraint must raise
`recordmodel.exceptions.StoreError` with the matching `StoreErrorCode`.

Filters are plain mappings of field name to either a literal (equality) or a
predicate object `{"op": <op>, "val": <value>}`. A tuple of field names may
stand in for a field name with "in" or "notin" over value tuples. Orders are sequences of
`{"key": <field>, "dir": "ASC" | "DESC"}`.
"""

from typing import Any, Mapping, Protocol, Sequence

Filter = Mapping[str | tuple[str, ...], Any]
Order = Sequence[Mapping[str, str]]
Record = dict[str, Any]


class Cursor(Protocol):
    async def to_list(self) -> list[Record]:
        ...


class Collection(Protocol):
    def find(self, filter: Filter, limit: int | None = None, offset: int | None = None,
             order: Order | None = None) -> Cursor:
        ...

    def find_by_id(self, key_map: Filter) -> Cursor:
        ...

    def find_by_ids(self, key_map: Filter, limit: int | None = None, offset: int | None = None) -> Cursor:
        ...

    async def insert(self, records: Sequence[Record], returning: Sequence[str] = ()) -> list[Record]:
        """Insert all records; return, per record and in order, the values of `returning`."""
        ...

    async def update_one(self, key_filter: Filter, values: Record) -> None:
        ...

    async def remove(self, filter: Filter) -> None:
        ...


class Store(Protocol):
    def collection(self, name: str) -> Collection:
        ...

    def to_id(self, value: Any) -> Any:
        """Canonical identifier -> store-native identifier."""
        ...

    def from_id(self, value: Any) -> Any:
        """Store-native identifier -> canonical identifier."""
        ...
