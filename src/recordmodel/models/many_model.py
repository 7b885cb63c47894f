from typing import Any, Callable, ClassVar, Mapping, Sequence

from recordmodel.database.protocols import Filter, Order, Record, Store
from recordmodel.engine.persistence import ModelDefinition, PersistenceEngine
from recordmodel.exceptions.base import (
    ConstraintFailed,
    IsReference,
    MissingKeysError,
    ModelUsageError,
    NotUnique,
)
from recordmodel.exceptions.integrity_classifier import StoreErrorCode
from recordmodel.utils.serialization import safe_dumps
from recordmodel.validators.record_validators import keys_match

STORE_ERRORS = {
    StoreErrorCode.UNIQUE: NotUnique,
    StoreErrorCode.REFERENCE: ConstraintFailed,
    StoreErrorCode.CHECK: ConstraintFailed,
}
DELETE_ERRORS = {StoreErrorCode.REFERENCE: IsReference}


class ManyModel:
    """
    Any number of records of one collection.

    Usage:
        Users, User, NoUser = use_model(schema, "users")
        users = await Users(store).load({"a": 4})
        users.set("a", 5)
        await users.update()

    Subclasses are created by `use_model`, which binds `definition`.
    """

    definition: ClassVar[ModelDefinition]

    def __init__(self, store: Store, contents: Sequence[Mapping[str, Any]] | None = None):
        self._engine = PersistenceEngine(self.definition, store)
        if contents is None:
            self.contents: list[Record] = []
        elif not isinstance(contents, (list, tuple)):
            raise ModelUsageError("contents should be a list", collection=self.definition.collection)
        else:
            self.contents = self._engine.fill_defaults(contents)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(collection={self.definition.collection!r}, length={len(self.contents)})"

    async def load(self, filter: Filter, limit: int | None = None, offset: int | None = None,
                   order: Order | None = None) -> "ManyModel":
        """Replace contents with the records matching `filter`."""
        self.contents = await self._engine.load(self._engine.collection.find(filter, limit, offset, order))
        return self

    async def load_by_ids(self, ids: Mapping[str, Any] | Sequence[Any], limit: int | None = None,
                          offset: int | None = None) -> "ManyModel":
        """
        Load by key values.

        `ids` maps every key field to a value or a list of values. With a single key
        field, a list or tuple of values is accepted as well.

        Raises:
            MissingKeysError: If `ids` does not name exactly the key fields.
        """
        key_fields = self.definition.key_fields
        if isinstance(ids, Mapping):
            if not keys_match(ids, key_fields):
                raise self._missing_keys(ids)
            key_map = self._engine.key_map(ids)
        else:
            if len(key_fields) > 1 or not isinstance(ids, (list, tuple)):
                raise self._missing_keys(ids)
            key_map = self._engine.key_map({key_fields[0]: list(ids)})

        self.contents = await self._engine.load(self._engine.collection.find_by_ids(key_map, limit, offset))
        return self

    def _missing_keys(self, ids: Any) -> MissingKeysError:
        return MissingKeysError(
            f"load_by_ids not all keys given. Keys: {safe_dumps(self.definition.key_fields)}, Id: {safe_dumps(ids)}",
            collection=self.definition.collection,
            context=ids,
            fields=self.definition.key_fields,
        )

    async def store(self) -> "ManyModel":
        """
        Insert all contents. Generated values (e.g. auto ids) are merged back in order.

        Raises:
            TypeConstraintError: If a record is invalid. Nothing is written.
            NotUnique: If a unique constraint fails.
            ConstraintFailed: If a reference or check constraint fails.
        """
        async with self._engine.operation("store", STORE_ERRORS, context=self.contents):
            self.contents = await self._engine.store(self.contents)
        return self

    async def update(self) -> "ManyModel":
        """
        Write back loaded contents.

        Raises:
            NotLoadedError: If the model was never loaded.
            KeyMismatchError: If records were added, removed, or had key fields changed since load.
            TypeConstraintError: If a record is invalid. Nothing is written.
        """
        async with self._engine.operation("update", STORE_ERRORS, context=self.contents):
            await self._engine.update(self.contents)
        return self

    async def delete_all(self) -> "ManyModel":
        """
        Delete every record currently held, in one statement.

        Raises:
            IsReference: If any of them is still referenced. None of them is deleted.
        """
        if not self.contents:
            return self

        key_fields = self.definition.key_fields
        if len(key_fields) == 1:
            key = key_fields[0]
            filter: Filter | list[Filter] = {
                key: {"op": "in", "val": [self._engine.key_filter(record)[key] for record in self.contents]}
            }
        else:
            # one filter per record; a per-key IN would also match mixed key combinations
            filter = [self._engine.key_filter(record) for record in self.contents]

        async with self._engine.operation("delete", DELETE_ERRORS, context=self.contents):
            await self._engine.remove(filter)
        return self

    def length(self) -> int:
        return len(self.contents)

    def set(self, field: str, value: Any) -> "ManyModel":
        self._engine.invalidate_derived()
        for record in self.contents:
            record[field] = value
        return self

    def set_f(self, field: str, fn: Callable[[Record], Any]) -> "ManyModel":
        """Set `field` of every record to `fn(record)`."""
        self._engine.invalidate_derived()
        for record in self.contents:
            record[field] = fn(record)
        return self

    async def generate_derived(self) -> "ManyModel":
        await self._engine.generate_derived(self.contents, self)
        return self

    def get_public(self) -> list[dict[str, Any]] | dict[Any, Any]:
        return self._engine.project(self.contents)
