import logging
from typing import Any, ClassVar, Mapping

from recordmodel.config import get_settings
from recordmodel.database.protocols import Cursor, Filter, Record, Store
from recordmodel.engine.persistence import ModelDefinition, PersistenceEngine
from recordmodel.exceptions.base import (
    ConstraintFailed,
    DoesExist,
    IsReference,
    MissingKeysError,
    ModelUsageError,
    NotFound,
    NotUnique,
)
from recordmodel.exceptions.integrity_classifier import StoreErrorCode
from recordmodel.utils.serialization import safe_dumps
from recordmodel.validators.record_validators import keys_match

logger = logging.getLogger(__name__)

STORE_ERRORS = {
    StoreErrorCode.UNIQUE: DoesExist,
    StoreErrorCode.REFERENCE: ConstraintFailed,
    StoreErrorCode.CHECK: ConstraintFailed,
}
DELETE_ERRORS = {StoreErrorCode.REFERENCE: IsReference}


class OneModel:
    """
    Exactly one record of one collection.

    Loads must match exactly one record: no match raises NotFound, more than one
    raises NotUnique.
    """

    definition: ClassVar[ModelDefinition]

    def __init__(self, store: Store, content: Mapping[str, Any] | None = None):
        self._engine = PersistenceEngine(self.definition, store)
        self._load_limit = get_settings().LOAD_ONE_LIMIT
        if content is None:
            self.content: Record | None = None
        elif not isinstance(content, Mapping):
            raise ModelUsageError("cannot create multiple, use ManyModel instead", collection=self.definition.collection)
        else:
            self.content = self._engine.fill_defaults([content])[0]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(collection={self.definition.collection!r}, content={self.content!r})"

    async def _load_one(self, cursor: Cursor, context: Any) -> None:
        records = await self._engine.load(cursor)
        if len(records) > 1:
            logger.info("model.load_one.not_unique", extra={"collection": self.definition.collection})
            raise NotUnique(collection=self.definition.collection, context=context)
        if not records:
            logger.info("model.load_one.not_found", extra={"collection": self.definition.collection})
            raise NotFound(collection=self.definition.collection, context=context)
        self.content = records[0]

    async def load(self, filter: Filter) -> "OneModel":
        """
        Raises:
            NotFound: If nothing matches.
            NotUnique: If more than one record matches.
        """
        await self._load_one(self._engine.collection.find(filter, self._load_limit), filter)
        return self

    async def load_by_id(self, id: Any) -> "OneModel":
        """
        Load by key. `id` maps every key field to its value; with a single key field
        the bare value is accepted as well, but not a list of values.

        Raises:
            MissingKeysError: If `id` does not supply exactly the key fields.
            NotFound: If no record has that key.
        """
        key_fields = self.definition.key_fields
        if isinstance(id, Mapping):
            if not keys_match(id, key_fields):
                raise self._missing_keys(id)
            key_map = self._engine.key_map(id)
        else:
            if len(key_fields) > 1 or isinstance(id, (list, tuple, set)):
                raise self._missing_keys(id)
            key_map = self._engine.key_map({key_fields[0]: id})

        await self._load_one(self._engine.collection.find_by_id(key_map), id)
        return self

    def _missing_keys(self, id: Any) -> MissingKeysError:
        return MissingKeysError(
            f"load_by_id not all keys given. Keys: {safe_dumps(self.definition.key_fields)}, Id: {safe_dumps(id)}",
            collection=self.definition.collection,
            context=id,
            fields=self.definition.key_fields,
        )

    async def store(self) -> "OneModel":
        """
        Raises:
            TypeConstraintError: If the record is invalid.
            DoesExist: If a unique constraint fails.
            ConstraintFailed: If a reference or check constraint fails.
        """
        content = self.content if self.content is not None else {}
        async with self._engine.operation("store", STORE_ERRORS, context=content):
            [self.content] = await self._engine.store([content])
        return self

    async def update(self) -> "OneModel":
        content = self.content if self.content is not None else {}
        async with self._engine.operation("update", STORE_ERRORS, context=content):
            await self._engine.update([content])
        return self

    async def delete(self) -> "OneModel":
        """
        Raises:
            IsReference: If the record is still referenced.
        """
        content = self.content if self.content is not None else {}
        async with self._engine.operation("delete", DELETE_ERRORS, context=content):
            await self._engine.remove(self._engine.key_filter(content))
        return self

    def set(self, field: str, value: Any) -> "OneModel":
        self._engine.invalidate_derived()
        if self.content is None:
            self.content = {}
        self.content[field] = value
        return self

    async def generate_derived(self) -> "OneModel":
        await self._engine.generate_derived([self.content] if self.content is not None else [], self)
        return self

    def get_public(self) -> dict[str, Any] | None:
        return self._engine.project([self.content] if self.content is not None else [], single=True)
