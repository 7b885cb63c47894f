"""
Persistence engine shared by the three cardinality models.

Each model instance owns one `PersistenceEngine`. The engine holds everything that
is not about cardinality:

- defaulting, identifier conversion and validation of records
- the one-shot load and the key snapshot taken by it
- insert and update orchestration against the backing store
- the derived-value cache and the public projection

The models decide what a store result means (one record, none, many) and which
domain error a store failure becomes.
"""

import asyncio
import inspect
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Mapping, Sequence

from recordmodel.core.logging.filters import operation_scope
from recordmodel.database.protocols import Cursor, Filter, Record, Store
from recordmodel.exceptions.base import (
    AlreadyLoadedError,
    DerivedNotGeneratedError,
    KeyMismatchError,
    NotLoadedError,
    SchemaError,
    TypeConstraintError,
)
from recordmodel.exceptions.mapper import ErrorMapping, store_error_handler
from recordmodel.schema.descriptor import FieldSpec, Schema, build_schema
from recordmodel.schema.types import ID_ARRAY_TYPE, ID_TYPE, TypeChecker, default_types
from recordmodel.validators.record_validators import check_records, key_tuple

logger = logging.getLogger(__name__)


class ModelDefinition:
    """
    A schema bound to a collection and a type checker.

    Args:
        schema: Schema or plain mapping of field name -> field spec.
        collection: Collection (table) name in the backing store.
        types: TypeChecker resolving the field type names. Defaults to the built-in registry.

    Raises:
        SchemaError: If the schema is malformed, no collection is given, or a field
            names a type the checker does not know.
    """

    def __init__(self, schema: Schema | Mapping[str, Any], collection: str, types: TypeChecker | None = None):
        if not collection:
            raise SchemaError("No collection given")
        self.schema = build_schema(schema)
        self.collection = collection
        self.types = default_types if types is None else types

        unknown = [field for field, spec in self.schema.items() if spec.type not in self.types]
        if unknown:
            raise SchemaError("Unknown field types", collection=collection, fields=unknown)

        self.key_fields = self.schema.key_fields
        self.auto_fields = self.schema.auto_fields

        names = [field for field, spec in self.schema.items() if spec.name]
        self.has_multiple_names = len(names) > 1

    def __repr__(self) -> str:
        return f"ModelDefinition(collection={self.collection!r}, keys={self.key_fields!r})"


class PersistenceEngine:
    """
    Per-model-instance engine. Not shared between model instances: it carries the
    load flag, the key snapshot and the derived cache of its owner.
    """

    def __init__(self, definition: ModelDefinition, store: Store):
        self.definition = definition
        self.backing_store = store
        self.collection = store.collection(definition.collection)

        self.loaded = False
        self._snapshot: list[tuple] | None = None
        self._derived: list[dict[str, Any]] | None = None

    @property
    def schema(self) -> Schema:
        return self.definition.schema

    @property
    def collection_name(self) -> str:
        return self.definition.collection

    @property
    def derived_generated(self) -> bool:
        return self._derived is not None

    def invalidate_derived(self) -> None:
        self._derived = None

    # =================================================================================================================
    # Record helpers (no I/O)
    # =================================================================================================================

    def fill_defaults(self, records: Sequence[Mapping[str, Any]]) -> list[Record]:
        """
        Return copies of `records` with defaults applied.

        A default replaces a value that is absent or falsy, so 0, "" and False are
        replaced as well. Callable defaults receive the record being filled.
        """
        filled = [dict(record) for record in records]
        for field, spec in self.schema.items():
            if not spec.has_default:
                continue
            for record in filled:
                if not record.get(field):
                    record[field] = spec.default_for(record)
        return filled

    def convert_identifiers(self, record: Record) -> Record:
        """Translate store-native identifiers of a record read from the store, in place."""
        for field, spec in self.schema.items():
            value = record.get(field)
            if not value:
                continue
            if spec.type == ID_TYPE:
                record[field] = self.backing_store.from_id(value)
            elif spec.type == ID_ARRAY_TYPE:
                record[field] = [self.backing_store.from_id(v) for v in value]
        return record

    def to_store_value(self, spec: FieldSpec, value: Any) -> Any:
        """Translate a canonical value of a field into what the store expects."""
        if value is None:
            return None
        if spec.type == ID_TYPE:
            if isinstance(value, (list, tuple)):
                return [self.backing_store.to_id(v) for v in value]
            return self.backing_store.to_id(value)
        if spec.type == ID_ARRAY_TYPE:
            return [self.backing_store.to_id(v) for v in value]
        return value

    def key_filter(self, record: Mapping[str, Any]) -> Filter:
        """Equality filter on the key fields of `record`, in store representation."""
        return {
            key: self.to_store_value(self.schema[key], record.get(key))
            for key in self.definition.key_fields
        }

    def key_map(self, ids: Mapping[str, Any]) -> Filter:
        """Translate a caller supplied key map (values or lists of values) for the store."""
        return {key: self.to_store_value(self.schema[key], ids[key]) for key in self.definition.key_fields}

    def write_payload(self, record: Mapping[str, Any]) -> Record:
        """The part of a validated record that is sent to the store (no auto, derived or unpersisted fields)."""
        return {
            field: self.to_store_value(spec, record.get(field))
            for field, spec in self.schema.items()
            if spec.is_written and field in record
        }

    def validate(self, records: list[Record]) -> None:
        """
        Raises:
            TypeConstraintError: If any record of the batch is invalid. Carries the whole batch.
        """
        if not check_records(records, self.schema, self.definition.types):
            raise TypeConstraintError(collection=self.collection_name, context=records)

    # =================================================================================================================
    # Store operations
    # =================================================================================================================

    @asynccontextmanager
    async def operation(self, name: str, mapping: ErrorMapping | None = None, context: Any = None):
        """
        Run a block as one logged operation: a fresh operation id for the logs, and
        store failures translated through `mapping`.
        """
        with operation_scope(name):
            async with store_error_handler(self.collection_name, name, mapping, context):
                yield

    async def load(self, cursor: Cursor) -> list[Record]:
        """
        Read the cursor, convert identifiers and remember the key tuples.

        Raises:
            AlreadyLoadedError: On the second call for the same model instance.
        """
        if self.loaded:
            raise AlreadyLoadedError(collection=self.collection_name)

        rows = await cursor.to_list()
        self.loaded = True
        records = [self.convert_identifiers(row) for row in rows]
        self._snapshot = [key_tuple(record, self.definition.key_fields) for record in records]
        self.invalidate_derived()

        logger.debug("model.load.success", extra={"collection": self.collection_name, "count": len(records)})
        return records

    async def store(self, records: list[Record]) -> list[Record]:
        """
        Validate and insert a batch; merge the generated auto values back positionally.

        Returns the same record objects. An empty batch is returned untouched.
        """
        if not records:
            return records

        logger.debug(
            "model.store.start",
            extra={"collection": self.collection_name, "operation": "store", "count": len(records)},
        )
        self.validate(records)

        start = time.perf_counter()
        generated = await self.collection.insert(
            [self.write_payload(record) for record in records],
            returning=self.definition.auto_fields,
        )
        for record, values in zip(records, generated):
            # only the generated values are store-native
            record.update(self.convert_identifiers(dict(values)))
        self.invalidate_derived()

        logger.info(
            "model.store.success",
            extra={
                "collection": self.collection_name,
                "operation": "store",
                "count": len(records),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return records

    def check_keys_unchanged(self, records: list[Record]) -> None:
        """
        Raises:
            NotLoadedError: If nothing was loaded.
            KeyMismatchError: If the count or any ordered key tuple differs from load time.
        """
        if not self.loaded or self._snapshot is None:
            raise NotLoadedError(collection=self.collection_name)

        current = [key_tuple(record, self.definition.key_fields) for record in records]
        if current != self._snapshot:
            logger.info(
                "model.update.key_mismatch",
                extra={
                    "collection": self.collection_name,
                    "loaded_count": len(self._snapshot),
                    "current_count": len(current),
                },
            )
            raise KeyMismatchError(
                collection=self.collection_name,
                context={"loaded": self._snapshot, "current": current},
                fields=self.definition.key_fields,
            )

    async def update(self, records: list[Record]) -> list[Record]:
        """
        Write back loaded records, one key-filtered update per record, concurrently.

        The key guard only detects local changes to the key fields since the load.
        It does not detect another writer having changed the rows meanwhile.
        """
        self.check_keys_unchanged(records)
        self.validate(records)

        logger.debug(
            "model.update.start",
            extra={"collection": self.collection_name, "operation": "update", "count": len(records)},
        )
        start = time.perf_counter()
        await asyncio.gather(
            *(self.collection.update_one(self.key_filter(record), self.write_payload(record)) for record in records)
        )

        logger.info(
            "model.update.success",
            extra={
                "collection": self.collection_name,
                "operation": "update",
                "count": len(records),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return records

    async def remove(self, filter: Filter | Sequence[Filter]) -> None:
        await self.collection.remove(filter)
        logger.info("model.delete.success", extra={"collection": self.collection_name, "operation": "delete"})

    # =================================================================================================================
    # Derived values and projection
    # =================================================================================================================

    async def generate_derived(self, records: list[Record], model: Any) -> None:
        """
        Compute every derived field of every record and cache the results by position.

        Derived functions are called as `derived(record, model)` and may return an
        awaitable.
        """
        derived_fields = [(field, self.schema[field]) for field in self.schema.derived_fields]
        cache: list[dict[str, Any]] = []
        for record in records:
            values = {}
            for field, spec in derived_fields:
                value = spec.derived(record, model)
                if inspect.isawaitable(value):
                    value = await value
                values[field] = value
            cache.append(values)
        self._derived = cache

    def _reads_derived(self) -> bool:
        return any(spec.is_derived and (spec.public or spec.name) for _, spec in self.schema.items())

    def project(self, records: list[Record], single: bool = False) -> Any:
        """
        Build the public shape of `records`.

        Without a `name` field: a list with one object per record holding the public
        fields (under their `mapped` name), None values left out. With a `name` field:
        a dict from that field's value to the record's object, or to a list of objects
        when `group_by` is set. `single` returns only the first object.

        Raises:
            SchemaError: If more than one field is marked as name.
            DerivedNotGeneratedError: If a derived field is read before generate_derived.
        """
        if self.definition.has_multiple_names:
            raise SchemaError("Multiple names specified", collection=self.collection_name)

        if self._reads_derived() and (not self.derived_generated or len(self._derived) < len(records)):
            raise DerivedNotGeneratedError(collection=self.collection_name)

        name_field = self.schema.name_field
        result: list | dict = {} if name_field else []

        for position, record in enumerate(records):
            obj = {}
            group = None
            for field, spec in self.schema.items():
                if spec.is_derived:
                    value = self._derived[position].get(field) if self._derived is not None else None
                else:
                    value = record.get(field)
                if spec.public and value is not None:
                    obj[spec.mapped or field] = value
                if spec.name:
                    group = value

            if name_field is None:
                result.append(obj)
            elif self.schema[name_field].group_by:
                result.setdefault(group, []).append(obj)
            else:
                result[group] = obj

        if single:
            values = result if isinstance(result, list) else list(result.values())
            return values[0] if values else None
        return result
