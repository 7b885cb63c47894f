"""
Declarative schema of a collection.

A schema maps every field name to a `FieldSpec`. Specs are passive: they hold the
metadata the engine and the models read (type, key, auto, optional, default, derived,
persisted, public, mapped, name, group_by) and contain no logic of their own.

Example:
    schema = build_schema({
        "id": {"type": "id", "key": True, "auto": True},
        "test": {"type": "int", "public": True},
        "a": {"type": "int", "optional": True},
    })
"""

from typing import Any, Callable, Iterator, Mapping

from pydantic import BaseModel, ConfigDict, Field, RootModel, ValidationError, model_validator

from recordmodel.exceptions.base import SchemaError


class FieldSpec(BaseModel):
    """
    Metadata of one field.

    - type: type name resolved by the injected TypeChecker
    - key: part of the (possibly composite) primary key
    - auto: generated by the store; never inserted, never required
    - optional: may be absent; absent values are stored as None
    - unique: informational, the store enforces it
    - persisted: False keeps the field out of every write
    - default: value, or callable(record) -> value, used when the field is absent or falsy
    - derived: callable(record, model) -> value | awaitable; computed, never written
    - public: included by get_public()
    - mapped: name used for the field in get_public()
    - name: get_public() groups records by this field's value
    - group_by: with `name`, collect every record under a value instead of the last one
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    type: str
    key: bool = False
    auto: bool = False
    optional: bool = False
    unique: bool = False
    persisted: bool = True
    default: Any = None
    derived: Callable[..., Any] | None = None
    public: bool = False
    mapped: str | None = None
    name: bool = False
    group_by: bool = Field(default=False, alias="groupBy")

    @property
    def has_default(self) -> bool:
        # default=None given explicitly still counts as "no default"
        return "default" in self.model_fields_set and self.default is not None

    @property
    def is_derived(self) -> bool:
        return self.derived is not None

    @property
    def is_written(self) -> bool:
        """True if the field is sent to the store on insert."""
        return not self.auto and not self.is_derived and self.persisted

    def default_for(self, record: Mapping[str, Any]) -> Any:
        if callable(self.default):
            return self.default(record)
        return self.default


class Schema(RootModel[dict[str, FieldSpec]]):
    """
    Field name -> FieldSpec, with the schema-level invariants checked on creation:

    - at least one field is a key
    - at least one field is actually written to the store
    """

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_invariants(self) -> "Schema":
        if not self.root:
            raise ValueError("No types given")
        if not any(spec.key for spec in self.root.values()):
            raise ValueError("No key field given")
        if not any(spec.is_written for spec in self.root.values()):
            raise ValueError("No field would ever be written: every field is auto, derived or not persisted")
        return self

    def __getitem__(self, field: str) -> FieldSpec:
        return self.root[field]

    def __iter__(self) -> Iterator[str]:
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __contains__(self, field: object) -> bool:
        return field in self.root

    def items(self):
        return self.root.items()

    @property
    def key_fields(self) -> list[str]:
        """Key field names in schema order."""
        return [field for field, spec in self.root.items() if spec.key]

    @property
    def auto_fields(self) -> list[str]:
        return [field for field, spec in self.root.items() if spec.auto]

    @property
    def derived_fields(self) -> list[str]:
        return [field for field, spec in self.root.items() if spec.is_derived]

    @property
    def name_field(self) -> str | None:
        for field, spec in self.root.items():
            if spec.name:
                return field
        return None


def build_schema(fields: "Schema | Mapping[str, FieldSpec | Mapping[str, Any]]") -> Schema:
    """
    Build a Schema from plain dicts (or FieldSpecs).

    Raises:
        SchemaError: If a field spec is malformed or a schema invariant does not hold.
    """
    if isinstance(fields, Schema):
        return fields
    if not fields:
        raise SchemaError("No types given or types not well defined")
    try:
        return Schema.model_validate(
            {
                field: spec if isinstance(spec, FieldSpec) else FieldSpec.model_validate(spec)
                for field, spec in fields.items()
            }
        )
    except ValidationError as exc:
        raise SchemaError(f"Types not well defined: {exc}") from exc


__all__ = ["FieldSpec", "Schema", "build_schema"]
