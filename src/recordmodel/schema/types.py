"""
Type checking capability for schema fields.

A schema names the type of every field ("int", "id", "email", ...). The engine never
interprets those names itself: it asks a `TypeChecker` handed to it at model definition
time. `TypeRegistry` is the default checker, backed by pydantic `TypeAdapter`s in strict
mode so that e.g. "1" is not an int and True is not an int either.

Add or replace types with `TypeRegistry.register(name, annotation)` or pass a mapping
to the constructor.
"""

from typing import Annotated, Any, Mapping, Protocol, runtime_checkable

from pydantic import (
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    StringConstraints,
    TypeAdapter,
    ValidationError,
)

Email = Annotated[str, StringConstraints(strict=True, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")]
Hex = Annotated[str, StringConstraints(strict=True, pattern=r"^[0-9a-fA-F]*$")]
Identifier = StrictInt | StrictStr

# Types whose values are translated by the store's to_id/from_id.
ID_TYPE = "id"
ID_ARRAY_TYPE = "array_id"

DEFAULT_TYPES: dict[str, Any] = {
    ID_TYPE: Identifier,
    ID_ARRAY_TYPE: list[Identifier],
    "int": StrictInt,
    "float": StrictFloat | StrictInt,
    "bool": StrictBool,
    "string": StrictStr,
    "hex": Hex,
    "email": Email,
    # milliseconds since epoch
    "time": StrictInt,
    "array_int": list[StrictInt],
    "array_string": list[StrictStr],
    "object": dict[str, Any],
}


@runtime_checkable
class TypeChecker(Protocol):
    """Capability the engine uses to validate field values by type name."""

    def check(self, value: Any, type_name: str) -> bool:
        ...

    def __contains__(self, type_name: object) -> bool:
        ...


class TypeRegistry:
    """
    Default `TypeChecker`: a mapping of type name -> pydantic TypeAdapter.

    Args:
        types: Type name -> annotation. Defaults to `DEFAULT_TYPES`.
    """

    def __init__(self, types: Mapping[str, Any] | None = None):
        self._adapters: dict[str, TypeAdapter] = {}
        for name, annotation in (DEFAULT_TYPES if types is None else types).items():
            self.register(name, annotation)

    def register(self, name: str, annotation: Any) -> None:
        self._adapters[name] = TypeAdapter(annotation)

    def check(self, value: Any, type_name: str) -> bool:
        """
        Return True if `value` is a valid instance of the named type.

        Raises:
            KeyError: If the type name is not registered.
        """
        adapter = self._adapters[type_name]
        try:
            adapter.validate_python(value, strict=True)
        except ValidationError:
            return False
        return True

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._adapters

    def names(self) -> list[str]:
        return sorted(self._adapters)


default_types = TypeRegistry()

__all__ = ["TypeChecker", "TypeRegistry", "DEFAULT_TYPES", "default_types", "ID_TYPE", "ID_ARRAY_TYPE"]
