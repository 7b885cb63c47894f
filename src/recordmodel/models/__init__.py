from typing import Any, Mapping

from recordmodel.engine.persistence import ModelDefinition
from recordmodel.models.many_model import ManyModel
from recordmodel.models.none_model import NoneModel
from recordmodel.models.one_model import OneModel
from recordmodel.schema.descriptor import Schema
from recordmodel.schema.types import TypeChecker


def _class_name(collection: str) -> str:
    return "".join(part.capitalize() for part in collection.replace("-", "_").split("_") if part)


def use_model(
    schema: Schema | Mapping[str, Any],
    collection: str,
    types: TypeChecker | None = None,
) -> tuple[type[ManyModel], type[OneModel], type[NoneModel]]:
    """
    Build the three model classes of a collection.

        Users, User, NoUser = use_model(
            {
                "id": {"type": "id", "key": True, "auto": True},
                "test": {"type": "int"},
                "a": {"type": "int", "optional": True},
            },
            "users",
        )
        users = await Users(store, [{"test": 1}, {"test": 2, "a": 3}]).store()

    The schema is checked once here; every class shares the same definition.

    Raises:
        SchemaError: If the schema or the collection is not well defined.
    """
    definition = ModelDefinition(schema, collection, types)
    name = _class_name(collection)

    many = type(f"{name}ManyModel", (ManyModel,), {"definition": definition})
    one = type(f"{name}OneModel", (OneModel,), {"definition": definition})
    none = type(f"{name}NoneModel", (NoneModel,), {"definition": definition})
    return many, one, none


__all__ = ["ManyModel", "OneModel", "NoneModel", "use_model"]
