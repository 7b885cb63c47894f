from recordmodel.database import SqlStore, create_store_engine
from recordmodel.engine import ModelDefinition
from recordmodel.exceptions import (
    ConstraintFailed,
    DoesExist,
    IsReference,
    ModelError,
    NotFound,
    NotUnique,
    TypeConstraintError,
)
from recordmodel.models import ManyModel, NoneModel, OneModel, use_model
from recordmodel.schema import FieldSpec, Schema, TypeRegistry, build_schema

__all__ = [
    "use_model",
    "ManyModel",
    "OneModel",
    "NoneModel",
    "ModelDefinition",
    "FieldSpec",
    "Schema",
    "TypeRegistry",
    "build_schema",
    "SqlStore",
    "create_store_engine",
    "ModelError",
    "NotUnique",
    "NotFound",
    "DoesExist",
    "IsReference",
    "ConstraintFailed",
    "TypeConstraintError",
]
