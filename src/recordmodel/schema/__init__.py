from .descriptor import FieldSpec, Schema, build_schema
from .types import TypeChecker, TypeRegistry, default_types

__all__ = ["FieldSpec", "Schema", "build_schema", "TypeChecker", "TypeRegistry", "default_types"]
