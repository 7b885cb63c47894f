# recordmodel/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py                    # Model-level errors (NotUnique, NotFound, DoesExist, ...)
# │   ├── integrity_classifier.py    # Store-level error codes + driver error classification
# │   └── mapper.py                  # Map store-level codes to model-level errors
from .base import (
    ModelError,
    NotUnique,
    NotFound,
    DoesExist,
    IsReference,
    ConstraintFailed,
    TypeConstraintError,
    StoreFailure,
    ModelUsageError,
    SchemaError,
    AlreadyLoadedError,
    NotLoadedError,
    KeyMismatchError,
    MissingKeysError,
    DerivedNotGeneratedError,
)
from .integrity_classifier import StoreError, StoreErrorCode

__all__ = [
    "ModelError",
    "NotUnique",
    "NotFound",
    "DoesExist",
    "IsReference",
    "ConstraintFailed",
    "TypeConstraintError",
    "StoreFailure",
    "ModelUsageError",
    "SchemaError",
    "AlreadyLoadedError",
    "NotLoadedError",
    "KeyMismatchError",
    "MissingKeysError",
    "DerivedNotGeneratedError",
    "StoreError",
    "StoreErrorCode",
]
