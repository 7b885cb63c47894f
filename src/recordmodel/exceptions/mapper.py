"""
Translation of store-level failures into model-level errors.

Two levels of errors exist in this package:

1. Store-level codes (`StoreErrorCode` on a `StoreError`), produced by a backing
   store from its native failure (see integrity_classifier.py). They describe
   what failed in the store: a unique index, a foreign key, a check.

2. Model-level errors (`NotUnique`, `DoesExist`, `IsReference`, `ConstraintFailed`, ...)
   raised to callers. What a store code means depends on the cardinality of the model:
   a unique violation while storing a batch is `NotUnique`, the same violation while
   storing a single object is `DoesExist`.

So each model passes its own code -> error mapping:

| Model     | Operation  | UNIQUE       | REFERENCE          | CHECK              |
| --------- | ---------- | ------------ | ------------------ | ------------------ |
| ManyModel | store      | `NotUnique`  | `ConstraintFailed` | `ConstraintFailed` |
| OneModel  | store      | `DoesExist`  | `ConstraintFailed` | `ConstraintFailed` |
| any       | delete     | -            | `IsReference`      | -                  |

Codes missing from a mapping, and `UNKNOWN`, become `StoreFailure`.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Mapping, Type

from .base import ModelError, StoreFailure
from .integrity_classifier import StoreError, StoreErrorCode

logger = logging.getLogger(__name__)

ErrorMapping = Mapping[StoreErrorCode, Type[ModelError]]


# -----------------------
# Mapper
# -----------------------

def raise_mapped_store_error(exc: StoreError, mapping: ErrorMapping, *, collection: str,
                             operation: str, context: Any = None) -> None:
    """
    Map a `StoreError` to a model-level exception and raise it.
    """
    error_cls = mapping.get(exc.code)

    if error_cls is not None:
        # expected client-level scenario, no stack trace
        logger.info(
            "mapper.store_error_mapped",
            extra={
                "collection": collection,
                "operation": operation,
                "store_code": exc.code.name,
                "constraint": exc.constraint,
                "error": error_cls.__name__,
            },
        )
        raise error_cls(collection=collection, context=context) from exc

    logger.warning(
        "mapper.unknown_store_error",
        extra={"collection": collection, "operation": operation, "store_code": exc.code.name},
    )
    logger.debug("mapper.unknown_store_error_raw", extra={"collection": collection, "raw": str(exc)})

    raise StoreFailure(f"Unexpected error in {operation}", collection=collection, context=context) from exc


# -----------------------
# Async context manager to DRY error handling in models
# -----------------------
@asynccontextmanager
async def store_error_handler(collection: str, operation: str, mapping: ErrorMapping | None = None,
                              context: Any = None):
    """
    Usage:
        async with store_error_handler(self._collection, "store", {StoreErrorCode.UNIQUE: NotUnique}):
            ... store calls that may raise StoreError ...

    Model errors raised inside the block (validation, key guards) pass through untouched.
    Everything else is raised as a mapped model error.
    """
    try:
        yield
    except ModelError:
        raise
    except StoreError as exc:
        raise_mapped_store_error(exc, mapping or {}, collection=collection, operation=operation, context=context)
    except Exception as exc:
        logger.exception("Unexpected store error for %s", collection,
                         extra={"collection": collection, "operation": operation})
        raise StoreFailure(f"Unexpected error in {operation}", collection=collection, context=context) from exc
