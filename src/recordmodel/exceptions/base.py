"""
Custom exceptions for model operations.
"""

from typing import Any, Iterable

from recordmodel.utils.serialization import safe_dumps

# canonical model-level exception


class ModelError(Exception):
    """
    Base exception for every error raised by the models.

    - message: human-friendly message
    - collection: the collection (table) the failing operation targeted
    - context: the filter or records that triggered the error, kept as-is for
      callers and rendered with the cycle-safe serializer for `str()`
    - fields: optional list of field names related to the error (e.g. ['id', 'test'])
    - error_code: canonical short code (e.g. 'not_found') used by callers
    """

    default_message = "Model error"

    def __init__(self, message: str | None = None, *, collection: str | None = None,
                 context: Any = None, fields: Iterable[str] | None = None,
                 error_code: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.collection = collection
        self.context = context
        self.fields = list(fields) if fields else None
        self.error_code = error_code

    def __str__(self) -> str:
        base = self.message
        parts = []
        if self.collection:
            parts.append(f"collection: {self.collection}")
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.context is not None:
            parts.append(f"context: {safe_dumps(self.context)}")
        if parts:
            return f"{base} ({'; '.join(parts)})"
        return base

    def to_payload(self) -> dict:
        """
        Return a JSON-serializable dict describing the error.

        Shape:
            {
                "detail": "Object not found",
                "code": "not_found",
                "collection": "users",
                "fields": ["id"],
            }
        The raw context is left out; it may hold record values.
        """
        payload = {"detail": self.message}
        if self.error_code:
            payload["code"] = self.error_code
        if self.collection:
            payload["collection"] = self.collection
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload


# =================================================================================================================
# Domain errors (expected, recoverable by the caller)
# =================================================================================================================

class NotUnique(ModelError):
    """A singleton load matched more than one record, or a bulk store hit a unique constraint."""
    default_message = "Object not unique"

    def __init__(self, message: str | None = None, **kwargs):
        super().__init__(message, error_code="not_unique", **kwargs)


class NotFound(ModelError):
    """A singleton load matched zero records."""
    default_message = "Object not found"

    def __init__(self, message: str | None = None, **kwargs):
        super().__init__(message, error_code="not_found", **kwargs)


class DoesExist(ModelError):
    """An absence check matched a record, or a singleton store hit a unique constraint."""
    default_message = "Object does exist"

    def __init__(self, message: str | None = None, **kwargs):
        super().__init__(message, error_code="does_exist", **kwargs)


class IsReference(ModelError):
    """A delete was blocked because other records still reference the target."""
    default_message = "Object is still reference"

    def __init__(self, message: str | None = None, **kwargs):
        super().__init__(message, error_code="is_reference", **kwargs)


class ConstraintFailed(ModelError):
    """A store-side data constraint failed, or local validation rejected the records."""
    default_message = "Object fails to meet constraints"

    def __init__(self, message: str | None = None, *, error_code: str = "constraint_failed", **kwargs):
        super().__init__(message, error_code=error_code, **kwargs)


class TypeConstraintError(ConstraintFailed):
    """Local schema validation rejected a batch. The whole batch is the context."""
    default_message = "type-constraints not met"

    def __init__(self, message: str | None = None, **kwargs):
        super().__init__(message, error_code="type_constraints", **kwargs)

    def __str__(self) -> str:
        return f"{self.message}: {safe_dumps(self.context)}"


class StoreFailure(ModelError):
    """The backing store failed in a way the models do not recognize. Always chained."""
    default_message = "Unexpected store error"

    def __init__(self, message: str | None = None, **kwargs):
        super().__init__(message, error_code="store_failure", **kwargs)


# =================================================================================================================
# Programmer errors (fatal, never retried)
# =================================================================================================================

class ModelUsageError(ModelError):
    """Base for errors caused by using a model or schema incorrectly."""
    default_message = "Invalid model usage"


class SchemaError(ModelUsageError):
    """The schema itself is not well defined."""
    default_message = "Schema not well defined"


class AlreadyLoadedError(ModelUsageError):
    default_message = "load on already loaded model, can't load twice"


class NotLoadedError(ModelUsageError):
    default_message = "update on non-loaded model"


class KeyMismatchError(ModelUsageError):
    """Keys of the current contents differ from the keys captured at load time."""
    default_message = "tried to update but IDs did not match loaded IDs"


class MissingKeysError(ModelUsageError):
    """A load by id did not supply exactly the key fields of the schema."""
    default_message = "not all keys given"


class DerivedNotGeneratedError(ModelUsageError):
    default_message = "getPublic called without generating derived first"


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
]
