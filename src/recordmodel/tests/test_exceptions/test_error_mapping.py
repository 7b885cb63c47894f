import pytest

from recordmodel.exceptions import (
    ConstraintFailed,
    DoesExist,
    IsReference,
    KeyMismatchError,
    NotFound,
    NotUnique,
    StoreError,
    StoreErrorCode,
    StoreFailure,
    TypeConstraintError,
)
from recordmodel.exceptions.mapper import store_error_handler

STORE_MAPPING = {
    StoreErrorCode.UNIQUE: NotUnique,
    StoreErrorCode.REFERENCE: ConstraintFailed,
}


@pytest.mark.asyncio
class TestStoreErrorHandler:

    async def test_mapped_code_raises_model_error(self):
        with pytest.raises(NotUnique) as exc_info:
            async with store_error_handler("users", "store", STORE_MAPPING, context=[{"test": 1}]):
                raise StoreError(StoreErrorCode.UNIQUE, "duplicate")

        error = exc_info.value
        assert error.collection == "users"
        assert error.context == [{"test": 1}]
        assert error.error_code == "not_unique"
        assert isinstance(error.__cause__, StoreError)

    async def test_unmapped_code_raises_store_failure(self):
        with pytest.raises(StoreFailure) as exc_info:
            async with store_error_handler("users", "store", STORE_MAPPING):
                raise StoreError(StoreErrorCode.CHECK)

        assert exc_info.value.message == "Unexpected error in store"

    async def test_unknown_code_raises_store_failure(self):
        with pytest.raises(StoreFailure):
            async with store_error_handler("users", "delete", {StoreErrorCode.REFERENCE: IsReference}):
                raise StoreError(StoreErrorCode.UNKNOWN)

    async def test_model_errors_pass_through(self):
        with pytest.raises(KeyMismatchError):
            async with store_error_handler("users", "update", STORE_MAPPING):
                raise KeyMismatchError(collection="users")

    async def test_other_exceptions_are_wrapped(self):
        with pytest.raises(StoreFailure) as exc_info:
            async with store_error_handler("users", "load"):
                raise ConnectionError("gone")

        assert isinstance(exc_info.value.__cause__, ConnectionError)


class TestModelErrorRendering:

    def test_str_includes_collection_and_context(self):
        error = NotFound(collection="users", context={"test": 8})

        assert str(error) == 'Object not found (collection: users; context: {"test":8})'

    def test_type_constraint_error_prints_records(self):
        error = TypeConstraintError(collection="users", context=[{"test": "x"}])

        assert str(error) == 'type-constraints not met: [{"test":"x"}]'
        assert isinstance(error, ConstraintFailed)
        assert error.error_code == "type_constraints"

    def test_payload_leaves_out_context(self):
        error = DoesExist(collection="users", context={"secret": 1}, fields=["id"])

        assert error.to_payload() == {
            "detail": "Object does exist",
            "code": "does_exist",
            "collection": "users",
            "fields": ["id"],
        }
