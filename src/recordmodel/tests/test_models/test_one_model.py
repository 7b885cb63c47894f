import pytest

from recordmodel.exceptions import (
    AlreadyLoadedError,
    ConstraintFailed,
    DerivedNotGeneratedError,
    DoesExist,
    IsReference,
    KeyMismatchError,
    MissingKeysError,
    ModelUsageError,
    NotFound,
    NotLoadedError,
    NotUnique,
    TypeConstraintError,
)
from recordmodel.tests.test_fixtures.model_fixtures import (
    Comment,
    DerivedItem,
    User,
    User2,
    User3,
)


@pytest.mark.asyncio
class TestOneModelStore:

    async def test_store_one(self, store):
        m = User(store, {"test": 1})

        assert await m.store() is m
        assert m.content == {"id": 1, "test": 1, "a": None}

    async def test_store_one_with_derived(self, store):
        m = await DerivedItem(store, {"test": 1}).store()

        assert m.content == {"id": 1, "test": 1}

    async def test_creation_rejects_many(self, store):
        with pytest.raises(ModelUsageError):
            User(store, [{"test": 1}, {"test": 2}])

    async def test_insert_reference_violation(self, store):
        with pytest.raises(ConstraintFailed):
            await Comment(store, {"userid": 1000, "comment": "a"}).store()

    async def test_insert_existing_multi_key_no_auto(self, store):
        await User3(store, {"email": "test@test.de", "name": "Peter", "a": 12}).store()

        with pytest.raises(DoesExist) as exc_info:
            await User3(store, {"email": "test@test.de", "name": "Peter"}).store()

        assert exc_info.value.message == "Object does exist"


@pytest.mark.asyncio
class TestOneModelLoad:

    async def test_load_success(self, store):
        await User(store, {"test": 1}).store()
        m = User(store)

        assert await m.load({"test": 1}) is m
        assert m.content == {"id": 1, "test": 1, "a": None}

    async def test_load_fails_when_too_many(self, store):
        await User(store, {"test": 1}).store()
        await User(store, {"test": 1, "a": 2}).store()

        with pytest.raises(NotUnique) as exc_info:
            await User(store).load({"test": 1})

        assert exc_info.value.context == {"test": 1}

    async def test_load_fails_when_none(self, store):
        with pytest.raises(NotFound) as exc_info:
            await User(store).load({"test": 8})

        assert exc_info.value.message == "Object not found"
        assert exc_info.value.collection == "users"

    async def test_load_twice_fails(self, store):
        await User(store, {"test": 1}).store()
        m = await User(store).load({"test": 1})

        with pytest.raises(AlreadyLoadedError):
            await m.load({"test": 1})

    async def test_load_by_id_one_key(self, store):
        m1 = await User(store, {"test": 1}).store()
        await User(store, {"test": 2}).store()

        m2 = await User(store).load_by_id(m1.content["id"])

        assert m2.content["test"] == 1
        assert m2.content["id"] == m1.content["id"]

    async def test_load_by_id_multi_key(self, store):
        m1 = await User2(store, {"test": 1, "a": 7}).store()
        await User2(store, {"test": 1}).store()
        await User2(store, {"test": 2}).store()

        m2 = await User2(store).load_by_id({"id": m1.content["id"], "test": 1})

        assert m2.content == {"id": m1.content["id"], "test": 1, "a": 7}

    async def test_load_by_id_requires_all_keys(self, store):
        with pytest.raises(MissingKeysError) as exc_info:
            await User2(store).load_by_id(1)
        assert exc_info.value.collection == "users2"
        assert 'Keys: ["id","test"], Id: 1' in exc_info.value.message

        with pytest.raises(MissingKeysError) as exc_info:
            await User2(store).load_by_id({"id": 1})
        assert 'Id: {"id":1}' in exc_info.value.message

    async def test_load_by_id_rejects_list(self, store):
        await User(store, {"test": 1}).store()

        with pytest.raises(MissingKeysError):
            await User(store).load_by_id([1])

    async def test_find_by_substring(self, store):
        await User3(store, {"email": "test1@test.de", "name": "Hans", "a": 12}).store()
        await User3(store, {"email": "test1@test.de", "name": "Peter"}).store()

        m = await User3(store).load({"name": {"op": "like", "val": "%ans"}})

        assert m.content == {"email": "test1@test.de", "name": "Hans", "a": 12}


@pytest.mark.asyncio
class TestOneModelUpdate:

    async def test_update(self, store):
        await User(store, {"test": 4, "a": 1}).store()
        m = await User(store).load({"test": 4})

        m.content["a"] = 2
        assert await m.update() is m

        reloaded = await User(store).load({"test": 4})
        assert reloaded.content == {"id": 1, "test": 4, "a": 2}

    async def test_update_with_derived(self, store):
        await DerivedItem(store, {"test": 4}).store()
        m = await DerivedItem(store).load({"test": 4})

        await m.set("test", 2).update()

        reloaded = await DerivedItem(store).load({"test": 2})
        assert reloaded.content == {"id": 1, "test": 2}

    async def test_update_fails_when_key_changed(self, store):
        old = await User(store, {"test": 400, "a": 1}).store()
        m = await User(store).load({"test": 400})

        m.content["a"] = 2
        m.content["id"] = "sheesh"
        with pytest.raises(KeyMismatchError):
            await m.update()

        reloaded = await User(store).load({"test": 400})
        assert reloaded.content == old.content

    async def test_update_fails_when_content_emptied(self, store):
        old = await User(store, {"test": 401, "a": 1}).store()
        m = await User(store).load({"test": 401})

        m.content = {}
        with pytest.raises(KeyMismatchError):
            await m.update()

        reloaded = await User(store).load({"test": 401})
        assert reloaded.content == old.content

    async def test_update_fails_on_invalid_data(self, store):
        old = await User(store, {"test": 402, "a": 1}).store()
        m = await User(store).load({"test": 402})

        m.content["a"] = "brru"
        with pytest.raises(TypeConstraintError) as exc_info:
            await m.update()

        assert str(exc_info.value) == 'type-constraints not met: [{"id":1,"test":402,"a":"brru"}]'
        reloaded = await User(store).load({"test": 402})
        assert reloaded.content == old.content

    async def test_update_without_load_fails(self, store):
        with pytest.raises(NotLoadedError):
            await User(store, {"test": 1}).update()

    async def test_update_multi_key_no_auto(self, store):
        await User3(store, {"email": "test@test.de", "name": "Peter", "a": 12}).store()
        await User3(store, {"email": "test@test.de", "name": "Franz"}).store()

        peter = await User3(store).load_by_id({"email": "test@test.de", "name": "Peter"})
        peter.content["a"] = 99
        assert await peter.update() is peter

        peter_again = await User3(store).load_by_id({"email": "test@test.de", "name": "Peter"})
        franz = await User3(store).load_by_id({"email": "test@test.de", "name": "Franz"})
        assert peter_again.content == {"email": "test@test.de", "name": "Peter", "a": 99}
        assert franz.content == {"email": "test@test.de", "name": "Franz", "a": None}

    async def test_update_multi_key_fails_when_key_changed(self, store):
        old = await User3(store, {"email": "jesus@god.com", "name": "jesus"}).store()

        m = await User3(store).load({"email": "jesus@god.com"})
        m.content["email"] = "400"
        with pytest.raises(KeyMismatchError):
            await m.update()

        m2 = await User3(store).load({"email": "jesus@god.com"})
        m2.content["name"] = "400"
        with pytest.raises(KeyMismatchError):
            await m2.update()

        m3 = await User3(store).load({"email": "jesus@god.com"})
        assert m3.content == old.content


@pytest.mark.asyncio
class TestOneModelDelete:

    async def test_delete(self, store):
        await User(store, {"test": 5}).store()
        m = await User(store).load({"test": 5})

        assert await m.delete() is m

        with pytest.raises(NotFound):
            await User(store).load({"test": 5})

    async def test_delete_of_referenced_fails(self, store):
        m = await User(store, {"test": 5}).store()
        await Comment(store, {"userid": m.content["id"]}).store()

        loaded = await User(store).load({"test": 5})
        with pytest.raises(IsReference):
            await loaded.delete()

        assert (await User(store).load({"test": 5})).content == m.content
        assert (await Comment(store).load({"userid": m.content["id"]})).content["userid"] == m.content["id"]

    async def test_delete_multi_key_no_auto(self, store):
        await User3(store, {"email": "test@test.de", "name": "Peter", "a": 12}).store()
        await User3(store, {"email": "test@test.de", "name": "Franz"}).store()

        franz = await User3(store).load({"email": "test@test.de", "name": "Franz"})
        assert await franz.delete() is franz

        with pytest.raises(NotFound):
            await User3(store).load({"email": "test@test.de", "name": "Franz"})
        peter = await User3(store).load_by_id({"email": "test@test.de", "name": "Peter"})
        assert peter.content == {"email": "test@test.de", "name": "Peter", "a": 12}


@pytest.mark.asyncio
class TestOneModelPublic:

    async def test_get_public_before_generate_derived_fails(self, store):
        await DerivedItem(store, {"test": 1}).store()
        m = await DerivedItem(store).load({"test": 1})

        with pytest.raises(DerivedNotGeneratedError):
            m.get_public()

    async def test_get_public_with_derived(self, store):
        stored = await DerivedItem(store, {"test": 100}).store()
        loaded = await DerivedItem(store).load({"test": 100})

        await stored.generate_derived()
        await loaded.generate_derived()

        expected = {"test": 100, "derivedId": 1, "derivedAsync": "test"}
        assert stored.get_public() == expected
        assert loaded.get_public() == expected
