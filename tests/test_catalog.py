from lotus_backend.core.errors import ValidationError
from lotus_backend.schemas.items import ItemCreate


async def test_find_or_create_is_idempotent(engine):
    first = await engine.catalog.find_or_create(ItemCreate(name="莲子"))
    second = await engine.catalog.find_or_create({"name": "  莲子  ", "is_usable": True})

    assert first.id == second.id
    # the existing row wins
    assert second.is_usable is False
    assert len(await engine.catalog.list_all()) == 1


async def test_create_rejects_duplicate_names(engine):
    created = await engine.catalog.create({"name": "20分钟电视券", "is_usable": True})
    assert created.ok
    assert created.value.is_usable is True

    again = await engine.catalog.create({"name": "20分钟电视券"})
    assert not again.ok
    assert isinstance(again.error, ValidationError)


async def test_create_validates_input(engine):
    result = await engine.catalog.create({"name": "   "})
    assert not result.ok
    assert result.error.code == "validation_error"
    assert result.error.details["errors"][0]["field"] == "name"


async def test_lookups(engine):
    item = (await engine.catalog.create({"name": "star"})).unwrap()

    assert (await engine.catalog.find_by_id(item.id)).name == "star"
    assert (await engine.catalog.find_by_name("star")).id == item.id
    assert await engine.catalog.find_by_id("missing") is None
    assert await engine.catalog.find_by_name("missing") is None
