import pytest

from lotus_backend.core.errors import ActivityInUseError, ActivityNotFoundError, ValidationError
from lotus_backend.schemas.activities import CheckinConfig, ExchangeActivityConfig, parse_activity_config


def test_legacy_reward_config_is_normalized():
    config = CheckinConfig.model_validate({"reward": {"itemId": "i-1", "itemName": "莲子", "quantity": 7}})

    assert config.reward_item_id == "i-1"
    assert config.reward_item_name == "莲子"
    assert config.reward_quantity == 7


def test_config_type_must_match_activity_type():
    with pytest.raises(ValueError):
        parse_activity_config("checkin", {"type": "exchange"})

    parsed = parse_activity_config(
        "exchange", {"from_item_id": "a", "to_item_id": "b", "from_quantity": 10, "to_quantity": 1}
    )
    assert isinstance(parsed, ExchangeActivityConfig)
    assert isinstance(parse_activity_config("checkin", None), CheckinConfig)


async def test_activity_crud(engine, seeded):
    created = (
        await engine.activities.create(
            {
                "name": "春季兑换",
                "type": "exchange",
                "config": {
                    "from_item_id": seeded["lotus"].id,
                    "to_item_id": seeded["ticket"].id,
                    "from_quantity": 8,
                    "to_quantity": 1,
                },
            }
        )
    ).unwrap()
    assert created.config["type"] == "exchange"
    assert created.is_active is True

    fetched = await engine.activities.get(created.id)
    assert fetched.name == "春季兑换"

    renamed = (await engine.activities.update(created.id, {"name": "夏季兑换"})).unwrap()
    assert renamed.name == "夏季兑换"

    paused = (await engine.activities.set_active(created.id, False)).unwrap()
    assert paused.is_active is False
    assert created.id not in [a.id for a in await engine.activities.list_active()]
    assert created.id in [a.id for a in await engine.activities.list_all()]

    assert (await engine.activities.delete(created.id)).unwrap() == created.id
    assert await engine.activities.get(created.id) is None


async def test_invalid_config_is_rejected(engine):
    result = await engine.activities.create(
        {"name": "bad", "type": "checkin", "config": {"reward_quantity": 0}}
    )
    assert isinstance(result.error, ValidationError)

    unknown_type = await engine.activities.create({"name": "bad", "type": "raffle"})
    assert isinstance(unknown_type.error, ValidationError)


async def test_update_revalidates_config(engine, seeded):
    activity = (await engine.activities.list_by_type("checkin"))[0]

    result = await engine.activities.update(activity.id, {"config": {"reward_quantity": -3}})

    assert isinstance(result.error, ValidationError)
    assert (await engine.activities.get(activity.id)).config["reward_quantity"] == 5


async def test_activity_with_records_cannot_be_deleted(engine, seeded):
    await engine.checkin.check_in("u1")
    activity = (await engine.activities.list_by_type("checkin"))[0]

    result = await engine.activities.delete(activity.id)

    assert isinstance(result.error, ActivityInUseError)
    assert result.error.details["records"] == 1


async def test_missing_activity(engine):
    assert await engine.activities.get("missing") is None
    assert isinstance((await engine.activities.delete("missing")).error, ActivityNotFoundError)
    assert isinstance((await engine.activities.update("missing", {"name": "x"})).error, ActivityNotFoundError)
