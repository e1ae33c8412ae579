import asyncio

import pytest

from lotus_backend.core.errors import InsufficientBalanceError, ItemNotFoundError, ValidationError


async def test_credit_creates_then_accumulates(engine, seeded):
    lotus = seeded["lotus"]

    first = (await engine.balance.credit("u1", lotus.id, 5)).unwrap()
    assert first.quantity == 5
    assert first.item.name == "莲子"

    second = (await engine.balance.credit("u1", lotus.id, 3)).unwrap()
    assert second.quantity == 8
    assert second.id == first.id


async def test_get_returns_none_for_never_held_items(engine, seeded):
    assert await engine.balance.get("u1", seeded["ticket"].id) is None


async def test_debit_insufficient_leaves_balance_untouched(engine, seeded):
    lotus = seeded["lotus"]
    await engine.balance.credit("u1", lotus.id, 4)

    result = await engine.balance.debit("u1", lotus.id, 10)

    assert not result.ok
    err = result.error
    assert isinstance(err, InsufficientBalanceError)
    assert (err.required, err.available, err.shortfall) == (10, 4, 6)
    assert err.item_name == "莲子"
    assert (await engine.balance.get("u1", lotus.id)).quantity == 4


async def test_debit_without_a_balance_row(engine, seeded):
    result = await engine.balance.debit("nobody", seeded["ticket"].id, 1)
    assert isinstance(result.error, InsufficientBalanceError)
    assert result.error.available == 0


async def test_debit_to_zero_hides_row_from_backpack(engine, seeded):
    lotus, ticket = seeded["lotus"], seeded["ticket"]
    await engine.balance.credit("u1", lotus.id, 3)
    await engine.balance.credit("u1", ticket.id, 1)

    emptied = (await engine.balance.debit("u1", lotus.id, 3)).unwrap()
    assert emptied.quantity == 0

    listed = await engine.balance.list("u1")
    assert [row.item.name for row in listed] == ["20分钟电视券"]
    # the zero row is still there
    assert (await engine.balance.get("u1", lotus.id)).quantity == 0


async def test_list_is_ordered_by_item_name_and_scoped_to_user(engine, seeded):
    await engine.balance.credit("u1", seeded["lotus"].id, 1)
    await engine.balance.credit("u1", seeded["ticket"].id, 1)
    await engine.balance.credit("u2", seeded["lotus"].id, 9)

    names = [row.item.name for row in await engine.balance.list("u1")]
    assert names == sorted(names)
    assert len(names) == 2
    assert [row.quantity for row in await engine.balance.list("u2")] == [9]


@pytest.mark.parametrize("amount", [0, -1, True, 1.5])
async def test_amounts_must_be_positive_integers(engine, seeded, amount):
    credit = await engine.balance.credit("u1", seeded["lotus"].id, amount)
    debit = await engine.balance.debit("u1", seeded["lotus"].id, amount)

    assert isinstance(credit.error, ValidationError)
    assert isinstance(debit.error, ValidationError)
    assert await engine.balance.get("u1", seeded["lotus"].id) is None


async def test_credit_unknown_item(engine):
    result = await engine.balance.credit("u1", "no-such-item", 1)
    assert isinstance(result.error, ItemNotFoundError)


async def test_concurrent_debits_never_overdraw(engine, seeded):
    lotus = seeded["lotus"]
    await engine.balance.credit("u1", lotus.id, 10)

    results = await asyncio.gather(*[engine.balance.debit("u1", lotus.id, 3) for _ in range(5)])

    succeeded = [r for r in results if r.ok]
    failed = [r for r in results if not r.ok]
    assert len(succeeded) == 3
    assert all(isinstance(r.error, InsufficientBalanceError) for r in failed)
    assert (await engine.balance.get("u1", lotus.id)).quantity == 1
