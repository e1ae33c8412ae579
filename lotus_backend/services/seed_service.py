# FILE: lotus_backend/services/seed_service.py
"""Idempotent bootstrap of the default catalog, check-in activity and exchange rule."""

import logging
from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lotus_backend.core.config import (
    CHECKIN_ACTIVITY_NAME,
    CHECKIN_ACTIVITY_TYPE,
    CHECKIN_REWARD_ITEM_NAME,
    CHECKIN_REWARD_QUANTITY,
)
from lotus_backend.core.database import Database
from lotus_backend.core.errors import InfrastructureError
from lotus_backend.models.activity import Activity
from lotus_backend.models.exchange_rule import ExchangeRule
from lotus_backend.models.item import Item
from lotus_backend.schemas.activities import CheckinConfig
from lotus_backend.schemas.items import ItemCreate
from lotus_backend.services.catalog_service import ItemCatalog

logger = logging.getLogger("lotus-rewards.seed")

TV_TICKET_NAME = "20分钟电视券"

DEFAULT_ITEMS = [
    ItemCreate(name=CHECKIN_REWARD_ITEM_NAME, description="系统基础货币，可用于兑换其他物品", is_usable=False),
    ItemCreate(name=TV_TICKET_NAME, description="可以观看20分钟电视的券", is_usable=True),
]

# (from item, from quantity) -> (to item, to quantity)
DEFAULT_EXCHANGE_RULES = [
    (CHECKIN_REWARD_ITEM_NAME, 10, TV_TICKET_NAME, 1),
]


class SeedService:
    def __init__(self, db: Database, catalog: ItemCatalog):
        self.db = db
        self.catalog = catalog

    async def bootstrap(self, create_tables: bool = True) -> Dict[str, Any]:
        if create_tables:
            await self.db.create_all()

        async def _run(session: AsyncSession) -> Dict[str, Any]:
            items = {}
            for spec in DEFAULT_ITEMS:
                items[spec.name] = await self.catalog.find_or_create_in(session, spec)

            activity = (
                await session.execute(
                    select(Activity).where(Activity.type == CHECKIN_ACTIVITY_TYPE).limit(1)
                )
            ).scalar_one_or_none()
            created_activity = activity is None
            if created_activity:
                reward = items[CHECKIN_REWARD_ITEM_NAME]
                session.add(
                    Activity(
                        name=CHECKIN_ACTIVITY_NAME,
                        type=CHECKIN_ACTIVITY_TYPE,
                        config=CheckinConfig(
                            reward_item_id=reward.id,
                            reward_item_name=reward.name,
                            reward_quantity=CHECKIN_REWARD_QUANTITY,
                        ).model_dump(),
                        is_active=True,
                    )
                )

            created_rules = 0
            for from_name, from_qty, to_name, to_qty in DEFAULT_EXCHANGE_RULES:
                from_item, to_item = items[from_name], items[to_name]
                exists = (
                    await session.execute(
                        select(ExchangeRule.id).where(
                            ExchangeRule.from_item_id == from_item.id,
                            ExchangeRule.to_item_id == to_item.id,
                        )
                    )
                ).scalar_one_or_none()
                if exists is None:
                    session.add(
                        ExchangeRule(
                            from_item_id=from_item.id,
                            to_item_id=to_item.id,
                            from_quantity=from_qty,
                            to_quantity=to_qty,
                            is_active=True,
                        )
                    )
                    created_rules += 1

            await session.flush()
            return {
                "items": sorted(items),
                "created_checkin_activity": created_activity,
                "created_exchange_rules": created_rules,
            }

        summary = await self.db.transaction(_run)
        logger.info(f"Bootstrap complete: {summary}")
        return summary

    async def status(self) -> Dict[str, Any]:
        empty = {"connected": False, "item_count": 0, "activity_count": 0, "exchange_rule_count": 0}
        if not await self.db.ping():
            return empty

        async def _read(session: AsyncSession) -> Dict[str, Any]:
            async def _count(model) -> int:
                return int((await session.execute(select(func.count()).select_from(model))).scalar_one() or 0)

            return {
                "connected": True,
                "item_count": await _count(Item),
                "activity_count": await _count(Activity),
                "exchange_rule_count": await _count(ExchangeRule),
            }

        try:
            return await self.db.transaction(_read)
        except InfrastructureError as exc:
            logger.error(f"Status query failed: {exc.message}")
            return {**empty, "connected": True, "error": exc.message}
