# =========================================================
# FILE: /lotus_backend/services/checkin_service.py
# =========================================================
"""Daily check-in.

Per (user, check-in activity, calendar day) the state is Unclaimed -> Claimed.
The day rolls over by itself: records are keyed on ``record_date`` and never
updated, so a new date simply has no record yet. The unique constraint on
(user_id, activity_id, record_date) backs up the in-transaction re-check.
"""

import logging
from datetime import date, datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lotus_backend.core.config import (
    CHECKIN_ACTIVITY_NAME,
    CHECKIN_ACTIVITY_TYPE,
    CHECKIN_TIMEZONE,
)
from lotus_backend.core.database import Database
from lotus_backend.core.errors import ActivityInactiveError, AlreadyCheckedInError
from lotus_backend.core.result import returns_result
from lotus_backend.models.activity import Activity, UserActivityRecord
from lotus_backend.models.item import Item
from lotus_backend.schemas.activities import CheckinConfig, CheckinReward, CheckinStatus, parse_activity_config
from lotus_backend.schemas.items import ItemCreate
from lotus_backend.services.balance_service import BalanceLedger
from lotus_backend.services.catalog_service import ItemCatalog

logger = logging.getLogger("lotus-rewards.checkin")

REWARD_ITEM_DESCRIPTION = "通过签到获得的奖励物品"


def zone_today(tz_name: str) -> Callable[[], date]:
    tz = ZoneInfo(tz_name)
    return lambda: datetime.now(tz).date()


class CheckinEngine:
    def __init__(
        self,
        db: Database,
        catalog: ItemCatalog,
        balance: BalanceLedger,
        today: Optional[Callable[[], date]] = None,
    ):
        self.db = db
        self.catalog = catalog
        self.balance = balance
        if today is None and CHECKIN_TIMEZONE:
            today = zone_today(CHECKIN_TIMEZONE)
        # None -> the database's CURRENT_DATE
        self._today = today

    def _today_value(self):
        if self._today is not None:
            return self._today()
        return func.current_date()

    # ----------------------------
    # Activity resolution
    # ----------------------------
    async def find_activity_in(self, session: AsyncSession) -> Optional[Activity]:
        return (
            await session.execute(
                select(Activity)
                .where(Activity.type == CHECKIN_ACTIVITY_TYPE)
                # an inactive one is only returned when no active one exists
                .order_by(Activity.is_active.desc(), Activity.created_at.asc())
                .limit(1)
            )
        ).scalar_one_or_none()

    async def resolve_activity_in(self, session: AsyncSession) -> Activity:
        activity = await self.find_activity_in(session)
        if activity is not None:
            return activity

        logger.info("No check-in activity configured, seeding the default one")
        activity = Activity(
            name=CHECKIN_ACTIVITY_NAME,
            type=CHECKIN_ACTIVITY_TYPE,
            config=CheckinConfig().model_dump(),
            is_active=True,
        )
        session.add(activity)
        await session.flush()
        return activity

    def config_of(self, activity: Activity) -> CheckinConfig:
        try:
            return parse_activity_config(CHECKIN_ACTIVITY_TYPE, activity.config)
        except ValueError as exc:
            logger.warning(f"Invalid config on check-in activity {activity.id}, using defaults: {exc}")
            return CheckinConfig()

    async def reward_item_in(self, session: AsyncSession, config: CheckinConfig) -> Item:
        if config.reward_item_id:
            item = await self.catalog.get_in(session, config.reward_item_id)
            if item is not None:
                return item
            logger.warning(f"Reward item {config.reward_item_id} not found, falling back to {config.reward_item_name}")
        return await self.catalog.find_or_create_in(
            session,
            ItemCreate(name=config.reward_item_name, description=REWARD_ITEM_DESCRIPTION, is_usable=False),
        )

    async def today_record_in(self, session: AsyncSession, user_id: str, activity_id: str) -> Optional[UserActivityRecord]:
        return (
            await session.execute(
                select(UserActivityRecord).where(
                    UserActivityRecord.user_id == user_id,
                    UserActivityRecord.activity_id == activity_id,
                    UserActivityRecord.record_date == self._today_value(),
                )
            )
        ).scalar_one_or_none()

    # ----------------------------
    # Public operations
    # ----------------------------
    async def status(self, user_id: str) -> CheckinStatus:
        async def _read(session: AsyncSession) -> CheckinStatus:
            activity = await self.find_activity_in(session)
            if activity is None:
                return CheckinStatus(can_check_in=True, has_checked_in_today=False)
            record = await self.today_record_in(session, user_id, activity.id)
            return CheckinStatus(
                can_check_in=record is None and activity.is_active,
                has_checked_in_today=record is not None,
                last_check_in=record.created_at if record else None,
            )

        return await self.db.transaction(_read)

    @returns_result
    async def check_in(self, user_id: str) -> CheckinReward:
        async def _run(session: AsyncSession) -> CheckinReward:
            activity = await self.resolve_activity_in(session)
            if not activity.is_active:
                raise ActivityInactiveError(activity_id=activity.id)

            if await self.today_record_in(session, user_id, activity.id) is not None:
                raise AlreadyCheckedInError()

            config = self.config_of(activity)
            item = await self.reward_item_in(session, config)
            total = await self.balance.credit_in(session, user_id, item.id, config.reward_quantity)

            record_date = self._today_value()
            record = UserActivityRecord(
                user_id=user_id,
                activity_id=activity.id,
                record_date=record_date,
                data={"reward": {"itemId": item.id, "itemName": item.name, "quantity": config.reward_quantity}},
            )
            session.add(record)
            try:
                await session.flush()
            except IntegrityError as exc:
                # a concurrent request claimed the same day first
                raise AlreadyCheckedInError() from exc
            if not isinstance(record_date, date):
                await session.refresh(record, attribute_names=["record_date"])

            return CheckinReward(
                activity_id=activity.id,
                item_id=item.id,
                item_name=item.name,
                quantity=config.reward_quantity,
                total_quantity=total,
                record_date=record.record_date,
                checked_in_at=record.created_at,
            )

        reward = await self.db.transaction(_run)
        logger.info(f"User {user_id} checked in: +{reward.quantity} {reward.item_name} (total {reward.total_quantity})")
        return reward
