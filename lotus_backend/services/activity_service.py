# FILE: lotus_backend/services/activity_service.py
import logging
from typing import Any, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lotus_backend.core.database import Database
from lotus_backend.core.errors import ActivityInUseError, ActivityNotFoundError, ValidationError
from lotus_backend.core.result import returns_result
from lotus_backend.models.activity import Activity, UserActivityRecord
from lotus_backend.schemas.activities import ActivityCreate, ActivityOut, ActivityUpdate, parse_activity_config
from lotus_backend.schemas.common import parse

logger = logging.getLogger("lotus-rewards.activities")


class ActivityService:
    """Administration of activity definitions."""

    def __init__(self, db: Database):
        self.db = db

    async def _require_in(self, session: AsyncSession, activity_id: str) -> Activity:
        activity = await session.get(Activity, activity_id)
        if activity is None:
            raise ActivityNotFoundError(activity_id=activity_id)
        return activity

    async def _select(self, stmt) -> List[ActivityOut]:
        async def _read(session: AsyncSession):
            rows = (await session.execute(stmt)).scalars().all()
            return [ActivityOut.model_validate(a) for a in rows]

        return await self.db.transaction(_read)

    async def list_active(self) -> List[ActivityOut]:
        return await self._select(
            select(Activity).where(Activity.is_active.is_(True)).order_by(Activity.created_at.desc())
        )

    async def list_all(self) -> List[ActivityOut]:
        return await self._select(select(Activity).order_by(Activity.created_at.desc()))

    async def list_by_type(self, activity_type: str) -> List[ActivityOut]:
        return await self._select(
            select(Activity)
            .where(Activity.type == activity_type, Activity.is_active.is_(True))
            .order_by(Activity.created_at.desc())
        )

    async def get(self, activity_id: str) -> Optional[ActivityOut]:
        async def _read(session: AsyncSession):
            activity = await session.get(Activity, activity_id)
            return ActivityOut.model_validate(activity) if activity else None

        return await self.db.transaction(_read)

    @returns_result
    async def create(self, data: Any) -> ActivityOut:
        data = parse(ActivityCreate, data)

        async def _run(session: AsyncSession) -> ActivityOut:
            activity = Activity(name=data.name, type=data.type, config=data.config, is_active=data.is_active)
            session.add(activity)
            await session.flush()
            return ActivityOut.model_validate(activity)

        out = await self.db.transaction(_run)
        logger.info(f"Created activity {out.name} ({out.type}, {out.id})")
        return out

    @returns_result
    async def update(self, activity_id: str, data: Any) -> ActivityOut:
        changes = parse(ActivityUpdate, data).changes()
        if not changes:
            raise ValidationError("No fields to update")

        async def _run(session: AsyncSession) -> ActivityOut:
            activity = await self._require_in(session, activity_id)
            if "config" in changes:
                try:
                    changes["config"] = parse_activity_config(activity.type, changes["config"]).model_dump()
                except ValueError as exc:
                    raise ValidationError(f"Invalid {activity.type} config: {exc}") from exc
            for field, value in changes.items():
                setattr(activity, field, value)
            await session.flush()
            return ActivityOut.model_validate(activity)

        return await self.db.transaction(_run)

    @returns_result
    async def set_active(self, activity_id: str, is_active: bool) -> ActivityOut:
        return (await self.update(activity_id, {"is_active": is_active})).unwrap()

    @returns_result
    async def delete(self, activity_id: str) -> str:
        async def _run(session: AsyncSession) -> str:
            activity = await self._require_in(session, activity_id)
            records = (
                await session.execute(
                    select(func.count(UserActivityRecord.id)).where(UserActivityRecord.activity_id == activity_id)
                )
            ).scalar_one()
            if records:
                raise ActivityInUseError(activity_id=activity_id, records=int(records))
            await session.delete(activity)
            return activity_id

        deleted = await self.db.transaction(_run)
        logger.info(f"Deleted activity {deleted}")
        return deleted
