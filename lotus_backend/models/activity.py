# /lotus_backend/models/activity.py
from datetime import date, datetime
from typing import Optional, Any
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Boolean, Date, DateTime, ForeignKey, JSON, UniqueConstraint

from lotus_backend.core.database import Base
from lotus_backend.models.item import new_id


class Activity(Base):
    """Configurable activity (daily check-in, exchange campaign, ...)."""
    __tablename__ = "activities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100))

    # Type: checkin, exchange
    type: Mapped[str] = mapped_column(String(30), index=True)

    # Validated per type by lotus_backend.schemas.activities before it is stored
    config: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class UserActivityRecord(Base):
    """One row per user, activity and calendar day; the daily idempotency key."""
    __tablename__ = "user_activity_records"
    __table_args__ = (
        UniqueConstraint("user_id", "activity_id", "record_date", name="uq_user_activity_day"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    activity_id: Mapped[str] = mapped_column(String(36), ForeignKey("activities.id"), index=True)
    record_date: Mapped[date] = mapped_column(Date)

    # Snapshot of the reward granted, e.g. {"reward": {"itemId": ..., "itemName": ..., "quantity": 5}}
    data: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
