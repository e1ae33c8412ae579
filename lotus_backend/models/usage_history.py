# /lotus_backend/models/usage_history.py
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, ForeignKey, DateTime, Index

from lotus_backend.core.database import Base
from lotus_backend.models.item import Item


class UsageHistory(Base):
    """Append-only ledger of consumed items."""
    __tablename__ = "usage_history"
    __table_args__ = (
        Index("idx_usage_history_user_used_at", "user_id", "used_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64))
    item_id: Mapped[str] = mapped_column(String(36), ForeignKey("items.id", ondelete="CASCADE"), index=True)
    quantity_used: Mapped[int] = mapped_column(Integer)
    used_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    item: Mapped[Item] = relationship(lazy="joined")
