# /lotus_backend/models/exchange_rule.py
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Boolean, ForeignKey, DateTime, CheckConstraint, UniqueConstraint

from lotus_backend.core.database import Base
from lotus_backend.models.item import Item, new_id


class ExchangeRule(Base):
    """Ratio converting from_quantity of one item into to_quantity of another."""
    __tablename__ = "exchange_rules"
    __table_args__ = (
        UniqueConstraint("from_item_id", "to_item_id", name="uq_exchange_rules_item_pair"),
        CheckConstraint("from_quantity > 0", name="ck_exchange_rules_from_quantity_positive"),
        CheckConstraint("to_quantity > 0", name="ck_exchange_rules_to_quantity_positive"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    from_item_id: Mapped[str] = mapped_column(String(36), ForeignKey("items.id", ondelete="CASCADE"), index=True)
    to_item_id: Mapped[str] = mapped_column(String(36), ForeignKey("items.id", ondelete="CASCADE"), index=True)
    from_quantity: Mapped[int] = mapped_column(Integer)
    to_quantity: Mapped[int] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    from_item: Mapped[Item] = relationship(foreign_keys=[from_item_id], lazy="joined")
    to_item: Mapped[Item] = relationship(foreign_keys=[to_item_id], lazy="joined")
