# =========================================================
# FILE: /lotus_backend/services/balance_service.py
# =========================================================
"""User balance ledger: (user, item) -> quantity.

Every mutation runs inside a transaction owned by the caller. Debits lock the
balance row, check sufficiency and decrement in that same transaction, and the
UPDATE itself is guarded by ``quantity >= amount`` so a balance can never go
below zero even if the lock is weaker than expected (SQLite).
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lotus_backend.core.database import Database
from lotus_backend.core.dialects import insert_or_increment
from lotus_backend.core.errors import InsufficientBalanceError, ValidationError
from lotus_backend.core.result import returns_result
from lotus_backend.models.item import Item
from lotus_backend.models.user_item import UserItem
from lotus_backend.schemas.items import UserItemOut
from lotus_backend.services.catalog_service import ItemCatalog

logger = logging.getLogger("lotus-rewards.balance")


def require_positive(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer", field=field, value=value)
    return value


class BalanceLedger:
    def __init__(self, db: Database, catalog: ItemCatalog):
        self.db = db
        self.catalog = catalog

    # ----------------------------
    # In-transaction helpers
    # ----------------------------
    async def quantity_in(self, session: AsyncSession, user_id: str, item_id: str, lock: bool = False) -> Optional[int]:
        stmt = select(UserItem.quantity).where(UserItem.user_id == user_id, UserItem.item_id == item_id)
        if lock:
            stmt = stmt.with_for_update()
        return (await session.execute(stmt)).scalar_one_or_none()

    async def row_in(self, session: AsyncSession, user_id: str, item_id: str) -> Optional[UserItem]:
        stmt = (
            select(UserItem)
            .where(UserItem.user_id == user_id, UserItem.item_id == item_id)
            .execution_options(populate_existing=True)
        )
        return (await session.execute(stmt)).scalar_one_or_none()

    async def credit_in(self, session: AsyncSession, user_id: str, item_id: str, amount: int) -> int:
        """Add ``amount`` to the balance, creating the row if needed. Returns the new quantity."""
        require_positive(amount, "amount")
        await self.catalog.require_in(session, item_id)

        now = datetime.utcnow()
        await session.execute(
            insert_or_increment(
                self.db.dialect_name,
                UserItem.__table__,
                {"user_id": user_id, "item_id": item_id, "quantity": amount, "updated_at": now},
                conflict_columns=["user_id", "item_id"],
                counter="quantity",
                also_set={"updated_at": now},
            )
        )
        return await self.quantity_in(session, user_id, item_id) or 0

    async def debit_in(self, session: AsyncSession, user_id: str, item_id: str, amount: int) -> int:
        """Remove ``amount`` from the balance. Returns the remaining quantity."""
        require_positive(amount, "amount")

        current = await self.quantity_in(session, user_id, item_id, lock=True)
        if current is None or current < amount:
            await self._raise_insufficient(session, user_id, item_id, amount, current)

        result = await session.execute(
            update(UserItem)
            .where(
                UserItem.user_id == user_id,
                UserItem.item_id == item_id,
                UserItem.quantity >= amount,
            )
            .values(quantity=UserItem.quantity - amount, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            current = await self.quantity_in(session, user_id, item_id)
            await self._raise_insufficient(session, user_id, item_id, amount, current)

        return await self.quantity_in(session, user_id, item_id) or 0

    async def _raise_insufficient(self, session, user_id, item_id, amount, current):
        item = await session.get(Item, item_id)
        raise InsufficientBalanceError(
            item_id=item_id,
            item_name=item.name if item else None,
            required=amount,
            available=current or 0,
        )

    # ----------------------------
    # Public operations
    # ----------------------------
    async def get(self, user_id: str, item_id: str) -> Optional[UserItemOut]:
        """Balance row, or None when the user never held the item."""
        async def _read(session: AsyncSession):
            row = await self.row_in(session, user_id, item_id)
            return UserItemOut.model_validate(row) if row else None

        return await self.db.transaction(_read)

    async def list(self, user_id: str) -> List[UserItemOut]:
        async def _read(session: AsyncSession):
            rows = (
                await session.execute(
                    select(UserItem)
                    .join(UserItem.item)
                    .where(UserItem.user_id == user_id, UserItem.quantity > 0)
                    .order_by(Item.name.asc())
                )
            ).scalars().all()
            return [UserItemOut.model_validate(r) for r in rows]

        return await self.db.transaction(_read)

    @returns_result
    async def credit(self, user_id: str, item_id: str, amount: int) -> UserItemOut:
        async def _run(session: AsyncSession):
            await self.credit_in(session, user_id, item_id, amount)
            return UserItemOut.model_validate(await self.row_in(session, user_id, item_id))

        out = await self.db.transaction(_run)
        logger.info(f"Credited {amount} x {item_id} to {user_id} (now {out.quantity})")
        return out

    @returns_result
    async def debit(self, user_id: str, item_id: str, amount: int) -> UserItemOut:
        async def _run(session: AsyncSession):
            await self.debit_in(session, user_id, item_id, amount)
            return UserItemOut.model_validate(await self.row_in(session, user_id, item_id))

        out = await self.db.transaction(_run)
        logger.info(f"Debited {amount} x {item_id} from {user_id} (now {out.quantity})")
        return out
