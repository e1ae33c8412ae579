# FILE: lotus_backend/services/usage_service.py
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lotus_backend.core.database import Database
from lotus_backend.core.errors import ItemNotUsableError
from lotus_backend.core.result import returns_result
from lotus_backend.models.usage_history import UsageHistory
from lotus_backend.schemas.items import UsageEntryOut, UsageHistoryPage, UseItemOutcome
from lotus_backend.services.balance_service import BalanceLedger, require_positive
from lotus_backend.services.catalog_service import ItemCatalog

logger = logging.getLogger("lotus-rewards.usage")

DEFAULT_HISTORY_LIMIT = 20
MAX_HISTORY_LIMIT = 100


class UsageLedger:
    """Consumption of usable items plus the append-only usage history."""

    def __init__(self, db: Database, catalog: ItemCatalog, balance: BalanceLedger):
        self.db = db
        self.catalog = catalog
        self.balance = balance

    async def record_in(self, session: AsyncSession, user_id: str, item_id: str, quantity_used: int) -> UsageHistory:
        entry = UsageHistory(user_id=user_id, item_id=item_id, quantity_used=quantity_used)
        session.add(entry)
        await session.flush()
        return entry

    @returns_result
    async def use_item(self, user_id: str, item_id: str, quantity: int = 1) -> UseItemOutcome:
        """Consume ``quantity`` of a usable item; balance and history change together."""
        require_positive(quantity, "quantity")

        async def _run(session: AsyncSession) -> UseItemOutcome:
            item = await self.catalog.require_in(session, item_id)
            if not item.is_usable:
                raise ItemNotUsableError(f"{item.name} cannot be used", item_id=item.id, item_name=item.name)
            remaining = await self.balance.debit_in(session, user_id, item_id, quantity)
            await self.record_in(session, user_id, item_id, quantity)
            return UseItemOutcome(
                item_id=item.id,
                item_name=item.name,
                quantity_used=quantity,
                remaining=remaining,
            )

        outcome = await self.db.transaction(_run)
        logger.info(f"User {user_id} used {quantity} x {outcome.item_name}, {outcome.remaining} left")
        return outcome

    async def history(
        self,
        user_id: str,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
        item_id: Optional[str] = None,
    ) -> UsageHistoryPage:
        limit = max(1, min(int(limit), MAX_HISTORY_LIMIT))
        offset = max(0, int(offset))

        filters = [UsageHistory.user_id == user_id]
        if item_id:
            filters.append(UsageHistory.item_id == item_id)

        async def _read(session: AsyncSession) -> UsageHistoryPage:
            total = (
                await session.execute(select(func.count(UsageHistory.id)).where(*filters))
            ).scalar_one()
            rows = (
                await session.execute(
                    select(UsageHistory)
                    .where(*filters)
                    .order_by(UsageHistory.used_at.desc(), UsageHistory.id.desc())
                    .limit(limit)
                    .offset(offset)
                )
            ).scalars().all()
            return UsageHistoryPage(
                entries=[UsageEntryOut.model_validate(r) for r in rows],
                total=int(total or 0),
                limit=limit,
                offset=offset,
            )

        return await self.db.transaction(_read)
