# =========================================================
# FILE: /lotus_backend/services/exchange_service.py
# =========================================================

import logging
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lotus_backend.core.database import Database
from lotus_backend.core.errors import (
    DuplicateRuleError,
    RuleInactiveError,
    RuleNotFoundError,
    ValidationError,
)
from lotus_backend.core.result import returns_result
from lotus_backend.models.exchange_rule import ExchangeRule
from lotus_backend.schemas.common import parse
from lotus_backend.schemas.exchange import (
    ExchangeOutcome,
    ExchangeRuleCreate,
    ExchangeRuleOut,
    ExchangeRuleUpdate,
)
from lotus_backend.services.balance_service import BalanceLedger, require_positive
from lotus_backend.services.catalog_service import ItemCatalog

logger = logging.getLogger("lotus-rewards.exchange")


class ExchangeEngine:
    def __init__(self, db: Database, catalog: ItemCatalog, balance: BalanceLedger):
        self.db = db
        self.catalog = catalog
        self.balance = balance

    async def _load_in(self, session: AsyncSession, rule_id: str) -> Optional[ExchangeRule]:
        return (
            await session.execute(
                select(ExchangeRule)
                .where(ExchangeRule.id == rule_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()

    async def _require_in(self, session: AsyncSession, rule_id: str) -> ExchangeRule:
        rule = await self._load_in(session, rule_id)
        if rule is None:
            raise RuleNotFoundError(rule_id=rule_id)
        return rule

    async def _pair_in(self, session: AsyncSession, from_item_id: str, to_item_id: str) -> Optional[str]:
        return (
            await session.execute(
                select(ExchangeRule.id).where(
                    ExchangeRule.from_item_id == from_item_id,
                    ExchangeRule.to_item_id == to_item_id,
                )
            )
        ).scalar_one_or_none()

    async def _list(self, active_only: bool) -> List[ExchangeRuleOut]:
        stmt = select(ExchangeRule).order_by(ExchangeRule.created_at.desc())
        if active_only:
            stmt = stmt.where(ExchangeRule.is_active.is_(True))

        async def _read(session: AsyncSession):
            rows = (await session.execute(stmt)).scalars().all()
            return [ExchangeRuleOut.model_validate(r) for r in rows]

        return await self.db.transaction(_read)

    # ----------------------------
    # Queries
    # ----------------------------
    async def list_active(self) -> List[ExchangeRuleOut]:
        return await self._list(active_only=True)

    async def list_all(self) -> List[ExchangeRuleOut]:
        return await self._list(active_only=False)

    async def get_by_id(self, rule_id: str) -> Optional[ExchangeRuleOut]:
        async def _read(session: AsyncSession):
            rule = await self._load_in(session, rule_id)
            return ExchangeRuleOut.model_validate(rule) if rule else None

        return await self.db.transaction(_read)

    # ----------------------------
    # Exchange
    # ----------------------------
    @returns_result
    async def perform(self, user_id: str, rule_id: str, repetitions: int = 1) -> ExchangeOutcome:
        """Apply a rule ``repetitions`` times: debit the source, then credit the target."""
        require_positive(repetitions, "repetitions")

        async def _run(session: AsyncSession) -> ExchangeOutcome:
            rule = await self._require_in(session, rule_id)
            if not rule.is_active:
                raise RuleInactiveError(rule_id=rule_id)

            required = rule.from_quantity * repetitions
            reward = rule.to_quantity * repetitions

            await self.balance.debit_in(session, user_id, rule.from_item_id, required)
            await self.balance.credit_in(session, user_id, rule.to_item_id, reward)

            return ExchangeOutcome(
                rule_id=rule.id,
                repetitions=repetitions,
                from_item_id=rule.from_item_id,
                to_item_id=rule.to_item_id,
                spent=required,
                received=reward,
                from_item=await self.balance.quantity_in(session, user_id, rule.from_item_id) or 0,
                to_item=await self.balance.quantity_in(session, user_id, rule.to_item_id) or 0,
            )

        outcome = await self.db.transaction(_run)
        logger.info(
            f"User {user_id} exchanged {outcome.spent} x {outcome.from_item_id} "
            f"for {outcome.received} x {outcome.to_item_id} (rule {rule_id})"
        )
        return outcome

    # ----------------------------
    # Rule administration
    # ----------------------------
    @returns_result
    async def create(self, data: Any) -> ExchangeRuleOut:
        data = parse(ExchangeRuleCreate, data)

        async def _run(session: AsyncSession) -> ExchangeRuleOut:
            await self.catalog.require_in(session, data.from_item_id)
            await self.catalog.require_in(session, data.to_item_id)

            existing = await self._pair_in(session, data.from_item_id, data.to_item_id)
            if existing is not None:
                raise DuplicateRuleError(rule_id=existing)

            rule = ExchangeRule(**data.model_dump())
            session.add(rule)
            try:
                await session.flush()
            except IntegrityError as exc:
                # a concurrent create inserted the same pair first
                raise DuplicateRuleError(
                    from_item_id=data.from_item_id, to_item_id=data.to_item_id
                ) from exc
            return ExchangeRuleOut.model_validate(await self._load_in(session, rule.id))

        out = await self.db.transaction(_run)
        logger.info(f"Created exchange rule {out.id}: {out.from_quantity} {out.from_item.name} -> {out.to_quantity} {out.to_item.name}")
        return out

    @returns_result
    async def update(self, rule_id: str, data: Any) -> ExchangeRuleOut:
        changes = parse(ExchangeRuleUpdate, data).changes()
        if not changes:
            raise ValidationError("No fields to update")

        async def _run(session: AsyncSession) -> ExchangeRuleOut:
            rule = await self._require_in(session, rule_id)
            for field, value in changes.items():
                setattr(rule, field, value)
            await session.flush()
            return ExchangeRuleOut.model_validate(await self._load_in(session, rule_id))

        return await self.db.transaction(_run)

    @returns_result
    async def delete(self, rule_id: str) -> str:
        async def _run(session: AsyncSession) -> str:
            rule = await self._require_in(session, rule_id)
            await session.delete(rule)
            return rule_id

        deleted = await self.db.transaction(_run)
        logger.info(f"Deleted exchange rule {deleted}")
        return deleted
