# =========================================================
# FILE: lotus_backend/api/exchange.py
# =========================================================

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from lotus_backend.api.deps import get_current_user, get_engine, require_admin, unwrap_or_raise
from lotus_backend.schemas.exchange import (
    ExchangeOutcome,
    ExchangeRequest,
    ExchangeRuleCreate,
    ExchangeRuleOut,
    ExchangeRuleUpdate,
)
from lotus_backend.services.engine import RewardsEngine

router = APIRouter(prefix="/api/activities/exchange", tags=["exchange"])


@router.get("", response_model=List[ExchangeRuleOut])
async def active_rules(user=Depends(get_current_user), engine: RewardsEngine = Depends(get_engine)):
    return await engine.exchange.list_active()


@router.post("", response_model=ExchangeOutcome)
async def perform_exchange(
        req: ExchangeRequest,
        user=Depends(get_current_user),
        engine: RewardsEngine = Depends(get_engine),
):
    return unwrap_or_raise(await engine.exchange.perform(user["id"], req.rule_id, req.quantity))


# ─────────────────────────────────────────────
# RULES (admin)
# ─────────────────────────────────────────────

@router.get("/rules", response_model=List[ExchangeRuleOut])
async def all_rules(admin=Depends(require_admin), engine: RewardsEngine = Depends(get_engine)):
    return await engine.exchange.list_all()


@router.post("/rules", response_model=ExchangeRuleOut, status_code=201)
async def create_rule(
        data: ExchangeRuleCreate,
        admin=Depends(require_admin),
        engine: RewardsEngine = Depends(get_engine),
):
    return unwrap_or_raise(await engine.exchange.create(data))


@router.get("/rules/{rule_id}", response_model=ExchangeRuleOut)
async def get_rule(rule_id: str, admin=Depends(require_admin), engine: RewardsEngine = Depends(get_engine)):
    rule = await engine.exchange.get_by_id(rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Exchange rule not found")
    return rule


@router.put("/rules/{rule_id}", response_model=ExchangeRuleOut)
async def update_rule(
        rule_id: str,
        data: ExchangeRuleUpdate,
        admin=Depends(require_admin),
        engine: RewardsEngine = Depends(get_engine),
):
    return unwrap_or_raise(await engine.exchange.update(rule_id, data))


@router.delete("/rules/{rule_id}")
async def delete_rule(rule_id: str, admin=Depends(require_admin), engine: RewardsEngine = Depends(get_engine)):
    deleted = unwrap_or_raise(await engine.exchange.delete(rule_id))
    return {"message": "Exchange rule deleted", "id": deleted}
