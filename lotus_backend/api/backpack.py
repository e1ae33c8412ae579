# =========================================================
# FILE: lotus_backend/api/backpack.py
# =========================================================

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from lotus_backend.api.deps import get_current_user, get_engine, unwrap_or_raise
from lotus_backend.schemas.items import UsageHistoryPage, UseItemOutcome, UseItemRequest, UserItemOut
from lotus_backend.services.engine import RewardsEngine

router = APIRouter(prefix="/api/backpack", tags=["backpack"])


@router.get("", response_model=List[UserItemOut])
async def backpack(user=Depends(get_current_user), engine: RewardsEngine = Depends(get_engine)):
    """Items the user currently holds (quantity > 0), by item name."""
    return await engine.balance.list(user["id"])


@router.post("/use", response_model=UseItemOutcome)
async def use_item(
        req: UseItemRequest,
        user=Depends(get_current_user),
        engine: RewardsEngine = Depends(get_engine),
):
    return unwrap_or_raise(await engine.usage.use_item(user["id"], req.item_id, req.quantity))


@router.get("/history", response_model=UsageHistoryPage)
async def usage_history(
        limit: int = Query(20, ge=1, le=100),
        offset: int = Query(0, ge=0),
        item_id: Optional[str] = None,
        user=Depends(get_current_user),
        engine: RewardsEngine = Depends(get_engine),
):
    return await engine.usage.history(user["id"], limit=limit, offset=offset, item_id=item_id)
