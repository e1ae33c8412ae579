# =========================================================
# FILE: lotus_backend/api/activities.py
# =========================================================

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from lotus_backend.api.deps import get_current_user, get_engine, require_admin, unwrap_or_raise
from lotus_backend.schemas.activities import (
    ActivityCreate,
    ActivityOut,
    ActivityUpdate,
    CheckinReward,
    CheckinStatus,
)
from lotus_backend.services.engine import RewardsEngine

router = APIRouter(prefix="/api/activities", tags=["activities"])


# ─────────────────────────────────────────────
# CHECK-IN
# ─────────────────────────────────────────────

@router.get("/checkin/status", response_model=CheckinStatus)
async def checkin_status(user=Depends(get_current_user), engine: RewardsEngine = Depends(get_engine)):
    return await engine.checkin.status(user["id"])


@router.post("/checkin", response_model=CheckinReward)
async def checkin(user=Depends(get_current_user), engine: RewardsEngine = Depends(get_engine)):
    return unwrap_or_raise(await engine.checkin.check_in(user["id"]))


# ─────────────────────────────────────────────
# ACTIVITY ADMIN
# ─────────────────────────────────────────────

@router.get("", response_model=List[ActivityOut])
async def list_activities(user=Depends(get_current_user), engine: RewardsEngine = Depends(get_engine)):
    if user["role"] == "admin":
        return await engine.activities.list_all()
    return await engine.activities.list_active()


@router.post("", response_model=ActivityOut, status_code=201)
async def create_activity(
        data: ActivityCreate,
        admin=Depends(require_admin),
        engine: RewardsEngine = Depends(get_engine),
):
    return unwrap_or_raise(await engine.activities.create(data))


@router.get("/{activity_id}", response_model=ActivityOut)
async def get_activity(
        activity_id: str,
        user=Depends(get_current_user),
        engine: RewardsEngine = Depends(get_engine),
):
    activity = await engine.activities.get(activity_id)
    if not activity:
        raise HTTPException(status_code=404, detail="Activity not found")
    return activity


@router.put("/{activity_id}", response_model=ActivityOut)
async def update_activity(
        activity_id: str,
        data: ActivityUpdate,
        admin=Depends(require_admin),
        engine: RewardsEngine = Depends(get_engine),
):
    return unwrap_or_raise(await engine.activities.update(activity_id, data))


@router.delete("/{activity_id}")
async def delete_activity(
        activity_id: str,
        admin=Depends(require_admin),
        engine: RewardsEngine = Depends(get_engine),
):
    deleted = unwrap_or_raise(await engine.activities.delete(activity_id))
    return {"message": "Activity deleted", "id": deleted}
