from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from lotus_backend.api.deps import get_engine
from lotus_backend.services.engine import RewardsEngine

router = APIRouter(prefix="/api", tags=["root"])

@router.get("/")
async def api_root():
    return {"message": "Lotus Rewards API"}

@router.get("/health")
async def health(engine: RewardsEngine = Depends(get_engine)):
    status = await engine.seed.status()
    return JSONResponse(status_code=200 if status["connected"] else 503, content=status)
