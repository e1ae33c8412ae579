# =========================================================
# FILE: lotus_backend/server.py
# =========================================================

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from lotus_backend.api.activities import router as activities_router
from lotus_backend.api.backpack import router as backpack_router
from lotus_backend.api.exchange import router as exchange_router
from lotus_backend.api.root import router as root_router
from lotus_backend.core.config import JWT_SECRET, env_flag
from lotus_backend.core.errors import InfrastructureError
from lotus_backend.services.engine import RewardsEngine

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("lotus-rewards.api")


def create_app(
        engine: Optional[RewardsEngine] = None,
        jwt_secret: str = JWT_SECRET,
        bootstrap: Optional[bool] = None,
) -> FastAPI:
    owns_engine = engine is None
    engine = engine or RewardsEngine.from_settings()
    if bootstrap is None:
        bootstrap = env_flag("BOOTSTRAP_ON_STARTUP")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if bootstrap:
            await engine.seed.bootstrap()
        yield
        if owns_engine:
            await engine.close()
            logger.info("Database engine disposed")

    app = FastAPI(title="Lotus Rewards API", lifespan=lifespan)
    app.state.engine = engine
    app.state.jwt_secret = jwt_secret

    @app.exception_handler(InfrastructureError)
    async def infrastructure_error_handler(request: Request, exc: InfrastructureError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": {"code": exc.code, "message": "Service temporarily unavailable"}},
        )

    app.include_router(root_router)
    app.include_router(backpack_router)
    # exchange first: its static paths must win over /api/activities/{activity_id}
    app.include_router(exchange_router)
    app.include_router(activities_router)

    app.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_origins=os.environ.get("CORS_ORIGINS", "*").split(","),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app
