# FILE: lotus_backend/api/deps.py

from typing import TypeVar

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from lotus_backend.core.config import JWT_ALGORITHM
from lotus_backend.core.result import Result
from lotus_backend.services.engine import RewardsEngine

T = TypeVar("T")

security = HTTPBearer(auto_error=False)


def get_engine(request: Request) -> RewardsEngine:
    return request.app.state.engine


async def get_current_user(
        request: Request,
        credentials: HTTPAuthorizationCredentials = Depends(security),
):
    """Resolve the caller from a bearer JWT issued by the auth layer."""
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = jwt.decode(
            credentials.credentials.strip(),
            request.app.state.jwt_secret,
            algorithms=[JWT_ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user_id = payload.get("user_id") or payload.get("userId") or payload.get("sub")
    if not user_id or not isinstance(user_id, str):
        raise HTTPException(status_code=401, detail="Invalid token payload")

    return {
        "id": user_id,
        "username": payload.get("username"),
        "role": payload.get("role") or "user",
    }


async def require_admin(user=Depends(get_current_user)):
    if user["role"] != "admin":
        raise HTTPException(status_code=403, detail="Admin role required")
    return user


def unwrap_or_raise(result: Result[T]) -> T:
    """Turn a failed engine Result into the matching HTTP error."""
    if result.ok:
        return result.value
    raise HTTPException(status_code=result.error.status_code, detail=result.error.to_dict())
