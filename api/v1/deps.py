# api/v1/deps.py
from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core.orchestrator import MealPlanOrchestrator
from services.auth import verify_token
from services.db import get_session
from services.stores import SqlPlanStore, SqlRecipeCatalog

_bearer = HTTPBearer(auto_error=False)


def current_user_id(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    if creds is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Unauthorized")
    try:
        return verify_token(creds.credentials)
    except jwt.InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid or expired token")


def plan_store(db: AsyncSession = Depends(get_session)) -> SqlPlanStore:
    return SqlPlanStore(db)


def orchestrator(db: AsyncSession = Depends(get_session)) -> MealPlanOrchestrator:
    return MealPlanOrchestrator(SqlPlanStore(db), SqlRecipeCatalog(db))
