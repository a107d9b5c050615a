"""GET /health — database connectivity check."""
# ruff: noqa: B008  — Depends() in function defaults is standard FastAPI

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from nullvault.db.engine import get_session
from nullvault.queries import ping_database

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_session)) -> JSONResponse:
    """200 {"status": "ok"} when the database answers, 500 otherwise."""
    if await ping_database(db):
        return JSONResponse({"status": "ok"})
    return JSONResponse({"status": "error"}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
