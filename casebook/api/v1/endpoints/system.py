"""
System endpoints — health.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from casebook.api.v1.deps import get_db
from casebook.schemas.system import HealthResponse

router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession | None = Depends(get_db)) -> HealthResponse:
    if db is None:
        return HealthResponse(status="ok", database=False)
    await db.execute(text("SELECT 1"))
    return HealthResponse(status="ok", database=True)
