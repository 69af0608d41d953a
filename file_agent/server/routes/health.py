from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from ..schemas import HealthResponse


router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    timestamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
    return HealthResponse(status="OK", timestamp=timestamp)
