# leaddesk/routes/health.py
from __future__ import annotations

import time
from datetime import datetime, timezone

import psutil
from fastapi import APIRouter
from pydantic import BaseModel

from leaddesk import __version__
from leaddesk.core.config import settings

router = APIRouter(tags=["health"])


class HealthCheckResponse(BaseModel):
    status: str
    service: str
    environment: str
    version: str
    timestamp: str
    uptime: float
    memory_mb: float


@router.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Liveness probe. Never touches the database."""
    process = psutil.Process()
    return HealthCheckResponse(
        status="ok",
        service="leaddesk",
        environment=settings.environment,
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=round(time.time() - process.create_time(), 3),
        memory_mb=round(process.memory_info().rss / 1024 / 1024, 1),
    )
