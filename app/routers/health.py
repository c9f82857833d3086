"""
Health check endpoints.

- GET /api/health          — cheap: process alive, version, uptime
- GET /api/health/deep     — bounded store ping (2s timeout)
"""
import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from app.core.async_utils import run_sync
from app.core.errors import Unexpected
from app.core.structured_logging import APP_VERSION, SERVICE_NAME, get_uptime_s
from app.models.responses import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()

COMPONENT_TIMEOUT = 2.0  # seconds


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Cheap health check — no store access."""
    return HealthResponse(
        status="ok",
        version=APP_VERSION,
        service=SERVICE_NAME,
        uptime_s=round(get_uptime_s(), 1),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/health/deep")
async def deep_health_check(request: Request):
    """Store round-trip with latency; overall status follows the store."""
    database = await _check_database(request.app.state.store)
    return {
        "status": database["status"],
        "checked_at": datetime.now(timezone.utc).isoformat(),
        "version": APP_VERSION,
        "uptime_s": round(get_uptime_s(), 1),
        "components": {"database": database},
    }


async def _check_database(store) -> dict:
    start = time.perf_counter()
    try:
        alive = await run_sync(store.ping, timeout=COMPONENT_TIMEOUT)
    except Unexpected:
        logger.warning("Deep health: database ping failed or timed out")
        return {"status": "down", "detail_safe": "Health check timed out"}
    latency_ms = round((time.perf_counter() - start) * 1000, 1)

    if not alive:
        logger.warning("Deep health: database ping returned no row")
        return {"status": "down", "latency_ms": latency_ms, "detail_safe": "Query failed"}
    status = "degraded" if latency_ms > 250 else "ok"
    return {"status": status, "latency_ms": latency_ms}
