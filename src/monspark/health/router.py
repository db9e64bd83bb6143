"""API info, health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from monspark.config import get_settings
from monspark.database import get_session
from monspark.redis_client import get_redis

router = APIRouter()

_ENDPOINTS = {
    "quests": "/api/quests",
    "gas": "/api/gas",
    "bridge": "/api/bridge",
    "activity": "/api/activity",
    "users": "/api/users",
}


@router.get("/")
async def api_info() -> dict[str, object]:
    """Service name, version, and the top-level endpoint groups."""
    settings = get_settings()
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "endpoints": _ENDPOINTS,
    }


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    request: Request,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe: checks the ledger database, the chain RPC and (if enabled) Redis."""
    checks: dict[str, object] = {}

    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {exc}"

    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        checks["chain"] = "error: gateway not configured"
    else:
        try:
            block = await gateway.ping()
            checks["chain"] = "ok"
            checks["block_number"] = block
        except Exception as exc:
            checks["chain"] = f"error: {exc}"

    if get_settings().redis_url:
        try:
            await get_redis().ping()
            checks["redis"] = "ok"
        except Exception as exc:
            checks["redis"] = f"error: {exc}"

    all_ok = all(v == "ok" for k, v in checks.items() if k != "block_number")
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
