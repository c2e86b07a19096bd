"""Liveness and readiness probes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from backend.app.core.config import get_settings
from backend.app.core.database import engine

router = APIRouter()


async def _database_check() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        return f"failed: {e}"
    return "ok"


@router.get("/health")
async def health_check():
    """The process is up."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness_check():
    """
    Ready to serve: the inventory database answers. The path engine settings
    in effect are reported alongside for operators.
    """
    settings = get_settings()
    database = await _database_check()
    body = {
        "status": "ready" if database == "ok" else "not_ready",
        "checks": {"database": database},
        "path_engine": {
            "cost_model": settings.path_cost_model,
            "default_max_hops": settings.path_default_max_hops,
            "max_hops_limit": settings.path_max_hops_limit,
        },
    }
    return JSONResponse(body, status_code=200 if database == "ok" else 503)
