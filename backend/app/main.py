"""
NetMap API.

Path computation, service zone resolution and coverage checks over a
tenant's network inventory. Run with ``uvicorn backend.app.main:app``.
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api import health, network_mapping
from backend.app.core.config import get_settings
from backend.app.core.database import engine
from backend.app.core.logging import get_logger, setup_logging
from backend.app.core.observability import setup_tracing
from backend.app.core.security import oauth2_scheme
from backend.app.middleware.trace import TracingMiddleware

settings = get_settings()

setup_logging(level=settings.log_level)
logger = get_logger(__name__)

NETWORK_PREFIX = f"{settings.api_prefix}/network"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"{settings.app_name} v{settings.app_version} starting",
        extra={"extra_data": {
            "cost_model": settings.path_cost_model,
            "default_max_hops": settings.path_default_max_hops,
            "max_hops_limit": settings.path_max_hops_limit,
        }},
    )
    yield
    await engine.dispose()
    logger.info(f"{settings.app_name} stopped")


app = FastAPI(
    title=settings.app_name,
    description="Network topology pathfinding and service zone coverage for ISP operations",
    version=settings.app_version,
    lifespan=lifespan,
)

setup_tracing(app, settings)

app.add_middleware(TracingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Correlation-ID", "X-Tenant-ID"],
)

app.include_router(health.router, tags=["Health"])
app.include_router(
    network_mapping.router,
    prefix=NETWORK_PREFIX,
    tags=["Network Mapping & Coverage"],
    dependencies=[Depends(oauth2_scheme)],
)


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "endpoints": {
            "compute_path": f"{NETWORK_PREFIX}/{{tenant_id}}/paths/compute",
            "resolve_zone": f"{NETWORK_PREFIX}/{{tenant_id}}/zones/resolve",
            "coverage_check": f"{NETWORK_PREFIX}/{{tenant_id}}/coverage/check",
        },
        "docs": "/docs",
    }
