"""
Storekeeper tool servers.

Two tool servers share one FastAPI app and one connection pool:
- /tools/cart       per-user cart lines (caller identified by X-User-Id)
- /tools/inventory  catalog items and stock levels

Run with: uvicorn storekeeper.app.main:app
"""
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from storekeeper.app.api import cart, inventory
from storekeeper.app.api.deps import get_session
from storekeeper.app.core.constants import CART_SERVER_NAME, INVENTORY_SERVER_NAME, SERVER_VERSION
from storekeeper.app.core.database import get_engine
from storekeeper.app.core.logging import setup_logging, get_logger
from storekeeper.app.core.settings import get_settings
from storekeeper.app.core.metrics import METRICS_PATH, PrometheusMiddleware, get_metrics_response

try:
    settings = get_settings()
except ValueError as e:
    print(f"Configuration error: {e}", file=sys.stderr)
    sys.exit(1)

setup_logging(log_level=settings.LOG_LEVEL, json_format=settings.is_production)
logger = get_logger(__name__)

TOOL_SERVERS = {
    "cart": (CART_SERVER_NAME, "/tools/cart", cart),
    "inventory": (INVENTORY_SERVER_NAME, "/tools/inventory", inventory),
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Tool servers starting",
        version=SERVER_VERSION,
        environment=settings.ENVIRONMENT,
        store="DATABASE_URL" if settings.DATABASE_URL else settings.DB_HOST,
        low_stock_threshold=settings.LOW_STOCK_THRESHOLD,
        tools={key: module.tools.names for key, (_, _, module) in TOOL_SERVERS.items()},
    )
    yield
    logger.info("Tool servers shutting down")
    await get_engine().dispose()


app = FastAPI(title="Storekeeper Tool Servers", version=SERVER_VERSION, lifespan=lifespan)

cors_origins = settings.allowed_origins_list
if not cors_origins:
    # Only reachable in development: get_settings() rejects empty origins in production
    cors_origins = ["*"]
    logger.warning("CORS open to all origins; set ALLOWED_ORIGINS outside development")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=cors_origins != ["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)
# Added last so it wraps CORS and sees the final status code
app.add_middleware(PrometheusMiddleware)

for key, (_, prefix, module) in TOOL_SERVERS.items():
    app.include_router(module.router, prefix=prefix, tags=[key])


@app.get("/")
async def root():
    return {
        "status": "ok",
        "servers": {key: {"name": name, "path": prefix} for key, (name, prefix, _) in TOOL_SERVERS.items()},
    }


@app.get("/health")
async def health_check(session: AsyncSession = Depends(get_session)):
    """Liveness plus a round trip to the store."""
    database = "ok"
    try:
        await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        database = f"error: {e}"

    return {
        "status": "healthy" if database == "ok" else "unhealthy",
        "version": SERVER_VERSION,
        "checks": {"database": database},
    }


@app.get(METRICS_PATH)
async def metrics_endpoint(openmetrics: bool = False):
    return get_metrics_response(openmetrics=openmetrics)
