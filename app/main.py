"""
Shopbridge — Shopify app backend.
Main application entry point.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.shopify import router as shopify_router
from app.middleware.security import SecurityHeadersMiddleware
from app.models.database import dispose_engine
from app.config import get_settings

import structlog

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
    ] + (
        [structlog.dev.ConsoleRenderer()]
        if get_settings().debug
        else [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    ),
)

logger = structlog.get_logger()

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(
        "shopbridge_starting",
        app_url=settings.shopify_app_url,
        api_version=settings.shopify_api_version,
        webhooks_enabled=settings.shopify_enable_webhooks,
        discord_enabled=settings.discord_enabled,
    )
    yield
    await dispose_engine()
    logger.info("shopbridge_shutting_down")


app = FastAPI(
    title="Shopbridge",
    description="Shopify app backend — OAuth install, webhook ingestion, shop lifecycle.",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs" if get_settings().debug else None,
    redoc_url="/redoc" if get_settings().debug else None,
    openapi_url="/openapi.json" if get_settings().debug else None,
)

# Security headers on every response
app.add_middleware(SecurityHeadersMiddleware)

# --- Routes ---
app.include_router(shopify_router)


@app.get("/health")
async def health():
    return {"status": "ok", "service": "shopbridge", "version": VERSION}
