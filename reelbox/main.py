# reelbox/main.py
from __future__ import annotations

"""
# ReelBox API — Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the ReelBox media backend.

## Design Goals
- Deterministic, testable **app factory** (`create_app`) with explicit lifespan.
- Centralized problem+json exception handling (`reelbox.core.exception_handlers`).
- Versioned routes under `settings.API_V1_STR`.

## Probes
- `/healthz` — liveness (process up).
- `/readyz` — readiness (quick DB check).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

# -- Logging bootstrap (Loguru + stdlib intercept) ----------------------------
from reelbox.core import logger as _logsetup  # noqa: F401
from reelbox.core.config import settings
from reelbox.core.exception_handlers import (
    app_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from reelbox.core.exceptions import AppException
from reelbox.api.v1.routers import router as api_v1_router


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Startup:
        - Log a startup banner with the storage/lock backends in use.

    Shutdown:
        - Close the parent-lock Redis client (if any).
        - Dispose the DB async engine.
    """
    logger.info(
        "✅ ReelBox API starting up (storage={}, locks={})",
        settings.STORAGE_BACKEND,
        settings.PARENT_LOCK_BACKEND,
    )
    try:
        yield
    finally:
        from reelbox.dependencies.media import get_parent_locks
        from reelbox.db.session import async_engine

        if get_parent_locks.cache_info().currsize:
            try:
                await get_parent_locks().close()
            except Exception:
                logger.exception("Error closing parent lock client")
        try:
            await async_engine.dispose()
            logger.info("🛑 Database engine disposed")
        except Exception:
            logger.exception("Error disposing DB engine")
        logger.info("🛑 ReelBox API shutting down")


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> FastAPI:
    """
    Build and configure the FastAPI app instance.

    Returns:
        FastAPI: application with exception handlers, routers and probes.
    """
    docs_url = "/docs" if settings.ENABLE_DOCS else None
    redoc_url = "/redoc" if settings.ENABLE_DOCS else None
    openapi_url = "/openapi.json" if settings.ENABLE_DOCS else None

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url=docs_url,
        redoc_url=redoc_url,
        openapi_url=openapi_url,
        lifespan=lifespan,
    )

    # ── Exception handlers ──────────────────────────────────────────────────
    app.add_exception_handler(AppException, app_exception_handler)                   # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)        # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)                 # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)                   # type: ignore[arg-type]

    # ── Routers (versioned API) ─────────────────────────────────────────────
    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    async def healthz() -> dict[str, bool]:
        """Liveness probe: {"ok": True} when the process is responsive."""
        return {"ok": True}

    @app.get("/readyz", tags=["meta"])
    async def readyz() -> JSONResponse:
        """Readiness probe (quick DB check)."""
        from reelbox.db.session import db_healthcheck

        db_ok = await db_healthcheck()
        return JSONResponse({"ready": db_ok, "checks": {"db": db_ok}}, status_code=200 if db_ok else 503)

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn/Gunicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
