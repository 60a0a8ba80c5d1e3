# nvr_bridge/main.py
"""
FastAPI application entry point.
Starts the NVR bridge on startup, stops it on shutdown, and exposes health/channel routes.

Run with: uvicorn nvr_bridge.main:app
"""

import time

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from nvr_bridge import __version__
from nvr_bridge.config import get_settings
from nvr_bridge.routers import channels, health
from nvr_bridge.services.nvr_bridge import NvrBridge
from nvr_bridge.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="Hikvision NVR Motion Bridge",
    description="Turns NVR alertStream events into per-channel motion sensors.",
    version=__version__,
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    async def dispatch(self, request: Request, call_next):
        open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}
        settings = getattr(request.app.state, "settings", None)
        api_key = settings.API_KEY if settings else None
        if request.url.path in open_paths or not api_key:
            return await call_next(request)

        provided = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if provided != api_key:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(health.router,   prefix="/api/v1", tags=["💚 Health"])
app.include_router(channels.router, prefix="/api/v1", tags=["📷 Channels"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    # ConfigurationError propagates: the server refuses to start
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    logger.info("🚀 NVR bridge starting up...")
    logger.info(f"📡 NVR: {settings.nvr_base_url} (motion clears after "
                f"{settings.MOTION_RETRIGGER_IN_SECONDS}s)")

    bridge = NvrBridge(settings)
    app.state.settings = settings
    app.state.bridge = bridge
    bridge.launch()
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 NVR bridge shutting down...")
    bridge = getattr(app.state, "bridge", None)
    if bridge is not None:
        await bridge.stop()
