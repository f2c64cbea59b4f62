# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Roster Service
==============
Resolves who is on duty, where they are working, and which departments,
services and runner pools are understaffed on a given date.

Reads a roster snapshot (pushed via PUT or pulled from the roster API)
and evaluates shift cycles, overrides and allocations against it.

Port: 8005
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.dependencies import get_dashboard_service
from app.core.logging import get_logger
from app.middleware import MetricsMiddleware, RequestIDMiddleware
from app.controllers.system_controller import router as system_router
from app.controllers.snapshot_controller import router as snapshot_router
from app.controllers.dashboard_controller import router as dashboard_router

logger = get_logger(settings.SERVICE_NAME)


# ── Lifespan ──────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Optionally pull the first snapshot from the roster API at startup."""
    if settings.LOAD_SNAPSHOT_ON_STARTUP:
        try:
            get_dashboard_service().refresh_snapshot()
        except RuntimeError as exc:
            logger.warning(
                "Initial snapshot load FAILED — service will start empty: %s", exc
            )
    logger.info(
        "Roster service started: version=%s, timezone=%s, rotation_rule=%s",
        settings.SERVICE_VERSION,
        settings.TIMEZONE,
        settings.SUPERVISOR_ROTATION_RULE,
    )
    yield
    logger.info("Roster service shutting down")


# ── FastAPI App ───────────────────────────────────────────────────────────
app = FastAPI(
    title="Roster Service",
    description="Duty, location and staffing resolution for the staff roster.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)


# ── Global exception handler ─────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    req_id = getattr(request.state, "request_id", None)
    logger.exception("Unhandled exception", extra={"request_id": req_id})
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": str(exc), "request_id": req_id},
    )


# ── Routers ───────────────────────────────────────────────────────────────
app.include_router(system_router)
app.include_router(snapshot_router)
app.include_router(dashboard_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT, log_level="info")
