# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Planning Service
================
Weekly remote-work planning: who works from home on Tuesday, Wednesday and
Thursday of each ISO week. Weeks are generated on first read by a seeded
rotation, stored under schedules/{year}/week{n}, and can be edited by hand.

Port: 8005
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from telework_planner.controllers import (
    announcement_controller,
    planning_controller,
    system_controller,
)
from telework_planner.core.config import settings
from telework_planner.core.dependencies import get_planning_service, get_schedule_repo
from telework_planner.core.logging import get_logger
from telework_planner.middleware import MetricsMiddleware, RequestIDMiddleware

logger = get_logger(settings.SERVICE_NAME)


# ── Lifespan ──────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    repo = get_schedule_repo()
    if hasattr(repo, "init_schema"):
        repo.init_schema()
    logger.info(
        "Planning service starting: store=%s, roster=%d members",
        type(repo).__name__,
        len(get_planning_service().roster),
    )
    yield
    logger.info("Planning service shutting down")


# ── FastAPI App ───────────────────────────────────────────────────────────
app = FastAPI(
    title="Planning Service",
    description="Weekly remote-work rotation with ISO week addressing.",
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


app.include_router(system_controller.router)
app.include_router(planning_controller.router)
app.include_router(announcement_controller.router)


# ── Entrypoint ────────────────────────────────────────────────────────────
def run() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT, log_level="info")


if __name__ == "__main__":
    run()
