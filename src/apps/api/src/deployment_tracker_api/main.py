"""FastAPI application entrypoint."""
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from deployment_tracker_api.routers import console, credits, deployments, health, regions
from deployment_tracker_core.logging import configure_logging
from deployment_tracker_core.settings import get_settings
from deployment_tracker_core.wiring import build_runtime

configure_logging(get_settings().log_level)
logger = structlog.get_logger()

app = FastAPI(title="Deployment Tracker API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/api")
app.include_router(regions.router, prefix="/api")
app.include_router(credits.router, prefix="/api")
app.include_router(deployments.router, prefix="/api")
app.include_router(console.router, prefix="/api")


@app.on_event("startup")
async def startup():
    """Build the controller and re-attach to any job left running."""
    logger.info("building_runtime")
    runtime = build_runtime()
    app.state.runtime = runtime
    try:
        resumed = await runtime.controller.resume()
    except Exception as e:
        logger.warning("resume_failed", error=str(e))
    else:
        logger.info("resume_checked", resumed=resumed, job_id=runtime.controller.job_id)


@app.on_event("shutdown")
async def shutdown():
    """Stop polling locally; the backend job keeps running."""
    runtime = getattr(app.state, "runtime", None)
    if runtime is not None:
        await runtime.aclose()
