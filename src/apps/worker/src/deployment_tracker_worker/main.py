"""Headless worker that finishes tracking a persisted deployment."""
import asyncio

import structlog

from deployment_tracker_core.logging import configure_logging
from deployment_tracker_core.settings import Settings, get_settings
from deployment_tracker_core.wiring import build_runtime

logger = structlog.get_logger()


async def run(settings: Settings | None = None) -> bool:
    """Resume the persisted job, if any, and poll until it ends."""
    settings = settings or get_settings()
    runtime = build_runtime(settings)
    try:
        if not await runtime.controller.resume():
            logger.info("no_active_deployment", instance_id=settings.instance_id)
            return False
        logger.info("tracking_deployment", job_id=runtime.controller.job_id)
        await runtime.controller.wait_until_idle()
        logger.info(
            "deployment_tracking_finished",
            outcome=runtime.controller.last_outcome,
            error=runtime.controller.last_error,
        )
        return True
    finally:
        await runtime.aclose()


def main():
    """Start the worker."""
    settings = get_settings()
    configure_logging(settings.log_level)
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
