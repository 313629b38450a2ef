"""Request-scoped access to the process runtime."""
from fastapi import HTTPException, Request

from deployment_tracker_core.controller import PollingController
from deployment_tracker_core.wiring import Runtime


def get_runtime(request: Request) -> Runtime:
    """Runtime built at startup."""
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(status_code=503, detail="Service is starting up")
    return runtime


def get_controller(request: Request) -> PollingController:
    """The process-wide deployment controller."""
    return get_runtime(request).controller
