"""Deployment console endpoint."""
from fastapi import APIRouter, Depends

from deployment_tracker_api.dependencies import get_controller
from deployment_tracker_core.controller import PollingController

router = APIRouter(prefix="/console", tags=["console"])


@router.get("")
def read_console(controller: PollingController = Depends(get_controller)):
    """Status log of the current or most recent deployment."""
    log = controller.status_log
    return {
        "active": log.active,
        "messages": [m.model_dump(mode="json") for m in log.messages],
    }
