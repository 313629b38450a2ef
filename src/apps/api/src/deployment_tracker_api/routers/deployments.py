"""Deployment endpoints."""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from deployment_tracker_api.dependencies import get_controller
from deployment_tracker_core.controller import ControllerSnapshot, PollingController
from deployment_tracker_core.util import ErrorKind

router = APIRouter(prefix="/deployments", tags=["deployments"])

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.INSUFFICIENT_CREDITS: 402,
    ErrorKind.PRECONDITION: 409,
}


class DeploymentCreate(BaseModel):
    """Request to start a deployment."""

    accounts: int | str
    region: str | None = None
    currency: str | None = None


@router.post("", status_code=202)
async def create_deployment(
    body: DeploymentCreate, controller: PollingController = Depends(get_controller)
):
    """Start a deployment and begin tracking it."""
    result = await controller.submit(body.accounts, body.region, body.currency)
    if not result.accepted:
        kind = result.error_kind or ErrorKind.TRANSIENT
        raise HTTPException(status_code=STATUS_BY_KIND.get(kind, 502), detail=result.error)
    return {"job_id": result.job_id}


@router.get("/current", response_model=ControllerSnapshot)
def current_deployment(controller: PollingController = Depends(get_controller)):
    """State of the tracked deployment, if any."""
    return controller.snapshot()
