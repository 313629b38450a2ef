"""Advisory credit check."""
from fastapi import APIRouter, Depends, Query

from deployment_tracker_api.dependencies import get_runtime
from deployment_tracker_core.wiring import Runtime

router = APIRouter(prefix="/credits", tags=["credits"])


@router.get("")
async def check_credits(
    accounts: int = Query(..., ge=1),
    runtime: Runtime = Depends(get_runtime),
):
    """Check whether the user can afford a deployment of this size."""
    result = await runtime.job_client.check_credits(accounts)
    return result.model_dump(mode="json")
