"""Health check endpoints."""
from fastapi import APIRouter, Depends, HTTPException

from deployment_tracker_api.dependencies import get_runtime
from deployment_tracker_core.backend import BackendError
from deployment_tracker_core.wiring import Runtime

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/health/backend")
async def backend_health(runtime: Runtime = Depends(get_runtime)):
    """Proxy the account-creation backend's health check."""
    try:
        return await runtime.backend.check_health()
    except BackendError as e:
        raise HTTPException(status_code=502, detail=f"Backend unhealthy: {e}") from e
