"""HTTP client for the account-creation backend."""
from typing import Any

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from deployment_tracker_core.backend.errors import BackendError
from deployment_tracker_core.jobs.models import CreateJobResponse, JobStatus, Region
from deployment_tracker_core.util import ErrorKind

logger = structlog.get_logger()


def extract_error_message(response: httpx.Response, fallback: str) -> str:
    """Pull a human-readable message out of an error response."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        for key in ("error", "message", "detail"):
            value = data.get(key)
            if isinstance(value, dict):
                value = value.get("message")
            if value:
                return str(value)
    text = response.text.strip()
    return text or f"HTTP {response.status_code}: {fallback}"


class BackendClient:
    """Async client for the job-processing backend."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        if not api_key:
            logger.warning("backend_api_key_not_set", base_url=self.base_url)
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _get_headers(self, token: str | None = None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(
        self, method: str, path: str, fallback: str, token: str | None = None, **kwargs
    ) -> Any:
        try:
            response = await self._client.request(
                method, path, headers=self._get_headers(token), **kwargs
            )
        except httpx.TimeoutException as e:
            raise BackendError(f"Request timed out: {fallback}", kind=ErrorKind.TRANSIENT) from e
        except httpx.HTTPError as e:
            raise BackendError(f"Network error: {e}", kind=ErrorKind.TRANSIENT) from e

        if response.is_error:
            message = extract_error_message(response, fallback)
            logger.warning(
                "backend_request_failed",
                method=method,
                path=path,
                status=response.status_code,
                error=message,
            )
            raise BackendError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise BackendError(
                f"Invalid JSON from backend: {fallback}",
                status_code=response.status_code,
                kind=ErrorKind.TRANSIENT,
            ) from e

    async def create_accounts_job(
        self, accounts: int, region: str, currency: str, token: str | None = None
    ) -> CreateJobResponse:
        """Ask the backend to start creating accounts."""
        payload = {"accounts": accounts, "region": region, "currency": currency}
        logger.info("backend_create_job", **payload)
        data = await self._request(
            "POST", "/api/create-accounts", "Failed to create job", token=token, json=payload
        )
        try:
            return CreateJobResponse.model_validate(data)
        except PydanticValidationError as e:
            raise BackendError(
                f"Unexpected create-job response: {e}", kind=ErrorKind.TRANSIENT
            ) from e

    async def get_job_status(self, job_id: str, token: str | None = None) -> JobStatus:
        """Fetch the current status of a job."""
        data = await self._request(
            "GET", f"/api/job/{job_id}", "Failed to get job status", token=token
        )
        if isinstance(data, dict):
            data.setdefault("job_id", job_id)
        try:
            return JobStatus.model_validate(data)
        except PydanticValidationError as e:
            raise BackendError(
                f"Unexpected job status payload: {e}", kind=ErrorKind.TRANSIENT
            ) from e

    async def get_regions(self) -> list[Region]:
        """List the regions the backend supports."""
        data = await self._request("GET", "/api/regions", "Failed to get regions")
        regions = data.get("regions", []) if isinstance(data, dict) else data
        return [Region.model_validate(r) for r in regions or []]

    async def check_health(self) -> dict[str, Any]:
        """Check backend health."""
        return await self._request("GET", "/api/health", "API health check failed")
