"""HTTP client for the credit ledger and statistics store."""
from typing import Any

import httpx
import structlog

from deployment_tracker_core.backend.client import extract_error_message
from deployment_tracker_core.util import DeploymentError, ErrorKind

logger = structlog.get_logger()


class LedgerError(DeploymentError):
    """Raised when a credit or statistics call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        kind = ErrorKind.AUTHENTICATION if status_code in (401, 403) else ErrorKind.TRANSIENT
        super().__init__(message, kind)
        self.status_code = status_code


class LedgerClient:
    """Async client for per-user credits and success/failure counters."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def aclose(self):
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _get_headers(self, token: str | None, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        token: str | None = None,
        headers: dict[str, str] | None = None,
        **kwargs,
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(
                method, path, headers=self._get_headers(token, headers), **kwargs
            )
        except httpx.HTTPError as e:
            raise LedgerError(f"Ledger unreachable: {e}") from e
        if response.is_error:
            raise LedgerError(
                extract_error_message(response, "Ledger request failed"),
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise LedgerError("Invalid JSON from ledger", response.status_code) from e

    async def get_credits(self, user_id: str, token: str | None = None) -> int:
        """Return the user's current credit balance."""
        data = await self._request("GET", f"/credits/{user_id}", token=token)
        credits = data.get("credits")
        if credits is None:
            raise LedgerError("Credit balance missing from ledger response")
        return int(credits)

    async def deduct_credits(
        self, user_id: str, amount: int, job_id: str, token: str | None = None
    ) -> dict[str, Any]:
        """Charge the user for a job."""
        return await self._request(
            "POST",
            f"/credits/{user_id}/deduct",
            token=token,
            json={"amount": amount, "job_id": job_id},
            headers={"Idempotency-Key": f"{job_id}:deduct"},
        )

    async def increment_stats(
        self,
        user_id: str,
        successful: int,
        failures: int,
        delta_id: str,
        token: str | None = None,
    ) -> dict[str, Any]:
        """Add to the user's success and failure counters."""
        return await self._request(
            "POST",
            f"/stats/{user_id}/increment",
            token=token,
            json={"successful": successful, "failures": failures, "delta_id": delta_id},
            headers={"Idempotency-Key": delta_id},
        )
