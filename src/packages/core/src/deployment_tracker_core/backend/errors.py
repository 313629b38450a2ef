"""Backend error types and classification."""
from typing import Any

from deployment_tracker_core.util import DeploymentError, ErrorKind

_NOT_FOUND_MARKERS = ("not found",)
_RATE_LIMIT_MARKERS = ("rate limit", "too many requests")


def classify_error(status_code: int | None, message: str) -> ErrorKind:
    """Map an HTTP status (preferred) or error text to an ErrorKind."""
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if status_code in (401, 403):
        return ErrorKind.AUTHENTICATION
    text = (message or "").lower()
    if any(marker in text for marker in _NOT_FOUND_MARKERS):
        return ErrorKind.NOT_FOUND
    if any(marker in text for marker in _RATE_LIMIT_MARKERS):
        return ErrorKind.RATE_LIMITED
    return ErrorKind.TRANSIENT


class BackendError(DeploymentError):
    """Raised when the job-processing backend rejects or fails a request."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        kind: ErrorKind | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, kind or classify_error(status_code, message))
        self.status_code = status_code
        self.details = details or {}
