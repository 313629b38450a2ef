"""Error taxonomy shared by clients and the controller."""
from enum import Enum


class ErrorKind(str, Enum):
    """What went wrong, independent of which collaborator reported it."""

    VALIDATION = "validation"
    PRECONDITION = "precondition"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    AUTHENTICATION = "authentication"
    TRANSIENT = "transient"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    PARTIAL_SUCCESS = "partial_success"
    TIMEOUT = "timeout"


class DeploymentError(Exception):
    """Base exception for deployment tracking."""

    kind: ErrorKind = ErrorKind.TRANSIENT

    def __init__(self, message: str, kind: ErrorKind | None = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class ValidationError(DeploymentError):
    """Raised when a deployment request is rejected before reaching the backend."""

    kind = ErrorKind.VALIDATION
