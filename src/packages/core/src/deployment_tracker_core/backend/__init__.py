"""Account-creation backend client."""
from deployment_tracker_core.backend.client import BackendClient
from deployment_tracker_core.backend.errors import BackendError, classify_error

__all__ = ["BackendClient", "BackendError", "classify_error"]
