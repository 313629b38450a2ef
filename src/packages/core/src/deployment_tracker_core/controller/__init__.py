"""Deployment polling controller."""
from deployment_tracker_core.controller.polling import (
    ControllerSnapshot,
    ControllerState,
    PollingController,
    ProgressCursor,
    SubmitResult,
)
from deployment_tracker_core.controller.timer import PollTimer
from deployment_tracker_core.controller.validation import (
    MAX_ACCOUNTS,
    MIN_ACCOUNTS,
    DeploymentRequest,
    validate_request,
)

__all__ = [
    "ControllerSnapshot",
    "ControllerState",
    "PollingController",
    "ProgressCursor",
    "SubmitResult",
    "PollTimer",
    "MAX_ACCOUNTS",
    "MIN_ACCOUNTS",
    "DeploymentRequest",
    "validate_request",
]
