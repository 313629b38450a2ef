"""Utility modules."""
from deployment_tracker_core.util.time import parse_iso, utc_now, utc_now_iso
from deployment_tracker_core.util.errors import DeploymentError, ErrorKind, ValidationError

__all__ = [
    "utc_now",
    "utc_now_iso",
    "parse_iso",
    "DeploymentError",
    "ErrorKind",
    "ValidationError",
]
