"""User-facing deployment console."""
from deployment_tracker_core.console.log import Severity, StatusLog, StatusMessage

__all__ = ["Severity", "StatusLog", "StatusMessage"]
