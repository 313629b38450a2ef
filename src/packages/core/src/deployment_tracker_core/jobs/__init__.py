"""Job tracking module."""
from deployment_tracker_core.jobs.models import (
    CreateJobResult,
    CreditCheck,
    JobDescriptor,
    JobLifecycle,
    JobStatus,
    JobStatusResult,
)
from deployment_tracker_core.jobs.store import JobStore

__all__ = [
    "CreateJobResult",
    "CreditCheck",
    "JobDescriptor",
    "JobLifecycle",
    "JobStatus",
    "JobStatusResult",
    "JobStore",
]
