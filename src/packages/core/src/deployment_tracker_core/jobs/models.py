"""Job models."""
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from deployment_tracker_core.util import ErrorKind, utc_now_iso

DEFAULT_FAILURE_CODE = "UNKNOWN_ERROR"

_LIFECYCLE_ALIASES = {"queued": "pending", "processing": "running"}


class JobLifecycle(str, Enum):
    """Overall lifecycle state reported by the backend."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobLifecycle.COMPLETED, JobLifecycle.FAILED)


class CreatedAccount(BaseModel):
    """An account the backend reports as created."""

    model_config = ConfigDict(extra="allow")

    email: str = ""
    password: str = Field(default="", repr=False)


class FailureRecord(BaseModel):
    """An account the backend failed to create."""

    model_config = ConfigDict(extra="allow")

    index: int | None = None
    error_code: str | None = None
    error: str | None = None

    @property
    def code(self) -> str:
        return self.error_code or DEFAULT_FAILURE_CODE


class CreditSettlement(BaseModel):
    """Credit deduction outcome the backend reports at completion."""

    deducted: bool = False
    amount: int = 0
    new_balance: int | None = None
    error: str | None = None


class JobStatus(BaseModel):
    """Snapshot of a backend job."""

    model_config = ConfigDict(extra="ignore")

    job_id: str
    status: JobLifecycle
    total_requested: int = 0
    total_created: int = 0
    total_failed: int = 0
    accounts: list[CreatedAccount] = Field(default_factory=list)
    failures: list[FailureRecord] = Field(default_factory=list)
    credits: CreditSettlement | None = None
    error: str | None = None
    logs: list[str] = Field(default_factory=list)

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            return _LIFECYCLE_ALIASES.get(value, value)
        return value

    @field_validator("accounts", "failures", "logs", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def created_count(self) -> int:
        """Accounts created, whichever of the total or the list is further along."""
        return max(self.total_created, len(self.accounts))

    @property
    def failed_count(self) -> int:
        return max(self.total_failed, len(self.failures))


class JobDescriptor(BaseModel):
    """The single in-flight job a controller is tracking."""

    job_id: str
    is_polling: bool = True
    owner: str = "default"
    created_at: str = Field(default_factory=utc_now_iso)


class CreateJobResponse(BaseModel):
    """Backend reply to a create request."""

    model_config = ConfigDict(extra="ignore")

    success: bool = True
    job_id: str | None = None
    status: str | None = None
    message: str | None = None
    error: str | None = None


class Region(BaseModel):
    """A region the backend can create accounts in."""

    code: str
    country: str
    currency: str


class CreditCheck(BaseModel):
    """Result of comparing a user's balance against a request."""

    has_enough: bool
    current_credits: int
    required_credits: int
    error: str | None = None
    error_kind: ErrorKind | None = None


class CreateJobResult(BaseModel):
    """Outcome of submitting a job and paying for it."""

    success: bool
    job_id: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None


class JobStatusResult(BaseModel):
    """Outcome of a single status read."""

    success: bool
    status: JobStatus | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
