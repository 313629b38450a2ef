"""Deployment polling controller.

Drives one bulk account-creation job from submission to a terminal state:

    idle -> submitting -> polling -> completed | failed | abandoned -> idle
    idle -> resuming -> polling | idle

Progress reported by the backend is reconciled into the user's counters one
unit at a time. The in-memory ProgressCursor records how much has been
confirmed, so re-processing a status snapshot never produces a second delta
for the same unit. The cursor only advances after the ledger confirms a
delta; a failed call is retried on the next tick.

The persisted JobDescriptor is only a hint for resuming after a restart.
Cancelling the local timer never cancels the job on the backend.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

import structlog
from pydantic import BaseModel

from deployment_tracker_core.console import StatusLog
from deployment_tracker_core.controller.timer import PollTimer
from deployment_tracker_core.controller.validation import (
    MAX_ACCOUNTS,
    MIN_ACCOUNTS,
    DeploymentRequest,
    validate_request,
)
from deployment_tracker_core.jobs import (
    JobDescriptor,
    JobLifecycle,
    JobStatus,
    JobStatusResult,
    JobStore,
)
from deployment_tracker_core.jobs.client import JobClient
from deployment_tracker_core.jobs.models import CreditSettlement, FailureRecord
from deployment_tracker_core.ledger import (
    ReconciliationClient,
    account_delta_id,
    failure_delta_id,
    final_delta_id,
)
from deployment_tracker_core.util import ErrorKind, ValidationError, parse_iso, utc_now

logger = structlog.get_logger()

POLL_INTERVAL = 10.0
RATE_LIMIT_BACKOFF = 60.0
MAX_POLL_DURATION = 600.0
HEARTBEAT_INTERVAL = 10.0


class ControllerState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    RESUMING = "resuming"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    ABANDONED = "abandoned"


@dataclass
class ProgressCursor:
    """How much of a job's progress has been reconciled in this session."""

    accounts: int = 0
    failures: int = 0
    last_heartbeat: float | None = None

    def advance(self, accounts: int = 0, failures: int = 0) -> None:
        if accounts < 0 or failures < 0:
            raise ValueError("Progress cursor cannot move backwards")
        self.accounts += accounts
        self.failures += failures


@dataclass
class PollingSession:
    job_id: str
    started_at: float
    requested: int = 0
    cursor: ProgressCursor = field(default_factory=ProgressCursor)


class SubmitResult(BaseModel):
    """Outcome of a submit attempt."""

    accepted: bool
    job_id: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None


class ControllerSnapshot(BaseModel):
    """What a UI needs to render the deployment panel."""

    state: ControllerState
    last_outcome: ControllerState | None = None
    job_id: str | None = None
    is_polling: bool = False
    can_submit: bool = True
    accounts_reconciled: int = 0
    failures_reconciled: int = 0
    last_error: str | None = None


class PollingController:
    """Owns the submit/poll/reconcile state machine for one client."""

    def __init__(
        self,
        job_client: JobClient,
        reconciler: ReconciliationClient,
        status_log: StatusLog,
        job_store: JobStore,
        *,
        instance_id: str = "default",
        poll_interval: float = POLL_INTERVAL,
        rate_limit_backoff: float = RATE_LIMIT_BACKOFF,
        max_duration: float = MAX_POLL_DURATION,
        heartbeat_interval: float = HEARTBEAT_INTERVAL,
        min_accounts: int = MIN_ACCOUNTS,
        max_accounts: int = MAX_ACCOUNTS,
        clock: Callable[[], float] = time.monotonic,
        autostart: bool = True,
    ):
        self.job_client = job_client
        self.reconciler = reconciler
        self.status_log = status_log
        self.job_store = job_store
        self.instance_id = instance_id
        self.poll_interval = poll_interval
        self.rate_limit_backoff = rate_limit_backoff
        self.max_duration = max_duration
        self.heartbeat_interval = heartbeat_interval
        self.min_accounts = min_accounts
        self.max_accounts = max_accounts
        self.clock = clock
        self.autostart = autostart

        self.state = ControllerState.IDLE
        self.last_outcome: ControllerState | None = None
        self.last_error: str | None = None
        self._session: PollingSession | None = None
        self._timer = PollTimer(self._tick)

    @property
    def is_polling(self) -> bool:
        return self._session is not None

    @property
    def job_id(self) -> str | None:
        return self._session.job_id if self._session else None

    @property
    def cursor(self) -> ProgressCursor | None:
        return self._session.cursor if self._session else None

    @property
    def can_submit(self) -> bool:
        return self.state is ControllerState.IDLE and not self.is_polling

    def snapshot(self) -> ControllerSnapshot:
        cursor = self.cursor
        return ControllerSnapshot(
            state=self.state,
            last_outcome=self.last_outcome,
            job_id=self.job_id,
            is_polling=self.is_polling,
            can_submit=self.can_submit,
            accounts_reconciled=cursor.accounts if cursor else 0,
            failures_reconciled=cursor.failures if cursor else 0,
            last_error=self.last_error,
        )

    # --- Submitting ---

    async def submit(self, accounts: Any, region: str | None, currency: str | None) -> SubmitResult:
        """Validate, pre-check credits, create the job and start polling."""
        if not self.can_submit:
            logger.info("submit_rejected_busy", state=self.state.value, job_id=self.job_id)
            return SubmitResult(
                accepted=False,
                error="A deployment is already in progress.",
                error_kind=ErrorKind.PRECONDITION,
            )
        try:
            request = validate_request(
                accounts, region, currency, self.min_accounts, self.max_accounts
            )
        except ValidationError as e:
            self.last_error = e.message
            return SubmitResult(accepted=False, error=e.message, error_kind=e.kind)

        self.state = ControllerState.SUBMITTING
        self.last_error = None
        self.last_outcome = None
        self.status_log.clear()
        self.status_log.set_active(True)
        try:
            return await self._submit(request)
        finally:
            if self.state is ControllerState.SUBMITTING:
                self.state = ControllerState.IDLE
                self.status_log.set_active(False)

    async def _submit(self, request: DeploymentRequest) -> SubmitResult:
        log = self.status_log
        if request.notice:
            log.warning(request.notice)
        log.info(
            f"Starting deployment of {request.accounts} accounts "
            f"in {request.region} ({request.currency})..."
        )

        credits = await self.job_client.check_credits(request.accounts)
        if not credits.has_enough:
            message = credits.error or (
                f"Insufficient credits. You have {credits.current_credits} credits, "
                f"but need {credits.required_credits}."
            )
            log.error(message)
            return self._reject(message, credits.error_kind or ErrorKind.INSUFFICIENT_CREDITS)
        log.info(
            f"Credits verified: {credits.current_credits} available, "
            f"{credits.required_credits} required."
        )

        result = await self.job_client.create_job(
            request.accounts, request.region, request.currency
        )
        if not result.success or not result.job_id:
            message = result.error or "Failed to create job"
            if result.error_kind is ErrorKind.PARTIAL_SUCCESS:
                log.error(message)
            else:
                log.error(f"Failed to create job: {message}")
            return self._reject(message, result.error_kind or ErrorKind.TRANSIENT)

        job_id = result.job_id
        self.job_store.save(
            JobDescriptor(job_id=job_id, is_polling=True, owner=self.instance_id)
        )
        log.success(f"Job created: {job_id}")
        log.info("Waiting for accounts to be created...")
        self._attach(job_id, requested=request.accounts)
        return SubmitResult(accepted=True, job_id=job_id)

    def _reject(self, message: str, kind: ErrorKind) -> SubmitResult:
        self.last_error = message
        logger.info("submit_failed", error=message, kind=kind.value)
        return SubmitResult(accepted=False, error=message, error_kind=kind)

    # --- Resumption ---

    async def resume(self) -> bool:
        """Re-attach to a job persisted by an earlier run of this instance.

        A job the backend no longer has, or that already finished, is
        discarded without writing to the status log.
        """
        if not self.can_submit:
            return False
        descriptor = self.job_store.load()
        if descriptor is None or not descriptor.is_polling:
            self.status_log.set_active(False)
            return False
        if descriptor.owner != self.instance_id:
            logger.info(
                "resume_skipped_other_owner",
                job_id=descriptor.job_id,
                owner=descriptor.owner,
                instance_id=self.instance_id,
            )
            self.status_log.set_active(False)
            return False

        self.state = ControllerState.RESUMING
        try:
            return await self._resume(descriptor)
        finally:
            if self.state is ControllerState.RESUMING:
                self.state = ControllerState.IDLE

    async def _resume(self, descriptor: JobDescriptor) -> bool:
        result = await self.job_client.get_job_status(descriptor.job_id)
        if self._is_stale(result):
            logger.info("resume_discarded_stale_job", job_id=descriptor.job_id)
            self.job_store.clear()
            self.status_log.set_active(False)
            return False
        if self._session is not None:
            return False

        successes, failures = self.reconciler.progress(descriptor.job_id)
        requested = result.status.total_requested if result.status else 0
        logger.info(
            "resume_attached",
            job_id=descriptor.job_id,
            accounts_reconciled=successes,
            failures_reconciled=failures,
        )
        self.status_log.info(f"Resumed tracking deployment {descriptor.job_id}.")
        self._attach(
            descriptor.job_id,
            requested=requested,
            cursor=ProgressCursor(accounts=successes, failures=failures),
            already_elapsed=_seconds_since(descriptor.created_at),
        )
        return True

    @staticmethod
    def _is_stale(result: JobStatusResult) -> bool:
        if result.success:
            return result.status is not None and result.status.status.is_terminal
        return result.error_kind is ErrorKind.NOT_FOUND

    # --- Polling ---

    def _attach(
        self,
        job_id: str,
        requested: int = 0,
        cursor: ProgressCursor | None = None,
        already_elapsed: float = 0.0,
    ) -> None:
        self._session = PollingSession(
            job_id=job_id,
            started_at=self.clock() - already_elapsed,
            requested=requested,
            cursor=cursor or ProgressCursor(),
        )
        self.state = ControllerState.POLLING
        self.status_log.set_active(True)
        if self.autostart:
            self._timer.start(0.0)

    async def _tick(self) -> float | None:
        try:
            return await self.poll_once()
        except Exception as e:
            logger.exception("poll_tick_failed", job_id=self.job_id)
            if self._session is None:
                return None
            self.status_log.warning(f"Unexpected error while checking progress: {e}. Retrying...")
            return self.poll_interval

    async def poll_once(self) -> float | None:
        """Run one polling tick.

        Returns the delay before the next tick, or None once the session has
        ended.
        """
        session = self._session
        if session is None:
            return None
        delay = await self._poll(session)
        if delay is None or self._session is not session:
            return None
        # Never sleep past the hard ceiling
        remaining = self.max_duration - (self.clock() - session.started_at)
        return max(0.0, min(delay, remaining))

    async def _poll(self, session: PollingSession) -> float | None:
        if self._timed_out(session):
            return None
        result = await self.job_client.get_job_status(session.job_id)
        if self._session is not session:
            return None
        if self._timed_out(session):
            return None

        if not result.success or result.status is None:
            return self._handle_status_error(session, result)

        status = result.status
        if status.total_requested:
            session.requested = status.total_requested

        if status.status is JobLifecycle.COMPLETED:
            await self._complete(session, status)
            return None
        if status.status is JobLifecycle.FAILED:
            reason = status.error or "Unknown error"
            self.status_log.error(f"Deployment failed: {reason}")
            self._finish(ControllerState.FAILED, reason)
            return None

        await self._reconcile_progress(session, status)
        self._heartbeat(session, status)
        return self.poll_interval

    def _timed_out(self, session: PollingSession) -> bool:
        """End the session as abandoned once the hard ceiling has passed."""
        if self.clock() - session.started_at < self.max_duration:
            return False
        minutes = int(self.max_duration // 60)
        self.status_log.error(
            f"Deployment timed out after {minutes} minutes. Job {session.job_id} "
            "may still be running on the server; check your vault later."
        )
        self._finish(ControllerState.ABANDONED, "Deployment timed out")
        return True

    def _handle_status_error(self, session: PollingSession, result: JobStatusResult) -> float | None:
        error = result.error or "Unknown error"
        if result.error_kind is ErrorKind.NOT_FOUND:
            self.status_log.error(f"Job {session.job_id} was not found. It may have expired.")
            self._finish(ControllerState.FAILED, error)
            return None
        if result.error_kind is ErrorKind.RATE_LIMITED:
            self.status_log.warning(
                f"Rate limited while checking status. Retrying in {int(self.rate_limit_backoff)}s..."
            )
            return self.rate_limit_backoff
        logger.warning("status_check_failed", job_id=session.job_id, error=error)
        self.status_log.warning(f"Status check failed: {error}. Retrying...")
        return self.poll_interval

    async def _reconcile_progress(self, session: PollingSession, status: JobStatus) -> bool:
        """Reconcile newly observed accounts, then failures, one unit per call."""
        job_id = session.job_id
        cursor = session.cursor
        for index in range(cursor.accounts, len(status.accounts)):
            account = status.accounts[index]
            if not await self.reconciler.add(job_id, 1, 0, account_delta_id(job_id, index)):
                self.status_log.warning("Could not record progress. Will retry on the next update.")
                return False
            cursor.advance(accounts=1)
            self.status_log.success(f"Account Created: {account.email or f'#{index + 1}'}")

        for index in range(cursor.failures, len(status.failures)):
            failure = status.failures[index]
            if not await self.reconciler.add(job_id, 0, 1, failure_delta_id(job_id, index)):
                self.status_log.warning("Could not record progress. Will retry on the next update.")
                return False
            cursor.advance(failures=1)
            self.status_log.error(f"Account #{_failure_number(failure, index)} failed: {failure.code}")
        return True

    def _heartbeat(self, session: PollingSession, status: JobStatus) -> None:
        now = self.clock()
        cursor = session.cursor
        if cursor.last_heartbeat is not None and now - cursor.last_heartbeat < self.heartbeat_interval:
            return
        cursor.last_heartbeat = now
        created = status.created_count
        failed = status.failed_count
        requested = status.total_requested or session.requested
        self.status_log.info(
            f"Progress: {created + failed}/{requested} processed "
            f"({created} created, {failed} failed)."
        )

    async def _complete(self, session: PollingSession, status: JobStatus) -> None:
        job_id = session.job_id
        cursor = session.cursor
        log = self.status_log

        for index in range(cursor.accounts, len(status.accounts)):
            log.success(f"Account Created: {status.accounts[index].email or f'#{index + 1}'}")
        for index in range(cursor.failures, len(status.failures)):
            failure = status.failures[index]
            log.error(f"Account #{_failure_number(failure, index)} failed: {failure.code}")

        created = status.created_count
        failed = status.failed_count
        remaining_created = max(0, created - cursor.accounts)
        remaining_failed = max(0, failed - cursor.failures)
        if remaining_created or remaining_failed:
            confirmed = await self.reconciler.add(
                job_id, remaining_created, remaining_failed, final_delta_id(job_id)
            )
            if confirmed:
                cursor.advance(accounts=remaining_created, failures=remaining_failed)
            else:
                log.error(
                    f"Could not record final results ({remaining_created} created, "
                    f"{remaining_failed} failed). Your statistics may be incomplete; "
                    f"contact support with job ID {job_id}."
                )

        requested = status.total_requested or session.requested
        log.success(
            f"Deployment completed: {created} of {requested} accounts created, {failed} failed."
        )
        self._log_settlement(job_id, status.credits)
        self._finish(ControllerState.COMPLETED)

    def _log_settlement(self, job_id: str, settlement: CreditSettlement | None) -> None:
        if settlement is None:
            return
        if settlement.deducted:
            text = f"{settlement.amount} credits deducted."
            if settlement.new_balance is not None:
                text += f" New balance: {settlement.new_balance}."
            self.status_log.info(text)
            return
        self.status_log.warning(
            f"Credit deduction failed: {settlement.error or 'unknown error'}. "
            f"Your accounts were created; contact support with job ID {job_id} "
            f"to settle {settlement.amount} credits."
        )

    def _finish(self, outcome: ControllerState, error: str | None = None) -> None:
        job_id = self.job_id
        self._session = None
        self.job_store.clear()
        self.state = ControllerState.IDLE
        self.last_outcome = outcome
        if error:
            self.last_error = error
        self.status_log.set_active(False)
        logger.info("deployment_finished", job_id=job_id, outcome=outcome.value, error=error)

    # --- Lifecycle ---

    async def wait_until_idle(self) -> None:
        """Wait for the polling timer to stop."""
        await self._timer.wait()

    def detach(self) -> None:
        """Stop polling locally; the backend job and persisted hint are kept."""
        self._timer.cancel()
        if self._session is not None:
            logger.info("controller_detached", job_id=self._session.job_id)
        self._session = None
        if self.state is ControllerState.POLLING:
            self.state = ControllerState.IDLE


def _failure_number(failure: FailureRecord, index: int) -> int:
    return failure.index + 1 if failure.index is not None else index + 1


def _seconds_since(timestamp: str | None) -> float:
    started = parse_iso(timestamp)
    if started is None:
        return 0.0
    return max(0.0, (utc_now() - started).total_seconds())
