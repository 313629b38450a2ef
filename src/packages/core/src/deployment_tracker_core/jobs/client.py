"""Typed wrapper over the backend job API and the credit ledger."""
import structlog

from deployment_tracker_core.backend import BackendClient, BackendError
from deployment_tracker_core.jobs.models import CreateJobResult, CreditCheck, JobStatusResult
from deployment_tracker_core.ledger import LedgerClient, LedgerError
from deployment_tracker_core.session import SessionProvider, looks_like_jwt
from deployment_tracker_core.util import ErrorKind

logger = structlog.get_logger()


class JobClient:
    """Submits jobs, reads their status and checks credits.

    Every operation returns a result object instead of raising, so callers
    can surface failures without guarding each call.
    """

    def __init__(
        self,
        backend: BackendClient,
        ledger: LedgerClient,
        session_provider: SessionProvider,
    ):
        self.backend = backend
        self.ledger = ledger
        self.session_provider = session_provider

    async def check_credits(self, requested: int) -> CreditCheck:
        """Compare the user's balance against a request. Fails closed."""
        session = self.session_provider()
        if session is None:
            return CreditCheck(
                has_enough=False,
                current_credits=0,
                required_credits=requested,
                error="Not authenticated",
                error_kind=ErrorKind.AUTHENTICATION,
            )
        try:
            current = await self.ledger.get_credits(session.user_id, token=session.access_token)
        except LedgerError as e:
            logger.warning("credit_lookup_failed", user_id=session.user_id, error=str(e))
            return CreditCheck(
                has_enough=False,
                current_credits=0,
                required_credits=requested,
                error="Failed to fetch credits",
                error_kind=ErrorKind.PRECONDITION,
            )
        return CreditCheck(
            has_enough=current >= requested,
            current_credits=current,
            required_credits=requested,
            error_kind=None if current >= requested else ErrorKind.INSUFFICIENT_CREDITS,
        )

    async def create_job(self, requested: int, region: str, currency: str) -> CreateJobResult:
        """Re-check credits, create the job, then deduct credits.

        A failed deduction after a successful create is reported as
        PARTIAL_SUCCESS with the job id; the backend job is not rolled back.
        """
        session = self.session_provider()
        if session is None:
            return CreateJobResult(
                success=False, error="Not authenticated", error_kind=ErrorKind.AUTHENTICATION
            )
        if not looks_like_jwt(session.access_token):
            return CreateJobResult(
                success=False,
                error="Invalid authentication token. Please log in again.",
                error_kind=ErrorKind.AUTHENTICATION,
            )

        credits = await self.check_credits(requested)
        if not credits.has_enough:
            return CreateJobResult(
                success=False,
                error=credits.error
                or (
                    f"Insufficient credits. You have {credits.current_credits} credits, "
                    f"but need {credits.required_credits}."
                ),
                error_kind=credits.error_kind,
            )

        try:
            response = await self.backend.create_accounts_job(
                requested, region, currency, token=session.access_token
            )
        except BackendError as e:
            logger.warning("create_job_failed", error=str(e), kind=e.kind.value)
            return CreateJobResult(success=False, error=str(e), error_kind=e.kind)

        if not response.success or not response.job_id:
            return CreateJobResult(
                success=False,
                error=response.error
                or response.message
                or "Job creation failed - no job ID returned",
                error_kind=ErrorKind.TRANSIENT,
            )

        job_id = response.job_id
        try:
            await self.ledger.deduct_credits(
                session.user_id, requested, job_id, token=session.access_token
            )
        except LedgerError as e:
            logger.error(
                "credit_deduction_failed_after_create",
                job_id=job_id,
                amount=requested,
                error=str(e),
            )
            return CreateJobResult(
                success=False,
                job_id=job_id,
                error=(
                    f"Job {job_id} was created but {requested} credits could not be "
                    f"deducted: {e}. Contact support with this job ID."
                ),
                error_kind=ErrorKind.PARTIAL_SUCCESS,
            )

        logger.info("job_created", job_id=job_id, accounts=requested, region=region)
        return CreateJobResult(success=True, job_id=job_id)

    async def get_job_status(self, job_id: str) -> JobStatusResult:
        """Read a job's status once."""
        session = self.session_provider()
        token = session.access_token if session else None
        try:
            status = await self.backend.get_job_status(job_id, token=token)
        except BackendError as e:
            return JobStatusResult(success=False, error=str(e), error_kind=e.kind)
        return JobStatusResult(success=True, status=status)
