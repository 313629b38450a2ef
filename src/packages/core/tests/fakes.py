"""Hand-written collaborators for controller tests."""
from deployment_tracker_core.jobs import CreateJobResult, CreditCheck, JobStatus, JobStatusResult
from deployment_tracker_core.util import ErrorKind


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeJobClient:
    """Returns queued status results; the last one repeats forever."""

    def __init__(self, statuses=None, credits=100, create_result=None):
        self.statuses = list(statuses or [])
        self.credits = credits
        self.create_result = create_result or CreateJobResult(success=True, job_id="job-1")
        self.credit_calls = []
        self.create_calls = []
        self.status_calls = []

    def queue(self, *results):
        self.statuses.extend(results)

    async def check_credits(self, requested):
        self.credit_calls.append(requested)
        enough = self.credits >= requested
        return CreditCheck(
            has_enough=enough,
            current_credits=self.credits,
            required_credits=requested,
            error_kind=None if enough else ErrorKind.INSUFFICIENT_CREDITS,
        )

    async def create_job(self, requested, region, currency):
        self.create_calls.append((requested, region, currency))
        return self.create_result

    async def get_job_status(self, job_id):
        self.status_calls.append(job_id)
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]


class FakeReconciler:
    """Records every delta; ids in ``fail_once`` fail on their first attempt."""

    def __init__(self, fail_once=(), progress=None):
        self.calls = []
        self.fail_once = set(fail_once)
        self._progress = dict(progress or {})

    async def add(self, job_id, successes, failures, delta_id):
        self.calls.append((successes, failures, delta_id))
        if delta_id in self.fail_once:
            self.fail_once.discard(delta_id)
            return False
        return True

    def progress(self, job_id):
        return self._progress.get(job_id, (0, 0))

    def totals(self):
        return (sum(c[0] for c in self.calls), sum(c[1] for c in self.calls))


def status(
    state="running",
    accounts=0,
    failures=0,
    total_requested=5,
    total_created=None,
    total_failed=None,
    job_id="job-1",
    **extra,
) -> JobStatusResult:
    """Build a successful status read with ``accounts`` and ``failures`` listed."""
    payload = {
        "job_id": job_id,
        "status": state,
        "total_requested": total_requested,
        "total_created": accounts if total_created is None else total_created,
        "total_failed": failures if total_failed is None else total_failed,
        "accounts": [
            {"email": f"user{i}@example.com", "password": "secret"} for i in range(accounts)
        ],
        "failures": [{"index": i, "error_code": "CAPTCHA_FAILED"} for i in range(failures)],
        **extra,
    }
    return JobStatusResult(success=True, status=JobStatus.model_validate(payload))


def status_error(kind: ErrorKind, message: str = "boom") -> JobStatusResult:
    return JobStatusResult(success=False, error=message, error_kind=kind)
