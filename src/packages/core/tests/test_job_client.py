"""Tests for the job client."""
import asyncio
import json

import httpx

from deployment_tracker_core.backend import BackendClient
from deployment_tracker_core.jobs.client import JobClient
from deployment_tracker_core.ledger import LedgerClient
from deployment_tracker_core.session import static_session
from deployment_tracker_core.util import ErrorKind

TOKEN = "header.payload.signature"


class Services:
    """One mock transport serving both backend and ledger routes."""

    def __init__(self, credits=100, create_status=200, deduct_status=200):
        self.credits = credits
        self.create_status = create_status
        self.deduct_status = deduct_status
        self.calls = []

    def __call__(self, request):
        path = request.url.path
        self.calls.append(f"{request.method} {path}")
        if path == "/credits/user-1":
            if self.credits is None:
                return httpx.Response(500, json={"error": "down"})
            return httpx.Response(200, json={"credits": self.credits})
        if path == "/credits/user-1/deduct":
            return httpx.Response(self.deduct_status, json={"new_balance": self.credits - 5})
        if path == "/api/create-accounts":
            return httpx.Response(
                self.create_status, json={"success": True, "job_id": "job-1", "status": "queued"}
            )
        if path == "/api/job/job-1":
            return httpx.Response(200, json={"status": "running", "total_requested": 5})
        if path == "/api/job/job-missing":
            return httpx.Response(404, json={"error": "Job not found"})
        return httpx.Response(500)


def run_client(services, call, user_id="user-1", token=TOKEN):
    async def run():
        transport = httpx.MockTransport(services)
        backend = BackendClient("http://backend", api_key="k", transport=transport)
        ledger = LedgerClient("http://ledger", transport=transport)
        try:
            return await call(JobClient(backend, ledger, static_session(user_id, token)))
        finally:
            await backend.aclose()
            await ledger.aclose()

    return asyncio.run(run())


def test_create_job_checks_credits_then_creates_then_deducts():
    services = Services()
    result = run_client(services, lambda c: c.create_job(5, "US", "USD"))

    assert result.success
    assert result.job_id == "job-1"
    assert services.calls == [
        "GET /credits/user-1",
        "POST /api/create-accounts",
        "POST /credits/user-1/deduct",
    ]


def test_deduction_uses_job_scoped_idempotency_key():
    seen = []

    def handler(request):
        if request.url.path.endswith("/deduct"):
            seen.append((request.headers["idempotency-key"], json.loads(request.content)))
        return Services()(request)

    run_client(handler, lambda c: c.create_job(5, "US", "USD"))
    assert seen == [("job-1:deduct", {"amount": 5, "job_id": "job-1"})]


def test_insufficient_credits_skip_backend():
    services = Services(credits=3)
    result = run_client(services, lambda c: c.create_job(5, "US", "USD"))

    assert not result.success
    assert result.error_kind is ErrorKind.INSUFFICIENT_CREDITS
    assert result.error == "Insufficient credits. You have 3 credits, but need 5."
    assert services.calls == ["GET /credits/user-1"]


def test_credit_lookup_failure_fails_closed():
    services = Services(credits=None)
    check = run_client(services, lambda c: c.check_credits(5))

    assert not check.has_enough
    assert check.error == "Failed to fetch credits"
    assert check.error_kind is ErrorKind.PRECONDITION


def test_unauthenticated_user_is_rejected():
    services = Services()
    check = run_client(services, lambda c: c.check_credits(5), user_id="")
    result = run_client(services, lambda c: c.create_job(5, "US", "USD"), user_id="")

    assert check.error_kind is ErrorKind.AUTHENTICATION
    assert result.error_kind is ErrorKind.AUTHENTICATION
    assert services.calls == []


def test_malformed_token_is_rejected_before_any_call():
    services = Services()
    result = run_client(services, lambda c: c.create_job(5, "US", "USD"), token="not-a-jwt")

    assert result.error_kind is ErrorKind.AUTHENTICATION
    assert services.calls == []


def test_backend_rejection_is_not_charged():
    services = Services(create_status=503)
    result = run_client(services, lambda c: c.create_job(5, "US", "USD"))

    assert not result.success
    assert result.error_kind is ErrorKind.TRANSIENT
    assert "POST /credits/user-1/deduct" not in services.calls


def test_failed_deduction_is_partial_success():
    services = Services(deduct_status=500)
    result = run_client(services, lambda c: c.create_job(5, "US", "USD"))

    assert not result.success
    assert result.job_id == "job-1"
    assert result.error_kind is ErrorKind.PARTIAL_SUCCESS
    assert "job-1" in result.error
    assert "Contact support" in result.error


def test_status_results_carry_error_kind():
    services = Services()
    ok = run_client(services, lambda c: c.get_job_status("job-1"))
    missing = run_client(services, lambda c: c.get_job_status("job-missing"))

    assert ok.success
    assert ok.status.total_requested == 5
    assert not missing.success
    assert missing.error_kind is ErrorKind.NOT_FOUND
    assert missing.error == "Job not found"
