"""Tests for the HTTP API."""
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from deployment_tracker_api.dependencies import get_controller, get_runtime
from deployment_tracker_api.main import app
from deployment_tracker_core.backend import BackendError
from deployment_tracker_core.console import StatusLog
from deployment_tracker_core.controller import PollingController
from deployment_tracker_core.jobs import CreateJobResult, CreditCheck, JobStore
from deployment_tracker_core.util import ErrorKind


class StubJobClient:
    def __init__(self, credits=100, create_result=None):
        self.credits = credits
        self.create_result = create_result or CreateJobResult(success=True, job_id="job-1")

    async def check_credits(self, requested):
        enough = self.credits >= requested
        return CreditCheck(
            has_enough=enough,
            current_credits=self.credits,
            required_credits=requested,
            error_kind=None if enough else ErrorKind.INSUFFICIENT_CREDITS,
        )

    async def create_job(self, requested, region, currency):
        return self.create_result


class StubReconciler:
    async def add(self, job_id, successes, failures, delta_id):
        return True

    def progress(self, job_id):
        return (0, 0)


class StubBackend:
    def __init__(self, healthy=True):
        self.healthy = healthy

    async def check_health(self):
        if not self.healthy:
            raise BackendError("connection refused")
        return {"status": "healthy"}


@pytest.fixture
def api(tmp_path):
    """Client factory wiring a controller that never starts its timer."""

    def _make(job_client=None, backend=None):
        job_client = job_client or StubJobClient()
        controller = PollingController(
            job_client,
            StubReconciler(),
            StatusLog(),
            JobStore(str(tmp_path / "api.db")),
            autostart=False,
        )
        runtime = SimpleNamespace(
            controller=controller, job_client=job_client, backend=backend or StubBackend()
        )
        app.dependency_overrides[get_runtime] = lambda: runtime
        app.dependency_overrides[get_controller] = lambda: controller
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


def test_health(api):
    assert api().get("/api/health").json() == {"status": "ok"}


def test_backend_health(api):
    assert api().get("/api/health/backend").json() == {"status": "healthy"}
    response = api(backend=StubBackend(healthy=False)).get("/api/health/backend")
    assert response.status_code == 502


def test_regions(api):
    data = api().get("/api/regions").json()
    assert "USD" in data["currencies"]
    north_america = next(r for r in data["regions"] if r["name"] == "North America")
    assert {"code": "US", "name": "United States", "currency": "USD", "region": "North America"} in (
        north_america["countries"]
    )


def test_credit_check(api):
    data = api(StubJobClient(credits=3)).get("/api/credits", params={"accounts": 5}).json()
    assert data["has_enough"] is False
    assert data["error_kind"] == "insufficient_credits"


def test_create_deployment_and_read_state(api):
    client = api()

    response = client.post(
        "/api/deployments", json={"accounts": 5, "region": "US", "currency": "USD"}
    )
    assert response.status_code == 202
    assert response.json() == {"job_id": "job-1"}

    current = client.get("/api/deployments/current").json()
    assert current["state"] == "polling"
    assert current["job_id"] == "job-1"
    assert current["can_submit"] is False

    console = client.get("/api/console").json()
    assert console["active"] is True
    assert console["messages"][0]["text"].startswith("Starting deployment of 5 accounts")


def test_second_deployment_conflicts(api):
    client = api()
    body = {"accounts": 5, "region": "US", "currency": "USD"}
    client.post("/api/deployments", json=body)

    response = client.post("/api/deployments", json=body)

    assert response.status_code == 409


@pytest.mark.parametrize(
    "job_client,body,status_code",
    [
        (None, {"accounts": 5, "region": "", "currency": "USD"}, 400),
        (None, {"accounts": "many", "region": "US", "currency": "USD"}, 400),
        (StubJobClient(credits=1), {"accounts": 5, "region": "US", "currency": "USD"}, 402),
        (
            StubJobClient(
                create_result=CreateJobResult(
                    success=False, error="Rate limit exceeded", error_kind=ErrorKind.RATE_LIMITED
                )
            ),
            {"accounts": 5, "region": "US", "currency": "USD"},
            502,
        ),
    ],
)
def test_rejected_deployments(api, job_client, body, status_code):
    response = api(job_client).post("/api/deployments", json=body)
    assert response.status_code == status_code
    assert response.json()["detail"]


def test_runtime_missing_is_unavailable():
    app.dependency_overrides.clear()
    response = TestClient(app).get("/api/deployments/current")
    assert response.status_code == 503
