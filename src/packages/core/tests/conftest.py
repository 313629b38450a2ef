import pytest

from deployment_tracker_core.console import StatusLog
from deployment_tracker_core.controller import PollingController
from deployment_tracker_core.jobs import JobStore

from fakes import FakeClock, FakeJobClient, FakeReconciler


@pytest.fixture
def state_path(tmp_path):
    return str(tmp_path / "state" / "deployments.db")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def job_store(state_path):
    return JobStore(state_path)


@pytest.fixture
def make_controller(job_store, clock):
    """Controller with fakes and a manual clock; ticks are driven by the test."""

    def _make(job_client=None, reconciler=None, status_log=None, **kwargs):
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("autostart", False)
        return PollingController(
            job_client or FakeJobClient(),
            reconciler or FakeReconciler(),
            status_log if status_log is not None else StatusLog(),
            job_store,
            **kwargs,
        )

    return _make
