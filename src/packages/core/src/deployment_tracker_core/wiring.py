"""Build a controller and its collaborators from settings."""
from dataclasses import dataclass

import structlog

from deployment_tracker_core.backend import BackendClient
from deployment_tracker_core.console import StatusLog
from deployment_tracker_core.controller import PollingController
from deployment_tracker_core.jobs import JobStore
from deployment_tracker_core.jobs.client import JobClient
from deployment_tracker_core.ledger import LedgerClient, ReconciliationClient
from deployment_tracker_core.session import static_session
from deployment_tracker_core.settings import Settings, get_settings
from deployment_tracker_core.storage import init_db

logger = structlog.get_logger()


@dataclass
class Runtime:
    """A controller plus the clients it owns."""

    controller: PollingController
    job_client: JobClient
    backend: BackendClient
    ledger: LedgerClient

    async def aclose(self) -> None:
        """Stop polling locally and close HTTP clients."""
        self.controller.detach()
        await self.backend.aclose()
        await self.ledger.aclose()


def build_runtime(settings: Settings | None = None) -> Runtime:
    """Wire a PollingController from settings."""
    settings = settings or get_settings()
    init_db(settings.state_path)
    session_provider = static_session(settings.user_id, settings.access_token)

    backend = BackendClient(
        settings.backend_url,
        api_key=settings.backend_api_key,
        timeout=settings.http_timeout_seconds,
    )
    ledger = LedgerClient(
        settings.ledger_url,
        api_key=settings.ledger_api_key,
        timeout=settings.http_timeout_seconds,
    )
    job_client = JobClient(backend, ledger, session_provider)
    controller = PollingController(
        job_client,
        ReconciliationClient(ledger, session_provider, settings.state_path),
        StatusLog(settings.state_path),
        JobStore(settings.state_path),
        instance_id=settings.instance_id,
        poll_interval=settings.poll_interval_seconds,
        rate_limit_backoff=settings.rate_limit_backoff_seconds,
        max_duration=settings.max_poll_seconds,
        heartbeat_interval=settings.heartbeat_interval_seconds,
        min_accounts=settings.min_accounts,
        max_accounts=settings.max_accounts,
    )
    logger.info(
        "runtime_built",
        backend_url=settings.backend_url,
        state_path=settings.state_path,
        instance_id=settings.instance_id,
    )
    return Runtime(controller=controller, job_client=job_client, backend=backend, ledger=ledger)
