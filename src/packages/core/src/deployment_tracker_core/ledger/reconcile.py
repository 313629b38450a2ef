"""Idempotent success/failure counter updates."""
import sqlite3
from typing import Callable

import structlog

from deployment_tracker_core.ledger.client import LedgerClient, LedgerError
from deployment_tracker_core.session import Session
from deployment_tracker_core.storage import get_conn
from deployment_tracker_core.util import utc_now_iso

logger = structlog.get_logger()


def account_delta_id(job_id: str, index: int) -> str:
    return f"{job_id}:account:{index}"


def failure_delta_id(job_id: str, index: int) -> str:
    return f"{job_id}:failure:{index}"


def final_delta_id(job_id: str) -> str:
    return f"{job_id}:final"


class ReconciliationClient:
    """Adds N successes and M failures to the user's counters, once per delta id.

    Confirmed deltas are recorded locally; a delta id that was already
    confirmed is acknowledged without calling the ledger again.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        session_provider: Callable[[], Session | None],
        path: str | None = None,
    ):
        self.ledger = ledger
        self.session_provider = session_provider
        self.path = path
        self._applied: dict[str, tuple[str, int, int]] = {}

    async def add(self, job_id: str, successes: int, failures: int, delta_id: str) -> bool:
        """Apply a delta. Returns True only once the ledger has confirmed it."""
        if successes < 0 or failures < 0:
            raise ValueError("Reconciliation deltas must not be negative")
        if successes == 0 and failures == 0:
            return True
        if self.is_applied(delta_id):
            logger.debug("reconcile_delta_already_applied", delta_id=delta_id)
            return True

        session = self.session_provider()
        if session is None:
            logger.warning("reconcile_skipped_unauthenticated", delta_id=delta_id)
            return False
        try:
            await self.ledger.increment_stats(
                session.user_id,
                successful=successes,
                failures=failures,
                delta_id=delta_id,
                token=session.access_token,
            )
        except LedgerError as e:
            logger.warning(
                "reconcile_failed",
                job_id=job_id,
                delta_id=delta_id,
                status=e.status_code,
                error=str(e),
            )
            return False

        self._record(job_id, delta_id, successes, failures)
        logger.info(
            "reconcile_applied",
            job_id=job_id,
            delta_id=delta_id,
            successes=successes,
            failures=failures,
        )
        return True

    def is_applied(self, delta_id: str) -> bool:
        if delta_id in self._applied:
            return True
        if not self.path:
            return False
        try:
            with get_conn(self.path) as conn:
                row = conn.execute(
                    "SELECT job_id, successes, failures FROM reconciled_deltas WHERE delta_id = ?",
                    (delta_id,),
                ).fetchone()
        except sqlite3.Error as e:
            logger.warning("reconcile_ledger_read_failed", error=str(e))
            return False
        if row is None:
            return False
        self._applied[delta_id] = (row["job_id"], row["successes"], row["failures"])
        return True

    def progress(self, job_id: str) -> tuple[int, int]:
        """Confirmed (successes, failures) for a job."""
        if self.path:
            try:
                with get_conn(self.path) as conn:
                    row = conn.execute(
                        """
                        SELECT COALESCE(SUM(successes), 0) AS s, COALESCE(SUM(failures), 0) AS f
                        FROM reconciled_deltas WHERE job_id = ?
                        """,
                        (job_id,),
                    ).fetchone()
                return int(row["s"]), int(row["f"])
            except sqlite3.Error as e:
                logger.warning("reconcile_ledger_read_failed", error=str(e))
        successes = sum(s for j, s, _ in self._applied.values() if j == job_id)
        failures = sum(f for j, _, f in self._applied.values() if j == job_id)
        return successes, failures

    def _record(self, job_id: str, delta_id: str, successes: int, failures: int) -> None:
        self._applied[delta_id] = (job_id, successes, failures)
        if not self.path:
            return
        try:
            with get_conn(self.path) as conn:
                conn.execute(
                    """
                    INSERT OR IGNORE INTO reconciled_deltas
                        (delta_id, job_id, successes, failures, applied_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (delta_id, job_id, successes, failures, utc_now_iso()),
                )
        except sqlite3.Error as e:
            logger.warning("reconcile_ledger_write_failed", delta_id=delta_id, error=str(e))
