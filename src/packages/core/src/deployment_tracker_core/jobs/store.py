"""Persisted hint for resuming the active job after a restart."""
import sqlite3

import structlog
from pydantic import ValidationError as PydanticValidationError

from deployment_tracker_core.jobs.models import JobDescriptor
from deployment_tracker_core.storage import delete_state, read_state, write_state

logger = structlog.get_logger()

ACTIVE_JOB_KEY = "active_job"


class JobStore:
    """Best-effort mirror of the controller's active JobDescriptor.

    The store is never a source of truth: reads that fail or return garbage
    behave as if nothing was stored, and writes that fail are logged and
    dropped.
    """

    def __init__(self, path: str, key: str = ACTIVE_JOB_KEY):
        self.path = path
        self.key = key

    def load(self) -> JobDescriptor | None:
        """Return the stored descriptor, or None."""
        try:
            raw = read_state(self.path, self.key)
        except sqlite3.Error as e:
            logger.warning("job_store_read_failed", path=self.path, error=str(e))
            return None
        except ValueError as e:
            logger.warning("job_store_corrupt_record", error=str(e))
            self.clear()
            return None
        if raw is None:
            return None
        try:
            return JobDescriptor.model_validate(raw)
        except PydanticValidationError as e:
            logger.warning("job_store_corrupt_record", error=str(e))
            self.clear()
            return None

    def save(self, descriptor: JobDescriptor) -> None:
        """Overwrite the stored descriptor."""
        try:
            write_state(self.path, self.key, descriptor.model_dump(mode="json"))
        except sqlite3.Error as e:
            logger.warning(
                "job_store_write_failed", job_id=descriptor.job_id, error=str(e)
            )

    def clear(self) -> None:
        """Forget the stored descriptor."""
        try:
            delete_state(self.path, self.key)
        except sqlite3.Error as e:
            logger.warning("job_store_clear_failed", path=self.path, error=str(e))
