"""Append-only status log shown to the user during a deployment."""
import sqlite3
import uuid
from datetime import datetime
from enum import Enum

import structlog
from pydantic import BaseModel, ConfigDict

from deployment_tracker_core.storage import get_conn, read_state, write_state
from deployment_tracker_core.util import utc_now

logger = structlog.get_logger()

LOG_ACTIVE_KEY = "log_active"


class Severity(str, Enum):
    """Severity tag of a status message."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class StatusMessage(BaseModel):
    """One immutable line of the status log."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: datetime
    severity: Severity
    text: str


class StatusLog:
    """Ordered, append-only sequence of status messages.

    When a path is given, messages and the active flag are mirrored to SQLite
    so a restarted process can show the history again. Without one the log
    lives in memory only.
    """

    def __init__(self, path: str | None = None):
        self.path = path
        self._messages: list[StatusMessage] = []
        self._active = False
        if path:
            self._restore()

    @property
    def messages(self) -> list[StatusMessage]:
        return list(self._messages)

    @property
    def active(self) -> bool:
        return self._active

    def __len__(self) -> int:
        return len(self._messages)

    def add(self, severity: Severity, text: str) -> StatusMessage:
        """Append a message and return it."""
        message = StatusMessage(
            id=uuid.uuid4().hex,
            timestamp=utc_now(),
            severity=Severity(severity),
            text=text,
        )
        self._messages.append(message)
        if self.path:
            self._persist(message)
        return message

    def info(self, text: str) -> StatusMessage:
        return self.add(Severity.INFO, text)

    def success(self, text: str) -> StatusMessage:
        return self.add(Severity.SUCCESS, text)

    def warning(self, text: str) -> StatusMessage:
        return self.add(Severity.WARNING, text)

    def error(self, text: str) -> StatusMessage:
        return self.add(Severity.ERROR, text)

    def set_active(self, active: bool) -> None:
        """Set the live/idle indicator."""
        self._active = active
        if not self.path:
            return
        try:
            write_state(self.path, LOG_ACTIVE_KEY, active)
        except sqlite3.Error as e:
            logger.warning("status_log_flag_write_failed", error=str(e))

    def clear(self) -> None:
        """Drop every message. Only called when a new deployment starts."""
        self._messages = []
        if not self.path:
            return
        try:
            with get_conn(self.path) as conn:
                conn.execute("DELETE FROM status_messages")
        except sqlite3.Error as e:
            logger.warning("status_log_clear_failed", error=str(e))

    def _persist(self, message: StatusMessage) -> None:
        try:
            with get_conn(self.path) as conn:
                conn.execute(
                    "INSERT INTO status_messages (id, timestamp, severity, text) VALUES (?, ?, ?, ?)",
                    (
                        message.id,
                        message.timestamp.isoformat(),
                        message.severity.value,
                        message.text,
                    ),
                )
        except sqlite3.Error as e:
            logger.warning("status_log_write_failed", error=str(e))

    def _restore(self) -> None:
        try:
            with get_conn(self.path) as conn:
                rows = conn.execute(
                    "SELECT id, timestamp, severity, text FROM status_messages ORDER BY seq"
                ).fetchall()
            active = read_state(self.path, LOG_ACTIVE_KEY)
        except (sqlite3.Error, ValueError) as e:
            logger.warning("status_log_restore_failed", path=self.path, error=str(e))
            return
        self._messages = [
            StatusMessage(
                id=r["id"],
                timestamp=datetime.fromisoformat(r["timestamp"]),
                severity=Severity(r["severity"]),
                text=r["text"],
            )
            for r in rows
        ]
        self._active = bool(active)
