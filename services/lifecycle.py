"""Background sweeping of session timeouts, abandonment and archiving."""
from __future__ import annotations

import datetime as dt
import logging
import threading
from typing import Callable, Dict, Optional

from pydantic import BaseModel

from config.settings import Settings, settings
from observability.logger import log_event
from services.errors import SessionNotFound
from storage.base import SessionStore
from storage.models import SessionRecord
from storage.sqlite import from_iso, to_iso, utc_now

logger = logging.getLogger(__name__)


class SessionStatusReport(BaseModel):
    status: str  # active | timeout | completed | expired
    minutes_remaining: int = 0
    message: str


class RecoveryResult(BaseModel):
    recoverable: bool
    message: str
    minutes_remaining: int = 0
    session: Optional[SessionRecord] = None


class SweepResult(BaseModel):
    abandoned: int
    archived: int


class SessionLifecycleManager:
    """Interval-driven sweeper over persisted sessions.

    Sweeps only add ``abandoned_at`` / ``archived_at`` flags or refresh
    ``last_activity``; a completed session's status is never changed here.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        cfg: Settings = settings,
        clock: Callable[[], dt.datetime] = utc_now,
    ) -> None:
        self.store = store
        self.cfg = cfg
        self.clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def timeout(self) -> dt.timedelta:
        return dt.timedelta(minutes=self.cfg.SESSION_TIMEOUT_MINUTES)

    def _last_activity(self, session: SessionRecord) -> Optional[dt.datetime]:
        value = session.last_activity or session.started_at
        return from_iso(value) if value else None

    def _minutes_remaining(self, session: SessionRecord) -> int:
        last = self._last_activity(session)
        if last is None:
            return 0
        remaining = (last + self.timeout - self.clock()).total_seconds()
        return max(int(remaining // 60), 0)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def is_active(self, session: SessionRecord) -> bool:
        if session.status == "completed":
            return True
        last = self._last_activity(session)
        if last is None:
            return False
        return self.clock() < last + self.timeout

    def session_status(self, session: SessionRecord) -> SessionStatusReport:
        if session.status == "completed":
            return SessionStatusReport(status="completed", message="Session completed successfully")
        if self._last_activity(session) is None:
            return SessionStatusReport(status="expired", message="Session has no recorded activity")
        if self.is_active(session):
            minutes = self._minutes_remaining(session)
            return SessionStatusReport(
                status="active", minutes_remaining=minutes, message=f"Session active, {minutes} minutes remaining"
            )
        return SessionStatusReport(status="timeout", message="Session has timed out due to inactivity")

    def stats(self) -> Dict[str, int]:
        counts = {"active": 0, "completed": 0, "abandoned": 0, "timed_out": 0}
        for session in self.store.list_sessions():
            if session.status == "completed":
                counts["completed"] += 1
            elif session.abandoned_at:
                counts["abandoned"] += 1
            elif self.is_active(session):
                counts["active"] += 1
            else:
                counts["timed_out"] += 1
        return counts

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def extend(self, session_id: str) -> SessionRecord:
        if self.store.get_session(session_id) is None:
            raise SessionNotFound(session_id)
        return self.store.update_session(session_id, last_activity=to_iso(self.clock()))

    def recover(self, session_id: str) -> RecoveryResult:
        session = self.store.get_session(session_id)
        if session is None:
            return RecoveryResult(recoverable=False, message="Session not found")
        if session.status == "completed":
            return RecoveryResult(recoverable=False, message="Session already completed", session=session)
        if not self.is_active(session):
            return RecoveryResult(
                recoverable=False, message="Session has expired and cannot be recovered", session=session
            )
        session = self.extend(session_id)
        minutes = self._minutes_remaining(session)
        log_event("session_recovered", session_id, status=session.status, phase=session.phase)
        return RecoveryResult(
            recoverable=True,
            message=f"Session recovered, {minutes} minutes remaining",
            minutes_remaining=minutes,
            session=session,
        )

    def cleanup_abandoned(self) -> int:
        now = self.clock()
        cutoff = now - dt.timedelta(hours=self.cfg.ABANDONED_SESSION_HOURS)
        count = self.store.flag_abandoned(to_iso(cutoff), to_iso(now))
        if count:
            logger.info("Flagged %d abandoned sessions", count)
        return count

    def archive(self, cutoff_days: Optional[int] = None) -> int:
        days = self.cfg.ARCHIVE_AFTER_DAYS if cutoff_days is None else cutoff_days
        now = self.clock()
        count = self.store.archive_completed(to_iso(now - dt.timedelta(days=days)), to_iso(now))
        if count:
            logger.info("Archived %d completed sessions older than %d days", count, days)
        return count

    # ------------------------------------------------------------------
    # Background loop
    # ------------------------------------------------------------------
    def sweep_once(self) -> SweepResult:
        result = SweepResult(abandoned=self.cleanup_abandoned(), archived=self.archive())
        logger.debug("Lifecycle sweep abandoned=%d archived=%d", result.abandoned, result.archived)
        return result

    def _run(self, interval_s: float) -> None:
        while not self._stop.wait(interval_s):
            try:
                self.sweep_once()
            except Exception:  # noqa: BLE001
                logger.exception("Lifecycle sweep failed")

    def start(self, interval_s: Optional[float] = None) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        interval = interval_s if interval_s is not None else self.cfg.CLEANUP_INTERVAL_MINUTES * 60.0
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, args=(interval,), name="session-lifecycle", daemon=True)
        self._thread.start()
        logger.info("Session lifecycle sweeper started interval=%.0fs", interval)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


__all__ = ["RecoveryResult", "SessionLifecycleManager", "SessionStatusReport", "SweepResult"]
