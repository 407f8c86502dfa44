"""Realtime notifier collaborators."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Protocol, Tuple

from observability.logger import log_event

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def emit(self, event: str, session_id: str, payload: Dict[str, Any]) -> None: ...


class NullNotifier:
    def emit(self, event: str, session_id: str, payload: Dict[str, Any]) -> None:
        return None


class LoggingNotifier:
    """Writes each realtime event as a structured log line."""

    def emit(self, event: str, session_id: str, payload: Dict[str, Any]) -> None:
        log_event(event, session_id, **payload)


class RecordingNotifier:
    """Keeps emitted events in memory; handy for inspection and tests."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, str, Dict[str, Any]]] = []

    def emit(self, event: str, session_id: str, payload: Dict[str, Any]) -> None:
        self.events.append((event, session_id, dict(payload)))

    def names(self) -> List[str]:
        return [event for event, _sid, _payload in self.events]


def safe_emit(notifier: Notifier, event: str, session_id: str, payload: Dict[str, Any]) -> None:
    """Fire and forget: notifier failures are logged and dropped."""

    try:
        notifier.emit(event, session_id, payload)
    except Exception:  # noqa: BLE001
        logger.exception("Notifier failed event=%s session=%s", event, session_id)


__all__ = ["LoggingNotifier", "Notifier", "NullNotifier", "RecordingNotifier", "safe_emit"]
