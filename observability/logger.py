"""Structured event logging for coaching sessions.

``log_event`` writes one human-readable line to the console and, when file
logging is enabled, a JSON line plus the same human line to rotating files.
Operational messages keep using plain module loggers; ``setup_logging``
configures the root logger for the server and the admin CLI.
"""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import time
import uuid
from typing import Any, Dict, Optional

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENABLE_FILE_LOGS = os.getenv("ENABLE_FILE_LOGS", "1") in ("1", "true", "True")
LOG_FILE = os.getenv("LOG_FILE", "logs/coaching.log")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "5242880"))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))

HUMAN_FORMAT = "[%(asctime)s] %(levelname)s %(name)s :: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
SUMMARY_KEYS = ("phase", "status", "question_number", "provider", "score", "progress", "count", "span", "ms")

_events = logging.getLogger("coaching.events")
_events.setLevel(LOG_LEVEL)
_events.propagate = False


class _JsonOnly(logging.Filter):
    def __init__(self, wanted: bool) -> None:
        super().__init__()
        self.wanted = wanted

    def filter(self, record: logging.LogRecord) -> bool:
        return (getattr(record, "is_json", False) is True) == self.wanted


def _human_handler(handler: logging.Handler) -> logging.Handler:
    handler.setLevel(LOG_LEVEL)
    handler.setFormatter(logging.Formatter(HUMAN_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(_JsonOnly(False))
    return handler


def _rotating(path: str) -> logging.handlers.RotatingFileHandler:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return logging.handlers.RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT)


def _human_log_path(path: str) -> str:
    base = path[: -len(".log")] if path.endswith(".log") else path
    return f"{base}-human.log"


def _ensure_handlers() -> None:
    if _events.handlers:
        return
    _events.addHandler(_human_handler(logging.StreamHandler(stream=sys.stdout)))
    if not ENABLE_FILE_LOGS:
        return
    json_file = _rotating(LOG_FILE)
    json_file.setLevel(LOG_LEVEL)
    json_file.setFormatter(logging.Formatter("%(message)s"))
    json_file.addFilter(_JsonOnly(True))
    _events.addHandler(json_file)
    _events.addHandler(_human_handler(_rotating(_human_log_path(LOG_FILE))))


def _format_human(evt: Dict[str, Any]) -> str:
    line = f"event={evt['kind']} session={evt['session_id']}"
    extras = [f"{key}={evt[key]}" for key in SUMMARY_KEYS if key in evt]
    return line + (" " + " ".join(extras) if extras else "")


def _emit(message: str, *, is_json: bool) -> None:
    record = _events.makeRecord(_events.name, logging.INFO, "", 0, message, (), None)
    record.is_json = is_json  # type: ignore[attr-defined]
    _events.handle(record)


def log_event(kind: str, session_id: str, **fields: Any) -> None:
    """Emit a structured coaching event (``question_asked``, ``feedback_ready``, ...)."""

    _ensure_handlers()
    payload: Dict[str, Any] = {"ts": time.time(), "trace": str(uuid.uuid4()), "kind": kind, "session_id": session_id}
    payload.update(fields)
    _emit(_format_human(payload), is_json=False)
    if ENABLE_FILE_LOGS:
        _emit(json.dumps(payload, ensure_ascii=False, default=str), is_json=True)


def setup_logging(level: Optional[str] = None) -> None:
    """Console logging for module loggers; safe to call more than once."""

    root = logging.getLogger()
    root.setLevel((level or LOG_LEVEL).upper())
    if not any(getattr(handler, "_coaching", False) for handler in root.handlers):
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(logging.Formatter(HUMAN_FORMAT, datefmt=DATE_FORMAT))
        handler._coaching = True  # type: ignore[attr-defined]
        root.addHandler(handler)


__all__ = ["log_event", "setup_logging"]
