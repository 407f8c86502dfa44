"""Session-level error taxonomy surfaced to callers."""
from __future__ import annotations


class SessionError(RuntimeError):
    def __init__(self, session_id: str, message: str) -> None:
        super().__init__(message)
        self.session_id = session_id


class SessionNotFound(SessionError):
    def __init__(self, session_id: str) -> None:
        super().__init__(session_id, f"Session {session_id} not found")


class SessionPaused(SessionError):
    def __init__(self, session_id: str) -> None:
        super().__init__(session_id, f"Session {session_id} is paused")


class SessionCompleted(SessionError):
    def __init__(self, session_id: str) -> None:
        super().__init__(session_id, f"Session {session_id} is already completed")


class InvalidSessionTransition(SessionError):
    """Requested transition is not allowed from the current phase."""

    def __init__(self, session_id: str, phase: str, action: str) -> None:
        super().__init__(session_id, f"Cannot {action} session {session_id} in phase {phase}")
        self.phase = phase
        self.action = action


__all__ = [
    "InvalidSessionTransition",
    "SessionCompleted",
    "SessionError",
    "SessionNotFound",
    "SessionPaused",
]
