"""Storage collaborator contract used by the orchestration services."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from .models import (
    QuestionRecord,
    ResponseRecord,
    SessionConfig,
    SessionRecord,
    SessionView,
    TurnRecord,
)


class RecordNotFound(LookupError):
    pass


class AlreadyEvaluated(RuntimeError):
    """Responses are write-once after evaluation."""


class SessionStore(Protocol):
    def create_session(self, config: SessionConfig, *, total_questions: int, created_at: str) -> SessionRecord: ...

    def get_session(self, session_id: str) -> Optional[SessionRecord]: ...

    def list_sessions(self) -> List[SessionRecord]: ...

    def update_session(self, session_id: str, **fields: Any) -> SessionRecord: ...

    def delete_session(self, session_id: str) -> None: ...

    def add_question(
        self, session_id: str, *, sequence: int, text: str, category: str, difficulty: str, created_at: str
    ) -> QuestionRecord: ...

    def get_question(self, session_id: str, sequence: int) -> Optional[QuestionRecord]: ...

    def set_question_translation(self, question_id: str, translated_text: str) -> None: ...

    def add_response(
        self,
        session_id: str,
        question_id: str,
        *,
        text: str,
        language: str,
        input_method: str,
        word_count: int,
        created_at: str,
    ) -> ResponseRecord: ...

    def record_evaluation(
        self,
        response_id: str,
        *,
        star_scores: Dict[str, Any],
        overall_score: float,
        model_answer: Dict[str, Any],
        evaluated_by: str,
        evaluation_seconds: float,
        evaluated_at: str,
    ) -> ResponseRecord: ...

    def discard_answer(self, session_id: str, question_number: int, *, after_turn_id: int) -> None: ...

    def add_turn(
        self,
        session_id: str,
        *,
        role: str,
        kind: str,
        question_number: int,
        content: str,
        created_at: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> TurnRecord: ...

    def list_turns(self, session_id: str) -> List[TurnRecord]: ...

    def get_session_view(self, session_id: str) -> Optional[SessionView]: ...

    def flag_abandoned(self, cutoff: str, flagged_at: str) -> int: ...

    def archive_completed(self, cutoff: str, archived_at: str) -> int: ...


__all__ = ["AlreadyEvaluated", "RecordNotFound", "SessionStore"]
