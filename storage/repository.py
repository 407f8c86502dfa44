"""SQLite implementation of the session store."""
from __future__ import annotations

import json
import sqlite3
import uuid
from typing import Any, Dict, List, Optional

from .base import AlreadyEvaluated, RecordNotFound
from .models import (
    QuestionRecord,
    QuestionView,
    ResponseRecord,
    SessionConfig,
    SessionRecord,
    SessionView,
    TurnRecord,
)
from .sqlite import get_conn

_SESSION_FIELDS = {
    "status",
    "phase",
    "resume_phase",
    "current_question",
    "total_questions",
    "progress",
    "started_at",
    "last_activity",
    "completed_at",
    "abandoned_at",
    "archived_at",
    "language",
}


def _session(row: sqlite3.Row) -> SessionRecord:
    return SessionRecord(**dict(row))


def _question(row: sqlite3.Row) -> QuestionRecord:
    return QuestionRecord(**dict(row))


def _response(row: sqlite3.Row) -> ResponseRecord:
    data = dict(row)
    for key in ("star_scores", "model_answer"):
        if data.get(key):
            data[key] = json.loads(data[key])
    return ResponseRecord(**data)


def _turn(row: sqlite3.Row) -> TurnRecord:
    data = dict(row)
    data["metadata"] = json.loads(data["metadata"]) if data.get("metadata") else {}
    return TurnRecord(**data)


class SqliteSessionStore:
    """Session, question, response and turn persistence on one SQLite file."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------
    def create_session(self, config: SessionConfig, *, total_questions: int, created_at: str) -> SessionRecord:
        session_id = str(uuid.uuid4())
        with get_conn(self.db_path) as conn:
            conn.execute(
                """INSERT INTO coaching_sessions
                   (id, job_position, interview_stage, experience_level, language, company_name,
                    industry, total_questions, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    session_id,
                    config.job_position,
                    config.interview_stage,
                    config.experience_level,
                    config.language,
                    config.company_name,
                    config.industry,
                    total_questions,
                    created_at,
                ),
            )
        session = self.get_session(session_id)
        if session is None:
            raise RecordNotFound(session_id)
        return session

    def get_session(self, session_id: str) -> Optional[SessionRecord]:
        with get_conn(self.db_path) as conn:
            row = conn.execute("SELECT * FROM coaching_sessions WHERE id = ?", (session_id,)).fetchone()
        return _session(row) if row else None

    def list_sessions(self) -> List[SessionRecord]:
        with get_conn(self.db_path) as conn:
            rows = conn.execute("SELECT * FROM coaching_sessions ORDER BY created_at").fetchall()
        return [_session(row) for row in rows]

    def update_session(self, session_id: str, **fields: Any) -> SessionRecord:
        unknown = set(fields) - _SESSION_FIELDS
        if unknown:
            raise ValueError(f"Cannot update session fields: {', '.join(sorted(unknown))}")
        if fields:
            assignments = ", ".join(f"{name} = ?" for name in fields)
            with get_conn(self.db_path) as conn:
                cur = conn.execute(
                    f"UPDATE coaching_sessions SET {assignments} WHERE id = ?",
                    (*fields.values(), session_id),
                )
                if cur.rowcount == 0:
                    raise RecordNotFound(session_id)
        session = self.get_session(session_id)
        if session is None:
            raise RecordNotFound(session_id)
        return session

    def delete_session(self, session_id: str) -> None:
        with get_conn(self.db_path) as conn:
            conn.execute("DELETE FROM coaching_sessions WHERE id = ?", (session_id,))

    # ------------------------------------------------------------------
    # Questions and responses
    # ------------------------------------------------------------------
    def add_question(
        self, session_id: str, *, sequence: int, text: str, category: str, difficulty: str, created_at: str
    ) -> QuestionRecord:
        question_id = str(uuid.uuid4())
        with get_conn(self.db_path) as conn:
            conn.execute(
                """INSERT INTO coaching_questions
                   (id, session_id, sequence, text, category, difficulty, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (question_id, session_id, sequence, text, category, difficulty, created_at),
            )
        return QuestionRecord(
            id=question_id,
            session_id=session_id,
            sequence=sequence,
            text=text,
            category=category,
            difficulty=difficulty,
            created_at=created_at,
        )

    def get_question(self, session_id: str, sequence: int) -> Optional[QuestionRecord]:
        with get_conn(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM coaching_questions WHERE session_id = ? AND sequence = ?",
                (session_id, sequence),
            ).fetchone()
        return _question(row) if row else None

    def set_question_translation(self, question_id: str, translated_text: str) -> None:
        with get_conn(self.db_path) as conn:
            cur = conn.execute(
                "UPDATE coaching_questions SET translated_text = ? WHERE id = ?",
                (translated_text, question_id),
            )
            if cur.rowcount == 0:
                raise RecordNotFound(question_id)

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
    ) -> ResponseRecord:
        response_id = str(uuid.uuid4())
        with get_conn(self.db_path) as conn:
            owner = conn.execute(
                "SELECT session_id FROM coaching_questions WHERE id = ?", (question_id,)
            ).fetchone()
            if owner is None or owner["session_id"] != session_id:
                raise RecordNotFound(f"question {question_id} not in session {session_id}")
            conn.execute(
                """INSERT INTO coaching_responses
                   (id, session_id, question_id, text, language, input_method, word_count, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (response_id, session_id, question_id, text, language, input_method, word_count, created_at),
            )
        return ResponseRecord(
            id=response_id,
            session_id=session_id,
            question_id=question_id,
            text=text,
            language=language,
            input_method=input_method,  # type: ignore[arg-type]
            word_count=word_count,
            created_at=created_at,
        )

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
    ) -> ResponseRecord:
        with get_conn(self.db_path) as conn:
            cur = conn.execute(
                """UPDATE coaching_responses
                   SET star_scores = ?, overall_score = ?, model_answer = ?, evaluated_by = ?,
                       evaluation_seconds = ?, evaluated_at = ?
                   WHERE id = ? AND evaluated_at IS NULL""",
                (
                    json.dumps(star_scores),
                    overall_score,
                    json.dumps(model_answer),
                    evaluated_by,
                    evaluation_seconds,
                    evaluated_at,
                    response_id,
                ),
            )
            if cur.rowcount == 0:
                exists = conn.execute("SELECT 1 FROM coaching_responses WHERE id = ?", (response_id,)).fetchone()
                if exists is None:
                    raise RecordNotFound(response_id)
                raise AlreadyEvaluated(response_id)
            row = conn.execute("SELECT * FROM coaching_responses WHERE id = ?", (response_id,)).fetchone()
        return _response(row)

    def discard_answer(self, session_id: str, question_number: int, *, after_turn_id: int) -> None:
        """Drop what one answer wrote: its responses, later questions and turns after ``after_turn_id``."""

        with get_conn(self.db_path) as conn:
            conn.execute(
                "DELETE FROM coaching_turns WHERE session_id = ? AND id > ?", (session_id, after_turn_id)
            )
            conn.execute(
                """DELETE FROM coaching_responses
                   WHERE question_id IN (
                     SELECT id FROM coaching_questions WHERE session_id = ? AND sequence = ?
                   )""",
                (session_id, question_number),
            )
            conn.execute(
                "DELETE FROM coaching_questions WHERE session_id = ? AND sequence > ?", (session_id, question_number)
            )

    # ------------------------------------------------------------------
    # Transcript
    # ------------------------------------------------------------------
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
    ) -> TurnRecord:
        meta = metadata or {}
        with get_conn(self.db_path) as conn:
            cur = conn.execute(
                """INSERT INTO coaching_turns
                   (session_id, role, kind, question_number, content, metadata, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (session_id, role, kind, question_number, content, json.dumps(meta), created_at),
            )
            turn_id = int(cur.lastrowid)
        return TurnRecord(
            id=turn_id,
            session_id=session_id,
            role=role,  # type: ignore[arg-type]
            kind=kind,  # type: ignore[arg-type]
            question_number=question_number,
            content=content,
            metadata=meta,
            created_at=created_at,
        )

    def list_turns(self, session_id: str) -> List[TurnRecord]:
        with get_conn(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM coaching_turns WHERE session_id = ? ORDER BY id", (session_id,)
            ).fetchall()
        return [_turn(row) for row in rows]

    def get_session_view(self, session_id: str) -> Optional[SessionView]:
        session = self.get_session(session_id)
        if session is None:
            return None
        with get_conn(self.db_path) as conn:
            question_rows = conn.execute(
                "SELECT * FROM coaching_questions WHERE session_id = ? ORDER BY sequence", (session_id,)
            ).fetchall()
            response_rows = conn.execute(
                "SELECT * FROM coaching_responses WHERE session_id = ? ORDER BY created_at", (session_id,)
            ).fetchall()
        by_question: Dict[str, List[ResponseRecord]] = {}
        for row in response_rows:
            response = _response(row)
            by_question.setdefault(response.question_id, []).append(response)
        questions = [
            QuestionView(**_question(row).model_dump(), responses=by_question.get(row["id"], []))
            for row in question_rows
        ]
        return SessionView(session=session, questions=questions, turns=self.list_turns(session_id))

    # ------------------------------------------------------------------
    # Lifecycle sweeps
    # ------------------------------------------------------------------
    def flag_abandoned(self, cutoff: str, flagged_at: str) -> int:
        with get_conn(self.db_path) as conn:
            cur = conn.execute(
                """UPDATE coaching_sessions SET abandoned_at = ?
                   WHERE status != 'completed' AND abandoned_at IS NULL
                     AND COALESCE(last_activity, created_at) < ?""",
                (flagged_at, cutoff),
            )
            return int(cur.rowcount)

    def archive_completed(self, cutoff: str, archived_at: str) -> int:
        with get_conn(self.db_path) as conn:
            cur = conn.execute(
                """UPDATE coaching_sessions SET archived_at = ?
                   WHERE status = 'completed' AND archived_at IS NULL
                     AND completed_at IS NOT NULL AND completed_at < ?""",
                (archived_at, cutoff),
            )
            return int(cur.rowcount)


__all__ = ["SqliteSessionStore"]
