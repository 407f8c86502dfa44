"""Persisted record shapes for coaching sessions."""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

SessionStatus = Literal["not_started", "active", "paused", "completed"]
Phase = Literal["not_started", "introducing", "awaiting_response", "evaluating", "paused", "completed"]
TurnRole = Literal["coach", "user"]
TurnKind = Literal["introduction", "question", "response", "feedback", "summary"]
InputMethod = Literal["text", "voice"]


class SessionConfig(BaseModel):
    job_position: str
    interview_stage: str = "phone-screening"
    experience_level: str = "mid"
    language: str = "en"
    company_name: Optional[str] = None
    industry: Optional[str] = None
    total_questions: Optional[int] = Field(default=None, ge=1)


class SessionRecord(BaseModel):
    id: str
    job_position: str
    interview_stage: str
    experience_level: str
    language: str = "en"
    company_name: Optional[str] = None
    industry: Optional[str] = None
    status: SessionStatus = "not_started"
    phase: Phase = "not_started"
    resume_phase: Optional[Phase] = None
    current_question: int = 0
    total_questions: int = Field(ge=1)
    progress: float = 0.0
    created_at: str
    started_at: Optional[str] = None
    last_activity: Optional[str] = None
    completed_at: Optional[str] = None
    abandoned_at: Optional[str] = None
    archived_at: Optional[str] = None


class QuestionRecord(BaseModel):
    id: str
    session_id: str
    sequence: int
    text: str
    translated_text: Optional[str] = None
    category: str = "behavioral"
    difficulty: str = "medium"
    created_at: str


class ResponseRecord(BaseModel):
    id: str
    session_id: str
    question_id: str
    text: str
    language: str = "en"
    input_method: InputMethod = "text"
    word_count: int = 0
    star_scores: Optional[Dict[str, Any]] = None
    overall_score: Optional[float] = None
    model_answer: Optional[Dict[str, Any]] = None
    evaluated_by: Optional[str] = None
    evaluation_seconds: Optional[float] = None
    created_at: str
    evaluated_at: Optional[str] = None


class TurnRecord(BaseModel):
    id: int
    session_id: str
    role: TurnRole
    kind: TurnKind
    question_number: int = 0
    content: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: str


class QuestionView(QuestionRecord):
    responses: List[ResponseRecord] = Field(default_factory=list)


class SessionView(BaseModel):
    """Denormalised session with questions, responses and the transcript."""

    session: SessionRecord
    questions: List[QuestionView] = Field(default_factory=list)
    turns: List[TurnRecord] = Field(default_factory=list)

    @property
    def responses(self) -> List[ResponseRecord]:
        return [response for question in self.questions for response in question.responses]


__all__ = [
    "InputMethod",
    "Phase",
    "QuestionRecord",
    "QuestionView",
    "ResponseRecord",
    "SessionConfig",
    "SessionRecord",
    "SessionStatus",
    "SessionView",
    "TurnKind",
    "TurnRecord",
    "TurnRole",
]
