"""Pydantic schemas for the coaching session API."""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from agents.types import CoachingFeedback
from storage.models import QuestionRecord, SessionRecord, TurnRecord


class CreateSessionReq(BaseModel):
    job_position: str = Field(min_length=1)
    interview_stage: str = "phone-screening"
    experience_level: str = "mid"
    language: str = "en"
    company_name: Optional[str] = None
    industry: Optional[str] = None
    total_questions: Optional[int] = Field(default=None, ge=1)


class RespondReq(BaseModel):
    text: str = Field(min_length=1)
    question_number: Optional[int] = None
    input_method: Literal["text", "voice"] = "text"
    language: Optional[str] = None


class TranscriptResp(BaseModel):
    session: SessionRecord
    turns: List[TurnRecord] = Field(default_factory=list)
    current_question: Optional[QuestionRecord] = None


class RespondResp(BaseModel):
    session: SessionRecord
    question_number: int
    overall_score: float
    evaluated_by: str
    feedback: CoachingFeedback
    next_question: Optional[QuestionRecord] = None
    summary: Optional[str] = None
    completed: bool = False


class HealthResp(BaseModel):
    providers: Dict[str, Dict[str, Any]]
    cache: Dict[str, Any]
