"""Shared type definitions for agents."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

StarDimensionName = Literal["situation", "task", "action", "result", "overall_flow"]
STAR_DIMENSIONS: tuple[str, ...] = ("situation", "task", "action", "result", "overall_flow")
SCORED_DIMENSIONS: tuple[str, ...] = ("situation", "task", "action", "result")


class StarDimension(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    score: int = Field(ge=1, le=5)
    feedback: str
    improvement_areas: List[str] = Field(default_factory=list, alias="improvementAreas")


class StarAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    situation: StarDimension
    task: StarDimension
    action: StarDimension
    result: StarDimension
    overall_flow: StarDimension = Field(alias="overallFlow")

    def scores(self) -> Dict[str, int]:
        return {name: getattr(self, name).score for name in STAR_DIMENSIONS}


class RubricContext(BaseModel):
    """What the evaluator needs to know about the question being answered."""

    question_text: str = ""
    job_position: str = "the role"
    interview_stage: str = "phone-screening"
    experience_level: str = "mid"
    industry: Optional[str] = None
    company_name: Optional[str] = None
    language: str = "en"


class Evaluation(BaseModel):
    analysis: StarAnalysis
    overall_score: float
    evaluated_by: Literal["ai", "heuristic"]


class ModelAnswer(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    situation: str
    task: str
    action: str
    result: str
    industry_insights: str = Field(default="", alias="industryInsights")
    alternative_approaches: List[str] = Field(default_factory=list, alias="alternativeApproaches")
    generated_by: Literal["ai", "template"] = "template"


class CoachingFeedback(BaseModel):
    tips: List[str]
    learning_points: List[str]
    next_steps: List[str]
    star_analysis: StarAnalysis
    overall_score: float
    model_answer: ModelAnswer
    generated_by: Literal["ai", "template"] = "template"


class EvaluationParseError(ValueError):
    """Model output could not be turned into a ``StarAnalysis``."""


@dataclass(frozen=True)
class StarParseResult:
    """Tagged parse outcome: exactly one of ``analysis`` / ``error`` is set."""

    analysis: Optional[StarAnalysis] = None
    error: Optional[EvaluationParseError] = None

    @property
    def ok(self) -> bool:
        return self.analysis is not None
