"""Coaching tips, learning points and next steps for one answer."""
from __future__ import annotations

import logging
import re
from typing import List, Optional

from agents.prompts import feedback_messages
from agents.response_evaluator import weakest_dimensions
from agents.text_cleanup import strip_reasoning
from agents.types import CoachingFeedback, Evaluation, ModelAnswer, RubricContext, StarAnalysis
from llm_gateway.errors import LlmGatewayError
from llm_gateway.gateway import AiGateway

logger = logging.getLogger(__name__)

_TIP_MARKERS = ("tip", "improve", "consider", "try ", "focus")
_BULLET = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")
_TIP_LABEL = re.compile(r"^\s*(?:\*\*)?tip\s*\d*\s*:?\s*(?:\*\*)?\s*", re.IGNORECASE)

DIMENSION_TIPS = {
    "situation": "Set the scene in one or two sentences: where you were, when, and what was at stake.",
    "task": "Say clearly what you were responsible for and what success looked like.",
    "action": "Focus on what you personally did, using 'I' rather than 'we'.",
    "result": "Finish with a measurable outcome, such as time saved, revenue or satisfaction scores.",
    "overall_flow": "Follow the Situation, Task, Action, Result order so the story is easy to follow.",
}

LEARNING_POINTS = {
    "situation": "Context helps the interviewer judge the difficulty of what you faced.",
    "task": "A clear task shows you understood your responsibility.",
    "action": "Specific actions are the strongest evidence of your skills.",
    "result": "Quantified results show impact, not just effort.",
    "overall_flow": "A well-structured answer is easier to remember and score.",
}


def mine_tips(raw: str, limit: int = 3) -> List[str]:
    """Lines of model output that read as tips, with bullets and labels removed."""

    tips: List[str] = []
    for line in strip_reasoning(raw).splitlines():
        cleaned = _TIP_LABEL.sub("", _BULLET.sub("", line)).replace("**", "").strip()
        if len(cleaned) < 10:
            continue
        if any(marker in line.lower() for marker in _TIP_MARKERS):
            tips.append(cleaned)
        if len(tips) >= limit:
            break
    return tips


def fallback_tips(analysis: StarAnalysis) -> List[str]:
    return [DIMENSION_TIPS[name] for name in weakest_dimensions(analysis)]


def _learning_points(analysis: StarAnalysis) -> List[str]:
    return [LEARNING_POINTS[name] for name in weakest_dimensions(analysis)]


def _next_steps(evaluation: Evaluation) -> List[str]:
    steps = ["Practise this answer again using the model answer as a guide."]
    if evaluation.overall_score < 3.0:
        steps.append("Prepare two or three stories that follow the STAR structure before your next session.")
    else:
        steps.append("Add one more quantified result to strengthen the answer further.")
    return steps


def generate_feedback(
    response: str,
    evaluation: Evaluation,
    model_answer: ModelAnswer,
    ctx: RubricContext,
    gateway: Optional[AiGateway] = None,
) -> CoachingFeedback:
    tips: List[str] = []
    generated_by = "template"
    if gateway is not None:
        try:
            result = gateway.generate(
                feedback_messages(response, evaluation.analysis, ctx),
                max_tokens=600,
                temperature=0.7,
                domain="coaching-feedback",
                language=ctx.language,
            )
            tips = mine_tips(result.content)
        except LlmGatewayError as exc:
            logger.warning("Coaching feedback fell back to template: %s", exc)
    if tips:
        generated_by = "ai"
    else:
        tips = fallback_tips(evaluation.analysis)
    return CoachingFeedback(
        tips=tips,
        learning_points=_learning_points(evaluation.analysis),
        next_steps=_next_steps(evaluation),
        star_analysis=evaluation.analysis,
        overall_score=evaluation.overall_score,
        model_answer=model_answer,
        generated_by=generated_by,  # type: ignore[arg-type]
    )


def render_feedback(feedback: CoachingFeedback) -> str:
    """Human-readable feedback turn content."""

    analysis = feedback.star_analysis
    lines = [
        f"Overall STAR score: {feedback.overall_score:.1f}/5",
        (
            f"Situation {analysis.situation.score}/5, Task {analysis.task.score}/5, "
            f"Action {analysis.action.score}/5, Result {analysis.result.score}/5, "
            f"Flow {analysis.overall_flow.score}/5"
        ),
        "",
        "Tips:",
    ]
    lines.extend(f"- {tip}" for tip in feedback.tips)
    return "\n".join(lines)


__all__ = ["fallback_tips", "generate_feedback", "mine_tips", "render_feedback"]
