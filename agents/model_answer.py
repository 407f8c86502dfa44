"""Exemplary STAR answers: AI first, templated by theme otherwise."""
from __future__ import annotations

import logging
import re
from typing import Dict, Optional, Tuple

from pydantic import ValidationError

from agents.prompts import model_answer_messages
from agents.types import ModelAnswer, RubricContext
from llm_gateway.errors import LlmGatewayError
from llm_gateway.gateway import AiGateway
from llm_gateway.parsing import validate_json

logger = logging.getLogger(__name__)

# theme -> (trigger keywords, situation, task, action, result)
THEMES: Dict[str, Tuple[Tuple[str, ...], str, str, str, str]] = {
    "conflict": (
        ("conflict", "disagree", "difficult colleague", "tension"),
        "Two senior members of my team disagreed on the approach for a release, and work had stalled.",
        "As the {position}, I needed to get the team aligned without losing either person's input.",
        "I met each of them separately, then ran a short session where we compared both options against agreed criteria.",
        "We chose a combined approach, shipped a week later than planned instead of a month, and both stayed on the project.",
    ),
    "deadline": (
        ("deadline", "pressure", "tight timeline", "urgent", "time constraint"),
        "A client moved a key delivery date forward by two weeks with the scope unchanged.",
        "I was responsible for replanning the work so we could still meet the date.",
        "I cut the work into must-have and nice-to-have items, agreed the split with the client and redistributed tasks daily.",
        "We delivered all must-have items on the new date and the remaining 20% in the following sprint.",
    ),
    "leadership": (
        ("lead", "leadership", "managed", "mentor", "team of"),
        "I inherited a team of five with low morale after a failed project.",
        "My goal was to rebuild confidence and deliver the next milestone.",
        "I set clear weekly goals, held one-to-ones and gave each person ownership of one part of the plan.",
        "The milestone was delivered on time and team engagement scores rose by 30% that quarter.",
    ),
    "customer": (
        ("customer", "client", "complaint", "user"),
        "A major customer escalated repeated service issues and threatened to leave.",
        "I had to restore their trust and fix the root cause.",
        "I set up a daily call, traced the issue to a configuration error and put a monitoring check in place.",
        "The issues stopped within a week and the customer renewed their contract for two more years.",
    ),
    "data": (
        ("data", "analysis", "metrics", "report", "dashboard"),
        "Our team was making decisions on weekly reports that were often out of date.",
        "I was asked to give managers faster and more reliable information.",
        "I automated the data pipeline, validated the figures with finance and built a shared dashboard.",
        "Reporting time dropped from two days to two hours and decisions were made on current numbers.",
    ),
    "failure": (
        ("fail", "mistake", "went wrong", "setback", "learn"),
        "A feature I owned caused a production incident shortly after launch.",
        "I needed to restore service and make sure it would not happen again.",
        "I rolled back the change, led the post-incident review and added tests and a staged rollout.",
        "Service was back within an hour, and we had no repeat incidents over the next six months.",
    ),
}

GENERIC = (
    "In my previous role there was a recurring problem that slowed the team down.",
    "As the {position}, I took responsibility for finding a lasting fix.",
    "I gathered input from the people affected, tested a small change first and then rolled it out.",
    "The problem was resolved and the team saved several hours each week.",
)

STAGE_INSIGHTS: Dict[str, str] = {
    "phone-screening": "At screening stage, keep the story short and link it clearly to the role.",
    "functional-team": "Peers look for collaboration, so highlight how you worked with others.",
    "hiring-manager": "Hiring managers look for ownership and judgement under pressure.",
    "subject-matter-expertise": "Show your technical reasoning and the trade-offs you weighed.",
    "executive-final": "Executives look for strategic thinking and business impact.",
}


def _theme_for(question: str, response: str) -> Optional[str]:
    haystack = f"{question} {response}".lower()
    for theme, (keywords, *_rest) in THEMES.items():
        # anchored at word starts so stems like "fail" still match "failed"
        if any(re.search(rf"\b{re.escape(word)}", haystack) for word in keywords):
            return theme
    return None


def template_model_answer(response: str, ctx: RubricContext) -> ModelAnswer:
    theme = _theme_for(ctx.question_text, response)
    if theme is None:
        situation, task, action, result = GENERIC
    else:
        _keywords, situation, task, action, result = THEMES[theme]
    insight = STAGE_INSIGHTS.get(ctx.interview_stage, STAGE_INSIGHTS["phone-screening"])
    if ctx.industry:
        insight = f"{insight} In {ctx.industry}, quantified outcomes carry particular weight."
    return ModelAnswer(
        situation=situation,
        task=task.format(position=ctx.job_position),
        action=action,
        result=result,
        industry_insights=insight,
        alternative_approaches=[
            "Lead with the result, then explain how you got there.",
            "Use a different example that shows the same skill at a larger scale.",
        ],
        generated_by="template",
    )


def generate_model_answer(response: str, ctx: RubricContext, gateway: Optional[AiGateway] = None) -> ModelAnswer:
    if gateway is not None:
        try:
            result = gateway.generate(
                model_answer_messages(response, ctx),
                max_tokens=800,
                temperature=0.7,
                domain="coaching-feedback",
                language=ctx.language,
            )
            answer = validate_json(ModelAnswer, result.content)
            return answer.model_copy(update={"generated_by": "ai"})
        except LlmGatewayError as exc:
            logger.warning("Model answer fell back to template: %s", exc)
        except (ValidationError, ValueError) as exc:
            logger.warning("Model answer output rejected: %s", exc)
    return template_model_answer(response, ctx)


__all__ = ["generate_model_answer", "template_model_answer"]
