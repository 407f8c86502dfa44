"""STAR response evaluator with a deterministic heuristic fallback."""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from agents.prompts import star_evaluation_messages
from agents.types import (
    STAR_DIMENSIONS,
    Evaluation,
    EvaluationParseError,
    RubricContext,
    StarAnalysis,
    StarDimension,
    StarParseResult,
)
from config.settings import Settings, settings
from llm_gateway.errors import LlmGatewayError
from llm_gateway.gateway import AiGateway
from llm_gateway.parsing import validate_json
from services.scoring import overall_star_score

logger = logging.getLogger(__name__)

STAR_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "situation": ("situation", "when", "context", "background", "at the time", "while working"),
    "task": ("task", "responsible", "goal", "objective", "needed to", "my role"),
    "action": ("action", "did", "implemented", "decided", "i led", "i built", "i organised", "i organized"),
    "result": ("result", "outcome", "achieved", "improved", "increased", "reduced", "delivered"),
}

_QUANTIFIED = re.compile(r"\d|%|\bpercent\b|\bmetrics?\b", re.IGNORECASE)

_DIMENSION_LABELS = {
    "situation": "situation",
    "task": "task",
    "action": "actions",
    "result": "results",
    "overall_flow": "overall structure",
}


def _token_count(text: str) -> int:
    return 0 if not text else len(text.strip().split())


def _clamp(score: int) -> int:
    return max(1, min(5, score))


def _has_keyword(lowered: str, keywords: Tuple[str, ...]) -> bool:
    return any(re.search(rf"\b{re.escape(word)}\b", lowered) for word in keywords)


def parse_star_analysis(raw: str) -> StarParseResult:
    """Strict parse of model output into a ``StarAnalysis``; never raises."""

    try:
        analysis = validate_json(StarAnalysis, raw)
    except (ValidationError, ValueError) as exc:
        return StarParseResult(error=EvaluationParseError(str(exc)))
    return StarParseResult(analysis=analysis)


def _templated(name: str, score: int) -> StarDimension:
    label = _DIMENSION_LABELS[name]
    if score >= 4:
        return StarDimension(score=score, feedback=f"Clear and specific {label}.", improvement_areas=[])
    if score == 3:
        return StarDimension(
            score=score,
            feedback=f"The {label} is present but could be more specific.",
            improvement_areas=[f"Add concrete detail to the {label}"],
        )
    return StarDimension(
        score=score,
        feedback=f"The {label} needs more development.",
        improvement_areas=[f"Describe the {label} explicitly", f"Use specific examples for the {label}"],
    )


def heuristic_star_analysis(text: str, cfg: Settings = settings) -> StarAnalysis:
    """Lexical STAR scoring: base 3, adjusted by length, keywords and numbers."""

    lowered = (text or "").lower()
    words = _token_count(text)
    scores: Dict[str, int] = {name: 3 for name in STAR_DIMENSIONS}

    if words < cfg.BRIEF_ANSWER_WORDS:
        for name in scores:
            scores[name] -= 1
    if words >= cfg.DETAILED_ANSWER_WORDS:
        scores["overall_flow"] += 1

    covered = 0
    for name, keywords in STAR_KEYWORDS.items():
        if _has_keyword(lowered, keywords):
            scores[name] += 1
            covered += 1
        else:
            scores[name] -= 1

    if _QUANTIFIED.search(text or ""):
        scores["result"] += 1

    if covered >= 3:
        scores["overall_flow"] += 1
    elif covered <= 1:
        scores["overall_flow"] -= 1

    return StarAnalysis(**{name: _templated(name, _clamp(score)) for name, score in scores.items()})


class ResponseEvaluator:
    """Scores an answer through the gateway, falling back to the heuristic."""

    def __init__(self, gateway: Optional[AiGateway] = None, *, cfg: Settings = settings) -> None:
        self.gateway = gateway
        self.cfg = cfg

    def evaluate(self, text: str, ctx: RubricContext) -> Evaluation:
        analysis = self._ai_analysis(text, ctx)
        if analysis is not None:
            return Evaluation(analysis=analysis, overall_score=overall_star_score(analysis.scores()), evaluated_by="ai")
        analysis = heuristic_star_analysis(text, self.cfg)
        return Evaluation(
            analysis=analysis,
            overall_score=overall_star_score(analysis.scores()),
            evaluated_by="heuristic",
        )

    def _ai_analysis(self, text: str, ctx: RubricContext) -> Optional[StarAnalysis]:
        if self.gateway is None:
            return None
        try:
            result = self.gateway.generate(
                star_evaluation_messages(text, ctx),
                max_tokens=800,
                temperature=0.3,
                domain="star-evaluation",
                language=ctx.language,
            )
        except LlmGatewayError as exc:
            logger.warning("STAR evaluation fell back to heuristic: %s", exc)
            return None
        parsed = parse_star_analysis(result.content)
        if not parsed.ok:
            logger.warning("STAR evaluation output rejected provider=%s: %s", result.provider_used, parsed.error)
            return None
        return parsed.analysis


def weakest_dimensions(analysis: StarAnalysis, limit: int = 2) -> List[str]:
    ranked = sorted(STAR_DIMENSIONS, key=lambda name: (getattr(analysis, name).score, STAR_DIMENSIONS.index(name)))
    return ranked[:limit]


__all__ = [
    "ResponseEvaluator",
    "STAR_KEYWORDS",
    "heuristic_star_analysis",
    "parse_star_analysis",
    "weakest_dimensions",
]
