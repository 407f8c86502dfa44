"""Scoring aggregation helpers."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional

from agents.types import SCORED_DIMENSIONS


def _round1(value: float) -> float:
    """Round half-up to one decimal place with stable formatting."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def overall_star_score(scores: Mapping[str, int]) -> float:
    """Mean of situation, task, action and result; overall flow is reported but not averaged."""

    values = [float(scores[name]) for name in SCORED_DIMENSIONS]
    return _round1(sum(values) / len(values))


def session_average(overall_scores: Iterable[Optional[float]]) -> float:
    values = [float(score) for score in overall_scores if score is not None]
    if not values:
        return 0.0
    return _round1(sum(values) / len(values))


def progress_percentage(answered: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return _round1(min(answered, total) / total * 100)


__all__ = ["overall_star_score", "progress_percentage", "session_average"]
