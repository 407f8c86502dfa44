import pytest

from services.scoring import overall_star_score, progress_percentage, session_average


def test_overall_excludes_flow_and_rounds_half_up():
    scores = {"situation": 4, "task": 4, "action": 4, "result": 5, "overall_flow": 1}
    assert overall_star_score(scores) == 4.3
    assert overall_star_score({"situation": 1, "task": 2, "action": 2, "result": 2, "overall_flow": 5}) == 1.8


@pytest.mark.parametrize(
    "scores, expected",
    [([], 0.0), ([None, 3.0], 3.0), ([3.0, 4.5], 3.8), ([2.0, 2.5, 3.0], 2.5)],
)
def test_session_average(scores, expected):
    assert session_average(scores) == expected


def test_progress_percentage():
    assert progress_percentage(0, 15) == 0.0
    assert progress_percentage(1, 3) == 33.3
    assert progress_percentage(5, 5) == 100.0
    assert progress_percentage(7, 5) == 100.0
    assert progress_percentage(1, 0) == 0.0
