import json

from agents.coaching_feedback import fallback_tips, generate_feedback, mine_tips, render_feedback
from agents.model_answer import generate_model_answer, template_model_answer
from agents.response_evaluator import heuristic_star_analysis
from agents.types import Evaluation, RubricContext
from llm_gateway.errors import ProviderRejected

CTX = RubricContext(
    question_text="Tell me about a time you handled a conflict with a colleague.",
    job_position="Project Manager",
    interview_stage="hiring-manager",
    industry="Finance",
)


def _evaluation(text="I just worked hard on it."):
    analysis = heuristic_star_analysis(text)
    return Evaluation(analysis=analysis, overall_score=1.0, evaluated_by="heuristic")


def test_template_picks_theme_from_question():
    answer = template_model_answer("We talked it through.", CTX)
    assert answer.generated_by == "template"
    assert "disagreed" in answer.situation
    assert "Project Manager" in answer.task
    assert "Finance" in answer.industry_insights
    assert answer.alternative_approaches


def test_template_generic_without_keywords():
    ctx = CTX.model_copy(update={"question_text": "Why this company?"})
    answer = template_model_answer("Because it is good.", ctx)
    assert "recurring problem" in answer.situation


def test_template_theme_keywords_match_whole_word_starts():
    ctx = CTX.model_copy(update={"question_text": "How did you handle an update that turned out misleading?"})
    assert "recurring problem" in template_model_answer("We fixed the wording.", ctx).situation

    ctx = CTX.model_copy(update={"question_text": "Describe a launch that failed."})
    assert "production incident" in template_model_answer("We recovered.", ctx).situation


def test_ai_model_answer(make_gateway, scripted):
    payload = json.dumps(
        {
            "situation": "S",
            "task": "T",
            "action": "A",
            "result": "R",
            "industryInsights": "I",
            "alternativeApproaches": ["X"],
        }
    )
    answer = generate_model_answer("text", CTX, make_gateway({"ai": scripted(payload)}))
    assert answer.generated_by == "ai"
    assert answer.alternative_approaches == ["X"]


def test_model_answer_falls_back_on_outage_and_bad_json(make_gateway, scripted):
    down = make_gateway({"ai": scripted(ProviderRejected("ai", "down"))})
    assert generate_model_answer("text", CTX, down).generated_by == "template"
    junk = make_gateway({"ai": scripted("not json at all")})
    assert generate_model_answer("text", CTX, junk).generated_by == "template"


def test_mine_tips_strips_bullets_and_labels():
    raw = "Great effort overall.\n- Tip: Quantify the outcome of your work.\n2. Consider opening with the context.\nok"
    assert mine_tips(raw) == ["Quantify the outcome of your work.", "Consider opening with the context."]


def test_feedback_uses_ai_tips(make_gateway, scripted):
    gateway = make_gateway({"ai": scripted("Tip: Focus on your personal actions.\nTip: Add a measurable result.")})
    evaluation = _evaluation()
    feedback = generate_feedback("text", evaluation, template_model_answer("text", CTX), CTX, gateway)
    assert feedback.generated_by == "ai"
    assert feedback.tips == ["Focus on your personal actions.", "Add a measurable result."]


def test_feedback_falls_back_to_weakest_dimensions():
    evaluation = _evaluation()
    feedback = generate_feedback("text", evaluation, template_model_answer("text", CTX), CTX)
    assert feedback.generated_by == "template"
    assert feedback.tips == fallback_tips(evaluation.analysis)
    assert len(feedback.learning_points) == 2
    assert any("STAR structure" in step for step in feedback.next_steps)
    assert "Overall STAR score: 1.0/5" in render_feedback(feedback)
