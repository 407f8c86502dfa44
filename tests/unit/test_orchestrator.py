import json

import pytest

from agents.response_evaluator import ResponseEvaluator
from llm_gateway.errors import ProviderRejected
from services.errors import InvalidSessionTransition, SessionCompleted, SessionNotFound, SessionPaused
from services.notifier import RecordingNotifier
from services.orchestrator import SessionOrchestrator
from storage.models import SessionConfig

ANSWER = (
    "The situation was a delayed launch. My task was to recover the plan. "
    "I implemented daily stand-ups and the result was delivery 2 weeks early."
)


def _dimension(score):
    return {"score": score, "feedback": "fine", "improvementAreas": ["more detail"]}


def coach_reply(messages):
    prompt = messages[-1]["content"]
    if prompt.startswith("Analyse this interview answer"):
        return json.dumps(
            {
                "situation": _dimension(4),
                "task": _dimension(4),
                "action": _dimension(3),
                "result": _dimension(5),
                "overallFlow": _dimension(4),
            }
        )
    if prompt.startswith("Generate interview question"):
        number = prompt.split()[3]
        return f'Sure! "Question {number}: describe a time you influenced a decision without authority?"'
    if prompt.startswith("Create an exemplary"):
        return json.dumps({"situation": "S", "task": "T", "action": "A", "result": "R"})
    if prompt.startswith("Write coaching feedback"):
        return "Tip: Lead with the business impact.\nTip: Name the stakeholders involved."
    if prompt.startswith("Create a warm"):
        return "Welcome to your hiring manager practice for the Product Manager role."
    return "Great work today. You showed strong ownership and clear results throughout the session."


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_orchestrator(store, date_clock, notifier):
    def _make(gateway=None):
        return SessionOrchestrator(store, gateway, notifier=notifier, clock=date_clock)

    return _make


def _create(orchestrator, total=3, **extra):
    config = SessionConfig(job_position="Product Manager", interview_stage="hiring-manager", total_questions=total, **extra)
    return orchestrator.create_session(config)


def test_create_uses_configured_default_total(make_orchestrator):
    orchestrator = make_orchestrator()
    session = orchestrator.create_session(SessionConfig(job_position="Nurse"))
    assert session.total_questions == 15
    assert session.status == "not_started"


def test_start_is_idempotent(make_orchestrator, notifier):
    orchestrator = make_orchestrator()
    session = _create(orchestrator)

    first = orchestrator.start_conversation(session.id)
    second = orchestrator.start_conversation(session.id)

    assert [t.kind for t in first.turns] == ["introduction", "question"]
    assert second.turns == first.turns
    assert second.session.current_question == 1
    assert second.session.status == "active"
    assert second.session.phase == "awaiting_response"
    assert len(second.questions) == 1
    assert notifier.names() == ["conversation_started", "question_asked"]


def test_single_question_session_completes(make_orchestrator, notifier):
    orchestrator = make_orchestrator()
    session = _create(orchestrator, total=1)
    orchestrator.start_conversation(session.id)

    outcome = orchestrator.process_response(session.id, ANSWER, question_number=1)

    assert outcome.completed is True
    assert outcome.session.status == "completed"
    assert outcome.session.progress == 100.0
    assert outcome.session.current_question == 1
    assert outcome.summary
    assert outcome.response.evaluated_by == "heuristic"
    assert [t.kind for t in orchestrator.get_transcript(session.id)][-1] == "summary"
    assert "session_completed" in notifier.names()
    with pytest.raises(SessionCompleted):
        orchestrator.process_response(session.id, ANSWER)


def test_provider_outage_still_yields_next_question(make_orchestrator, make_gateway, scripted):
    gateway = make_gateway({"down": scripted(ProviderRejected("down", "returned status 503"))})
    orchestrator = make_orchestrator(gateway)
    session = _create(orchestrator)
    orchestrator.start_conversation(session.id)

    outcome = orchestrator.process_response(session.id, ANSWER)

    assert outcome.next_question is not None
    assert outcome.next_question.text.strip()
    assert outcome.next_question.sequence == 2
    assert outcome.feedback.generated_by == "template"
    assert outcome.session.current_question == 2


def test_failed_evaluation_rolls_back_and_allows_retry(store, date_clock):
    class FlakyEvaluator:
        def __init__(self):
            self.inner = ResponseEvaluator()
            self.failures = 1

        def evaluate(self, text, ctx):
            if self.failures:
                self.failures -= 1
                raise RuntimeError("evaluator crashed")
            return self.inner.evaluate(text, ctx)

    orchestrator = SessionOrchestrator(store, evaluator=FlakyEvaluator(), clock=date_clock)
    session = _create(orchestrator, total=2)
    orchestrator.start_conversation(session.id)

    with pytest.raises(RuntimeError):
        orchestrator.process_response(session.id, ANSWER)

    view = orchestrator.get_session(session.id)
    assert view.session.phase == "awaiting_response"
    assert view.session.current_question == 1
    assert [t.kind for t in view.turns] == ["introduction", "question"]
    assert view.responses == []
    assert [q.sequence for q in view.questions] == [1]

    outcome = orchestrator.process_response(session.id, ANSWER)

    assert outcome.question_number == 1
    assert outcome.session.current_question == 2
    assert outcome.response.evaluated_by == "heuristic"


def test_current_question_is_monotonic_and_client_number_ignored(make_orchestrator):
    orchestrator = make_orchestrator()
    session = _create(orchestrator, total=3)
    orchestrator.start_conversation(session.id)

    seen = [orchestrator.get_session(session.id).session.current_question]
    for given in (5, None, 1):
        outcome = orchestrator.process_response(session.id, ANSWER, question_number=given)
        seen.append(outcome.session.current_question)

    assert seen == sorted(seen)
    assert all(value <= 3 + 1 for value in seen)
    assert outcome.completed is True
    progress = orchestrator.get_progress(session.id)
    assert progress.answered == 3
    assert progress.progress == 100.0
    questions = orchestrator.get_session(session.id).questions
    assert [q.sequence for q in questions] == [1, 2, 3]
    assert len({q.text for q in questions}) == 3


def test_ai_path_end_to_end(make_orchestrator, make_gateway, scripted):
    gateway = make_gateway({"coach": scripted(coach_reply)})
    orchestrator = make_orchestrator(gateway)
    session = _create(orchestrator, total=2)

    view = orchestrator.start_conversation(session.id)
    assert view.turns[0].content.startswith("Welcome to your hiring manager practice")
    assert view.questions[0].text == "Question 1: describe a time you influenced a decision without authority?"

    outcome = orchestrator.process_response(session.id, ANSWER)
    assert outcome.response.evaluated_by == "ai"
    assert outcome.response.overall_score == 4.0
    assert outcome.feedback.tips == ["Lead with the business impact.", "Name the stakeholders involved."]
    assert outcome.feedback.model_answer.generated_by == "ai"
    assert outcome.next_question.text.startswith("Question 2")
    assert outcome.session.progress == 50.0


def test_pause_blocks_generation_until_resume(make_orchestrator, notifier):
    orchestrator = make_orchestrator()
    session = _create(orchestrator)
    with pytest.raises(InvalidSessionTransition):
        orchestrator.pause(session.id)

    orchestrator.start_conversation(session.id)
    paused = orchestrator.pause(session.id)
    assert (paused.status, paused.phase, paused.resume_phase) == ("paused", "paused", "awaiting_response")
    assert orchestrator.pause(session.id).status == "paused"
    with pytest.raises(SessionPaused):
        orchestrator.process_response(session.id, ANSWER)

    resumed = orchestrator.resume(session.id)
    assert (resumed.status, resumed.phase, resumed.resume_phase) == ("active", "awaiting_response", None)
    with pytest.raises(InvalidSessionTransition):
        orchestrator.resume(session.id)
    assert orchestrator.process_response(session.id, ANSWER).question_number == 1
    assert {"session_paused", "session_resumed"} <= set(notifier.names())


def test_pause_during_introduction_parks_next_phase(make_orchestrator, make_gateway, scripted, store):
    holder = {}

    def pause_mid_intro(messages):
        if messages[-1]["content"].startswith("Create a warm"):
            holder["orchestrator"].pause(holder["session_id"])
        return coach_reply(messages)

    orchestrator = make_orchestrator(make_gateway({"coach": scripted(pause_mid_intro)}))
    session = _create(orchestrator)
    holder.update(orchestrator=orchestrator, session_id=session.id)

    view = orchestrator.start_conversation(session.id)

    assert view.session.status == "paused"
    assert view.session.resume_phase == "awaiting_response"
    assert view.session.current_question == 1
    assert orchestrator.resume(session.id).phase == "awaiting_response"


def test_progress_reports_time_spent(make_orchestrator, date_clock):
    orchestrator = make_orchestrator()
    session = _create(orchestrator)
    orchestrator.start_conversation(session.id)
    date_clock.advance(minutes=12)
    orchestrator.process_response(session.id, ANSWER)

    progress = orchestrator.get_progress(session.id)
    assert progress.answered == 1
    assert progress.time_spent_minutes == 12.0
    assert progress.current_question == 2
    assert 1.0 <= progress.average_score <= 5.0


def test_unknown_session_and_empty_text(make_orchestrator):
    orchestrator = make_orchestrator()
    with pytest.raises(SessionNotFound):
        orchestrator.start_conversation("missing")
    with pytest.raises(SessionNotFound):
        orchestrator.get_progress("missing")
    session = _create(orchestrator)
    with pytest.raises(InvalidSessionTransition):
        orchestrator.process_response(session.id, ANSWER)
    with pytest.raises(ValueError):
        orchestrator.process_response(session.id, "   ")
