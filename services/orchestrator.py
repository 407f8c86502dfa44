"""Coaching conversation state machine.

A session moves ``not_started -> introducing -> awaiting_response ->
evaluating -> awaiting_response | completed``. ``paused`` can be entered from
``introducing`` or ``awaiting_response`` and returns to the recorded phase on
resume. Every AI sub-step has a deterministic fallback, so provider outages
degrade output quality but never stop a session from progressing.
"""
from __future__ import annotations

import datetime as dt
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from agents import fallbacks
from agents.coaching_feedback import generate_feedback, render_feedback
from agents.model_answer import generate_model_answer
from agents.prompts import introduction_messages, question_messages, summary_messages
from agents.response_evaluator import ResponseEvaluator
from agents.text_cleanup import extract_prose, extract_question
from agents.types import CoachingFeedback, RubricContext
from config.settings import Settings, settings
from llm_gateway.errors import LlmGatewayError
from llm_gateway.gateway import AiGateway
from observability.tracing import span
from services.errors import InvalidSessionTransition, SessionCompleted, SessionNotFound, SessionPaused
from services.notifier import Notifier, NullNotifier, safe_emit
from services.scoring import progress_percentage, session_average
from storage.base import SessionStore
from storage.models import QuestionRecord, ResponseRecord, SessionConfig, SessionRecord, SessionView, TurnRecord
from storage.sqlite import from_iso, to_iso, utc_now

logger = logging.getLogger(__name__)

PAUSABLE_PHASES = ("introducing", "awaiting_response")


class ResponseOutcome(BaseModel):
    session: SessionRecord
    question_number: int
    response: ResponseRecord
    feedback: CoachingFeedback
    next_question: Optional[QuestionRecord] = None
    summary: Optional[str] = None
    completed: bool = False


class ProgressReport(BaseModel):
    session_id: str
    status: str
    phase: str
    current_question: int
    total_questions: int
    answered: int
    average_score: float
    progress: float
    time_spent_minutes: float


class SessionOrchestrator:
    """Drives one coaching conversation per session over the store and gateway."""

    def __init__(
        self,
        store: SessionStore,
        gateway: Optional[AiGateway] = None,
        *,
        evaluator: Optional[ResponseEvaluator] = None,
        notifier: Optional[Notifier] = None,
        cfg: Settings = settings,
        clock: Callable[[], dt.datetime] = utc_now,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.evaluator = evaluator or ResponseEvaluator(gateway, cfg=cfg)
        self.notifier: Notifier = notifier or NullNotifier()
        self.cfg = cfg
        self.clock = clock
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._status_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _now(self) -> str:
        return to_iso(self.clock())

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(session_id, threading.Lock())

    def _require(self, session_id: str) -> SessionRecord:
        session = self.store.get_session(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def _emit(self, event: str, session_id: str, **payload: Any) -> None:
        safe_emit(self.notifier, event, session_id, payload)

    def _generate(self, messages: List[Dict[str, str]], *, domain: str, language: str, max_tokens: int) -> Optional[str]:
        if self.gateway is None:
            return None
        try:
            return self.gateway.generate(messages, max_tokens=max_tokens, temperature=0.7, domain=domain, language=language).content
        except LlmGatewayError as exc:
            logger.warning("Generation fell back to template domain=%s: %s", domain, exc)
            return None

    def _advance(self, session_id: str, phase: str, **fields: Any) -> SessionRecord:
        """Apply a phase change, parking it in ``resume_phase`` if the session was paused meanwhile."""

        with self._status_lock:
            current = self._require(session_id)
            if current.status == "paused" and phase != "completed":
                return self.store.update_session(session_id, resume_phase=phase, **fields)
            if phase == "completed":
                fields.setdefault("status", "completed")
                fields.setdefault("resume_phase", None)
            return self.store.update_session(session_id, phase=phase, **fields)

    def _context(self, session: SessionRecord, question_text: str, language: Optional[str] = None) -> RubricContext:
        return RubricContext(
            question_text=question_text,
            job_position=session.job_position,
            interview_stage=session.interview_stage,
            experience_level=session.experience_level,
            industry=session.industry,
            company_name=session.company_name,
            language=language or session.language,
        )

    def _introduction(self, session: SessionRecord) -> str:
        default = fallbacks.introduction(
            session.language,
            position=session.job_position,
            stage=session.interview_stage,
            total=session.total_questions,
        )
        raw = self._generate(
            introduction_messages(session), domain="general", language=session.language, max_tokens=300
        )
        return extract_prose(raw, default) if raw else default

    def _question(self, session: SessionRecord, number: int) -> QuestionRecord:
        view = self.store.get_session_view(session.id)
        asked = [q.text for q in view.questions] if view else []
        turns = view.turns if view else []
        category = fallbacks.category_for(number)
        default = fallbacks.question(number, position=session.job_position, stage=session.interview_stage, asked=asked)
        raw = self._generate(
            question_messages(session, number, category, turns, asked),
            domain="question-generation",
            language=session.language,
            max_tokens=300,
        )
        text = extract_question(raw, default) if raw else default
        if text in asked:
            text = default
        return self.store.add_question(
            session.id,
            sequence=number,
            text=text,
            category=category,
            difficulty=fallbacks.difficulty_for(session.experience_level),
            created_at=self._now(),
        )

    def _ask(self, session: SessionRecord, number: int) -> QuestionRecord:
        question = self._question(session, number)
        self.store.add_turn(
            session.id,
            role="coach",
            kind="question",
            question_number=number,
            content=question.text,
            created_at=self._now(),
            metadata={"category": question.category, "difficulty": question.difficulty},
        )
        self._emit("question_asked", session.id, question_number=number, question=question.text)
        return question

    def _summary(self, session: SessionRecord, answered: int, average: float) -> str:
        default = fallbacks.summary(session.language, stage=session.interview_stage, answered=answered, average=average)
        raw = self._generate(
            summary_messages(session, answered, average),
            domain="coaching-feedback",
            language=session.language,
            max_tokens=400,
        )
        return extract_prose(raw, default) if raw else default

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def create_session(self, config: SessionConfig) -> SessionRecord:
        total = config.total_questions or self.cfg.DEFAULT_TOTAL_QUESTIONS
        if "language" not in config.model_fields_set:
            config = config.model_copy(update={"language": self.cfg.DEFAULT_LANGUAGE})
        session = self.store.create_session(config, total_questions=total, created_at=self._now())
        logger.info("Session created id=%s total_questions=%d", session.id, total)
        return session

    def get_session(self, session_id: str) -> SessionView:
        view = self.store.get_session_view(session_id)
        if view is None:
            raise SessionNotFound(session_id)
        return view

    def start_conversation(self, session_id: str) -> SessionView:
        """Introduce the session and ask question 1; repeat calls return the existing transcript."""

        with self._lock_for(session_id):
            session = self._require(session_id)
            if self.store.list_turns(session_id):
                return self.get_session(session_id)
            if session.status == "paused":
                raise SessionPaused(session_id)
            if session.phase not in ("not_started", "introducing"):
                raise InvalidSessionTransition(session_id, session.phase, "start")

            now = self._now()
            session = self.store.update_session(
                session_id,
                status="active",
                phase="introducing",
                started_at=session.started_at or now,
                last_activity=now,
            )
            intro = self._introduction(session)
            self.store.add_turn(
                session_id, role="coach", kind="introduction", question_number=0, content=intro, created_at=self._now()
            )
            self._emit("conversation_started", session_id, phase="introducing", total_questions=session.total_questions)
            self._ask(session, 1)
            self._advance(session_id, "awaiting_response", current_question=1, last_activity=self._now())
            return self.get_session(session_id)

    def process_response(
        self,
        session_id: str,
        text: str,
        question_number: Optional[int] = None,
        input_method: str = "text",
        language: Optional[str] = None,
    ) -> ResponseOutcome:
        """Store and evaluate an answer, then ask the next question or close the session."""

        if not text or not text.strip():
            raise ValueError("response text must not be empty")

        with self._lock_for(session_id):
            session = self._require(session_id)
            if session.status == "completed":
                raise SessionCompleted(session_id)
            if session.status == "paused":
                raise SessionPaused(session_id)
            if session.phase != "awaiting_response":
                raise InvalidSessionTransition(session_id, session.phase, "respond to")

            turns = self.store.list_turns(session_id)
            number = sum(1 for turn in turns if turn.role == "user") + 1
            if question_number is not None and question_number != number:
                logger.warning(
                    "Ignoring client question number session=%s given=%s derived=%d", session_id, question_number, number
                )
            question = self.store.get_question(session_id, number)
            if question is None:
                raise InvalidSessionTransition(session_id, session.phase, f"respond to question {number} of")

            lang = language or session.language
            last_turn_id = max((turn.id for turn in turns), default=0)
            try:
                return self._respond(session, question, number, text, input_method, lang)
            except Exception:
                logger.exception("Answer processing failed, rolling back session=%s question=%d", session_id, number)
                self.store.discard_answer(session_id, number, after_turn_id=last_turn_id)
                self._advance(session_id, "awaiting_response", current_question=number, last_activity=self._now())
                raise

    def _respond(
        self, session: SessionRecord, question: QuestionRecord, number: int, text: str, input_method: str, lang: str
    ) -> ResponseOutcome:
        # caller holds the session lock; any exception here is rolled back by the caller
        session_id = session.id
        session = self._advance(session_id, "evaluating", last_activity=self._now())
        self.store.add_turn(
            session_id,
            role="user",
            kind="response",
            question_number=number,
            content=text,
            created_at=self._now(),
            metadata={"input_method": input_method, "language": lang},
        )
        response = self.store.add_response(
            session_id,
            question.id,
            text=text,
            language=lang,
            input_method=input_method,
            word_count=len(text.split()),
            created_at=self._now(),
        )

        ctx = self._context(session, question.text, lang)
        with span("evaluate_response", session_id, question_number=number) as timing:
            evaluation = self.evaluator.evaluate(text, ctx)
            model_answer = generate_model_answer(text, ctx, self.gateway)
            feedback = generate_feedback(text, evaluation, model_answer, ctx, self.gateway)
        response = self.store.record_evaluation(
            response.id,
            star_scores=evaluation.analysis.model_dump(),
            overall_score=evaluation.overall_score,
            model_answer=model_answer.model_dump(),
            evaluated_by=evaluation.evaluated_by,
            evaluation_seconds=round(timing["ms"] / 1000.0, 3),
            evaluated_at=self._now(),
        )
        self.store.add_turn(
            session_id,
            role="coach",
            kind="feedback",
            question_number=number,
            content=render_feedback(feedback),
            created_at=self._now(),
            metadata={"overall_score": evaluation.overall_score, "evaluated_by": evaluation.evaluated_by},
        )
        self._emit(
            "feedback_ready",
            session_id,
            question_number=number,
            score=evaluation.overall_score,
            evaluated_by=evaluation.evaluated_by,
        )

        if number < session.total_questions:
            next_question = self._ask(session, number + 1)
            session = self._advance(
                session_id,
                "awaiting_response",
                current_question=number + 1,
                progress=progress_percentage(number, session.total_questions),
                last_activity=self._now(),
            )
            return ResponseOutcome(
                session=session,
                question_number=number,
                response=response,
                feedback=feedback,
                next_question=next_question,
            )

        view = self.get_session(session_id)
        average = session_average(r.overall_score for r in view.responses)
        summary = self._summary(session, number, average)
        self.store.add_turn(
            session_id, role="coach", kind="summary", question_number=number, content=summary, created_at=self._now()
        )
        now = self._now()
        session = self._advance(
            session_id,
            "completed",
            current_question=session.total_questions,
            progress=100.0,
            completed_at=now,
            last_activity=now,
        )
        self._emit("session_completed", session_id, count=number, score=average)
        return ResponseOutcome(
            session=session,
            question_number=number,
            response=response,
            feedback=feedback,
            summary=summary,
            completed=True,
        )

    def pause(self, session_id: str) -> SessionRecord:
        with self._status_lock:
            session = self._require(session_id)
            if session.status == "completed":
                raise SessionCompleted(session_id)
            if session.status == "paused":
                return session
            if session.phase not in PAUSABLE_PHASES:
                raise InvalidSessionTransition(session_id, session.phase, "pause")
            session = self.store.update_session(
                session_id, status="paused", phase="paused", resume_phase=session.phase, last_activity=self._now()
            )
        self._emit("session_paused", session_id, phase=session.resume_phase)
        return session

    def resume(self, session_id: str) -> SessionRecord:
        with self._status_lock:
            session = self._require(session_id)
            if session.status != "paused":
                raise InvalidSessionTransition(session_id, session.phase, "resume")
            phase = session.resume_phase or "awaiting_response"
            session = self.store.update_session(
                session_id, status="active", phase=phase, resume_phase=None, last_activity=self._now()
            )
        self._emit("session_resumed", session_id, phase=phase)
        return session

    def get_transcript(self, session_id: str) -> List[TurnRecord]:
        self._require(session_id)
        return self.store.list_turns(session_id)

    def get_progress(self, session_id: str) -> ProgressReport:
        view = self.get_session(session_id)
        session = view.session
        evaluated = [r for r in view.responses if r.evaluated_at is not None]
        spent = 0.0
        if session.started_at:
            end = session.completed_at or session.last_activity
            end_time = from_iso(end) if end else self.clock()
            spent = round(max((end_time - from_iso(session.started_at)).total_seconds(), 0.0) / 60.0, 1)
        return ProgressReport(
            session_id=session.id,
            status=session.status,
            phase=session.phase,
            current_question=session.current_question,
            total_questions=session.total_questions,
            answered=len(evaluated),
            average_score=session_average(r.overall_score for r in evaluated),
            progress=session.progress,
            time_spent_minutes=spent,
        )


__all__ = ["PAUSABLE_PHASES", "ProgressReport", "ResponseOutcome", "SessionOrchestrator"]
