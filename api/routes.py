"""FastAPI routes for coaching session control."""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from api.schemas import CreateSessionReq, HealthResp, RespondReq, RespondResp, TranscriptResp
from llm_gateway.gateway import AiGateway, default_gateway
from services.errors import (
    InvalidSessionTransition,
    SessionCompleted,
    SessionError,
    SessionNotFound,
    SessionPaused,
)
from services.lifecycle import RecoveryResult, SessionLifecycleManager, SessionStatusReport
from services.notifier import LoggingNotifier
from services.orchestrator import ProgressReport, SessionOrchestrator
from storage.models import SessionConfig, SessionRecord, SessionView
from storage.repository import SqliteSessionStore


@dataclass
class Runtime:
    gateway: AiGateway
    orchestrator: SessionOrchestrator
    lifecycle: SessionLifecycleManager


_runtime: Optional[Runtime] = None
_runtime_guard = threading.Lock()


def build_runtime(gateway: Optional[AiGateway] = None, store: Optional[SqliteSessionStore] = None) -> Runtime:
    store = store or SqliteSessionStore()
    gateway = gateway or default_gateway()
    return Runtime(
        gateway=gateway,
        orchestrator=SessionOrchestrator(store, gateway, notifier=LoggingNotifier()),
        lifecycle=SessionLifecycleManager(store),
    )


def get_runtime() -> Runtime:
    global _runtime
    with _runtime_guard:
        if _runtime is None:
            _runtime = build_runtime()
        return _runtime


def _http_error(exc: SessionError) -> HTTPException:
    if isinstance(exc, SessionNotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (SessionPaused, SessionCompleted, InvalidSessionTransition)):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _transcript(view: SessionView) -> TranscriptResp:
    current = next((q for q in view.questions if q.sequence == view.session.current_question), None)
    question = None
    if current is not None:
        question = current.model_dump(exclude={"responses"})
    return TranscriptResp(session=view.session, turns=view.turns, current_question=question)


router = APIRouter(prefix="/api/coaching-sessions")
ai_router = APIRouter(prefix="/api/ai")


@router.post("", response_model=SessionRecord, status_code=201)
def create_session(payload: CreateSessionReq, runtime: Runtime = Depends(get_runtime)) -> SessionRecord:
    return runtime.orchestrator.create_session(SessionConfig(**payload.model_dump(exclude_unset=True)))


@router.get("/{session_id}", response_model=TranscriptResp)
def get_session(session_id: str, runtime: Runtime = Depends(get_runtime)) -> TranscriptResp:
    try:
        return _transcript(runtime.orchestrator.get_session(session_id))
    except SessionError as exc:
        raise _http_error(exc) from exc


@router.post("/{session_id}/start", response_model=TranscriptResp)
def start_session(session_id: str, runtime: Runtime = Depends(get_runtime)) -> TranscriptResp:
    try:
        return _transcript(runtime.orchestrator.start_conversation(session_id))
    except SessionError as exc:
        raise _http_error(exc) from exc


@router.post("/{session_id}/responses", response_model=RespondResp)
def respond(session_id: str, payload: RespondReq, runtime: Runtime = Depends(get_runtime)) -> RespondResp:
    try:
        outcome = runtime.orchestrator.process_response(
            session_id,
            payload.text,
            question_number=payload.question_number,
            input_method=payload.input_method,
            language=payload.language,
        )
    except SessionError as exc:
        raise _http_error(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return RespondResp(
        session=outcome.session,
        question_number=outcome.question_number,
        overall_score=outcome.feedback.overall_score,
        evaluated_by=outcome.response.evaluated_by or "heuristic",
        feedback=outcome.feedback,
        next_question=outcome.next_question,
        summary=outcome.summary,
        completed=outcome.completed,
    )


@router.post("/{session_id}/pause", response_model=SessionRecord)
def pause_session(session_id: str, runtime: Runtime = Depends(get_runtime)) -> SessionRecord:
    try:
        return runtime.orchestrator.pause(session_id)
    except SessionError as exc:
        raise _http_error(exc) from exc


@router.post("/{session_id}/resume", response_model=SessionRecord)
def resume_session(session_id: str, runtime: Runtime = Depends(get_runtime)) -> SessionRecord:
    try:
        return runtime.orchestrator.resume(session_id)
    except SessionError as exc:
        raise _http_error(exc) from exc


@router.get("/{session_id}/progress", response_model=ProgressReport)
def session_progress(session_id: str, runtime: Runtime = Depends(get_runtime)) -> ProgressReport:
    try:
        return runtime.orchestrator.get_progress(session_id)
    except SessionError as exc:
        raise _http_error(exc) from exc


@router.get("/{session_id}/status", response_model=SessionStatusReport)
def session_status(session_id: str, runtime: Runtime = Depends(get_runtime)) -> SessionStatusReport:
    try:
        view = runtime.orchestrator.get_session(session_id)
    except SessionError as exc:
        raise _http_error(exc) from exc
    return runtime.lifecycle.session_status(view.session)


@router.post("/{session_id}/extend", response_model=SessionRecord)
def extend_session(session_id: str, runtime: Runtime = Depends(get_runtime)) -> SessionRecord:
    try:
        return runtime.lifecycle.extend(session_id)
    except SessionError as exc:
        raise _http_error(exc) from exc


@router.post("/{session_id}/recover", response_model=RecoveryResult)
def recover_session(session_id: str, runtime: Runtime = Depends(get_runtime)) -> RecoveryResult:
    return runtime.lifecycle.recover(session_id)


@ai_router.get("/health", response_model=HealthResp)
def ai_health(runtime: Runtime = Depends(get_runtime)) -> HealthResp:
    return HealthResp(**runtime.gateway.health())


@ai_router.post("/reset", response_model=HealthResp)
def ai_reset(runtime: Runtime = Depends(get_runtime)) -> HealthResp:
    runtime.gateway.reset_circuit_breakers()
    return HealthResp(**runtime.gateway.health())


__all__: List[str] = ["Runtime", "ai_router", "build_runtime", "get_runtime", "router"]
