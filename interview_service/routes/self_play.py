"""
Self-Play Routes

Description:
This module defines the FastAPI routes that start, stop and inspect an automated
interview on a stored session, where the candidate side is generated as well.
Self-play runs in the background; progress is visible through GET
/api/interview/{id} as the transcript grows.

Dependencies:
- fastapi: For defining routes and dependency injection.
- interview_service.core.route_limiters: For rate limiting functionality.
- interview_service.core.dependencies: For the gateway, store, registry and locks.
- interview_service.services.interview_session: For the state machine and drivers.
- loguru: For logging.

"""
from typing import Optional
from fastapi import APIRouter, Depends, Request
from loguru import logger
from interview_service.core.route_limiters import limiter
from interview_service.core.dependencies import (
    get_completion_gateway,
    get_self_play_registry,
    get_session_locks,
    get_transcript_store,
)
from interview_service.errors.exceptions import SessionAlreadyCompleted
from interview_service.schemas.interview import SelfPlayStatusResponse, SessionStatus
from interview_service.services.auth.current_user import require_user_id
from interview_service.services.completion_gateway.completion_gateway import CompletionGateway
from interview_service.services.interview_session.self_play_driver import DriverSnapshot, DriverStatus
from interview_service.services.interview_session.self_play_registry import SelfPlayRegistry
from interview_service.services.interview_session.session_locks import SessionLocks
from interview_service.services.interview_session.session_state_machine import InterviewSessionMachine
from interview_service.services.transcript_store.transcript_store import TranscriptStore

router = APIRouter(
    prefix="/api",
    tags=["self-play"],
    responses={404: {"description": "Not found"}}
)


def _status_response(session_id: str, snapshot: Optional[DriverSnapshot]) -> SelfPlayStatusResponse:
    if snapshot is None:
        return SelfPlayStatusResponse(sessionId=session_id, status=DriverStatus.IDLE.value, running=False)
    return SelfPlayStatusResponse(
        sessionId=session_id,
        status=snapshot.status.value,
        running=snapshot.running,
        turnsPlayed=snapshot.turns_played,
        isComplete=snapshot.is_complete,
        lastError=snapshot.last_error,
    )


@router.post("/interview/{session_id}/self-play", response_model=SelfPlayStatusResponse)
@limiter.limit("10/minute")
async def start_self_play(
    request: Request,
    session_id: str,
    user_id: str = Depends(require_user_id),
    gateway: CompletionGateway = Depends(get_completion_gateway),
    store: TranscriptStore = Depends(get_transcript_store),
    registry: SelfPlayRegistry = Depends(get_self_play_registry),
    locks: SessionLocks = Depends(get_session_locks),
):
    """
    Start self-play on an active session. Starting it again while it runs is a no-op.
    """
    session = await store.get_session(session_id, user_id)
    if session.status == SessionStatus.COMPLETED:
        raise SessionAlreadyCompleted(session_id)

    driver = registry.get(session_id)
    if driver is None or not driver.running:
        machine = InterviewSessionMachine.restore(
            gateway,
            store,
            session.to_config(),
            session.messages,
            user_id=user_id,
            session_id=session_id,
            status=session.status,
            started_at=session.startedAt,
            lock=locks.for_session(session_id),
        )
        registry.start(session_id, machine, gateway)
        logger.info(f"Self-play requested for session {session_id} ({len(session.messages)} messages so far)")
    return _status_response(session_id, registry.snapshot(session_id))


@router.delete("/interview/{session_id}/self-play", response_model=SelfPlayStatusResponse)
@limiter.limit("30/minute")
async def stop_self_play(
    request: Request,
    session_id: str,
    user_id: str = Depends(require_user_id),
    store: TranscriptStore = Depends(get_transcript_store),
    registry: SelfPlayRegistry = Depends(get_self_play_registry),
):
    """Request a stop. The turn in flight, if any, is allowed to finish."""
    await store.get_session_status(session_id, user_id)
    return _status_response(session_id, registry.stop(session_id))


@router.get("/interview/{session_id}/self-play", response_model=SelfPlayStatusResponse)
@limiter.limit("60/minute")
async def self_play_status(
    request: Request,
    session_id: str,
    user_id: str = Depends(require_user_id),
    store: TranscriptStore = Depends(get_transcript_store),
    registry: SelfPlayRegistry = Depends(get_self_play_registry),
):
    await store.get_session_status(session_id, user_id)
    return _status_response(session_id, registry.snapshot(session_id))
