"""
Interview Session Routes

Description:
This module defines the FastAPI routes for stored interview sessions: starting a
session, listing the caller's sessions, reading one session with its transcript and
feedback, and updating its status. Every route requires an authenticated user and
only ever sees that user's sessions.

Returns:
- StartSessionResponse, SessionListResponse, SessionDetailResponse or
  SessionSummaryResponse.

Dependencies:
- fastapi: For defining routes and dependency injection.
- interview_service.core.route_limiters: For rate limiting functionality.
- interview_service.core.dependencies: For the transcript store, self-play registry and session locks.
- interview_service.services.auth.current_user: For the authenticated user id.
- loguru: For logging.

"""
from fastapi import APIRouter, Depends, Request
from loguru import logger
from interview_service.core.route_limiters import limiter
from interview_service.core.dependencies import get_session_locks, get_transcript_store, get_self_play_registry
from interview_service.schemas.interview import (
    StartSessionRequest,
    StartSessionResponse,
    SessionListResponse,
    SessionDetailResponse,
    SessionSummaryResponse,
    SessionStatus,
    UpdateSessionRequest,
)
from interview_service.services.auth.current_user import require_user_id
from interview_service.services.interview_session.self_play_registry import SelfPlayRegistry
from interview_service.services.interview_session.session_locks import SessionLocks
from interview_service.services.transcript_store.transcript_store import TranscriptStore

router = APIRouter(
    prefix="/api",
    tags=["interview-sessions"],
    responses={404: {"description": "Not found"}}
)


@router.post("/interview", response_model=StartSessionResponse)
@limiter.limit("20/minute")
async def start_session(
    request: Request,
    body: StartSessionRequest,
    user_id: str = Depends(require_user_id),
    store: TranscriptStore = Depends(get_transcript_store),
):
    """
    Create a new active session. The opening interviewer message is produced by the
    first POST /api/chat with this session id and an empty history.
    """
    session_id = await store.create_session(user_id, body.roleType, body.jobDescription)
    logger.info(f"Session {session_id} started via API ({body.roleType.value})")
    return StartSessionResponse(sessionId=session_id)


@router.get("/interview", response_model=SessionListResponse)
@limiter.limit("60/minute")
async def list_sessions(
    request: Request,
    user_id: str = Depends(require_user_id),
    store: TranscriptStore = Depends(get_transcript_store),
):
    sessions = await store.list_sessions(user_id)
    return SessionListResponse(sessions=sessions)


@router.get("/interview/{session_id}", response_model=SessionDetailResponse)
@limiter.limit("60/minute")
async def get_session(
    request: Request,
    session_id: str,
    user_id: str = Depends(require_user_id),
    store: TranscriptStore = Depends(get_transcript_store),
):
    session = await store.get_session(session_id, user_id)
    return SessionDetailResponse(session=session)


@router.patch("/interview/{session_id}", response_model=SessionSummaryResponse)
@limiter.limit("20/minute")
async def update_session(
    request: Request,
    session_id: str,
    body: UpdateSessionRequest,
    user_id: str = Depends(require_user_id),
    store: TranscriptStore = Depends(get_transcript_store),
    registry: SelfPlayRegistry = Depends(get_self_play_registry),
    locks: SessionLocks = Depends(get_session_locks),
):
    """
    Update the session status. Completing a session stops any self-play running on
    it; a completed session cannot be re-opened (409).

    The update waits for a turn in flight on the session, so a turn never lands
    after the session was completed.
    """
    await store.get_session_status(session_id, user_id)
    if body.status == SessionStatus.COMPLETED:
        registry.stop(session_id)
    async with locks.for_session(session_id):
        session = await store.set_status(session_id, body.status, user_id=user_id)
    return SessionSummaryResponse(session=session)
