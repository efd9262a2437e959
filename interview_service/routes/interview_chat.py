"""
Interview Conversation Routes

Description:
This module defines the conversational FastAPI routes. They are stateless: the
client sends the transcript it holds with every request.

- POST /api/chat: an empty history opens the interview, otherwise the trailing
  candidate message is submitted as the next turn.
  Opening a stored session that already has messages is a conflict (409).
- POST /api/demo-response: generates a plausible candidate answer.
- POST /api/feedback: generates structured feedback for a transcript.

Authentication is optional. With an authenticated user the exchange is recorded in
the transcript store; anonymous interviews are never stored.

Dependencies:
- fastapi: For defining routes and dependency injection.
- interview_service.core.route_limiters: For rate limiting functionality.
- interview_service.core.dependencies: For the gateway, store, feedback service and locks.
- interview_service.services.interview_session.session_state_machine: For turn handling.
- loguru: For logging.

"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Request
from loguru import logger
from interview_service.core.route_limiters import limiter
from interview_service.core.dependencies import (
    get_completion_gateway,
    get_feedback_service,
    get_session_locks,
    get_transcript_store,
)
from interview_service.errors.exceptions import PersistenceError, ValidationError
from interview_service.schemas.interview import (
    ChatRequest,
    ChatResponse,
    DemoResponse,
    DemoResponseRequest,
    FeedbackRequest,
    InterviewConfig,
    InterviewFeedback,
    Message,
    MessageRole,
    SessionStatus,
)
from interview_service.services.auth.current_user import get_current_user_id
from interview_service.services.completion_gateway.completion_gateway import CompletionGateway
from interview_service.services.feedback.feedback_service import FeedbackService
from interview_service.services.interview_session.session_locks import SessionLocks
from interview_service.services.interview_session.session_state_machine import (
    ALREADY_COMPLETED,
    InterviewSessionMachine,
)
from interview_service.services.transcript_store.transcript_store import TranscriptStore

router = APIRouter(
    prefix="/api",
    tags=["interview-chat"],
    responses={404: {"description": "Not found"}}
)


async def _adopt_history(
    store: TranscriptStore, user_id: str, config: InterviewConfig, history: List[Message]
) -> Optional[str]:
    """Store a transcript that was started anonymously so later turns can be recorded."""
    try:
        session_id = await store.create_session(user_id, config.roleType, config.jobDescription)
        await store.append_messages(session_id, history)
        return session_id
    except PersistenceError as e:
        logger.warning(f"Continuing without a stored transcript: {e.detail}")
        return None


@router.post("/chat", response_model=ChatResponse)
@limiter.limit("30/minute")
async def chat(
    request: Request,
    body: ChatRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    gateway: CompletionGateway = Depends(get_completion_gateway),
    store: TranscriptStore = Depends(get_transcript_store),
    locks: SessionLocks = Depends(get_session_locks),
):
    """
    Open the interview or submit the candidate's latest message.

    Turns on a completed session are answered with rejected=true instead of an error.
    """
    history = body.messages
    session_id = body.sessionId if user_id else None
    status = None

    if session_id:
        try:
            status = await store.get_session_status(session_id, user_id)
        except PersistenceError as e:
            logger.warning(f"Could not read status of session {session_id}, continuing: {e.detail}")

    if status == SessionStatus.COMPLETED:
        return ChatResponse(isComplete=True, sessionId=session_id, rejected=True, detail=ALREADY_COMPLETED)

    if history and history[-1].role != MessageRole.USER:
        raise ValidationError("The last message must come from the candidate")
    if len(history) == 1:
        raise ValidationError("The interview must be opened by the interviewer")

    prior = history[:-1]
    if user_id and not session_id and prior:
        session_id = await _adopt_history(store, user_id, body.config, prior)

    machine = InterviewSessionMachine.restore(
        gateway,
        store,
        body.config,
        prior,
        user_id=user_id,
        session_id=session_id,
        status=status,
        lock=locks.for_session(session_id),
    )
    if not history:
        result = await machine.start()
    else:
        candidate = history[-1]
        result = await machine.submit_turn(candidate.content, candidate.timestamp)

    return ChatResponse(
        message=result.message.content if result.message else "",
        isComplete=result.is_complete,
        sessionId=machine.session_id if machine.is_persisted else None,
        rejected=not result.accepted,
        detail=result.detail,
    )


@router.post("/demo-response", response_model=DemoResponse)
@limiter.limit("30/minute")
async def demo_response(
    request: Request,
    body: DemoResponseRequest,
    gateway: CompletionGateway = Depends(get_completion_gateway),
):
    """Generate a candidate answer to the latest interviewer question."""
    turn = await gateway.candidate_turn(body.config, body.messages)
    return DemoResponse(response=turn.text)


@router.post("/feedback", response_model=InterviewFeedback)
@limiter.limit("10/minute")
async def feedback(
    request: Request,
    body: FeedbackRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: FeedbackService = Depends(get_feedback_service),
):
    """
    Generate feedback for the transcript. Always returns renderable feedback unless
    the provider is not configured or the input is malformed.
    """
    return await service.generate(body.config, body.messages, session_id=body.sessionId, user_id=user_id)
