"""
FastAPI dependency providers.

Routes receive their collaborators through these functions so tests can swap any
of them with app.dependency_overrides.
"""

from fastapi import Depends
from interview_service.database import AsyncSessionLocal
from interview_service.services.completion_gateway.completion_gateway import CompletionGateway
from interview_service.services.feedback.feedback_service import FeedbackService
from interview_service.services.interview_session.self_play_registry import SelfPlayRegistry, self_play_registry
from interview_service.services.interview_session.session_locks import SessionLocks, session_locks
from interview_service.services.transcript_store.transcript_store import TranscriptStore

_gateway = CompletionGateway()
_store = TranscriptStore(AsyncSessionLocal)


def get_completion_gateway() -> CompletionGateway:
    return _gateway


def get_transcript_store() -> TranscriptStore:
    return _store


def get_feedback_service(
    gateway: CompletionGateway = Depends(get_completion_gateway),
    store: TranscriptStore = Depends(get_transcript_store),
) -> FeedbackService:
    return FeedbackService(gateway, store)


def get_self_play_registry() -> SelfPlayRegistry:
    return self_play_registry


def get_session_locks() -> SessionLocks:
    return session_locks
