"""
Test doubles for the interview service tests.

The language-model provider is replaced by a scripted chat-completions client and
the HTTP tests use an in-memory transcript store, so no test touches the network.
"""

import asyncio
import itertools
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Dict, List, Optional

from interview_service.errors.exceptions import PersistenceError, SessionAlreadyCompleted, SessionNotFound
from interview_service.schemas.interview import (
    InterviewFeedback,
    Message,
    RoleType,
    SessionDetail,
    SessionStatus,
    SessionSummary,
)
from interview_service.services.completion_gateway.completion_gateway import CompletionGateway


def make_completion(content: Optional[str], refusal: Optional[str] = None, finish_reason: str = "stop"):
    """Build an object shaped like an openai ChatCompletion."""
    return SimpleNamespace(
        choices=[SimpleNamespace(
            message=SimpleNamespace(content=content, refusal=refusal),
            finish_reason=finish_reason,
        )],
        usage=None,
    )


class FakeCompletions:
    def __init__(self, responses, default: str, gate: Optional[asyncio.Event] = None):
        self.responses = list(responses)
        self.default = default
        self.gate = gate
        self.calls: List[Dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.gate is not None:
            # Held open until the test sets the gate
            await self.gate.wait()
        item = self.responses.pop(0) if self.responses else self.default
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, str) or item is None:
            return make_completion(item)
        return item


class FakeChatClient:
    """Stands in for AsyncAzureOpenAI. Responses are consumed in order."""

    def __init__(self, responses=(), default: str = "Could you tell me more about that?", gate: Optional[asyncio.Event] = None):
        self.chat = SimpleNamespace(completions=FakeCompletions(responses, default, gate))

    @property
    def calls(self) -> List[Dict]:
        return self.chat.completions.calls


def make_gateway(
    *responses, default: str = "Could you tell me more about that?", gate: Optional[asyncio.Event] = None
) -> CompletionGateway:
    return CompletionGateway(client=FakeChatClient(responses, default=default, gate=gate), model="test-deployment")


class InMemoryTranscriptStore:
    """Dictionary-backed TranscriptStore with the same contract."""

    def __init__(self):
        self.sessions: Dict[str, Dict] = {}
        self.messages: Dict[str, List[Message]] = {}
        self.feedback: Dict[str, List[InterviewFeedback]] = {}
        self.calls: List[str] = []
        self.fail_writes = False
        self._ids = itertools.count(1)

    def _check_writable(self):
        if self.fail_writes:
            raise PersistenceError("Transcript store is unavailable")

    def _owned(self, session_id: str, user_id: Optional[str]) -> Dict:
        record = self.sessions.get(session_id)
        if record is None or (user_id is not None and record["user_id"] != user_id):
            raise SessionNotFound(session_id)
        return record

    def _summary(self, session_id: str) -> SessionSummary:
        record = self.sessions[session_id]
        feedback = self.feedback.get(session_id)
        return SessionSummary(
            id=session_id,
            roleType=record["role_type"],
            jobDescription=record["job_description"],
            status=record["status"],
            startedAt=record["started_at"],
            endedAt=record["ended_at"],
            messageCount=len(self.messages[session_id]),
            overallScore=feedback[-1].overallScore if feedback else None,
        )

    async def create_session(self, user_id, role_type, job_description=None) -> str:
        self.calls.append("create_session")
        self._check_writable()
        session_id = f"session-{next(self._ids)}"
        self.sessions[session_id] = {
            "user_id": user_id,
            "role_type": RoleType(role_type),
            "job_description": job_description,
            "status": SessionStatus.ACTIVE,
            "started_at": datetime.now(timezone.utc),
            "ended_at": None,
        }
        self.messages[session_id] = []
        return session_id

    async def append_messages(self, session_id, messages):
        self.calls.append("append_messages")
        self._check_writable()
        if self._owned(session_id, None)["status"] == SessionStatus.COMPLETED:
            raise SessionAlreadyCompleted(session_id)
        self.messages[session_id].extend(messages)

    async def set_status(self, session_id, status, ended_at=None, user_id=None) -> SessionSummary:
        self.calls.append("set_status")
        self._check_writable()
        record = self._owned(session_id, user_id)
        if record["status"] == SessionStatus.COMPLETED:
            if status == SessionStatus.ACTIVE:
                raise SessionAlreadyCompleted(session_id)
        else:
            record["status"] = SessionStatus(status)
            if status == SessionStatus.COMPLETED:
                record["ended_at"] = ended_at or datetime.now(timezone.utc)
        return self._summary(session_id)

    async def get_session(self, session_id, user_id) -> SessionDetail:
        self.calls.append("get_session")
        self._owned(session_id, user_id)
        feedback = self.feedback.get(session_id)
        return SessionDetail(
            **self._summary(session_id).model_dump(),
            messages=list(self.messages[session_id]),
            feedback=feedback[-1] if feedback else None,
        )

    async def get_session_status(self, session_id, user_id) -> SessionStatus:
        self.calls.append("get_session_status")
        return self._owned(session_id, user_id)["status"]

    async def list_sessions(self, user_id) -> List[SessionSummary]:
        self.calls.append("list_sessions")
        owned = [sid for sid, record in self.sessions.items() if record["user_id"] == user_id]
        return [self._summary(sid) for sid in reversed(owned)]

    async def attach_feedback(self, session_id, feedback):
        self.calls.append("attach_feedback")
        self._check_writable()
        self.feedback.setdefault(session_id, []).append(feedback)
