"""
Interview Session State Machine Module

This module owns the lifecycle of a single interview:

    uninitialized --start()--> active --(interviewer emits completion marker)--> completed

A machine holds the in-memory transcript and pushes every change to the transcript
store when the session is persisted (a user id and a session id are both known).
Store failures during an interview are logged and never interrupt the
conversation. Provider failures are never recorded: a failed turn leaves the
transcript exactly as it was and the error propagates to the caller.

Turns on one session are serialised by an asyncio.Lock, shared through the
SessionLocks registry when more than one machine can act on the same session.
A stored session is re-read from the store once the lock is held, so a machine
built from an older transcript still generates from every recorded exchange and
never writes to a session completed by someone else.

Dependencies:
- pydantic: For the TurnResult model.
- loguru: For logging lifecycle events.
- interview_service.services.completion_gateway: For interviewer turns.
- interview_service.services.transcript_store: For persistence side effects.
"""

import asyncio
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel
from loguru import logger
from interview_service.errors.exceptions import (
    PersistenceError,
    SessionAlreadyCompleted,
    SessionStateError,
    ValidationError,
)
from interview_service.schemas.interview import InterviewConfig, Message, MessageRole, SessionStatus
from interview_service.schemas.interview.message import as_utc, utc_now
from interview_service.services.completion_gateway.completion_gateway import CompletionGateway
from interview_service.services.transcript_store.transcript_store import TranscriptStore

ALREADY_COMPLETED = "Session already completed"


class MachineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    COMPLETED = "completed"


class TurnResult(BaseModel):
    """Outcome of start() or submit_turn(). A rejected turn carries no message."""
    message: Optional[Message] = None
    is_complete: bool = False
    accepted: bool = True
    detail: Optional[str] = None

    @classmethod
    def rejected(cls, detail: str) -> "TurnResult":
        return cls(is_complete=True, accepted=False, detail=detail)


class InterviewSessionMachine:
    """
    Drives one interview session.

    Attributes:
        gateway: CompletionGateway used for interviewer turns.
        store: TranscriptStore for persistence, or None for purely in-memory sessions.
        config: InterviewConfig the session was started with.
        user_id: Owning user, None for anonymous sessions.
        session_id: Persisted session id, None until created.
    """

    def __init__(
        self,
        gateway: CompletionGateway,
        store: Optional[TranscriptStore],
        config: InterviewConfig,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        lock: Optional[asyncio.Lock] = None,
    ):
        self.gateway = gateway
        self.store = store
        self.config = config
        self.user_id = user_id
        self.session_id = session_id
        self._lock = lock or asyncio.Lock()
        self._messages: List[Message] = []
        self._state = MachineState.UNINITIALIZED
        self._started_at: Optional[datetime] = None
        self._ended_at: Optional[datetime] = None

    @classmethod
    def restore(
        cls,
        gateway: CompletionGateway,
        store: Optional[TranscriptStore],
        config: InterviewConfig,
        messages: List[Message],
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        status: Optional[SessionStatus] = None,
        started_at: Optional[datetime] = None,
        ended_at: Optional[datetime] = None,
        lock: Optional[asyncio.Lock] = None,
    ) -> "InterviewSessionMachine":
        """
        Rebuild a machine from an existing transcript.

        A completed status wins over an empty history. Otherwise an empty history
        yields an uninitialized machine and a non-empty one an active machine.
        """
        machine = cls(gateway, store, config, user_id=user_id, session_id=session_id, lock=lock)
        machine._messages = list(messages)
        if status == SessionStatus.COMPLETED:
            machine._state = MachineState.COMPLETED
            machine._ended_at = ended_at or (messages[-1].timestamp if messages else utc_now())
        elif messages:
            machine._state = MachineState.ACTIVE
        if machine._state != MachineState.UNINITIALIZED:
            machine._started_at = started_at or (messages[0].timestamp if messages else machine._ended_at)
        return machine

    @property
    def state(self) -> MachineState:
        return self._state

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    @property
    def started_at(self) -> Optional[datetime]:
        return self._started_at

    @property
    def ended_at(self) -> Optional[datetime]:
        return self._ended_at

    @property
    def is_complete(self) -> bool:
        return self._state == MachineState.COMPLETED

    @property
    def is_persisted(self) -> bool:
        return self.store is not None and self.user_id is not None and self.session_id is not None

    async def start(self) -> TurnResult:
        """
        Open the interview: create the stored session if needed and obtain the
        interviewer's opening message.

        A stored session is re-read under the lock first, so an interview opened
        meanwhile by another request is never opened twice.

        Raises:
            SessionStateError: If the session was already started.
            ProviderError: If the opening message could not be generated.
        """
        async with self._lock:
            if self.is_persisted:
                await self._reload()
            if self._state == MachineState.COMPLETED:
                return TurnResult.rejected(ALREADY_COMPLETED)
            if self._state != MachineState.UNINITIALIZED:
                raise SessionStateError("Interview already started")

            if self.store is not None and self.user_id is not None and self.session_id is None:
                try:
                    self.session_id = await self.store.create_session(
                        self.user_id, self.config.roleType, self.config.jobDescription
                    )
                except PersistenceError as e:
                    logger.warning(f"Continuing without a stored transcript: {e.detail}")

            turn = await self.gateway.interviewer_turn(self.config, [])
            opening = Message.interviewer(turn.text)
            if not await self._persist([opening]):
                return TurnResult.rejected(ALREADY_COMPLETED)
            self._messages.append(opening)
            self._state = MachineState.ACTIVE
            self._started_at = opening.timestamp
            logger.info(f"Interview started (session={self.session_id}, role={self.config.roleType.value})")

            if turn.is_complete:
                await self._complete()
            return TurnResult(message=opening, is_complete=turn.is_complete)

    async def submit_turn(self, content: str, timestamp: Optional[datetime] = None) -> TurnResult:
        """
        Submit the candidate's answer and obtain the interviewer's reply.

        The candidate message and the reply are recorded together or not at all. For
        a stored session the transcript and status are re-read under the lock, so the
        reply is generated from every exchange recorded so far and a session completed
        by another request rejects the turn.

        Raises:
            SessionStateError: If the interview has not been started.
            ValidationError: If the content is blank.
            ProviderError: If the reply could not be generated.
        """
        async with self._lock:
            if self._state != MachineState.COMPLETED and self.is_persisted:
                await self._reload()
            if self._state == MachineState.COMPLETED:
                logger.info(f"Rejected turn on completed session {self.session_id}")
                return TurnResult.rejected(ALREADY_COMPLETED)
            if self._state == MachineState.UNINITIALIZED:
                raise SessionStateError("Interview has not started")
            if content is None or not content.strip():
                raise ValidationError("Message content cannot be empty")

            candidate = Message(
                role=MessageRole.USER,
                content=content,
                timestamp=self._next_timestamp(timestamp),
            )
            turn = await self.gateway.interviewer_turn(self.config, [*self._messages, candidate])
            reply = Message(
                role=MessageRole.ASSISTANT,
                content=turn.text,
                timestamp=max(utc_now(), candidate.timestamp),
            )
            if not await self._persist([candidate, reply]):
                return TurnResult.rejected(ALREADY_COMPLETED)
            self._messages.extend([candidate, reply])
            logger.info(f"Turn {len(self._messages) // 2} generated (session={self.session_id}, complete={turn.is_complete})")

            if turn.is_complete:
                await self._complete()
            return TurnResult(message=reply, is_complete=turn.is_complete)

    async def refresh(self) -> None:
        """Bring a stored session's transcript and status up to date."""
        async with self._lock:
            if self._state != MachineState.COMPLETED and self.is_persisted:
                await self._reload()

    async def _reload(self) -> None:
        # Another machine may have advanced this session since this one was built
        try:
            stored = await self.store.get_session(self.session_id, self.user_id)
        except PersistenceError as e:
            logger.warning(f"Could not reload session {self.session_id}, using the local transcript: {e.detail}")
            return
        # A shorter stored transcript means earlier writes failed; the local one is more complete
        if len(stored.messages) >= len(self._messages):
            self._messages = list(stored.messages)
        if stored.status == SessionStatus.COMPLETED:
            self._state = MachineState.COMPLETED
            self._ended_at = self._ended_at or stored.endedAt or utc_now()
        elif self._messages and self._state == MachineState.UNINITIALIZED:
            self._state = MachineState.ACTIVE
        if self._started_at is None and self._state != MachineState.UNINITIALIZED:
            self._started_at = stored.startedAt

    def _next_timestamp(self, requested: Optional[datetime]) -> datetime:
        # Stored order must follow submission order
        last = self._messages[-1].timestamp if self._messages else None
        value = as_utc(requested) if requested is not None else utc_now()
        if last is not None and value < last:
            return last
        return value

    async def _persist(self, messages: List[Message]) -> bool:
        """Record messages. Returns False only when the store has closed the session."""
        if not self.is_persisted:
            return True
        try:
            await self.store.append_messages(self.session_id, messages)
        except SessionAlreadyCompleted:
            logger.warning(f"Session {self.session_id} was completed elsewhere, discarding {len(messages)} message(s)")
            self._state = MachineState.COMPLETED
            self._ended_at = self._ended_at or utc_now()
            return False
        except PersistenceError as e:
            logger.warning(f"Could not save {len(messages)} message(s) for session {self.session_id}: {e.detail}")
        return True

    async def _complete(self) -> None:
        self._state = MachineState.COMPLETED
        self._ended_at = utc_now()
        logger.info(f"Interview completed (session={self.session_id}, messages={len(self._messages)})")
        if not self.is_persisted:
            return
        try:
            await self.store.set_status(
                self.session_id, SessionStatus.COMPLETED, ended_at=self._ended_at, user_id=self.user_id
            )
        except PersistenceError as e:
            logger.warning(f"Could not mark session {self.session_id} completed: {e.detail}")
