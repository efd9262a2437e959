"""
Transcript Store Module

This module persists interview sessions, their ordered messages and the feedback
generated for them. Every read is scoped to the requesting user: a session owned by
someone else is reported exactly like a missing one.

All SQLAlchemy failures are converted to PersistenceError so callers can decide
whether a failed write should block them (explicit user requests) or just be logged
(side effects of an active interview).

Dependencies:
- sqlalchemy: For async ORM sessions and queries.
- loguru: For logging operations.
- interview_service.models.interview_models: For the ORM models.
- interview_service.schemas.interview: For the returned session, message and feedback models.
- interview_service.errors.exceptions: For PersistenceError, SessionNotFound, SessionAlreadyCompleted.
"""

import json
from datetime import datetime, timezone
from typing import List, Optional
from loguru import logger
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from interview_service.models.interview_models import InterviewSession, InterviewMessage, InterviewFeedbackRecord
from interview_service.schemas.interview import (
    InterviewFeedback,
    Message,
    MessageRole,
    RoleType,
    SessionDetail,
    SessionStatus,
    SessionSummary,
)
from interview_service.schemas.interview.message import as_utc
from interview_service.errors.exceptions import PersistenceError, SessionNotFound, SessionAlreadyCompleted


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back
    return as_utc(value) if value is not None else None


def _decode_feedback(record: Optional[InterviewFeedbackRecord]) -> Optional[InterviewFeedback]:
    """Decode a stored feedback row. Undecodable list fields mean "no feedback"."""
    if record is None:
        return None
    try:
        return InterviewFeedback(
            overallScore=record.overall_score,
            strengths=json.loads(record.strengths),
            areasToImprove=json.loads(record.areas_to_improve),
            questionFeedback=json.loads(record.question_feedback),
            summary=record.summary,
        )
    except (json.JSONDecodeError, TypeError, PydanticValidationError) as e:
        logger.warning(f"Stored feedback {record.id} for session {record.session_id} is unreadable: {e}")
        return None


class TranscriptStore:
    """
    Durable record of interview sessions, messages and feedback.

    Attributes:
        session_factory: async_sessionmaker producing AsyncSession instances.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def create_session(self, user_id: str, role_type: RoleType, job_description: Optional[str] = None) -> str:
        """Create an active session owned by user_id and return its id."""
        try:
            async with self.session_factory() as db:
                record = InterviewSession(
                    user_id=user_id,
                    role_type=RoleType(role_type).value,
                    job_description=job_description,
                    status=SessionStatus.ACTIVE.value,
                    started_at=datetime.now(timezone.utc),
                )
                db.add(record)
                await db.commit()
                logger.info(f"Created interview session {record.id} ({record.role_type})")
                return record.id
        except SQLAlchemyError as e:
            logger.error(f"Failed to create interview session: {e}")
            raise PersistenceError("Failed to start interview session") from e

    async def append_messages(self, session_id: str, messages: List[Message]) -> None:
        """
        Append messages in the given order. Rows are never updated afterwards.

        Raises:
            SessionNotFound: If the session does not exist.
            SessionAlreadyCompleted: If the session is completed. Its transcript is closed.
            PersistenceError: If the write fails.
        """
        if not messages:
            return
        try:
            async with self.session_factory() as db:
                record = await self._load(db, session_id, None)
                if record.status == SessionStatus.COMPLETED.value:
                    logger.warning(f"Refused {len(messages)} message(s) for completed session {session_id}")
                    raise SessionAlreadyCompleted(session_id)
                db.add_all([
                    InterviewMessage(
                        message_id=message.id,
                        session_id=session_id,
                        role=message.role.value,
                        content=message.content,
                        timestamp=as_utc(message.timestamp),
                    )
                    for message in messages
                ])
                await db.commit()
                logger.debug(f"Appended {len(messages)} message(s) to session {session_id}")
        except SQLAlchemyError as e:
            logger.error(f"Failed to save messages for session {session_id}: {e}")
            raise PersistenceError("Failed to save messages") from e

    async def set_status(
        self,
        session_id: str,
        status: SessionStatus,
        ended_at: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ) -> SessionSummary:
        """
        Update a session's status, keeping ended_at set if and only if it is completed.

        Completing an already completed session keeps its original ended_at. A
        completed session cannot be re-opened.

        Raises:
            SessionNotFound: If the session does not exist or belongs to another user.
            SessionAlreadyCompleted: On an attempt to re-open a completed session.
            PersistenceError: If the write fails.
        """
        status = SessionStatus(status)
        try:
            async with self.session_factory() as db:
                record = await self._load(db, session_id, user_id)
                if record.status == SessionStatus.COMPLETED.value:
                    if status == SessionStatus.ACTIVE:
                        raise SessionAlreadyCompleted(session_id)
                else:
                    record.status = status.value
                    record.ended_at = (ended_at or datetime.now(timezone.utc)) if status == SessionStatus.COMPLETED else None
                    await db.commit()
                    logger.info(f"Session {session_id} marked {status.value}")
                return await self._summarize(db, record)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update session {session_id}: {e}")
            raise PersistenceError("Failed to update interview session") from e

    async def get_session(self, session_id: str, user_id: str) -> SessionDetail:
        """
        Fetch a session with its messages (in conversation order) and latest feedback.

        Raises:
            SessionNotFound: If the session does not exist or belongs to another user.
            PersistenceError: If the read fails.
        """
        try:
            async with self.session_factory() as db:
                record = await self._load(db, session_id, user_id)
                rows = (await db.execute(
                    select(InterviewMessage)
                    .where(InterviewMessage.session_id == session_id)
                    .order_by(InterviewMessage.timestamp, InterviewMessage.id)
                )).scalars().all()
                feedback = await self._latest_feedback(db, session_id)
                summary = await self._summarize(db, record, message_count=len(rows), feedback=feedback)
                return SessionDetail(
                    **summary.model_dump(),
                    messages=[
                        Message(
                            id=row.message_id,
                            role=MessageRole(row.role),
                            content=row.content,
                            timestamp=_as_utc(row.timestamp),
                        )
                        for row in rows
                    ],
                    feedback=feedback,
                )
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch session {session_id}: {e}")
            raise PersistenceError("Failed to fetch interview session") from e

    async def get_session_status(self, session_id: str, user_id: str) -> SessionStatus:
        """Return only the status of an owned session. Raises SessionNotFound otherwise."""
        try:
            async with self.session_factory() as db:
                record = await self._load(db, session_id, user_id)
                return SessionStatus(record.status)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read status of session {session_id}: {e}")
            raise PersistenceError("Failed to fetch interview session") from e

    async def list_sessions(self, user_id: str) -> List[SessionSummary]:
        """List the user's sessions, newest first, with message counts and latest score."""
        try:
            async with self.session_factory() as db:
                records = (await db.execute(
                    select(InterviewSession)
                    .where(InterviewSession.user_id == user_id)
                    .order_by(InterviewSession.created_at.desc(), InterviewSession.started_at.desc())
                )).scalars().all()
                return [await self._summarize(db, record) for record in records]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list sessions: {e}")
            raise PersistenceError("Failed to fetch interview sessions") from e

    async def attach_feedback(self, session_id: str, feedback: InterviewFeedback) -> None:
        """Store a new, immutable feedback record for the session."""
        try:
            async with self.session_factory() as db:
                db.add(InterviewFeedbackRecord(
                    session_id=session_id,
                    overall_score=feedback.overallScore,
                    strengths=json.dumps(feedback.strengths),
                    areas_to_improve=json.dumps(feedback.areasToImprove),
                    question_feedback=json.dumps([item.model_dump() for item in feedback.questionFeedback]),
                    summary=feedback.summary,
                ))
                await db.commit()
                logger.info(f"Attached feedback (score {feedback.overallScore}) to session {session_id}")
        except SQLAlchemyError as e:
            logger.error(f"Failed to save feedback for session {session_id}: {e}")
            raise PersistenceError("Failed to save feedback") from e

    async def _load(self, db: AsyncSession, session_id: str, user_id: Optional[str]) -> InterviewSession:
        record = await db.get(InterviewSession, session_id)
        if record is None or (user_id is not None and record.user_id != user_id):
            raise SessionNotFound(session_id)
        return record

    async def _latest_feedback(self, db: AsyncSession, session_id: str) -> Optional[InterviewFeedback]:
        row = (await db.execute(
            select(InterviewFeedbackRecord)
            .where(InterviewFeedbackRecord.session_id == session_id)
            .order_by(InterviewFeedbackRecord.id.desc())
            .limit(1)
        )).scalars().first()
        return _decode_feedback(row)

    async def _summarize(
        self,
        db: AsyncSession,
        record: InterviewSession,
        message_count: Optional[int] = None,
        feedback: Optional[InterviewFeedback] = None,
    ) -> SessionSummary:
        if message_count is None:
            message_count = (await db.execute(
                select(func.count(InterviewMessage.id)).where(InterviewMessage.session_id == record.id)
            )).scalar_one()
        if feedback is None:
            feedback = await self._latest_feedback(db, record.id)
        return SessionSummary(
            id=record.id,
            roleType=RoleType(record.role_type),
            jobDescription=record.job_description,
            status=SessionStatus(record.status),
            startedAt=_as_utc(record.started_at),
            endedAt=_as_utc(record.ended_at),
            messageCount=message_count,
            overallScore=feedback.overallScore if feedback else None,
        )
