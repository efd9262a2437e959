"""Interview Models Module

This module defines SQLAlchemy models for the interview transcript store: the
interview session, its ordered messages, and the feedback records generated after
the interview ends.

Dependencies:
- sqlalchemy: For ORM functionality and database modeling.
- uuid: For UUID generation for primary keys.
- datetime: For timestamp handling.
- typing: For type annotations and optional fields.
"""

import uuid
from typing import List, Optional
from sqlalchemy import ForeignKey, String, Text, DateTime, Integer, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from datetime import datetime

class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass

class InterviewSession(Base):
    """One interview attempt owned by an authenticated user.

    Attributes:
        id (str): Primary key, UUID string
        user_id (str): Identifier of the owning user
        role_type (str): Interview role type
        job_description (str, optional): Free-text job description
        status (str): "active" or "completed"
        started_at (datetime): When the session was created
        ended_at (datetime, optional): Set if and only if status is "completed"
        messages (List[InterviewMessage]): Transcript, oldest first
        feedback (List[InterviewFeedbackRecord]): Generated feedback, oldest first
    """
    __tablename__ = "interview_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    role_type: Mapped[str] = mapped_column(String(50))
    job_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="active")
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())
    messages: Mapped[List["InterviewMessage"]] = relationship(
        "InterviewMessage",
        back_populates="session",
        cascade="all",
        order_by="InterviewMessage.id",
    )
    feedback: Mapped[List["InterviewFeedbackRecord"]] = relationship(
        "InterviewFeedbackRecord",
        back_populates="session",
        cascade="all",
        order_by="InterviewFeedbackRecord.id",
    )

    def __repr__(self):
        return f"InterviewSession(id={self.id}, role_type={self.role_type}, status={self.status})"

class InterviewMessage(Base):
    """A single transcript turn. Rows are insert-only.

    The autoincrement id breaks timestamp ties so the stored order always matches
    the order in which messages were appended.
    """
    __tablename__ = "interview_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message_id: Mapped[str] = mapped_column(String(36), default=lambda: str(uuid.uuid4()))
    session_id: Mapped[str] = mapped_column(ForeignKey("interview_sessions.id"), index=True)
    role: Mapped[str] = mapped_column(String(20))
    content: Mapped[str] = mapped_column(Text)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())

    session: Mapped["InterviewSession"] = relationship("InterviewSession", back_populates="messages")

    def __repr__(self):
        return f"InterviewMessage(id={self.id}, role={self.role})"

class InterviewFeedbackRecord(Base):
    """Feedback generated for a completed session.

    List-valued fields are stored as serialized JSON text and decoded on read.
    Each generation is a new row; readers use the most recent one.
    """
    __tablename__ = "interview_feedback"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(ForeignKey("interview_sessions.id"), index=True)
    overall_score: Mapped[int] = mapped_column(Integer)
    strengths: Mapped[str] = mapped_column(Text)
    areas_to_improve: Mapped[str] = mapped_column(Text)
    question_feedback: Mapped[str] = mapped_column(Text)
    summary: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())

    session: Mapped["InterviewSession"] = relationship("InterviewSession", back_populates="feedback")

    def __repr__(self):
        return f"InterviewFeedbackRecord(id={self.id}, session_id={self.session_id}, score={self.overall_score})"
