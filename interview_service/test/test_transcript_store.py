"""
Test Transcript Store

Runs the SQLAlchemy transcript store against an in-memory SQLite database.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from interview_service.database import build_engine
from interview_service.errors.exceptions import PersistenceError, SessionAlreadyCompleted, SessionNotFound
from interview_service.models.interview_models import InterviewFeedbackRecord
from interview_service.schemas.interview import (
    InterviewFeedback,
    Message,
    MessageRole,
    QuestionFeedback,
    RoleType,
    SessionStatus,
)
from interview_service.services.transcript_store.transcript_store import TranscriptStore


class TestSessions:

    @pytest.mark.asyncio
    async def test_create_and_get(self, sqlite_store):
        session_id = await sqlite_store.create_session("user-1", RoleType.SOFTWARE_ENGINEER, "Python backend role")

        session = await sqlite_store.get_session(session_id, "user-1")

        assert session.id == session_id
        assert session.roleType == RoleType.SOFTWARE_ENGINEER
        assert session.jobDescription == "Python backend role"
        assert session.status == SessionStatus.ACTIVE
        assert session.endedAt is None
        assert session.startedAt.tzinfo is not None
        assert session.messages == []
        assert session.feedback is None
        assert session.to_config().roleType == RoleType.SOFTWARE_ENGINEER

    @pytest.mark.asyncio
    async def test_foreign_and_missing_sessions_look_the_same(self, sqlite_store):
        session_id = await sqlite_store.create_session("user-1", RoleType.GENERAL)

        with pytest.raises(SessionNotFound) as foreign:
            await sqlite_store.get_session(session_id, "user-2")
        with pytest.raises(SessionNotFound) as missing:
            await sqlite_store.get_session("does-not-exist", "user-1")

        assert foreign.value.detail == missing.value.detail
        assert foreign.value.status_code == 404
        with pytest.raises(SessionNotFound):
            await sqlite_store.get_session_status(session_id, "user-2")

    @pytest.mark.asyncio
    async def test_list_sessions(self, sqlite_store):
        first = await sqlite_store.create_session("user-1", RoleType.GENERAL)
        second = await sqlite_store.create_session("user-1", RoleType.DATA_ANALYST)
        await sqlite_store.create_session("user-2", RoleType.GENERAL)
        await sqlite_store.append_messages(second, [Message.interviewer("Hello."), Message.candidate("Hi.")])
        await sqlite_store.set_status(second, SessionStatus.COMPLETED)
        await sqlite_store.attach_feedback(second, InterviewFeedback(overallScore=8))

        sessions = await sqlite_store.list_sessions("user-1")

        assert [s.id for s in sessions] == [second, first]
        assert sessions[0].messageCount == 2
        assert sessions[0].overallScore == 8
        assert sessions[1].messageCount == 0
        assert sessions[1].overallScore is None


class TestMessages:

    @pytest.mark.asyncio
    async def test_messages_come_back_in_order(self, sqlite_store):
        session_id = await sqlite_store.create_session("user-1", RoleType.GENERAL)
        now = datetime.now(timezone.utc)
        same_instant = [
            Message.interviewer("Question one?").model_copy(update={"timestamp": now}),
            Message.candidate("Answer one.", timestamp=now),
        ]
        later = [
            Message.interviewer("Question two?").model_copy(update={"timestamp": now + timedelta(seconds=1)}),
        ]

        await sqlite_store.append_messages(session_id, same_instant)
        await sqlite_store.append_messages(session_id, later)
        session = await sqlite_store.get_session(session_id, "user-1")

        assert [m.content for m in session.messages] == ["Question one?", "Answer one.", "Question two?"]
        assert [m.id for m in session.messages] == [m.id for m in same_instant + later]
        timestamps = [m.timestamp for m in session.messages]
        assert timestamps == sorted(timestamps)

    @pytest.mark.asyncio
    async def test_offset_timestamps_are_stored_as_utc(self, sqlite_store):
        session_id = await sqlite_store.create_session("user-1", RoleType.GENERAL)
        # 01:28Z sent from +02:00, then 06:00Z sent from -05:00
        asked = datetime(2026, 10, 17, 3, 28, 55, tzinfo=timezone(timedelta(hours=2)))
        answered = datetime(2026, 10, 17, 1, 0, 0, tzinfo=timezone(timedelta(hours=-5)))

        await sqlite_store.append_messages(session_id, [
            Message(role=MessageRole.ASSISTANT, content="Question?", timestamp=asked),
            Message.candidate("Answer.", timestamp=answered),
        ])
        session = await sqlite_store.get_session(session_id, "user-1")

        assert [m.content for m in session.messages] == ["Question?", "Answer."]
        assert session.messages[0].timestamp == datetime(2026, 10, 17, 1, 28, 55, tzinfo=timezone.utc)
        assert session.messages[1].timestamp == answered
        assert all(m.timestamp.utcoffset() == timedelta(0) for m in session.messages)

    def test_naive_timestamps_are_taken_as_utc(self):
        message = Message.candidate("Answer.", timestamp=datetime(2026, 1, 1, 12, 0))
        assert message.timestamp == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_completed_transcript_is_closed(self, sqlite_store):
        session_id = await sqlite_store.create_session("user-1", RoleType.GENERAL)
        await sqlite_store.append_messages(session_id, [Message.interviewer("Goodbye.")])
        await sqlite_store.set_status(session_id, SessionStatus.COMPLETED)

        with pytest.raises(SessionAlreadyCompleted):
            await sqlite_store.append_messages(session_id, [Message.candidate("Wait!")])

        assert (await sqlite_store.get_session(session_id, "user-1")).messageCount == 1

    @pytest.mark.asyncio
    async def test_append_to_missing_session(self, sqlite_store):
        with pytest.raises(SessionNotFound):
            await sqlite_store.append_messages("does-not-exist", [Message.interviewer("Hello.")])

    @pytest.mark.asyncio
    async def test_empty_append_is_a_no_op(self, sqlite_store):
        session_id = await sqlite_store.create_session("user-1", RoleType.GENERAL)
        await sqlite_store.append_messages(session_id, [])
        assert (await sqlite_store.get_session(session_id, "user-1")).messageCount == 0


class TestStatus:

    @pytest.mark.asyncio
    async def test_completion_sets_ended_at(self, sqlite_store):
        session_id = await sqlite_store.create_session("user-1", RoleType.GENERAL)

        summary = await sqlite_store.set_status(session_id, SessionStatus.COMPLETED, user_id="user-1")

        assert summary.status == SessionStatus.COMPLETED
        assert summary.endedAt is not None

    @pytest.mark.asyncio
    async def test_completing_twice_keeps_the_first_end_time(self, sqlite_store):
        session_id = await sqlite_store.create_session("user-1", RoleType.GENERAL)
        ended = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        await sqlite_store.set_status(session_id, SessionStatus.COMPLETED, ended_at=ended)

        again = await sqlite_store.set_status(session_id, SessionStatus.COMPLETED)

        assert again.endedAt == ended

    @pytest.mark.asyncio
    async def test_reopening_is_refused(self, sqlite_store):
        session_id = await sqlite_store.create_session("user-1", RoleType.GENERAL)
        await sqlite_store.set_status(session_id, SessionStatus.COMPLETED)

        with pytest.raises(SessionAlreadyCompleted):
            await sqlite_store.set_status(session_id, SessionStatus.ACTIVE)

        assert await sqlite_store.get_session_status(session_id, "user-1") == SessionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_foreign_status_update(self, sqlite_store):
        session_id = await sqlite_store.create_session("user-1", RoleType.GENERAL)
        with pytest.raises(SessionNotFound):
            await sqlite_store.set_status(session_id, SessionStatus.COMPLETED, user_id="user-2")


class TestFeedback:

    @pytest.mark.asyncio
    async def test_latest_feedback_wins(self, sqlite_store):
        session_id = await sqlite_store.create_session("user-1", RoleType.GENERAL)
        await sqlite_store.attach_feedback(session_id, InterviewFeedback(overallScore=4, summary="First try."))
        await sqlite_store.attach_feedback(session_id, InterviewFeedback(
            overallScore=7,
            strengths=["Concise"],
            areasToImprove=["Give metrics"],
            questionFeedback=[QuestionFeedback(question="Why?", userAnswer="Because.", feedback="Expand.", score=6)],
            summary="Second try.",
        ))

        session = await sqlite_store.get_session(session_id, "user-1")

        assert session.feedback.overallScore == 7
        assert session.feedback.strengths == ["Concise"]
        assert session.feedback.questionFeedback[0].question == "Why?"
        assert session.overallScore == 7

    @pytest.mark.asyncio
    async def test_unreadable_feedback_counts_as_absent(self, sqlite_store):
        session_id = await sqlite_store.create_session("user-1", RoleType.GENERAL)
        async with sqlite_store.session_factory() as db:
            db.add(InterviewFeedbackRecord(
                session_id=session_id,
                overall_score=6,
                strengths="not json",
                areas_to_improve="[]",
                question_feedback="[]",
                summary="Broken row.",
            ))
            await db.commit()

        session = await sqlite_store.get_session(session_id, "user-1")

        assert session.feedback is None
        assert session.overallScore is None


class TestFailures:

    @pytest.mark.asyncio
    async def test_database_errors_become_persistence_errors(self):
        # No tables were created on this engine
        engine = build_engine("sqlite+aiosqlite:///:memory:")
        store = TranscriptStore(async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession))
        try:
            with pytest.raises(PersistenceError) as exc_info:
                await store.create_session("user-1", RoleType.GENERAL)
            assert exc_info.value.status_code == 500
            with pytest.raises(PersistenceError):
                await store.list_sessions("user-1")
        finally:
            await engine.dispose()
