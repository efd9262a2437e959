"""
Feedback Service Module

This module turns a finished interview transcript into structured feedback.

The workflow always ends in a renderable InterviewFeedback: a provider failure, a
refusal, an empty response or unparseable output produce degraded feedback instead
of an error. Only missing configuration and malformed input are reported as
errors. When the caller owns a completed, stored session the result is also
attached to it.

Dependencies:
- loguru: For logging diagnostics.
- interview_service.services.completion_gateway: For the feedback completion.
- interview_service.helper.extract_structured_feedback: For parsing and degradation.
- interview_service.services.transcript_store: For attaching feedback to sessions.
"""

from typing import List, Optional
from loguru import logger
from interview_service.errors.exceptions import PersistenceError, ProviderError, ValidationError
from interview_service.helper.extract_structured_feedback import build_degraded_feedback, extract_feedback
from interview_service.schemas.interview import InterviewConfig, InterviewFeedback, Message, SessionStatus
from interview_service.services.completion_gateway.completion_gateway import Completion, CompletionGateway
from interview_service.services.transcript_store.transcript_store import TranscriptStore


class FeedbackService:
    def __init__(self, gateway: CompletionGateway, store: Optional[TranscriptStore] = None):
        self.gateway = gateway
        self.store = store

    async def generate(
        self,
        config: InterviewConfig,
        history: List[Message],
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> InterviewFeedback:
        """
        Generate feedback for a transcript.

        Args:
            config: Interview configuration (selects the role label).
            history: Full transcript, oldest first.
            session_id: Stored session to attach the feedback to, if any.
            user_id: Caller, required for attaching.

        Raises:
            ValidationError: If the history is empty.
            SessionNotFound: If session_id is given but not owned by user_id.
            ConfigurationError: If provider settings are missing.
        """
        if not history:
            raise ValidationError("No interview messages to analyze")

        attach = False
        if session_id and user_id and self.store is not None:
            try:
                status = await self.store.get_session_status(session_id, user_id)
                attach = status == SessionStatus.COMPLETED
                if not attach:
                    logger.info(f"Session {session_id} is still active, feedback will not be stored")
            except PersistenceError as e:
                logger.warning(f"Could not check session {session_id} before feedback: {e.detail}")

        try:
            completion = await self.gateway.feedback(config, history)
            feedback = self._interpret(completion)
        except ProviderError as e:
            logger.warning(f"Feedback generation failed, returning degraded feedback: {e.detail}")
            feedback = build_degraded_feedback("provider_error")

        if attach:
            try:
                await self.store.attach_feedback(session_id, feedback)
            except PersistenceError as e:
                logger.warning(f"Feedback for session {session_id} was not saved: {e.detail}")
        return feedback

    def _interpret(self, completion: Completion) -> InterviewFeedback:
        if completion.refusal:
            logger.warning(f"Feedback request refused: {completion.refusal}")
            return build_degraded_feedback("refusal")

        if not completion.text.strip():
            logger.warning(f"Empty feedback content (finish_reason={completion.finish_reason})")
            return build_degraded_feedback("empty_response")

        feedback = extract_feedback(completion.text)
        if feedback is None:
            logger.warning(f"Unparseable feedback content: {completion.text[:200]!r}")
            return build_degraded_feedback("unparseable", raw_text=completion.text)
        return feedback
