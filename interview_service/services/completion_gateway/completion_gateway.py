"""
Completion Gateway Module

This module wraps the chat-completion provider behind three request shapes:

- interviewer: the next interviewer turn. The completion marker is stripped from
  the returned text and reported separately as is_complete.
- candidate: a plausible candidate answer to the latest interviewer question,
  used by self-play.
- feedback: a JSON-shaped assessment of the full transcript, returned raw for the
  structured-output extractor together with provider diagnostics.

Every call either returns a complete result or raises. Missing provider settings
raise ConfigurationError; any transport or provider failure raises ProviderError.
The gateway never retries.

Dependencies:
- openai: For the Azure OpenAI chat-completions client.
- pydantic: For the result models.
- loguru: For logging.
- interview_service.core.ai_client_manager: For the per-mode clients.
- interview_service.core.secure_prompt_manager: For prompt construction.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from openai import AsyncOpenAI
from pydantic import BaseModel
from loguru import logger
from interview_service.constants.regex_patterns import COMPLETION_MARKER, REGEX_PATTERNS
from interview_service.core.ai_client_manager import AIClientManager, get_ai_client_manager
from interview_service.core.secure_prompt_manager import SecurePromptManager, secure_prompt_manager, sanitize_text
from interview_service.errors.exceptions import ProviderError, ValidationError
from interview_service.schemas.interview import InterviewConfig, Message, MessageRole


class CompletionMode(str, Enum):
    INTERVIEWER = "interviewer"
    CANDIDATE = "candidate"
    FEEDBACK = "feedback"


# (max output tokens, temperature) per mode
GENERATION_PARAMETERS = {
    CompletionMode.INTERVIEWER: (1000, 0.7),
    CompletionMode.CANDIDATE: (500, 0.8),
    CompletionMode.FEEDBACK: (4000, 0.5),
}


class Completion(BaseModel):
    text: str
    finish_reason: Optional[str] = None
    refusal: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None


class InterviewerTurn(BaseModel):
    text: str
    is_complete: bool
    finish_reason: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None


class CandidateTurn(BaseModel):
    text: str
    finish_reason: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None


def strip_completion_marker(text: str) -> Tuple[str, bool]:
    """
    Remove every occurrence of the completion marker.

    Surrounding whitespace is trimmed whether or not the marker is present;
    the text itself is otherwise left as the model wrote it.

    Returns:
        Tuple of the cleaned text and whether the marker was present.
    """
    if not text:
        return "", False
    is_complete = COMPLETION_MARKER in text
    cleaned = REGEX_PATTERNS['completion_marker'].sub("", text) if is_complete else text
    return cleaned.strip(), is_complete


def _usage_dict(usage: Any) -> Optional[Dict[str, Any]]:
    if usage is None:
        return None
    if hasattr(usage, "model_dump"):
        return usage.model_dump()
    if isinstance(usage, dict):
        return usage
    return None


class CompletionGateway:
    """
    Stateless request/response wrapper around the language-model provider.

    A gateway can be given an explicit client and model (tests, scripts) or resolve
    dedicated per-mode clients from the AIClientManager on each call, which is where
    a missing configuration surfaces as ConfigurationError.
    """

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        client_manager: Optional[AIClientManager] = None,
        prompt_manager: SecurePromptManager = secure_prompt_manager,
    ):
        self._client = client
        self._model = model
        self._client_manager = client_manager
        self.prompt_manager = prompt_manager

    def _resolve(self, mode: CompletionMode) -> Tuple[AsyncOpenAI, str]:
        if self._client is not None:
            return self._client, self._model or "default"
        manager = self._client_manager or get_ai_client_manager()
        return manager.get_client(mode.value), manager.deployment_name

    async def submit(
        self,
        mode: CompletionMode,
        system_instruction: str,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float,
    ) -> Completion:
        """
        Send one chat-completion request.

        Raises:
            ConfigurationError: If provider settings are missing.
            ProviderError: If the request fails or the response has no choices.
        """
        client, model = self._resolve(mode)
        started = time.time()
        try:
            response = await client.chat.completions.create(
                model=model,
                messages=[{"role": "system", "content": system_instruction}, *messages],
                max_completion_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception as e:
            logger.error(f"{mode.value} completion failed after {time.time() - started:.3f}s: {e}")
            raise ProviderError(mode=mode.value) from e

        choices = getattr(response, "choices", None) or []
        if not choices:
            logger.error(f"{mode.value} completion returned no choices")
            raise ProviderError(mode=mode.value)

        choice = choices[0]
        message = getattr(choice, "message", None)
        completion = Completion(
            text=(getattr(message, "content", None) or "") if message is not None else "",
            finish_reason=getattr(choice, "finish_reason", None),
            refusal=getattr(message, "refusal", None) if message is not None else None,
            usage=_usage_dict(getattr(response, "usage", None)),
        )
        logger.debug(
            f"{mode.value} completion in {time.time() - started:.3f}s "
            f"(finish_reason={completion.finish_reason}, chars={len(completion.text)})"
        )
        return completion

    async def interviewer_turn(self, config: InterviewConfig, history: List[Message]) -> InterviewerTurn:
        """Generate the next interviewer message from the full transcript."""
        system_instruction = self.prompt_manager.get_interviewer_system_prompt(config)
        chat_messages = [
            {
                "role": message.role.value,
                "content": sanitize_text(message.content, max_length=20000, escape_html=False, allow_empty=True),
            }
            for message in history
        ]
        max_tokens, temperature = GENERATION_PARAMETERS[CompletionMode.INTERVIEWER]
        completion = await self.submit(
            CompletionMode.INTERVIEWER, system_instruction, chat_messages, max_tokens, temperature
        )
        text, is_complete = strip_completion_marker(completion.text)
        if is_complete:
            logger.info("Interviewer signalled the end of the interview")
        return InterviewerTurn(
            text=text,
            is_complete=is_complete,
            finish_reason=completion.finish_reason,
            usage=completion.usage,
        )

    async def candidate_turn(self, config: InterviewConfig, history: List[Message]) -> CandidateTurn:
        """
        Role-play the candidate's answer to the latest interviewer message.

        Raises:
            ValidationError: If the history has no interviewer message to answer.
            ProviderError: If the provider fails or returns an empty answer.
        """
        if not any(message.role == MessageRole.ASSISTANT for message in history):
            raise ValidationError("No interviewer question to respond to")

        prompts = self.prompt_manager.get_candidate_prompts(config, history)
        max_tokens, temperature = GENERATION_PARAMETERS[CompletionMode.CANDIDATE]
        completion = await self.submit(
            CompletionMode.CANDIDATE,
            prompts["system"],
            [{"role": "user", "content": prompts["user"]}],
            max_tokens,
            temperature,
        )
        text = completion.text.strip()
        if not text:
            logger.error(f"Empty candidate response (finish_reason={completion.finish_reason})")
            raise ProviderError("Failed to generate demo response", mode=CompletionMode.CANDIDATE.value)
        return CandidateTurn(
            text=text,
            finish_reason=completion.finish_reason,
            usage=completion.usage,
        )

    async def feedback(self, config: InterviewConfig, history: List[Message]) -> Completion:
        """
        Request a JSON assessment of the transcript. The text is returned unparsed.

        Raises:
            ValidationError: If the history is empty.
        """
        if not history:
            raise ValidationError("No interview messages to analyze")

        prompts = self.prompt_manager.get_feedback_prompts(config, history)
        max_tokens, temperature = GENERATION_PARAMETERS[CompletionMode.FEEDBACK]
        logger.info(f"Feedback request - messages count: {len(history)}")
        completion = await self.submit(
            CompletionMode.FEEDBACK,
            prompts["system"],
            [{"role": "user", "content": prompts["user"]}],
            max_tokens,
            temperature,
        )
        logger.info(
            f"Feedback response details: finish_reason={completion.finish_reason}, "
            f"content_length={len(completion.text)}, has_refusal={bool(completion.refusal)}, "
            f"usage={completion.usage}"
        )
        return completion
