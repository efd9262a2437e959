"""
Description:
Recover structured interview feedback from free-form model output.

Models frequently wrap their JSON in prose or markdown code fences, truncate it, or
omit fields. Extraction tries three strategies in order (whole text, fenced block,
first "{" to last "}") and the first one that decodes to a JSON object wins. A
failed extraction is returned as a value, never raised. Fields missing from a
successful parse are back-filled with safe defaults rather than rejecting the
whole result.

When nothing can be recovered, callers build a degraded but renderable feedback
object with build_degraded_feedback.

Dependencies:
- json: For decoding candidate payloads.
- loguru: For logging.
- interview_service.schemas.interview.feedback: For the feedback models and defaults.
- interview_service.constants.regex_patterns: For the fenced-block pattern.

"""
import json
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from loguru import logger
from interview_service.constants.regex_patterns import REGEX_PATTERNS
from interview_service.schemas.interview.feedback import (
    InterviewFeedback,
    QuestionFeedback,
    DEFAULT_SCORE,
    DEFAULT_SUMMARY,
)

MAX_RAW_SUMMARY_CHARS = 4000

DEGRADED_REASONS = {
    "refusal": (
        "Feedback temporarily unavailable",
        "The AI was unable to generate feedback at this time. Please try again.",
    ),
    "empty_response": (
        "Feedback generation returned empty response",
        "The feedback service returned an empty response. This may be a temporary issue - please try again.",
    ),
    "unparseable": (
        "Feedback format was unexpected",
        "Feedback generation encountered an error. Please try again.",
    ),
    "provider_error": (
        "Feedback generation failed",
        "Feedback generation failed. Please try again.",
    ),
}


@dataclass(frozen=True)
class ParseAttempt:
    """Outcome of trying to decode a JSON object: success(payload) or failure(reason)."""
    payload: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None
    strategy: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.payload is not None

    @classmethod
    def success(cls, payload: Dict[str, Any], strategy: str) -> "ParseAttempt":
        return cls(payload=payload, strategy=strategy)

    @classmethod
    def failure(cls, reason: str, strategy: str = None) -> "ParseAttempt":
        return cls(reason=reason, strategy=strategy)


def _decode_object(candidate: Optional[str], strategy: str) -> ParseAttempt:
    if candidate is None:
        return ParseAttempt.failure("no candidate text", strategy)
    try:
        decoded = json.loads(candidate.strip())
    except (json.JSONDecodeError, ValueError) as e:
        return ParseAttempt.failure(f"invalid JSON: {e}", strategy)
    if not isinstance(decoded, dict):
        return ParseAttempt.failure(f"decoded {type(decoded).__name__}, expected object", strategy)
    return ParseAttempt.success(decoded, strategy)


def _whole_text(text: str) -> Optional[str]:
    return text.strip()


def _fenced_block(text: str) -> Optional[str]:
    match = REGEX_PATTERNS['fenced_block'].search(text)
    return match.group(1) if match else None


def _outer_braces(text: str) -> Optional[str]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


STRATEGIES: List[tuple] = [
    ("whole_text", _whole_text),
    ("fenced_block", _fenced_block),
    ("outer_braces", _outer_braces),
]


def parse_structured_object(text: Optional[str]) -> ParseAttempt:
    """
    Try each extraction strategy in order and return the first successful parse.

    Args:
        text: Raw model output.

    Returns:
        ParseAttempt: success with the decoded object, or failure with the reason
        from the last strategy attempted.
    """
    if text is None or not text.strip():
        return ParseAttempt.failure("empty text")

    attempt = ParseAttempt.failure("no structured object found")
    for name, locate in STRATEGIES:
        attempt = _decode_object(locate(text), name)
        if attempt.ok:
            logger.debug(f"Structured object recovered with strategy '{name}'")
            return attempt
    return ParseAttempt.failure(f"no structured object found ({attempt.reason})", attempt.strategy)


def _coerce_score(value: Any) -> int:
    # Missing, zero, non-numeric or non-finite scores fall back to the default
    if isinstance(value, bool) or value is None:
        return DEFAULT_SCORE
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return DEFAULT_SCORE
    if not isinstance(value, (int, float)) or (isinstance(value, float) and not math.isfinite(value)) or not value:
        return DEFAULT_SCORE
    return int(min(10, max(1, round(value))))


def _coerce_str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item.strip()]


def _coerce_str(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _coerce_question_feedback(value: Any) -> List[QuestionFeedback]:
    if not isinstance(value, list):
        return []
    entries = []
    for item in value:
        if not isinstance(item, dict):
            continue
        better_answer = item.get("betterAnswer")
        entries.append(QuestionFeedback(
            question=_coerce_str(item.get("question")),
            userAnswer=_coerce_str(item.get("userAnswer")),
            feedback=_coerce_str(item.get("feedback")),
            betterAnswer=better_answer if isinstance(better_answer, str) else None,
            score=_coerce_score(item.get("score")),
        ))
    return entries


def feedback_from_payload(payload: Dict[str, Any]) -> InterviewFeedback:
    summary = payload.get("summary")
    return InterviewFeedback(
        overallScore=_coerce_score(payload.get("overallScore")),
        strengths=_coerce_str_list(payload.get("strengths")),
        areasToImprove=_coerce_str_list(payload.get("areasToImprove")),
        questionFeedback=_coerce_question_feedback(payload.get("questionFeedback")),
        summary=summary if isinstance(summary, str) and summary.strip() else DEFAULT_SUMMARY,
    )


def extract_feedback(text: Optional[str]) -> Optional[InterviewFeedback]:
    """
    Extract an InterviewFeedback from model output.

    Returns None when no JSON object could be recovered. That is an expected
    outcome, callers fall back to build_degraded_feedback.
    """
    attempt = parse_structured_object(text)
    if not attempt.ok:
        logger.debug(f"Feedback extraction failed: {attempt.reason}")
        return None
    return feedback_from_payload(attempt.payload)


def build_degraded_feedback(reason: str, raw_text: Optional[str] = None) -> InterviewFeedback:
    """
    Build a well-formed, low-information feedback value.

    Args:
        reason: One of DEGRADED_REASONS.
        raw_text: Model output to echo as the summary, when any was obtained.
    """
    improvement, fallback_summary = DEGRADED_REASONS.get(reason, DEGRADED_REASONS["provider_error"])
    summary = fallback_summary
    if raw_text and raw_text.strip():
        summary = raw_text.strip()[:MAX_RAW_SUMMARY_CHARS]

    return InterviewFeedback(
        overallScore=DEFAULT_SCORE,
        strengths=["Interview completed"],
        areasToImprove=[improvement],
        questionFeedback=[],
        summary=summary,
    )
