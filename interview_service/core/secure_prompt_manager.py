"""
Secure Prompt Manager Module

This module keeps the system instructions for the interviewer, candidate and feedback
completion modes separate from user-supplied data. User data (job descriptions and
transcript text) only ever enters a prompt through an explicit placeholder and is
sanitized on the way in.

The module contains:
- PromptTemplate: A dataclass for prompt templates with placeholders
- SecurePromptManager: Builds the system instruction and user prompt for each mode
- sanitize_text: Utility function for text sanitization
- render_transcript: Renders a message history as "Interviewer:/Candidate:" text

Dependencies:
- dataclasses: For template data structures
- typing: For type hints
- html: For HTML entity encoding
- loguru: For logging
"""

from typing import Dict, List, Optional
from dataclasses import dataclass
import html
from loguru import logger
from interview_service.constants.regex_patterns import COMPLETION_MARKER, REGEX_PATTERNS
from interview_service.constants.role_contexts import ROLE_LABELS, INTERVIEWER_CONTEXTS, CANDIDATE_PERSONAS
from interview_service.schemas.interview import InterviewConfig, Message, MessageRole

def sanitize_text(text: str, max_length: int = 1000, escape_html: bool = True, allow_empty: bool = False) -> str:
    """
    Sanitize text input before it is placed into a prompt.

    This function performs multiple sanitization steps:
    1. Optional HTML entity encoding
    2. Strips leading/trailing whitespace
    3. Removes null bytes and other control characters
    4. Configurable length limiting
    5. Normalizes unicode characters

    Args:
        text (str): The text to sanitize
        max_length (int): Maximum allowed length (default: 1000)
        escape_html (bool): Whether to HTML escape the text (default: True)
        allow_empty (bool): Whether an empty result is acceptable (default: False)

    Returns:
        str: The sanitized text

    Raises:
        ValueError: If text is None, or empty after sanitization when allow_empty is False
    """
    if text is None:
        raise ValueError("Text cannot be None")

    text = str(text)

    if escape_html:
        text = html.escape(text)

    text = text.strip()

    # Remove null bytes and other control characters (except newlines and tabs)
    text = REGEX_PATTERNS['control_chars'].sub('', text)

    if len(text) > max_length:
        text = text[:max_length]
        logger.warning(f"Text truncated to {max_length} characters for prompt safety")

    text = text.encode('utf-8', errors='ignore').decode('utf-8')

    if not text and not allow_empty:
        raise ValueError("Text cannot be empty after sanitization")

    return text

TRANSCRIPT_MAX_CHARS = 60000

def render_transcript(messages: List[Message], max_chars: Optional[int] = None) -> str:
    """
    Render messages as "Interviewer:/Candidate:" paragraphs.

    With max_chars, the oldest messages are dropped until the text fits. The
    latest message is always kept, since it is the one being answered or assessed.
    """
    lines = [
        f"{'Interviewer' if message.role == MessageRole.ASSISTANT else 'Candidate'}: {message.content}"
        for message in messages
    ]
    if max_chars is None:
        return "\n\n".join(lines)

    kept: List[str] = []
    size = 0
    for line in reversed(lines):
        cost = len(line) + (2 if kept else 0)
        if kept and size + cost > max_chars:
            break
        kept.append(line)
        size += cost
    if len(kept) < len(lines):
        logger.warning(
            f"Transcript cut to its last {len(kept)} of {len(lines)} messages "
            f"(starting at message {len(lines) - len(kept) + 1}) to fit {max_chars} characters"
        )
    return "\n\n".join(reversed(kept))


@dataclass
class PromptTemplate:
    """Prompt template with placeholders for safe data injection."""
    template: str
    placeholders: Dict[str, str]
    sanitization_config: Dict[str, Dict] = None  # Per-placeholder sanitization config

    def render(self, **kwargs) -> str:
        """
        Safely render the template with provided data.

        Args:
            **kwargs: Data to inject into placeholders

        Returns:
            str: Rendered prompt with sanitized data

        Raises:
            ValueError: If required placeholders are missing or data is invalid
        """
        missing_placeholders = set(self.placeholders.keys()) - set(kwargs.keys())
        if missing_placeholders:
            raise ValueError(f"Missing required placeholders: {missing_placeholders}")

        sanitized_data = {}
        for key, value in kwargs.items():
            if key in self.placeholders:
                config = self.sanitization_config.get(key, {}) if self.sanitization_config else {}
                sanitized_data[key] = sanitize_text(
                    "" if value is None else str(value),
                    max_length=config.get('max_length', 1000),
                    escape_html=config.get('escape_html', True),
                    allow_empty=config.get('allow_empty', False),
                )
            else:
                # Skip unknown keys to prevent injection
                logger.warning(f"Unknown placeholder key: {key}")
                continue

        try:
            return self.template.format(**sanitized_data)
        except KeyError as e:
            raise ValueError(f"Template rendering error: {e}") from e

INTERVIEWER_TEMPLATE = """You are an experienced interviewer conducting a job interview. {role_context}
{job_context}

Guidelines:
- Start with a brief introduction and a warm-up question
- Ask follow-up questions based on the candidate's responses
- Mix behavioral, situational, and role-specific questions
- Be professional but conversational
- Conduct 5-7 questions total
- Ask ONE question at a time, then wait for the response

IMPORTANT - Ending the interview:
- When you ask your FINAL question, just ask the question and wait for the response
- Do NOT say "this concludes the interview" or similar when asking a question
- Only AFTER the candidate has answered the final question, in your NEXT response, thank them and conclude
- Add "{marker}" ONLY in the response where you're thanking them and ending (not when asking questions)

Begin the interview with a friendly introduction."""

CANDIDATE_SYSTEM_PROMPT = """You are simulating a job candidate in a mock interview. Generate realistic, thoughtful responses as if you were the candidate being interviewed.

Guidelines:
- Give substantive answers (2-4 sentences typically)
- Include specific examples when appropriate
- Sound natural and conversational
- Vary your response style - some answers can be brief, others more detailed
- For technical questions, demonstrate competence but don't be perfect
- For behavioral questions, use the STAR method loosely

Respond ONLY with what the candidate would say. No quotation marks, no "Candidate:" prefix, just the response."""

CANDIDATE_TEMPLATE = """{persona}

Interview so far:
{transcript}

Generate the candidate's response to the interviewer's last message. Be natural and conversational."""

FEEDBACK_SYSTEM_PROMPT = "You are an expert interview coach analyzing a mock interview. Provide constructive feedback in JSON format."

FEEDBACK_TEMPLATE = """Analyze this {role_label} mock interview and provide feedback.

INTERVIEW TRANSCRIPT:
{transcript}

Respond with a JSON object containing:
- overallScore: number 1-10
- strengths: array of 3-5 specific strengths shown
- areasToImprove: array of 3-5 areas needing improvement
- questionFeedback: array with objects containing question, userAnswer (summary), feedback, betterAnswer, score (1-10)
- summary: 2-3 paragraph overall assessment

Output only valid JSON, starting with {{ and ending with }}"""

_TRANSCRIPT_LIMITS = {'max_length': TRANSCRIPT_MAX_CHARS, 'escape_html': False}
_CONTEXT_LIMITS = {'max_length': 2000, 'escape_html': False}

class SecurePromptManager:
    """
    Builds prompts for every completion mode from fixed templates.

    Role-specific content is looked up from constants keyed by the role type, so the
    only free text that reaches a template is the job description and the
    transcript, both sanitized through PromptTemplate.
    """

    def __init__(self):
        self._templates = self._initialize_templates()

    def _initialize_templates(self) -> Dict[str, PromptTemplate]:
        return {
            "interviewer": PromptTemplate(
                template=INTERVIEWER_TEMPLATE,
                placeholders={
                    "role_context": "Role-specific focus areas",
                    "job_context": "Optional job description block",
                    "marker": "Completion marker token",
                },
                sanitization_config={
                    "role_context": _CONTEXT_LIMITS,
                    "job_context": {'max_length': 6000, 'escape_html': False, 'allow_empty': True},
                    "marker": _CONTEXT_LIMITS,
                },
            ),
            "candidate": PromptTemplate(
                template=CANDIDATE_TEMPLATE,
                placeholders={
                    "persona": "Candidate persona for the role",
                    "transcript": "Interview transcript so far",
                },
                sanitization_config={
                    "persona": _CONTEXT_LIMITS,
                    "transcript": _TRANSCRIPT_LIMITS,
                },
            ),
            "feedback": PromptTemplate(
                template=FEEDBACK_TEMPLATE,
                placeholders={
                    "role_label": "Human readable role label",
                    "transcript": "Full interview transcript",
                },
                sanitization_config={
                    "role_label": _CONTEXT_LIMITS,
                    "transcript": _TRANSCRIPT_LIMITS,
                },
            ),
        }

    def get_interviewer_system_prompt(self, config: InterviewConfig) -> str:
        role_type = config.roleType.value
        job_context = ""
        if config.jobDescription and config.jobDescription.strip():
            job_context = f"The candidate is applying for a position with the following job description:\n{config.jobDescription}"
        return self._templates["interviewer"].render(
            role_context=INTERVIEWER_CONTEXTS.get(role_type, INTERVIEWER_CONTEXTS["general"]),
            job_context=job_context,
            marker=COMPLETION_MARKER,
        )

    def get_candidate_prompts(self, config: InterviewConfig, messages: List[Message]) -> Dict[str, str]:
        role_type = config.roleType.value
        user_prompt = self._templates["candidate"].render(
            persona=CANDIDATE_PERSONAS.get(role_type, CANDIDATE_PERSONAS["general"]),
            transcript=render_transcript(messages, max_chars=TRANSCRIPT_MAX_CHARS),
        )
        return {"system": CANDIDATE_SYSTEM_PROMPT, "user": user_prompt}

    def get_feedback_prompts(self, config: InterviewConfig, messages: List[Message]) -> Dict[str, str]:
        user_prompt = self._templates["feedback"].render(
            role_label=ROLE_LABELS.get(config.roleType.value, ROLE_LABELS["general"]),
            transcript=render_transcript(messages, max_chars=TRANSCRIPT_MAX_CHARS),
        )
        return {"system": FEEDBACK_SYSTEM_PROMPT, "user": user_prompt}

    def get_template(self, name: str) -> Optional[PromptTemplate]:
        return self._templates.get(name)

# Global instance for reuse across the application
secure_prompt_manager = SecurePromptManager()
