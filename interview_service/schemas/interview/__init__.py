from .interview_config import InterviewConfig, RoleType
from .message import Message, MessageRole
from .feedback import InterviewFeedback, QuestionFeedback
from .session import SessionStatus, SessionSummary, SessionDetail
from .requests import (
    StartSessionRequest,
    ChatRequest,
    DemoResponseRequest,
    FeedbackRequest,
    UpdateSessionRequest
)
from .responses import (
    StartSessionResponse,
    ChatResponse,
    DemoResponse,
    SessionListResponse,
    SessionSummaryResponse,
    SessionDetailResponse,
    SelfPlayStatusResponse
)

__all__ = [
    "InterviewConfig",
    "RoleType",
    "Message",
    "MessageRole",
    "InterviewFeedback",
    "QuestionFeedback",
    "SessionStatus",
    "SessionSummary",
    "SessionDetail",
    "StartSessionRequest",
    "ChatRequest",
    "DemoResponseRequest",
    "FeedbackRequest",
    "UpdateSessionRequest",
    "StartSessionResponse",
    "ChatResponse",
    "DemoResponse",
    "SessionListResponse",
    "SessionSummaryResponse",
    "SessionDetailResponse",
    "SelfPlayStatusResponse"
]
