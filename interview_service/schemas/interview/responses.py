"""
Description:
Response bodies returned by the interview routes.

Dependencies:
- pydantic: For data validation and settings management.

"""
from typing import List, Optional
from pydantic import BaseModel, Field
from interview_service.schemas.interview.session import SessionDetail, SessionSummary


class StartSessionResponse(BaseModel):
    sessionId: str


class ChatResponse(BaseModel):
    message: str = Field(default="", description="Interviewer message with the completion marker removed")
    isComplete: bool = Field(default=False, description="True once the interviewer has closed the interview")
    sessionId: Optional[str] = Field(default=None, description="Persisted session id, when there is one")
    rejected: bool = Field(default=False, description="True if the turn was refused")
    detail: Optional[str] = Field(default=None, description="Reason the turn was refused")


class DemoResponse(BaseModel):
    response: str


class SessionListResponse(BaseModel):
    sessions: List[SessionSummary]


class SessionSummaryResponse(BaseModel):
    session: SessionSummary


class SessionDetailResponse(BaseModel):
    session: SessionDetail


class SelfPlayStatusResponse(BaseModel):
    sessionId: str
    status: str
    running: bool
    turnsPlayed: int = 0
    isComplete: bool = False
    lastError: Optional[str] = None
