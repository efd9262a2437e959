"""
Description:
Request bodies accepted by the interview routes.

Dependencies:
- pydantic: For data validation and settings management.

"""
from typing import List, Optional
from pydantic import BaseModel, Field
from interview_service.schemas.interview.interview_config import InterviewConfig, RoleType
from interview_service.schemas.interview.message import Message
from interview_service.schemas.interview.session import SessionStatus


class StartSessionRequest(BaseModel):
    roleType: RoleType
    jobDescription: Optional[str] = Field(None, max_length=5000)

    def to_config(self) -> InterviewConfig:
        return InterviewConfig(roleType=self.roleType, jobDescription=self.jobDescription)


class ChatRequest(BaseModel):
    messages: List[Message] = Field(default_factory=list, max_length=200)
    config: InterviewConfig = Field(default_factory=InterviewConfig)
    sessionId: Optional[str] = None


class DemoResponseRequest(BaseModel):
    messages: List[Message] = Field(..., max_length=200)
    config: InterviewConfig = Field(default_factory=InterviewConfig)


class FeedbackRequest(BaseModel):
    messages: List[Message] = Field(default_factory=list, max_length=200)
    config: InterviewConfig = Field(default_factory=InterviewConfig)
    sessionId: Optional[str] = None


class UpdateSessionRequest(BaseModel):
    status: SessionStatus
