"""
Description:
Interview session schemas returned by the transcript store.

Dependencies:
- pydantic: For data validation and settings management.
- interview_service.schemas.interview: For role type, message and feedback models.

"""
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field
from interview_service.schemas.interview.interview_config import InterviewConfig, RoleType
from interview_service.schemas.interview.message import Message
from interview_service.schemas.interview.feedback import InterviewFeedback


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class SessionSummary(BaseModel):
    id: str
    roleType: RoleType
    jobDescription: Optional[str] = None
    status: SessionStatus
    startedAt: datetime
    endedAt: Optional[datetime] = None
    messageCount: int = 0
    overallScore: Optional[int] = None

    def to_config(self) -> InterviewConfig:
        return InterviewConfig(roleType=self.roleType, jobDescription=self.jobDescription)


class SessionDetail(SessionSummary):
    messages: List[Message] = Field(default_factory=list)
    feedback: Optional[InterviewFeedback] = None
