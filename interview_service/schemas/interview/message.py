"""
Description:
Transcript message schema. A message is one turn of the conversation and is never
mutated after creation.

Dependencies:
- pydantic: For data validation and settings management.

"""
import uuid
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Convert to UTC. Naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class MessageRole(str, Enum):
    ASSISTANT = "assistant"  # interviewer
    USER = "user"  # candidate


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Message identifier")
    role: MessageRole = Field(..., description="assistant = interviewer, user = candidate")
    content: str = Field(..., max_length=20000, description="Message text")
    timestamp: datetime = Field(default_factory=utc_now, description="When the message was created")

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        # Stored without an offset, so every timestamp is kept in UTC
        return as_utc(value)

    @classmethod
    def interviewer(cls, content: str) -> "Message":
        return cls(role=MessageRole.ASSISTANT, content=content)

    @classmethod
    def candidate(cls, content: str, timestamp: datetime = None) -> "Message":
        if timestamp is None:
            return cls(role=MessageRole.USER, content=content)
        return cls(role=MessageRole.USER, content=content, timestamp=timestamp)
