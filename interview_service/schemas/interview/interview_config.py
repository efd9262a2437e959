"""
Description:
Interview configuration schema. The configuration travels with every request to
the completion gateway and can be rebuilt from a stored session.

Dependencies:
- pydantic: For data validation and settings management.

"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class RoleType(str, Enum):
    """Interview persona/domain that selects system-instruction content."""
    GENERAL = "general"
    SOFTWARE_ENGINEER = "software-engineer"
    PRODUCT_MANAGER = "product-manager"
    DATA_ANALYST = "data-analyst"
    DIRECTOR_PHARMACY_ANALYTICS = "director-pharmacy-analytics"


class InterviewConfig(BaseModel):
    roleType: RoleType = Field(default=RoleType.GENERAL, description="Interview role type")
    jobDescription: Optional[str] = Field(None, max_length=5000, description="Optional job description text")
