"""
Description:
This module defines the schema for the structured interview feedback produced
after an interview is completed.

Dependencies:
- pydantic: For data validation and settings management.
- typing: For type annotations.

"""
from pydantic import BaseModel, Field
from typing import List, Optional

DEFAULT_SCORE = 5
DEFAULT_SUMMARY = "Feedback generated successfully."

class QuestionFeedback(BaseModel):
    question: str = Field(default="", description="Question asked by the interviewer")
    userAnswer: str = Field(default="", description="Summary of the candidate's answer")
    feedback: str = Field(default="", description="Feedback on the answer")
    betterAnswer: Optional[str] = Field(default=None, description="Example of an improved answer")
    score: int = Field(default=DEFAULT_SCORE, ge=1, le=10, description="Answer score between 1 and 10")

class InterviewFeedback(BaseModel):
    overallScore: int = Field(default=DEFAULT_SCORE, ge=1, le=10, description="Overall score between 1 and 10")
    strengths: List[str] = Field(default_factory=list, description="Strengths shown by the candidate")
    areasToImprove: List[str] = Field(default_factory=list, description="Areas needing improvement")
    questionFeedback: List[QuestionFeedback] = Field(default_factory=list, description="Per-question feedback")
    summary: str = Field(default=DEFAULT_SUMMARY, description="Overall assessment")
