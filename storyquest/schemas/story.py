"""
Pydantic schemas for the single-story guard and completion.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from storyquest.engines.progression.decisions import AccessDecision


class StoryAccessResponse(BaseModel):
    """Access decision for one story."""

    story_id: int
    week_id: int
    day_in_week: int
    decision: AccessDecision
    evaluated_at: datetime


class QuestionResponse(BaseModel):
    id: int
    question_type: str
    question_text: str
    hint: Optional[str] = None
    order_num: int


class StoryContentResponse(BaseModel):
    """Story text and discussion questions, only served when access is granted."""

    id: int
    title: str
    day_in_week: int
    week_id: int
    plot: Optional[str] = None
    full_text: Optional[str] = None
    therapeutic_goal: Optional[str] = None
    methodology: Optional[str] = None
    why_important: Optional[str] = None
    questions: List[QuestionResponse] = []
    decision: AccessDecision


class CompleteStoryRequest(BaseModel):
    """Body for marking a story as read."""

    questions_answered: List[int] = Field(default_factory=list)


class NextStoryAccess(BaseModel):
    story_id: int
    decision: AccessDecision


class CompleteStoryResponse(BaseModel):
    """Recorded completion and what it unlocks next."""

    story_id: int
    completed_at: datetime
    replayed: bool
    questions_answered: List[int] = []
    next_story: Optional[NextStoryAccess] = None
