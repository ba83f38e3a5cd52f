"""
Pydantic schemas for the curriculum browser.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from storyquest.engines.progression.decisions import AccessDecision, WeekRewardDecision
from storyquest.engines.progression.progress_summary import CurriculumProgress


class StoryOutline(BaseModel):
    id: int
    title: str
    day_in_week: int


class WeekOutline(BaseModel):
    id: int
    title: str
    order: int
    stories: List[StoryOutline]


class MonthOutline(BaseModel):
    id: int
    title: str
    order: int
    weeks: List[WeekOutline]


class BlockOutline(BaseModel):
    id: int
    title: str
    order: int
    months: List[MonthOutline]


class CurriculumOutlineResponse(BaseModel):
    """Whole tree, structure only."""

    blocks: List[BlockOutline]
    total_stories: int


class StoryMapItem(BaseModel):
    """One day of the week map."""

    story_id: int
    title: str
    day_in_week: int
    previous_story_id: Optional[int] = None
    decision: AccessDecision


class WeekRewardResponse(WeekRewardDecision):
    """Reward decision plus the cartoon it releases; the URL is withheld while locked."""

    cartoon_url: Optional[str] = None

    @classmethod
    def for_week(cls, decision: WeekRewardDecision, cartoon_url: Optional[str]) -> "WeekRewardResponse":
        return cls(
            state=decision.state,
            percent_complete=decision.percent_complete,
            cartoon_url=cartoon_url if decision.is_unlocked else None,
        )


class WeekMapResponse(BaseModel):
    """Day-by-day access map of a week plus its reward."""

    week_id: int
    title: str
    month_id: int
    block_id: int
    days: List[StoryMapItem]
    reward: WeekRewardResponse
    evaluated_at: datetime


class CurriculumProgressResponse(CurriculumProgress):
    """Progress bars for every month and week."""
