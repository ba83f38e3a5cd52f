"""
Pydantic schemas for API request/response validation.
"""

from storyquest.schemas.common import HealthResponse
from storyquest.schemas.curriculum import (
    BlockOutline,
    CurriculumOutlineResponse,
    CurriculumProgressResponse,
    MonthOutline,
    StoryMapItem,
    StoryOutline,
    WeekMapResponse,
    WeekOutline,
    WeekRewardResponse,
)
from storyquest.schemas.story import (
    CompleteStoryRequest,
    CompleteStoryResponse,
    NextStoryAccess,
    QuestionResponse,
    StoryAccessResponse,
    StoryContentResponse,
)

__all__ = [
    "HealthResponse",
    "BlockOutline",
    "CurriculumOutlineResponse",
    "CurriculumProgressResponse",
    "MonthOutline",
    "StoryMapItem",
    "StoryOutline",
    "WeekMapResponse",
    "WeekOutline",
    "WeekRewardResponse",
    "CompleteStoryRequest",
    "CompleteStoryResponse",
    "NextStoryAccess",
    "QuestionResponse",
    "StoryAccessResponse",
    "StoryContentResponse",
]
