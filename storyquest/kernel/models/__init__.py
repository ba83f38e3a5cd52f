"""
Kernel Data Models

SQLAlchemy models for users, the curriculum program and progress.
"""

from storyquest.kernel.models.base import Base, TimestampMixin, generate_uuid
from storyquest.kernel.models.user import User
from storyquest.kernel.models.curriculum import (
    ProgramBlock,
    ProgramMonth,
    ProgramWeek,
    ProgramStory,
    ProgramQuestion,
    QuestionType,
)
from storyquest.kernel.models.progress import UserStoryProgress
from storyquest.kernel.models.event_log import EventLog, EventType

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    # User
    "User",
    # Curriculum
    "ProgramBlock",
    "ProgramMonth",
    "ProgramWeek",
    "ProgramStory",
    "ProgramQuestion",
    "QuestionType",
    # Progress
    "UserStoryProgress",
    # Event Log
    "EventLog",
    "EventType",
]
