"""
Progress model - one row per completed story per user.
"""

import uuid
from datetime import datetime
from typing import List

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from storyquest.kernel.models.base import Base, generate_uuid


class UserStoryProgress(Base):
    """
    Completion record of a story.

    The (user_id, story_id) uniqueness constraint is what makes completion
    idempotent: writers upsert against it.
    """

    __tablename__ = "user_story_progress"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    story_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("program_stories.id", ondelete="CASCADE"),
        nullable=False,
    )
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    questions_answered: Mapped[List[int]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    __table_args__ = (UniqueConstraint("user_id", "story_id", name="uq_user_story_progress_user_story"),)
