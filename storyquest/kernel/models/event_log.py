"""
Activity log table.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from storyquest.kernel.models.base import Base, generate_uuid


class EventType(str, Enum):
    STORY_COMPLETED = "story.completed"
    STORY_COMPLETION_REPLAYED = "story.completion_replayed"
    CURRICULUM_SEEDED = "curriculum.seeded"


class EventLog(Base):
    """One recorded fact. Insert-only."""

    __tablename__ = "event_logs"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    event_type: Mapped[str] = mapped_column(String(100), index=True)
    # "story", "week" or "curriculum"; ids stored as text
    entity_type: Mapped[str] = mapped_column(String(50))
    entity_id: Mapped[str] = mapped_column(String(64), index=True)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(index=True)  # None for system events
    payload: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), index=True)

    __table_args__ = (Index("ix_event_logs_entity", "entity_type", "entity_id"),)

    def __repr__(self) -> str:
        return f"<EventLog {self.event_type} {self.entity_type}:{self.entity_id}>"
