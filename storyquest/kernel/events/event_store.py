"""
Append-only activity log.

Completions and curriculum seeding are recorded in the same unit of work as
the change itself, so a rolled-back write leaves no event behind.
"""

import uuid
from typing import Any, Dict, List, Optional, Sequence

from pydantic_core import to_jsonable_python
from sqlalchemy import Select, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from storyquest.kernel.models.event_log import EventLog, EventType


class EventStore:
    """
    Writes and queries EventLog rows. Rows are never updated or deleted.

        await EventStore(session).log(
            EventType.STORY_COMPLETED, "story", story_id,
            user_id=user_id, payload={"completed_at": completed_at},
        )
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log(
        self,
        event_type: EventType,
        entity_type: str,
        entity_id: object,
        user_id: Optional[uuid.UUID] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> EventLog:
        """Stage an event on the session; it is written with the caller's commit."""
        event = EventLog(
            event_type=EventType(event_type).value,
            entity_type=entity_type,
            entity_id=str(entity_id),
            user_id=user_id,
            payload=to_jsonable_python(payload or {}),
        )
        self.session.add(event)
        return event

    async def get_entity_history(
        self,
        entity_type: str,
        entity_id: object,
        event_types: Optional[Sequence[EventType]] = None,
        limit: int = 100,
    ) -> List[EventLog]:
        """Events about one story, week or curriculum, newest first."""
        query = select(EventLog).where(
            EventLog.entity_type == entity_type,
            EventLog.entity_id == str(entity_id),
        )
        return await self._fetch(query, event_types, limit)

    async def _fetch(
        self,
        query: Select,
        event_types: Optional[Sequence[EventType]],
        limit: int,
    ) -> List[EventLog]:
        if event_types:
            query = query.where(EventLog.event_type.in_([t.value for t in event_types]))
        query = query.order_by(desc(EventLog.created_at)).limit(limit)
        return list((await self.session.execute(query)).scalars().all())
