"""
Ledger Store - reads and writes the persistent progress ledger.

Reads fail closed: a ledger that cannot be read raises LedgerUnavailableError,
never an empty ledger. Writes are `INSERT ... ON CONFLICT DO NOTHING` against the
(user_id, story_id) constraint and are retried, since re-sending the same
completion is harmless.
"""

import asyncio
import uuid
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storyquest.config import get_settings
from storyquest.engines.progression.errors import LedgerUnavailableError, PersistenceWriteError
from storyquest.engines.progression.ledger import ProgressEntry, ProgressLedger, ReplayPolicy
from storyquest.kernel.clock import SystemClock, as_utc
from storyquest.kernel.events.event_store import EventStore
from storyquest.kernel.models.base import generate_uuid
from storyquest.kernel.models.event_log import EventType
from storyquest.kernel.models.progress import UserStoryProgress
from storyquest.logging_config import get_logger

logger = get_logger(__name__)

_CONFLICT_KEYS = ["user_id", "story_id"]


class CompletionResult(BaseModel):
    """Outcome of recording a completion."""

    entry: ProgressEntry
    replayed: bool  # story had been completed before this write
    questions_answered: List[int] = []


def _insert_for(dialect_name: str):
    if dialect_name == "postgresql":
        return postgresql.insert
    if dialect_name == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"Completion upsert not supported on {dialect_name}")


class LedgerStore:
    """Persistence collaborator for the progress ledger."""

    def __init__(
        self,
        session: AsyncSession,
        clock=None,
        policy: Optional[ReplayPolicy] = None,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
    ):
        settings = get_settings()
        self.session = session
        self.clock = clock or SystemClock()
        self.policy = policy or ReplayPolicy(settings.completion_replay_policy)
        self.max_attempts = max(1, max_attempts or settings.ledger_write_attempts)
        self.backoff_seconds = (
            settings.ledger_write_backoff_seconds if backoff_seconds is None else backoff_seconds
        )
        self.event_store = EventStore(session)

    async def load_ledger(self, user_id: uuid.UUID) -> ProgressLedger:
        """Snapshot of the user's completed stories."""
        q = select(UserStoryProgress).where(UserStoryProgress.user_id == user_id)
        try:
            rows = (await self.session.execute(q)).scalars().all()
        except SQLAlchemyError as e:
            logger.error(
                "Progress ledger read failed",
                extra={"user_id": str(user_id), "error": str(e)},
            )
            raise LedgerUnavailableError(user_id, e) from e
        return ProgressLedger(
            user_id,
            (
                ProgressEntry(
                    user_id=row.user_id,
                    story_id=row.story_id,
                    completed_at=as_utc(row.completed_at),
                )
                for row in rows
            ),
        )

    async def record_completion(
        self,
        user_id: uuid.UUID,
        story_id: int,
        questions_answered: Optional[List[int]] = None,
    ) -> CompletionResult:
        """
        Upsert a completion stamped with the server clock.

        On a failed attempt the session is rolled back before retrying, so this
        must be the first write of its unit of work.

        Raises:
            PersistenceWriteError: every attempt failed.
        """
        answered = list(questions_answered or [])
        last_error: Optional[SQLAlchemyError] = None

        for attempt in range(self.max_attempts):
            try:
                inserted = await self._upsert(user_id, story_id, answered)
                stored = await self._get_row(user_id, story_id)
                break
            except SQLAlchemyError as e:
                last_error = e
                await self.session.rollback()
                logger.warning(
                    "Completion write failed",
                    extra={
                        "user_id": str(user_id),
                        "story_id": story_id,
                        "attempt": attempt + 1,
                        "error": str(e),
                    },
                )
                if attempt < self.max_attempts - 1:
                    await asyncio.sleep(self.backoff_seconds * (2 ** attempt))
        else:
            logger.error(
                "Completion write gave up",
                extra={"user_id": str(user_id), "story_id": story_id, "attempts": self.max_attempts},
            )
            raise PersistenceWriteError(user_id, story_id, self.max_attempts) from last_error

        replayed = not inserted
        entry = ProgressEntry(
            user_id=user_id,
            story_id=story_id,
            completed_at=as_utc(stored.completed_at),
        )
        await self.event_store.log(
            event_type=EventType.STORY_COMPLETION_REPLAYED if replayed else EventType.STORY_COMPLETED,
            entity_type="story",
            entity_id=story_id,
            user_id=user_id,
            payload={
                "completed_at": entry.completed_at,
                "policy": self.policy,
                "questions_answered": answered,
            },
        )
        logger.info(
            "Story completion recorded",
            extra={"user_id": str(user_id), "story_id": story_id, "replayed": replayed},
        )
        return CompletionResult(
            entry=entry,
            replayed=replayed,
            questions_answered=list(stored.questions_answered or []),
        )

    async def _get_row(self, user_id: uuid.UUID, story_id: int) -> Optional[UserStoryProgress]:
        q = select(UserStoryProgress).where(
            UserStoryProgress.user_id == user_id,
            UserStoryProgress.story_id == story_id,
        ).execution_options(populate_existing=True)
        return (await self.session.execute(q)).scalar_one_or_none()

    async def _upsert(self, user_id: uuid.UUID, story_id: int, answered: List[int]) -> bool:
        """
        Insert the completion, or apply the replay policy to an existing one.

        Returns True only when this statement created the row. The answer comes
        from the insert itself, so two racing first completions cannot both
        claim it.
        """
        now = self.clock.now()
        insert = _insert_for(self.session.get_bind().dialect.name)
        stmt = insert(UserStoryProgress).values(
            id=generate_uuid(),
            user_id=user_id,
            story_id=story_id,
            completed_at=now,
            questions_answered=answered,
        ).on_conflict_do_nothing(index_elements=_CONFLICT_KEYS)
        result = await self.session.execute(stmt)
        if result.rowcount:
            return True

        if self.policy == ReplayPolicy.LAST_WRITE_WINS:
            await self.session.execute(
                update(UserStoryProgress)
                .where(
                    UserStoryProgress.user_id == user_id,
                    UserStoryProgress.story_id == story_id,
                )
                .values(completed_at=now, questions_answered=answered)
            )
        return False
