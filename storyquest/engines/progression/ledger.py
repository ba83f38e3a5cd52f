"""
Progress Ledger - per-user snapshot of completed stories.

A ledger is an immutable snapshot taken for one evaluation. Recording a new
completion produces a new ledger; the persistent store applies the same
replay policy with an atomic upsert.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, Iterator, Optional, Set

from pydantic import BaseModel, ConfigDict


class ReplayPolicy(str, Enum):
    """What happens to completed_at when an already completed story is completed again."""

    FIRST_WRITE_WINS = "first_write_wins"  # keep the original instant
    LAST_WRITE_WINS = "last_write_wins"  # refresh the instant, pushing later cooldowns back


class ProgressEntry(BaseModel):
    """One completed story."""

    model_config = ConfigDict(frozen=True)

    user_id: uuid.UUID
    story_id: int
    completed_at: datetime


class ProgressLedger:
    """Completed stories of one user, keyed by story id."""

    def __init__(self, user_id: uuid.UUID, entries: Iterable[ProgressEntry] = ()):
        self.user_id = user_id
        self._entries: Dict[int, ProgressEntry] = {}
        for entry in entries:
            if entry.user_id != user_id:
                raise ValueError(
                    f"Entry for user {entry.user_id} does not belong to ledger of {user_id}"
                )
            current = self._entries.get(entry.story_id)
            # Duplicate rows should not exist; keep the earliest if they do
            if current is None or entry.completed_at < current.completed_at:
                self._entries[entry.story_id] = entry

    @classmethod
    def empty(cls, user_id: uuid.UUID) -> "ProgressLedger":
        return cls(user_id)

    def is_completed(self, story_id: int) -> bool:
        return story_id in self._entries

    def completed_at(self, story_id: int) -> Optional[datetime]:
        entry = self._entries.get(story_id)
        return entry.completed_at if entry else None

    def get(self, story_id: int) -> Optional[ProgressEntry]:
        return self._entries.get(story_id)

    def completed_ids(self) -> Set[int]:
        return set(self._entries)

    def with_completion(
        self,
        story_id: int,
        at: datetime,
        policy: ReplayPolicy = ReplayPolicy.FIRST_WRITE_WINS,
    ) -> "ProgressLedger":
        """Return a new ledger with `story_id` completed at `at` under `policy`."""
        existing = self._entries.get(story_id)
        if existing is not None and policy == ReplayPolicy.FIRST_WRITE_WINS:
            return self
        entries = dict(self._entries)
        entries[story_id] = ProgressEntry(user_id=self.user_id, story_id=story_id, completed_at=at)
        return ProgressLedger(self.user_id, entries.values())

    def __contains__(self, story_id: object) -> bool:
        return story_id in self._entries

    def __iter__(self) -> Iterator[ProgressEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"<ProgressLedger user={self.user_id} completed={len(self._entries)}>"
