"""
Progression engine errors.

None of these may be turned into an "available" decision by a caller: the
fail-safe answer on uncertainty is the most restrictive one.
"""

from typing import Optional


class ProgressionError(Exception):
    """Base class for progression engine errors."""


class UnknownNodeError(ProgressionError):
    """A block, month, week or story id is not part of the curriculum tree."""

    def __init__(self, kind: str, node_id: int):
        self.kind = kind
        self.node_id = node_id
        super().__init__(f"Unknown {kind}: {node_id}")


class CurriculumIntegrityError(ProgressionError):
    """Curriculum rows cannot be assembled into a consistent tree."""


class LedgerUnavailableError(ProgressionError):
    """The user's progress ledger could not be read."""

    def __init__(self, user_id: object, cause: Optional[BaseException] = None):
        self.user_id = user_id
        self.cause = cause
        super().__init__(f"Progress ledger unavailable for user {user_id}")


class PersistenceWriteError(ProgressionError):
    """A story completion could not be recorded after all retries."""

    def __init__(self, user_id: object, story_id: int, attempts: int):
        self.user_id = user_id
        self.story_id = story_id
        self.attempts = attempts
        super().__init__(
            f"Could not record completion of story {story_id} for user {user_id} "
            f"after {attempts} attempt(s)"
        )
