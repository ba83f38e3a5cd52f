"""
Decision values produced by the access evaluator and the reward gate.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator


class AccessState(str, Enum):
    """Access state of a single story."""

    COMPLETED = "completed"
    AVAILABLE = "available"
    WAITING_COOLDOWN = "waiting_cooldown"
    LOCKED_BY_PREREQUISITE = "locked_by_prerequisite"
    LOCKED_BY_ENTITLEMENT = "locked_by_entitlement"


class AccessDecision(BaseModel):
    """Exactly one access state per story per evaluation instant."""

    model_config = ConfigDict(frozen=True)

    state: AccessState
    hours_left: Optional[int] = None
    minutes_left: Optional[int] = None
    unlocks_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _cooldown_fields_only_when_waiting(self) -> "AccessDecision":
        waiting = self.state == AccessState.WAITING_COOLDOWN
        fields = (self.hours_left, self.minutes_left, self.unlocks_at)
        if waiting and any(f is None for f in fields):
            raise ValueError("waiting_cooldown requires hours_left, minutes_left and unlocks_at")
        if not waiting and any(f is not None for f in fields):
            raise ValueError(f"{self.state.value} carries no countdown")
        if waiting and (self.hours_left < 0 or self.minutes_left < 0):
            raise ValueError("countdown cannot be negative")
        return self

    @classmethod
    def completed(cls) -> "AccessDecision":
        return cls(state=AccessState.COMPLETED)

    @classmethod
    def available(cls) -> "AccessDecision":
        return cls(state=AccessState.AVAILABLE)

    @classmethod
    def locked_by_prerequisite(cls) -> "AccessDecision":
        return cls(state=AccessState.LOCKED_BY_PREREQUISITE)

    @classmethod
    def locked_by_entitlement(cls) -> "AccessDecision":
        return cls(state=AccessState.LOCKED_BY_ENTITLEMENT)

    @classmethod
    def waiting_cooldown(cls, hours_left: int, minutes_left: int, unlocks_at: datetime) -> "AccessDecision":
        return cls(
            state=AccessState.WAITING_COOLDOWN,
            hours_left=hours_left,
            minutes_left=minutes_left,
            unlocks_at=unlocks_at,
        )

    @property
    def is_accessible(self) -> bool:
        """True when the story may be opened right now."""
        return self.state in (AccessState.COMPLETED, AccessState.AVAILABLE)


class RewardState(str, Enum):
    """State of a week's bonus reward."""

    UNLOCKED = "unlocked"
    LOCKED = "locked"


class WeekRewardDecision(BaseModel):
    """Reward decision for one week, with the completion percentage behind it."""

    model_config = ConfigDict(frozen=True)

    state: RewardState
    percent_complete: int

    @classmethod
    def unlocked(cls, percent_complete: int) -> "WeekRewardDecision":
        return cls(state=RewardState.UNLOCKED, percent_complete=percent_complete)

    @classmethod
    def locked(cls, percent_complete: int) -> "WeekRewardDecision":
        return cls(state=RewardState.LOCKED, percent_complete=percent_complete)

    @property
    def is_unlocked(self) -> bool:
        return self.state == RewardState.UNLOCKED
