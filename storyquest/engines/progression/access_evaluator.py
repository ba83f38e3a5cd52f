"""
Access Evaluator - decides whether a story can be opened right now.

Rules, first match wins:
1. Story already in the ledger          -> completed
2. Administrative override              -> available
3. No active entitlement (paywall)      -> locked_by_entitlement
4. No previous story (curriculum root)  -> available
5. Previous story not completed         -> locked_by_prerequisite
6. Less than 24h since previous story   -> waiting_cooldown
7. Otherwise                            -> available

The evaluator is a pure function of (tree, ledger, context). It keeps no
timers; callers ask again with a fresh `now` to refresh a countdown.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from storyquest.engines.progression.curriculum_tree import CurriculumTree, Story
from storyquest.engines.progression.decisions import AccessDecision
from storyquest.engines.progression.ledger import ProgressLedger
from storyquest.kernel.clock import as_utc

COOLDOWN = timedelta(hours=24)
_HOUR = timedelta(hours=1)
_MINUTE = timedelta(minutes=1)


class AccessPolicyContext(BaseModel):
    """Per-evaluation policy inputs. `now` must come from the server clock."""

    model_config = ConfigDict(frozen=True)

    has_active_entitlement: bool
    is_override_granted: bool = False
    now: datetime

    @field_validator("now")
    @classmethod
    def _aware_now(cls, v: datetime) -> datetime:
        return as_utc(v)


def split_remaining(remaining: timedelta) -> Tuple[int, int]:
    """Whole hours and leftover whole minutes of a positive duration, truncated."""
    if remaining <= timedelta(0):
        return 0, 0
    hours = remaining // _HOUR
    minutes = (remaining % _HOUR) // _MINUTE
    return hours, minutes


class AccessEvaluator:
    """Single source of truth for story access, shared by every adapter."""

    def __init__(self, tree: CurriculumTree):
        self.tree = tree

    def decide(
        self,
        story_id: int,
        ledger: ProgressLedger,
        context: AccessPolicyContext,
    ) -> AccessDecision:
        """Access decision for one story. Raises UnknownNodeError for unknown ids."""
        story = self.tree.get_story(story_id)
        return self._decide(story, ledger, context)

    def decide_many(
        self,
        story_ids: Iterable[int],
        ledger: ProgressLedger,
        context: AccessPolicyContext,
    ) -> List[Tuple[Story, AccessDecision]]:
        stories = [self.tree.get_story(sid) for sid in story_ids]
        return [(s, self._decide(s, ledger, context)) for s in stories]

    def decide_week(
        self,
        week_id: int,
        ledger: ProgressLedger,
        context: AccessPolicyContext,
    ) -> List[Tuple[Story, AccessDecision]]:
        """Day-by-day decisions for a week, ordered by day_in_week."""
        week = self.tree.get_week(week_id)
        return [(s, self._decide(s, ledger, context)) for s in self.tree.stories_of_week(week)]

    def _decide(
        self,
        story: Story,
        ledger: ProgressLedger,
        context: AccessPolicyContext,
    ) -> AccessDecision:
        if ledger.is_completed(story.id):
            return AccessDecision.completed()

        if context.is_override_granted:
            return AccessDecision.available()

        if not context.has_active_entitlement:
            return AccessDecision.locked_by_entitlement()

        previous = self.tree.previous_story(story)
        if previous is None:
            return AccessDecision.available()

        previous_done_at = as_utc(ledger.completed_at(previous.id))
        if previous_done_at is None:
            return AccessDecision.locked_by_prerequisite()

        unlocks_at = previous_done_at + COOLDOWN
        if context.now >= unlocks_at:
            return AccessDecision.available()

        hours, minutes = split_remaining(unlocks_at - context.now)
        return AccessDecision.waiting_cooldown(hours, minutes, unlocks_at)
