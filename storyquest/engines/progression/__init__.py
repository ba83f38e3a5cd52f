"""
Progression Engine - story unlocks, cooldowns and weekly rewards.

Curriculum: Block -> Month -> Week -> Story (stories on days 1, 3, 5)

Story access states:
- completed: already read, always accessible
- available: may be read now
- waiting_cooldown: previous story finished less than 24h ago
- locked_by_prerequisite: previous story not finished
- locked_by_entitlement: no active subscription

A week's reward (cartoon) unlocks when all its stories are completed.
"""

from storyquest.engines.progression.access_evaluator import (
    COOLDOWN,
    AccessEvaluator,
    AccessPolicyContext,
)
from storyquest.engines.progression.curriculum_tree import (
    Block,
    CurriculumTree,
    Month,
    Story,
    Week,
)
from storyquest.engines.progression.decisions import (
    AccessDecision,
    AccessState,
    RewardState,
    WeekRewardDecision,
)
from storyquest.engines.progression.errors import (
    CurriculumIntegrityError,
    LedgerUnavailableError,
    PersistenceWriteError,
    ProgressionError,
    UnknownNodeError,
)
from storyquest.engines.progression.ledger import ProgressEntry, ProgressLedger, ReplayPolicy
from storyquest.engines.progression.progress_summary import curriculum_progress, next_story
from storyquest.engines.progression.reward_gate import RewardGate

__all__ = [
    "COOLDOWN",
    "AccessEvaluator",
    "AccessPolicyContext",
    "Block",
    "CurriculumTree",
    "Month",
    "Story",
    "Week",
    "AccessDecision",
    "AccessState",
    "RewardState",
    "WeekRewardDecision",
    "CurriculumIntegrityError",
    "LedgerUnavailableError",
    "PersistenceWriteError",
    "ProgressionError",
    "UnknownNodeError",
    "ProgressEntry",
    "ProgressLedger",
    "ReplayPolicy",
    "curriculum_progress",
    "next_story",
    "RewardGate",
]
