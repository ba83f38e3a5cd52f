"""
Kernel Layer

Persistence and collaborators around the progression engine:
- Program tables and the curriculum loader
- Persistent progress ledger (atomic upserts, fail-closed reads)
- Access policy inputs (entitlement, admin override)
- Trusted server clock
- Append-only event log
"""

from storyquest.kernel.models import (
    User,
    ProgramBlock,
    ProgramMonth,
    ProgramWeek,
    ProgramStory,
    ProgramQuestion,
    UserStoryProgress,
    EventLog,
    EventType,
)

__all__ = [
    "User",
    "ProgramBlock",
    "ProgramMonth",
    "ProgramWeek",
    "ProgramStory",
    "ProgramQuestion",
    "UserStoryProgress",
    "EventLog",
    "EventType",
]
