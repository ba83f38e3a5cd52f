"""
Access policy service - turns a user profile into an AccessPolicyContext.

Entitlement and override are read here and nowhere else, so every adapter
sees the same answer.
"""

from datetime import datetime

from storyquest.engines.progression.access_evaluator import AccessPolicyContext
from storyquest.kernel.clock import as_utc
from storyquest.kernel.models.user import User


def has_active_entitlement(user: User, now: datetime) -> bool:
    """Subscription (paid or trial) runs strictly past `now`."""
    until = as_utc(user.subscription_until)
    return until is not None and until > as_utc(now)


def is_override_granted(user: User) -> bool:
    """Administrators bypass every gate except recorded completion."""
    return bool(user.is_admin)


class AccessPolicyService:
    """Builds the per-request policy context from the server clock."""

    def __init__(self, clock):
        self.clock = clock

    def context_for(self, user: User) -> AccessPolicyContext:
        now = self.clock.now()
        return AccessPolicyContext(
            has_active_entitlement=has_active_entitlement(user, now),
            is_override_granted=is_override_granted(user),
            now=now,
        )
