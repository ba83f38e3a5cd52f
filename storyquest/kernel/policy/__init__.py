"""
Access policy inputs - entitlement and administrative override.
"""

from storyquest.kernel.policy.policy_service import (
    AccessPolicyService,
    has_active_entitlement,
    is_override_granted,
)

__all__ = ["AccessPolicyService", "has_active_entitlement", "is_override_granted"]
