"""
Identity - bearer token verification.
"""

from storyquest.kernel.identity.jwt import (
    JWTManager,
    AccessTokenPayload,
    create_access_token,
    get_jwt_manager,
    verify_access_token,
)

__all__ = [
    "JWTManager",
    "AccessTokenPayload",
    "create_access_token",
    "get_jwt_manager",
    "verify_access_token",
]
