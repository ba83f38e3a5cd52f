"""
Bearer token handling.

Parents sign in through the auth provider, which signs access tokens with the
shared secret. This service only needs the subject: the user whose ledger is
read. Issuing is kept for scripts and tests.
"""

import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from storyquest.config import get_settings

TOKEN_TYPE = "access"


class AccessTokenPayload(BaseModel):
    """Claims of a verified access token."""

    sub: uuid.UUID
    email: str = ""
    exp: datetime
    iat: datetime
    jti: str


class JWTManager:
    """Signs and verifies access tokens with one key and algorithm."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_token_expire_minutes: Optional[int] = None,
        leeway_seconds: int = 0,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm
        self.lifetime = timedelta(
            minutes=access_token_expire_minutes or settings.access_token_expire_minutes
        )
        self.leeway_seconds = leeway_seconds

    def create_access_token(
        self,
        user_id: uuid.UUID,
        email: str,
        expires_delta: Optional[timedelta] = None,
    ) -> Tuple[str, datetime, str]:
        """Returns (token, expires_at, jti)."""
        issued_at = datetime.now(timezone.utc)
        expires_at = issued_at + (expires_delta if expires_delta is not None else self.lifetime)
        jti = uuid.uuid4().hex
        claims = {
            "sub": str(user_id),
            "email": email,
            "iat": issued_at,
            "exp": expires_at,
            "jti": jti,
            "type": TOKEN_TYPE,
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm), expires_at, jti

    def decode(self, token: str) -> Dict[str, Any]:
        """Raw claims; raises JWTError on a bad signature or an expired token."""
        return jwt.decode(
            token,
            self.secret_key,
            algorithms=[self.algorithm],
            options={"leeway": self.leeway_seconds},
        )

    def verify_access_token(self, token: str) -> Optional[AccessTokenPayload]:
        """Verified claims, or None for anything that is not a valid access token."""
        try:
            claims = self.decode(token)
        except JWTError:
            return None
        if claims.get("type") != TOKEN_TYPE:
            return None
        try:
            return AccessTokenPayload.model_validate(claims)
        except ValidationError:
            return None


@lru_cache
def get_jwt_manager() -> JWTManager:
    return JWTManager()


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    expires_delta: Optional[timedelta] = None,
) -> Tuple[str, datetime, str]:
    return get_jwt_manager().create_access_token(user_id, email, expires_delta)


def verify_access_token(token: str) -> Optional[AccessTokenPayload]:
    return get_jwt_manager().verify_access_token(token)
