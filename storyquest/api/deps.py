"""
FastAPI dependencies for authentication, database sessions, the server clock
and the progression engine.
"""

import asyncio
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from storyquest.database import get_db
from storyquest.engines.progression.access_evaluator import AccessEvaluator, AccessPolicyContext
from storyquest.engines.progression.curriculum_tree import CurriculumTree
from storyquest.engines.progression.reward_gate import RewardGate
from storyquest.kernel.clock import SystemClock
from storyquest.kernel.curriculum.loader import CurriculumLoader
from storyquest.kernel.identity.jwt import verify_access_token
from storyquest.kernel.models.user import User
from storyquest.kernel.policy.policy_service import AccessPolicyService
from storyquest.kernel.progress.ledger_store import LedgerStore
from storyquest.logging_config import bind_user

security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]

_system_clock = SystemClock()
_tree_lock = asyncio.Lock()


def get_clock():
    """The trusted server clock. Overridden in tests with a FixedClock."""
    return _system_clock


Clock = Annotated[object, Depends(get_clock)]


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
) -> User:
    """Get current authenticated user or raise 401."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await db.get(User, payload.sub)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    bind_user(user.id)
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def get_curriculum_tree(request: Request, db: DbSession) -> CurriculumTree:
    """Curriculum tree, loaded once and kept on the application state."""
    tree = getattr(request.app.state, "curriculum_tree", None)
    if tree is not None:
        return tree
    async with _tree_lock:
        tree = getattr(request.app.state, "curriculum_tree", None)
        if tree is None:
            tree = await CurriculumLoader(db).load_tree()
            request.app.state.curriculum_tree = tree
    return tree


def reset_curriculum_cache(app) -> None:
    """Drop the cached tree so the next request reloads it (after reseeding)."""
    app.state.curriculum_tree = None


Tree = Annotated[CurriculumTree, Depends(get_curriculum_tree)]


def get_access_evaluator(tree: Tree) -> AccessEvaluator:
    return AccessEvaluator(tree)


def get_reward_gate(tree: Tree) -> RewardGate:
    return RewardGate(tree)


def get_ledger_store(db: DbSession, clock: Clock) -> LedgerStore:
    return LedgerStore(db, clock=clock)


def get_policy_context(user: CurrentUser, clock: Clock) -> AccessPolicyContext:
    """Entitlement, override and `now` for this request, all resolved server-side."""
    return AccessPolicyService(clock).context_for(user)


Evaluator = Annotated[AccessEvaluator, Depends(get_access_evaluator)]
Rewards = Annotated[RewardGate, Depends(get_reward_gate)]
Ledgers = Annotated[LedgerStore, Depends(get_ledger_store)]
PolicyContext = Annotated[AccessPolicyContext, Depends(get_policy_context)]
