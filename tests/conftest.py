"""
Pytest fixtures for StoryQuest tests.
"""

import uuid
from datetime import datetime, timezone
from typing import AsyncGenerator, Iterable, Tuple

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from storyquest.engines.progression.access_evaluator import AccessEvaluator, AccessPolicyContext
from storyquest.engines.progression.curriculum_tree import Block, CurriculumTree, Month, Story, Week
from storyquest.engines.progression.ledger import ProgressEntry, ProgressLedger
from storyquest.engines.progression.reward_gate import RewardGate
from storyquest.kernel.clock import FixedClock
from storyquest.kernel.models.base import Base
from storyquest.kernel.models.user import User
from storyquest.pedagogy.year_program import seed_year_program

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
USER_ID = uuid.UUID("6f1c1c0e-8f37-4d7a-9a4b-2f0b3d1e5a10")


def _story(story_id: int, day: int, week_id: int) -> Story:
    return Story(id=story_id, title=f"Story {story_id}", day_in_week=day, week_id=week_id)


def build_sample_tree() -> CurriculumTree:
    """
    Two blocks, five weeks:

        block 1 / month 1 / week 10: 101(d1) 102(d3) 103(d5)
        block 1 / month 1 / week 11: 111(d1) 112(d3) 113(d5)
        block 1 / month 2 / week 20: (no stories)
        block 1 / month 2 / week 21: 211(d1) 215(d5)
        block 2 / month 3 / week 30: 301(d1)

    Blocks, months and stories are deliberately listed out of order.
    """
    week10 = Week(id=10, title="Week 10", order=1, month_id=1,
                  stories=[_story(103, 5, 10), _story(101, 1, 10), _story(102, 3, 10)])
    week11 = Week(id=11, title="Week 11", order=2, month_id=1,
                  stories=[_story(111, 1, 11), _story(112, 3, 11), _story(113, 5, 11)])
    week20 = Week(id=20, title="Week 20", order=1, month_id=2, stories=[])
    week21 = Week(id=21, title="Week 21", order=2, month_id=2,
                  stories=[_story(215, 5, 21), _story(211, 1, 21)])
    week30 = Week(id=30, title="Week 30", order=1, month_id=3, stories=[_story(301, 1, 30)])

    block1 = Block(id=1, title="Block 1", order=1, months=[
        Month(id=2, title="Month 2", order=2, block_id=1, weeks=[week21, week20]),
        Month(id=1, title="Month 1", order=1, block_id=1, weeks=[week11, week10]),
    ])
    block2 = Block(id=2, title="Block 2", order=2, months=[
        Month(id=3, title="Month 3", order=1, block_id=2, weeks=[week30]),
    ])
    return CurriculumTree([block2, block1])


@pytest.fixture
def tree() -> CurriculumTree:
    return build_sample_tree()


@pytest.fixture
def evaluator(tree: CurriculumTree) -> AccessEvaluator:
    return AccessEvaluator(tree)


@pytest.fixture
def reward_gate(tree: CurriculumTree) -> RewardGate:
    return RewardGate(tree)


@pytest.fixture
def make_ledger():
    """Build a ledger from (story_id, completed_at) pairs."""

    def _make(completions: Iterable[Tuple[int, datetime]] = (), user_id: uuid.UUID = USER_ID) -> ProgressLedger:
        return ProgressLedger(
            user_id,
            [ProgressEntry(user_id=user_id, story_id=sid, completed_at=at) for sid, at in completions],
        )

    return _make


@pytest.fixture
def make_context():
    """Build a policy context; entitled, no override and `now` = T0 by default."""

    def _make(now: datetime = T0, entitled: bool = True, override: bool = False) -> AccessPolicyContext:
        return AccessPolicyContext(
            has_active_entitlement=entitled,
            is_override_granted=override,
            now=now,
        )

    return _make


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(T0)


# Database fixtures (SQLite file per test)

@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Create a test database engine."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'storyquest_test.db'}",
        echo=False,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def seeded_session(db_session: AsyncSession) -> AsyncSession:
    """Session over a database holding the committed year program."""
    await seed_year_program(db_session)
    await db_session.commit()
    return db_session


@pytest_asyncio.fixture
async def test_user(seeded_session: AsyncSession) -> User:
    """Create a subscribed test user."""
    user = User(
        id=uuid.uuid4(),
        email="parent@example.com",
        full_name="Test Parent",
        subscription_type="monthly",
        subscription_until=datetime(2026, 4, 1, tzinfo=timezone.utc),
    )
    seeded_session.add(user)
    await seeded_session.commit()
    return user
