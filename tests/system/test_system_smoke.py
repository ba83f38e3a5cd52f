"""
System smoke test: full API flow in-process with SQLite.
Verifies health, auth, the curriculum browser, the single-story guard,
completion and the weekly reward.
Uses a temp file DB so all connections share the same database.
"""

import os
import tempfile
import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

# Use file-based SQLite so all connections share the same DB (in-memory is per-connection)
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
# Force config reload so app uses test DB
from storyquest.config import get_settings
get_settings.cache_clear()

from storyquest.api.deps import get_clock, reset_curriculum_cache
from storyquest.database import get_db
from storyquest.kernel.clock import FixedClock
from storyquest.kernel.identity.jwt import create_access_token
from storyquest.kernel.models import Base, ProgramWeek, User
from storyquest.main import app
from storyquest.pedagogy.year_program import seed_year_program

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

TEST_ENGINE = create_async_engine(
    f"sqlite+aiosqlite:///{TEST_DB_PATH}",
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=NullPool,
)
TEST_SESSION_MAKER = async_sessionmaker(
    TEST_ENGINE,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TEST_SESSION_MAKER() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def pytest_sessionfinish(session, exitstatus):
    """Clean up temp DB file after test run."""
    try:
        if os.path.exists(TEST_DB_PATH):
            os.unlink(TEST_DB_PATH)
    except OSError:
        pass


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(T0)


@pytest_asyncio.fixture
async def client(clock: FixedClock):
    """Async client over a freshly seeded database and a pinned server clock."""
    async with TEST_ENGINE.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    async with TEST_SESSION_MAKER() as session:
        await seed_year_program(session)
        await session.commit()

    reset_curriculum_cache(app)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_clock, None)


async def _headers_for(**fields) -> dict:
    """Create a user and return bearer headers for it."""
    user = User(email=f"parent-{uuid.uuid4().hex[:8]}@example.com", full_name="Smoke Parent", **fields)
    async with TEST_SESSION_MAKER() as session:
        session.add(user)
        await session.commit()
    token, _, _ = create_access_token(user.id, user.email)
    return {"Authorization": f"Bearer {token}"}


async def _subscriber() -> dict:
    return await _headers_for(subscription_type="monthly", subscription_until=T0 + timedelta(days=30))


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    """Health endpoint responds."""
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert "version" in data


@pytest.mark.asyncio
async def test_requires_token(client: AsyncClient):
    r = await client.get("/api/v1/curriculum")
    assert r.status_code == 401

    r = await client.get("/api/v1/curriculum", headers={"Authorization": "Bearer nonsense"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_curriculum_outline(client: AsyncClient):
    headers = await _subscriber()
    r = await client.get("/api/v1/curriculum", headers=headers)
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["total_stories"] == 36
    assert len(data["blocks"]) == 4
    first_week = data["blocks"][0]["months"][0]["weeks"][0]
    assert [s["day_in_week"] for s in first_week["stories"]] == [1, 3, 5]

    r = await client.get("/health")
    assert r.json()["curriculum_loaded"] is True


@pytest.mark.asyncio
async def test_full_flow(client: AsyncClient, clock: FixedClock):
    """Open -> complete -> cooldown -> next story -> progress and reward."""
    headers = await _subscriber()

    r = await client.get("/api/v1/stories/1/access", headers=headers)
    assert r.status_code == 200
    assert r.json()["decision"]["state"] == "available"

    # Day 3 is gated by day 1
    r = await client.get("/api/v1/stories/2", headers=headers)
    assert r.status_code == 423
    assert r.json()["detail"]["decision"]["state"] == "locked_by_prerequisite"

    r = await client.get("/api/v1/stories/1", headers=headers)
    assert r.status_code == 200
    questions = r.json()["questions"]
    assert [q["question_type"] for q in questions] == ["understanding", "feeling", "practice"]

    r = await client.post("/api/v1/stories/1/complete", json={"questions_answered": [1, 2]}, headers=headers)
    assert r.status_code == 200, r.text
    done = r.json()
    assert done["replayed"] is False
    assert done["questions_answered"] == [1, 2]
    assert done["next_story"]["story_id"] == 2
    next_decision = done["next_story"]["decision"]
    assert next_decision["state"] == "waiting_cooldown"
    assert (next_decision["hours_left"], next_decision["minutes_left"]) == (24, 0)

    # Cannot skip the cooldown by completing early
    r = await client.post("/api/v1/stories/2/complete", json={}, headers=headers)
    assert r.status_code == 423

    clock.set(T0 + timedelta(hours=23, minutes=30))
    r = await client.get("/api/v1/stories/2/access", headers=headers)
    decision = r.json()["decision"]
    assert (decision["hours_left"], decision["minutes_left"]) == (0, 30)

    clock.set(T0 + timedelta(hours=24))
    r = await client.get("/api/v1/stories/2", headers=headers)
    assert r.status_code == 200
    assert r.json()["decision"]["state"] == "available"

    r = await client.get("/api/v1/curriculum/weeks/1/map", headers=headers)
    assert r.status_code == 200
    week = r.json()
    assert [d["decision"]["state"] for d in week["days"]] == [
        "completed", "available", "locked_by_prerequisite",
    ]
    assert [d["previous_story_id"] for d in week["days"]] == [None, 1, 2]
    assert week["reward"] == {"state": "locked", "percent_complete": 33, "cartoon_url": None}

    r = await client.get("/api/v1/curriculum/progress", headers=headers)
    progress = r.json()
    assert progress["completed"] == 1
    assert progress["total"] == 36
    assert progress["percent_complete"] == 3
    assert progress["next_story_id"] == 2
    assert progress["months"][0]["percent_complete"] == 33


@pytest.mark.asyncio
async def test_week_reward_unlocks(client: AsyncClient, clock: FixedClock):
    headers = await _subscriber()
    for offset, story_id in enumerate((1, 2, 3)):
        clock.set(T0 + timedelta(hours=24 * offset))
        r = await client.post(f"/api/v1/stories/{story_id}/complete", json={}, headers=headers)
        assert r.status_code == 200, r.text

    r = await client.get("/api/v1/weeks/1/reward", headers=headers)
    assert r.json() == {"state": "unlocked", "percent_complete": 100, "cartoon_url": None}

    # Story 4 opens month 2 and waits on story 3
    r = await client.get("/api/v1/stories/4/access", headers=headers)
    assert r.json()["decision"]["state"] == "waiting_cooldown"


async def _set_cartoon(week_id: int, url: str) -> None:
    async with TEST_SESSION_MAKER() as session:
        week = await session.get(ProgramWeek, week_id)
        week.cartoon_url = url
        await session.commit()


@pytest.mark.asyncio
async def test_week_cartoon_released_on_unlock(client: AsyncClient, clock: FixedClock):
    """The cartoon URL is withheld until every story of the week is done."""
    await _set_cartoon(1, "https://cdn.example.com/cartoons/week-1.mp4")
    headers = await _subscriber()

    for offset, story_id in enumerate((1, 2)):
        clock.set(T0 + timedelta(hours=24 * offset))
        r = await client.post(f"/api/v1/stories/{story_id}/complete", json={}, headers=headers)
        assert r.status_code == 200, r.text

    r = await client.get("/api/v1/weeks/1/reward", headers=headers)
    assert r.json() == {"state": "locked", "percent_complete": 67, "cartoon_url": None}
    r = await client.get("/api/v1/curriculum/weeks/1/map", headers=headers)
    assert r.json()["reward"]["cartoon_url"] is None

    clock.set(T0 + timedelta(hours=48))
    r = await client.post("/api/v1/stories/3/complete", json={}, headers=headers)
    assert r.status_code == 200, r.text

    r = await client.get("/api/v1/weeks/1/reward", headers=headers)
    assert r.json() == {
        "state": "unlocked",
        "percent_complete": 100,
        "cartoon_url": "https://cdn.example.com/cartoons/week-1.mp4",
    }
    r = await client.get("/api/v1/curriculum/weeks/1/map", headers=headers)
    assert r.json()["reward"]["cartoon_url"] == "https://cdn.example.com/cartoons/week-1.mp4"

    # Another week's cartoon stays hidden
    r = await client.get("/api/v1/weeks/2/reward", headers=headers)
    assert r.json()["cartoon_url"] is None


@pytest.mark.asyncio
async def test_replay_keeps_first_completion(client: AsyncClient, clock: FixedClock):
    headers = await _subscriber()
    first = (await client.post("/api/v1/stories/1/complete", json={}, headers=headers)).json()

    clock.set(T0 + timedelta(hours=3))
    again = (await client.post("/api/v1/stories/1/complete", json={}, headers=headers)).json()

    assert again["replayed"] is True
    assert again["completed_at"] == first["completed_at"]
    assert again["next_story"]["decision"]["hours_left"] == 21


@pytest.mark.asyncio
async def test_paywall(client: AsyncClient):
    headers = await _headers_for(subscription_until=T0 - timedelta(days=1))

    r = await client.get("/api/v1/stories/1", headers=headers)
    assert r.status_code == 402
    assert r.json()["detail"]["decision"]["state"] == "locked_by_entitlement"

    r = await client.post("/api/v1/stories/1/complete", json={}, headers=headers)
    assert r.status_code == 402


@pytest.mark.asyncio
async def test_completed_story_survives_expiry(client: AsyncClient, clock: FixedClock):
    headers = await _headers_for(subscription_until=T0 + timedelta(days=1))
    r = await client.post("/api/v1/stories/1/complete", json={}, headers=headers)
    assert r.status_code == 200

    clock.set(T0 + timedelta(days=2))
    r = await client.get("/api/v1/stories/1", headers=headers)
    assert r.status_code == 200
    assert r.json()["decision"]["state"] == "completed"

    r = await client.get("/api/v1/stories/2", headers=headers)
    assert r.status_code == 402


@pytest.mark.asyncio
async def test_admin_override(client: AsyncClient):
    headers = await _headers_for(is_admin=True)

    r = await client.get("/api/v1/stories/36", headers=headers)
    assert r.status_code == 200
    assert r.json()["decision"]["state"] == "available"

    r = await client.get("/api/v1/weeks/12/reward", headers=headers)
    assert r.json() == {"state": "unlocked", "percent_complete": 0, "cartoon_url": None}


@pytest.mark.asyncio
async def test_unknown_ids(client: AsyncClient):
    headers = await _subscriber()

    r = await client.get("/api/v1/stories/999/access", headers=headers)
    assert r.status_code == 404
    assert r.json()["code"] == "unknown_story"

    r = await client.get("/api/v1/curriculum/weeks/99/map", headers=headers)
    assert r.status_code == 404

    r = await client.post("/api/v1/stories/999/complete", json={}, headers=headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_invalid_body(client: AsyncClient):
    headers = await _subscriber()
    r = await client.post(
        "/api/v1/stories/1/complete",
        json={"questions_answered": "all of them"},
        headers=headers,
    )
    assert r.status_code == 422
    assert r.json()["detail"] == "Validation error"
