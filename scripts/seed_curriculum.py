"""Seed the year program and a demo parent account, then print a bearer token."""
import asyncio
import sys
from datetime import timedelta

sys.path.insert(0, ".")

from sqlalchemy import func, select

from storyquest.database import close_db, init_db, session_scope
from storyquest.kernel.clock import utc_now
from storyquest.kernel.identity.jwt import create_access_token
from storyquest.kernel.models import ProgramStory, User
from storyquest.pedagogy.year_program import seed_year_program

DEMO_EMAIL = "parent@storyquest.dev"


async def main() -> None:
    await init_db()
    async with session_scope() as session:
        existing = (await session.execute(select(func.count(ProgramStory.id)))).scalar_one()
        if existing:
            print(f"Curriculum already present ({existing} stories), skipping")
        else:
            added = await seed_year_program(session)
            print(f"Seeded {added} stories")

        user = (await session.execute(select(User).where(User.email == DEMO_EMAIL))).scalar_one_or_none()
        if user is None:
            user = User(
                email=DEMO_EMAIL,
                full_name="Demo Parent",
                subscription_type="free_trial",
                subscription_until=utc_now() + timedelta(days=7),
            )
            session.add(user)
            await session.flush()
            print(f"Created demo user {DEMO_EMAIL}")

        token, expires, _ = create_access_token(user.id, user.email)
    print(f"\nBearer token (expires {expires.isoformat()}):\n{token}")
    await close_db()


if __name__ == "__main__":
    asyncio.run(main())
