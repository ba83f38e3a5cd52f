"""Integration tests for loading the seeded year program from the database."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storyquest.engines.progression.errors import UnknownNodeError
from storyquest.kernel.curriculum.loader import CurriculumLoader
from storyquest.kernel.events.event_store import EventStore
from storyquest.kernel.models.curriculum import ProgramQuestion
from storyquest.kernel.models.event_log import EventType
from storyquest.pedagogy.year_program import build_year_program_tree


@pytest.mark.asyncio
async def test_load_tree_matches_program(seeded_session: AsyncSession):
    tree = await CurriculumLoader(seeded_session).load_tree()
    expected = build_year_program_tree()
    assert len(tree) == 36
    assert [s.id for s in tree.stories()] == [s.id for s in expected.stories()]
    assert [w.id for w in tree.weeks()] == list(range(1, 13))


@pytest.mark.asyncio
async def test_story_content_with_questions(seeded_session: AsyncSession):
    story = await CurriculumLoader(seeded_session).get_story_content(1)
    assert story.title == "The Magic Emotion Map"
    assert [q.order_num for q in story.questions] == [1, 2, 3]
    assert "The Magic Emotion Map" in story.questions[0].question_text


@pytest.mark.asyncio
async def test_unknown_story_content(seeded_session: AsyncSession):
    with pytest.raises(UnknownNodeError):
        await CurriculumLoader(seeded_session).get_story_content(999)


@pytest.mark.asyncio
async def test_week_row(seeded_session: AsyncSession):
    loader = CurriculumLoader(seeded_session)
    assert (await loader.get_week_row(1)).month_id == 1
    assert await loader.get_week_row(99) is None


@pytest.mark.asyncio
async def test_seeding_is_recorded(seeded_session: AsyncSession):
    questions = (await seeded_session.execute(select(func.count(ProgramQuestion.id)))).scalar_one()
    assert questions == 108

    history = await EventStore(seeded_session).get_entity_history("curriculum", "year_program")
    assert len(history) == 1
    assert history[0].event_type == EventType.CURRICULUM_SEEDED
    assert history[0].payload == {"blocks": 4, "stories": 36}
