"""
Year program - the built-in twelve month curriculum.

Four blocks of three months. Each month runs one week with stories on
days 1, 3 and 5, followed by three discussion questions per story.
"""

from typing import List

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from storyquest.engines.progression.curriculum_tree import (
    Block,
    CurriculumTree,
    Month,
    Story,
    Week,
)
from storyquest.kernel.events.event_store import EventStore
from storyquest.kernel.models.curriculum import (
    ProgramBlock,
    ProgramMonth,
    ProgramQuestion,
    ProgramStory,
    ProgramWeek,
    QuestionType,
)
from storyquest.kernel.models.event_log import EventType
from storyquest.logging_config import get_logger

logger = get_logger(__name__)

STORY_DAYS = (1, 3, 5)


class ProgramMonthPlan(BaseModel):
    """A month of the year program."""

    title: str
    themes: str
    plot: str
    stories: List[str]


class ProgramBlockPlan(BaseModel):
    """A block of the year program."""

    title: str
    subtitle: str
    icon: str
    color: str
    goal: str
    months: List[ProgramMonthPlan]


YEAR_PROGRAM: List[ProgramBlockPlan] = [
    ProgramBlockPlan(
        title="Me & My Emotions",
        subtitle="EQ Foundation",
        icon="💛",
        color="from-amber-400 to-yellow-500",
        goal="Teach the child to understand what's happening inside them and not to fear their feelings.",
        months=[
            ProgramMonthPlan(
                title="Meeting Emotions",
                themes="Joy, Sadness, Anger, Fear",
                plot="The Hero finds the \"Emotion Map\" and learns to name what they feel.",
                stories=["The Magic Emotion Map", "When Joy Visits", "Sadness Is My Friend Too"],
            ),
            ProgramMonthPlan(
                title="Taming Anger (Self-Regulation)",
                themes="What to do when you want to hit? Pause technique, breathing, safe outlet for aggression.",
                plot="The Hero turns into a dragon when angry and learns to \"put out the fire\" inside.",
                stories=["The Little Dragon Inside", "The Magic Pause", "Breathing Like a Dragon"],
            ),
            ProgramMonthPlan(
                title="Fighting Fears",
                themes="Darkness, monsters under the bed, fear of mom leaving (separation).",
                plot="The Hero turns on the \"Magic Light\" and sees reality.",
                stories=["The Magic Light", "Monsters Are Not Real", "Mom Always Returns"],
            ),
        ],
    ),
    ProgramBlockPlan(
        title="Me & Others",
        subtitle="Socialization",
        icon="💙",
        color="from-blue-400 to-cyan-500",
        goal="Teach ecological communication, boundaries, and friendship.",
        months=[
            ProgramMonthPlan(
                title="Personal Boundaries & \"No\"",
                themes="My body, my toys. How to politely refuse and accept refusal.",
                plot="The Hero builds a fence around their house and teaches guests to knock.",
                stories=["My Magic Fence", "The Power of No", "When Others Say No"],
            ),
            ProgramMonthPlan(
                title="Empathy & Kindness",
                themes="What does the other person feel? How to comfort? Why you shouldn't hurt the weak.",
                plot="The Hero helps a chick that fell from the nest and feels warmth in their chest.",
                stories=["The Little Chick", "Feeling Others' Hearts", "The Warmth of Kindness"],
            ),
            ProgramMonthPlan(
                title="Conflict Resolution",
                themes="Sharing toys, sandbox fights, making up and apologizing.",
                plot="Two animals pull a rope until they understand they can play together.",
                stories=["The Tug of War", "The Magic Words", "Playing Together"],
            ),
        ],
    ),
    ProgramBlockPlan(
        title="Me & My Actions",
        subtitle="Independence & Discipline",
        icon="💚",
        color="from-green-400 to-emerald-500",
        goal="Development of executive functions.",
        months=[
            ProgramMonthPlan(
                title="Routine & Hygiene (Without Tears)",
                themes="Brushing teeth, potty, sleep, tidying toys.",
                plot="Turning boring tasks into adventures (toothbrush is a teeth rescuer).",
                stories=["The Teeth Rescuer", "The Sleepy Adventure", "Toy Kingdom Clean-Up"],
            ),
            ProgramMonthPlan(
                title="Independence",
                themes="\"I can do it myself!\", getting dressed, helping parents.",
                plot="The Hero ties their shoelaces by themselves and feels proud.",
                stories=["The Shoelace Challenge", "Little Helper", "I Can Do It!"],
            ),
            ProgramMonthPlan(
                title="Patience & Persistence",
                themes="Waiting in line, long trips, finishing things.",
                plot="We plant a seed and wait for the flower to grow.",
                stories=["The Magic Seed", "The Waiting Game", "Never Give Up"],
            ),
        ],
    ),
    ProgramBlockPlan(
        title="Me — A Person",
        subtitle="Leadership & Thinking",
        icon="💜",
        color="from-purple-400 to-violet-500",
        goal="Forming the core of personality and preparing for school and the world.",
        months=[
            ProgramMonthPlan(
                title="Growth Mindset",
                themes="Making mistakes is normal. The power of the word \"Yet\".",
                plot="The Hero falls off the bike, gets up and says: \"I'll try again\".",
                stories=["The Bike and Me", "The Magic Word Yet", "Mistakes Make Me Stronger"],
            ),
            ProgramMonthPlan(
                title="Honesty & Responsibility",
                themes="Why is lying bad? What is a promise? Admitting guilt.",
                plot="The Hero broke a vase, told the truth, and was praised for courage.",
                stories=["The Broken Vase", "The Promise", "The Courage of Truth"],
            ),
            ProgramMonthPlan(
                title="Gratitude & Confidence",
                themes="What do I love about this world? My superpowers (talents).",
                plot="Final adventure where the Hero looks back at the journey they've made.",
                stories=["My Superpowers", "Thank You, World", "The Hero's Journey Complete"],
            ),
        ],
    ),
]

QUESTION_TEMPLATES = [
    (QuestionType.UNDERSTANDING, "What happened to the Hero in \"{title}\"?", "Retell the story in your own words."),
    (QuestionType.FEELING, "How did the Hero feel, and when have you felt the same?", "Name the feeling out loud."),
    (QuestionType.PRACTICE, "What will you try tomorrow, just like the Hero?", "Pick one small thing to practice."),
]


def iter_program_rows():
    """
    Yield ORM rows for the whole program with stable ids.

    Months and weeks are numbered 1..12 across the year, stories 1..36.
    """
    month_id = 0
    story_id = 0
    for block_order, block in enumerate(YEAR_PROGRAM, start=1):
        yield ProgramBlock(
            id=block_order,
            title=block.title,
            subtitle=block.subtitle,
            icon=block.icon,
            color=block.color,
            goal=block.goal,
            order_num=block_order,
        )
        for month_order, month in enumerate(block.months, start=1):
            month_id += 1
            yield ProgramMonth(
                id=month_id,
                block_id=block_order,
                title=month.title,
                themes=month.themes,
                plot=month.plot,
                order_num=month_order,
            )
            yield ProgramWeek(id=month_id, month_id=month_id, title=month.title, order_num=1)
            for day, title in zip(STORY_DAYS, month.stories):
                story_id += 1
                yield ProgramStory(
                    id=story_id,
                    week_id=month_id,
                    title=title,
                    day_in_week=day,
                    plot=month.plot,
                    therapeutic_goal=block.goal,
                )
                for order, (qtype, text, hint) in enumerate(QUESTION_TEMPLATES, start=1):
                    yield ProgramQuestion(
                        story_id=story_id,
                        question_type=qtype.value,
                        question_text=text.format(title=title),
                        hint=hint,
                        order_num=order,
                    )


def build_year_program_tree() -> CurriculumTree:
    """The year program as an in-memory tree, without touching the database."""
    blocks: List[Block] = []
    month_id = 0
    story_id = 0
    for block_order, block in enumerate(YEAR_PROGRAM, start=1):
        months: List[Month] = []
        for month_order, month in enumerate(block.months, start=1):
            month_id += 1
            stories = []
            for day, title in zip(STORY_DAYS, month.stories):
                story_id += 1
                stories.append(Story(id=story_id, title=title, day_in_week=day, week_id=month_id))
            week = Week(id=month_id, title=month.title, order=1, month_id=month_id, stories=stories)
            months.append(
                Month(id=month_id, title=month.title, order=month_order, block_id=block_order, weeks=[week])
            )
        blocks.append(Block(id=block_order, title=block.title, order=block_order, months=months))
    return CurriculumTree(blocks)


async def seed_year_program(session: AsyncSession) -> int:
    """
    Insert the year program. Returns the number of stories added.

    Intended for empty program tables; the caller commits.
    """
    rows = list(iter_program_rows())
    session.add_all(rows)
    await session.flush()
    count = sum(1 for row in rows if isinstance(row, ProgramStory))

    await EventStore(session).log(
        event_type=EventType.CURRICULUM_SEEDED,
        entity_type="curriculum",
        entity_id="year_program",
        payload={"blocks": len(YEAR_PROGRAM), "stories": count},
    )
    logger.info("Year program seeded", extra={"stories": count})
    return count
