"""
Curriculum loader - reads program rows and assembles the CurriculumTree.

This is where malformed curriculum data is caught; the tree itself trusts
what it is given.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storyquest.engines.progression.curriculum_tree import (
    Block,
    CurriculumTree,
    Month,
    Story,
    Week,
)
from storyquest.engines.progression.errors import CurriculumIntegrityError, UnknownNodeError
from storyquest.kernel.models.curriculum import (
    ProgramBlock,
    ProgramMonth,
    ProgramStory,
    ProgramWeek,
)
from storyquest.logging_config import get_logger

logger = get_logger(__name__)


def _check_unique_ids(kind: str, rows: Sequence) -> None:
    seen: Set[int] = set()
    for row in rows:
        if row.id in seen:
            raise CurriculumIntegrityError(f"Duplicate {kind} id {row.id}")
        seen.add(row.id)


def _check_unique_within(kind: str, rows: Sequence, parent_attr: str, key_attr: str) -> None:
    seen: Set[Tuple[int, int]] = set()
    for row in rows:
        key = (getattr(row, parent_attr), getattr(row, key_attr))
        if key in seen:
            raise CurriculumIntegrityError(
                f"Duplicate {kind} {key_attr}={key[1]} under {parent_attr}={key[0]}"
            )
        seen.add(key)


def _check_parents(kind: str, rows: Sequence, parent_attr: str, parent_ids: Set[int]) -> None:
    for row in rows:
        if getattr(row, parent_attr) not in parent_ids:
            raise CurriculumIntegrityError(
                f"{kind} {row.id} references missing {parent_attr}={getattr(row, parent_attr)}"
            )


def assemble_tree(
    blocks: Iterable[ProgramBlock],
    months: Iterable[ProgramMonth],
    weeks: Iterable[ProgramWeek],
    stories: Iterable[ProgramStory],
) -> CurriculumTree:
    """
    Validate program rows and build the tree.

    Raises:
        CurriculumIntegrityError: duplicate ids, duplicate order within a parent,
            duplicate or non-odd story days, or dangling parent references.
    """
    blocks, months, weeks, stories = list(blocks), list(months), list(weeks), list(stories)

    _check_unique_ids("block", blocks)
    _check_unique_ids("month", months)
    _check_unique_ids("week", weeks)
    _check_unique_ids("story", stories)

    orders = [b.order_num for b in blocks]
    if len(set(orders)) != len(orders):
        raise CurriculumIntegrityError("Duplicate block order_num")
    _check_unique_within("month", months, "block_id", "order_num")
    _check_unique_within("week", weeks, "month_id", "order_num")
    _check_unique_within("story", stories, "week_id", "day_in_week")

    _check_parents("month", months, "block_id", {b.id for b in blocks})
    _check_parents("week", weeks, "month_id", {m.id for m in months})
    _check_parents("story", stories, "week_id", {w.id for w in weeks})

    for s in stories:
        if s.day_in_week < 1 or s.day_in_week % 2 == 0:
            raise CurriculumIntegrityError(
                f"story {s.id} has day_in_week={s.day_in_week}; stories sit on odd days"
            )

    stories_by_week: Dict[int, List[Story]] = defaultdict(list)
    for s in stories:
        stories_by_week[s.week_id].append(
            Story(id=s.id, title=s.title, day_in_week=s.day_in_week, week_id=s.week_id)
        )

    weeks_by_month: Dict[int, List[Week]] = defaultdict(list)
    for w in weeks:
        weeks_by_month[w.month_id].append(
            Week(
                id=w.id,
                title=w.title,
                order=w.order_num,
                month_id=w.month_id,
                stories=sorted(stories_by_week[w.id], key=lambda s: s.day_in_week),
            )
        )

    months_by_block: Dict[int, List[Month]] = defaultdict(list)
    for m in months:
        months_by_block[m.block_id].append(
            Month(
                id=m.id,
                title=m.title,
                order=m.order_num,
                block_id=m.block_id,
                weeks=sorted(weeks_by_month[m.id], key=lambda w: w.order),
            )
        )

    tree_blocks = [
        Block(
            id=b.id,
            title=b.title,
            order=b.order_num,
            months=sorted(months_by_block[b.id], key=lambda m: m.order),
        )
        for b in blocks
    ]
    return CurriculumTree(tree_blocks)


class CurriculumLoader:
    """Reads the program tables."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_tree(self) -> CurriculumTree:
        """Load every program row and assemble the tree."""
        blocks = (await self.session.execute(select(ProgramBlock))).scalars().all()
        months = (await self.session.execute(select(ProgramMonth))).scalars().all()
        weeks = (await self.session.execute(select(ProgramWeek))).scalars().all()
        stories = (await self.session.execute(select(ProgramStory))).scalars().all()

        tree = assemble_tree(blocks, months, weeks, stories)
        logger.info(
            "Curriculum loaded",
            extra={
                "blocks": len(blocks),
                "months": len(months),
                "weeks": len(weeks),
                "stories": len(stories),
            },
        )
        return tree

    async def get_story_content(self, story_id: int) -> ProgramStory:
        """Story row with its discussion questions. Raises UnknownNodeError if missing."""
        q = (
            select(ProgramStory)
            .where(ProgramStory.id == story_id)
            .options(selectinload(ProgramStory.questions))
        )
        story = (await self.session.execute(q)).scalar_one_or_none()
        if story is None:
            raise UnknownNodeError("story", story_id)
        return story

    async def get_week_row(self, week_id: int) -> Optional[ProgramWeek]:
        return await self.session.get(ProgramWeek, week_id)
