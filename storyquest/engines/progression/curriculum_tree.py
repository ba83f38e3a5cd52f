"""
Curriculum Tree - read-only Block -> Month -> Week -> Story hierarchy.

Linear curriculum position is Block.order -> Month.order -> Week.order ->
Story.day_in_week, all ascending. Stories sit on the odd days of a week
(1, 3, 5), so the in-week predecessor of a story is two days back, not one.
"""

from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from storyquest.engines.progression.errors import UnknownNodeError

# Gap between consecutive story slots within a week
DAY_STEP = 2
FIRST_DAY = 1


class Story(BaseModel):
    """A single story slot in a week."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    day_in_week: int
    week_id: int


class Week(BaseModel):
    """A week of stories, plus its bonus reward."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    order: int
    month_id: int
    stories: List[Story] = []


class Month(BaseModel):
    """A themed month."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    order: int
    block_id: int
    weeks: List[Week] = []


class Block(BaseModel):
    """Top-level block of the curriculum."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    order: int
    months: List[Month] = []


LinearPosition = Tuple[int, int, int, int]


class CurriculumTree:
    """
    Immutable index over the curriculum hierarchy.

    The tree assumes consistent input (unique ids, unique order per parent);
    validating raw rows is the loader's job.
    """

    def __init__(self, blocks: Sequence[Block]):
        self._blocks: List[Block] = sorted(blocks, key=lambda b: b.order)
        self._blocks_by_id: Dict[int, Block] = {}
        self._months_by_id: Dict[int, Month] = {}
        self._weeks_by_id: Dict[int, Week] = {}
        self._stories_by_id: Dict[int, Story] = {}
        self._week_sequence: List[Week] = []
        self._week_index: Dict[int, int] = {}
        self._stories_by_week: Dict[int, List[Story]] = {}

        for block in self._blocks:
            self._blocks_by_id[block.id] = block
            for month in sorted(block.months, key=lambda m: m.order):
                self._months_by_id[month.id] = month
                for week in sorted(month.weeks, key=lambda w: w.order):
                    self._weeks_by_id[week.id] = week
                    self._week_index[week.id] = len(self._week_sequence)
                    self._week_sequence.append(week)
                    ordered = sorted(week.stories, key=lambda s: s.day_in_week)
                    self._stories_by_week[week.id] = ordered
                    for story in ordered:
                        self._stories_by_id[story.id] = story

    # --- Lookups ---------------------------------------------------------

    def get_block(self, block_id: int) -> Block:
        try:
            return self._blocks_by_id[block_id]
        except KeyError:
            raise UnknownNodeError("block", block_id) from None

    def get_month(self, month_id: int) -> Month:
        try:
            return self._months_by_id[month_id]
        except KeyError:
            raise UnknownNodeError("month", month_id) from None

    def get_week(self, week_id: int) -> Week:
        try:
            return self._weeks_by_id[week_id]
        except KeyError:
            raise UnknownNodeError("week", week_id) from None

    def get_story(self, story_id: int) -> Story:
        try:
            return self._stories_by_id[story_id]
        except KeyError:
            raise UnknownNodeError("story", story_id) from None

    def week_of(self, story: Story) -> Week:
        return self.get_week(story.week_id)

    def month_of(self, story: Story) -> Month:
        return self.get_month(self.week_of(story).month_id)

    def block_of(self, story: Story) -> Block:
        return self.get_block(self.month_of(story).block_id)

    # --- Traversal -------------------------------------------------------

    def blocks(self) -> List[Block]:
        return list(self._blocks)

    def months(self) -> List[Month]:
        """All months in linear order."""
        return [
            month
            for block in self._blocks
            for month in sorted(block.months, key=lambda m: m.order)
        ]

    def weeks(self) -> List[Week]:
        """All weeks flattened across months and blocks, in linear order."""
        return list(self._week_sequence)

    def weeks_of_month(self, month: Month) -> List[Week]:
        return sorted(self.get_month(month.id).weeks, key=lambda w: w.order)

    def stories_of_week(self, week: Week) -> List[Story]:
        """Stories of a week ordered by day_in_week."""
        try:
            return list(self._stories_by_week[week.id])
        except KeyError:
            raise UnknownNodeError("week", week.id) from None

    def stories(self) -> Iterator[Story]:
        """All stories in linear curriculum order."""
        for week in self._week_sequence:
            yield from self._stories_by_week[week.id]

    def __len__(self) -> int:
        return len(self._stories_by_id)

    def __contains__(self, story_id: object) -> bool:
        return story_id in self._stories_by_id

    # --- Ordering --------------------------------------------------------

    def linear_position(self, story: Story) -> LinearPosition:
        """Total ordering key (block, month, week, day) for a story."""
        week = self.week_of(story)
        month = self.get_month(week.month_id)
        block = self.get_block(month.block_id)
        return (block.order, month.order, week.order, story.day_in_week)

    def previous_story(self, story: Story) -> Optional[Story]:
        """
        Story that must be completed before `story` becomes reachable.

        - First slot of the globally first week: None (curriculum root).
        - First slot of any other week: last story of the preceding week in
          the flattened week sequence, across month and block boundaries.
        - Any other slot: the same-week story two days earlier.

        None means the story is structurally available.
        """
        story = self.get_story(story.id)
        if story.day_in_week == FIRST_DAY:
            index = self._week_index[story.week_id]
            if index == 0:
                return None
            preceding = self._stories_by_week[self._week_sequence[index - 1].id]
            return preceding[-1] if preceding else None

        wanted_day = story.day_in_week - DAY_STEP
        for candidate in self._stories_by_week[story.week_id]:
            if candidate.day_in_week == wanted_day:
                return candidate
        return None
