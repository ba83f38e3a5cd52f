"""Unit tests for assembling the curriculum tree from program rows."""

from types import SimpleNamespace

import pytest

from storyquest.engines.progression.errors import CurriculumIntegrityError
from storyquest.kernel.curriculum.loader import assemble_tree
from storyquest.kernel.models.curriculum import ProgramBlock, ProgramMonth, ProgramStory, ProgramWeek
from storyquest.pedagogy.year_program import build_year_program_tree, iter_program_rows


def _rows():
    blocks = [SimpleNamespace(id=1, title="B1", order_num=1)]
    months = [SimpleNamespace(id=1, title="M1", order_num=1, block_id=1)]
    weeks = [
        SimpleNamespace(id=2, title="W2", order_num=2, month_id=1),
        SimpleNamespace(id=1, title="W1", order_num=1, month_id=1),
    ]
    stories = [
        SimpleNamespace(id=3, title="S3", day_in_week=1, week_id=2),
        SimpleNamespace(id=2, title="S2", day_in_week=3, week_id=1),
        SimpleNamespace(id=1, title="S1", day_in_week=1, week_id=1),
    ]
    return blocks, months, weeks, stories


class TestAssembleTree:
    def test_builds_ordered_tree(self):
        tree = assemble_tree(*_rows())
        assert [s.id for s in tree.stories()] == [1, 2, 3]
        assert tree.previous_story(tree.get_story(3)).id == 2

    def test_duplicate_story_id(self):
        blocks, months, weeks, stories = _rows()
        stories.append(SimpleNamespace(id=1, title="dup", day_in_week=5, week_id=1))
        with pytest.raises(CurriculumIntegrityError, match="Duplicate story id"):
            assemble_tree(blocks, months, weeks, stories)

    def test_duplicate_day_in_week(self):
        blocks, months, weeks, stories = _rows()
        stories.append(SimpleNamespace(id=9, title="clash", day_in_week=3, week_id=1))
        with pytest.raises(CurriculumIntegrityError):
            assemble_tree(blocks, months, weeks, stories)

    def test_duplicate_week_order(self):
        blocks, months, weeks, stories = _rows()
        weeks.append(SimpleNamespace(id=7, title="W7", order_num=1, month_id=1))
        with pytest.raises(CurriculumIntegrityError):
            assemble_tree(blocks, months, weeks, stories)

    def test_duplicate_block_order(self):
        blocks, months, weeks, stories = _rows()
        blocks.append(SimpleNamespace(id=2, title="B2", order_num=1))
        with pytest.raises(CurriculumIntegrityError):
            assemble_tree(blocks, months, weeks, stories)

    def test_dangling_parent(self):
        blocks, months, weeks, stories = _rows()
        stories.append(SimpleNamespace(id=9, title="orphan", day_in_week=1, week_id=42))
        with pytest.raises(CurriculumIntegrityError, match="missing week_id"):
            assemble_tree(blocks, months, weeks, stories)

    @pytest.mark.parametrize("day", [0, 2, -1])
    def test_story_days_must_be_odd(self, day):
        blocks, months, weeks, stories = _rows()
        stories.append(SimpleNamespace(id=9, title="even", day_in_week=day, week_id=2))
        with pytest.raises(CurriculumIntegrityError):
            assemble_tree(blocks, months, weeks, stories)

    def test_empty_week_allowed(self):
        blocks, months, weeks, stories = _rows()
        weeks.append(SimpleNamespace(id=3, title="W3", order_num=3, month_id=1))
        tree = assemble_tree(blocks, months, weeks, stories)
        assert tree.stories_of_week(tree.get_week(3)) == []


class TestYearProgram:
    def test_shape(self):
        tree = build_year_program_tree()
        assert len(tree.blocks()) == 4
        assert len(tree.months()) == 12
        assert len(tree.weeks()) == 12
        assert len(tree) == 36

    def test_every_week_has_three_story_days(self):
        tree = build_year_program_tree()
        for week in tree.weeks():
            assert [s.day_in_week for s in tree.stories_of_week(week)] == [1, 3, 5]

    def test_months_chain_into_each_other(self):
        tree = build_year_program_tree()
        # First story of month 2 waits on the last story of month 1
        assert tree.previous_story(tree.get_story(4)).id == 3
        # First story of block 2 waits on the last story of block 1
        assert tree.previous_story(tree.get_story(10)).id == 9

    def test_rows_assemble_to_same_tree(self):
        rows = list(iter_program_rows())
        tree = assemble_tree(
            [r for r in rows if isinstance(r, ProgramBlock)],
            [r for r in rows if isinstance(r, ProgramMonth)],
            [r for r in rows if isinstance(r, ProgramWeek)],
            [r for r in rows if isinstance(r, ProgramStory)],
        )
        expected = build_year_program_tree()
        assert [s.id for s in tree.stories()] == [s.id for s in expected.stories()]
        assert [s.title for s in tree.stories()] == [s.title for s in expected.stories()]
