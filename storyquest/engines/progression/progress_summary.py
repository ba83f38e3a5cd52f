"""
Progress Summary - completion ratios for the curriculum browser's progress bars.

Plain count ratios; nothing here feeds back into access decisions.
"""

from typing import List, Optional

from pydantic import BaseModel

from storyquest.engines.progression.curriculum_tree import CurriculumTree, Month, Story, Week
from storyquest.engines.progression.ledger import ProgressLedger
from storyquest.engines.progression.reward_gate import percent_of


class WeekProgress(BaseModel):
    week_id: int
    title: str
    order: int
    completed: int
    total: int
    percent_complete: int


class MonthProgress(BaseModel):
    month_id: int
    title: str
    order: int
    block_id: int
    completed: int
    total: int
    percent_complete: int
    weeks: List[WeekProgress] = []


class CurriculumProgress(BaseModel):
    completed: int
    total: int
    percent_complete: int
    next_story_id: Optional[int] = None
    months: List[MonthProgress] = []


def week_progress(tree: CurriculumTree, week: Week, ledger: ProgressLedger) -> WeekProgress:
    stories = tree.stories_of_week(week)
    done = sum(1 for s in stories if ledger.is_completed(s.id))
    return WeekProgress(
        week_id=week.id,
        title=week.title,
        order=week.order,
        completed=done,
        total=len(stories),
        percent_complete=percent_of(done, len(stories)),
    )


def month_progress(tree: CurriculumTree, month: Month, ledger: ProgressLedger) -> MonthProgress:
    weeks = [week_progress(tree, w, ledger) for w in tree.weeks_of_month(month)]
    done = sum(w.completed for w in weeks)
    total = sum(w.total for w in weeks)
    return MonthProgress(
        month_id=month.id,
        title=month.title,
        order=month.order,
        block_id=month.block_id,
        completed=done,
        total=total,
        percent_complete=percent_of(done, total),
        weeks=weeks,
    )


def next_story(tree: CurriculumTree, ledger: ProgressLedger) -> Optional[Story]:
    """First story in linear order that is not completed yet."""
    for story in tree.stories():
        if not ledger.is_completed(story.id):
            return story
    return None


def curriculum_progress(tree: CurriculumTree, ledger: ProgressLedger) -> CurriculumProgress:
    months = [month_progress(tree, m, ledger) for m in tree.months()]
    done = sum(m.completed for m in months)
    total = sum(m.total for m in months)
    upcoming = next_story(tree, ledger)
    return CurriculumProgress(
        completed=done,
        total=total,
        percent_complete=percent_of(done, total),
        next_story_id=upcoming.id if upcoming else None,
        months=months,
    )
