"""
Curriculum browser endpoints - outline, progress bars, week map, rewards.
"""

from fastapi import APIRouter

from storyquest.api.deps import CurrentUser, Evaluator, Ledgers, PolicyContext, Rewards, Tree
from storyquest.engines.progression.access_evaluator import AccessPolicyContext
from storyquest.engines.progression.curriculum_tree import Week
from storyquest.engines.progression.decisions import WeekRewardDecision
from storyquest.engines.progression.ledger import ProgressLedger
from storyquest.engines.progression.progress_summary import curriculum_progress
from storyquest.engines.progression.reward_gate import RewardGate
from storyquest.kernel.curriculum.loader import CurriculumLoader
from storyquest.kernel.progress.ledger_store import LedgerStore
from storyquest.schemas.curriculum import (
    BlockOutline,
    CurriculumOutlineResponse,
    CurriculumProgressResponse,
    MonthOutline,
    StoryMapItem,
    StoryOutline,
    WeekMapResponse,
    WeekOutline,
    WeekRewardResponse,
)

router = APIRouter()


async def _week_reward(
    rewards: RewardGate,
    ledgers: LedgerStore,
    week: Week,
    ledger: ProgressLedger,
    context: AccessPolicyContext,
) -> WeekRewardResponse:
    decision: WeekRewardDecision = rewards.decide(week.id, ledger, context)
    cartoon_url = None
    if decision.is_unlocked:
        row = await CurriculumLoader(ledgers.session).get_week_row(week.id)
        cartoon_url = row.cartoon_url if row is not None else None
    return WeekRewardResponse.for_week(decision, cartoon_url)


@router.get("/curriculum", response_model=CurriculumOutlineResponse)
async def get_curriculum(user: CurrentUser, tree: Tree):
    """Structure of the whole program."""
    return CurriculumOutlineResponse(
        blocks=[
            BlockOutline(
                id=block.id,
                title=block.title,
                order=block.order,
                months=[
                    MonthOutline(
                        id=month.id,
                        title=month.title,
                        order=month.order,
                        weeks=[
                            WeekOutline(
                                id=week.id,
                                title=week.title,
                                order=week.order,
                                stories=[
                                    StoryOutline(id=s.id, title=s.title, day_in_week=s.day_in_week)
                                    for s in tree.stories_of_week(week)
                                ],
                            )
                            for week in tree.weeks_of_month(month)
                        ],
                    )
                    for month in sorted(block.months, key=lambda m: m.order)
                ],
            )
            for block in tree.blocks()
        ],
        total_stories=len(tree),
    )


@router.get("/curriculum/progress", response_model=CurriculumProgressResponse)
async def get_curriculum_progress(user: CurrentUser, tree: Tree, ledgers: Ledgers):
    """Completion percentages per month and week, and the next story to read."""
    ledger = await ledgers.load_ledger(user.id)
    progress = curriculum_progress(tree, ledger)
    return CurriculumProgressResponse(**progress.model_dump())


@router.get("/curriculum/weeks/{week_id}/map", response_model=WeekMapResponse)
async def get_week_map(
    week_id: int,
    user: CurrentUser,
    tree: Tree,
    evaluator: Evaluator,
    rewards: Rewards,
    ledgers: Ledgers,
    context: PolicyContext,
):
    """Day-by-day access map of one week, with its reward state."""
    week = tree.get_week(week_id)
    month = tree.get_month(week.month_id)
    ledger = await ledgers.load_ledger(user.id)

    days = []
    for story, decision in evaluator.decide_week(week.id, ledger, context):
        previous = tree.previous_story(story)
        days.append(
            StoryMapItem(
                story_id=story.id,
                title=story.title,
                day_in_week=story.day_in_week,
                previous_story_id=previous.id if previous else None,
                decision=decision,
            )
        )

    return WeekMapResponse(
        week_id=week.id,
        title=week.title,
        month_id=month.id,
        block_id=month.block_id,
        days=days,
        reward=await _week_reward(rewards, ledgers, week, ledger, context),
        evaluated_at=context.now,
    )


@router.get("/weeks/{week_id}/reward", response_model=WeekRewardResponse)
async def get_week_reward(
    week_id: int,
    user: CurrentUser,
    tree: Tree,
    rewards: Rewards,
    ledgers: Ledgers,
    context: PolicyContext,
):
    """Whether the week's bonus cartoon is unlocked, and the cartoon once it is."""
    week = tree.get_week(week_id)
    ledger = await ledgers.load_ledger(user.id)
    return await _week_reward(rewards, ledgers, week, ledger, context)
