"""
Single-story endpoints - access check, guarded content, completion.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, status

from storyquest.api.deps import CurrentUser, Evaluator, Ledgers, PolicyContext, Tree
from storyquest.engines.progression.curriculum_tree import CurriculumTree, Story
from storyquest.engines.progression.decisions import AccessDecision, AccessState
from storyquest.engines.progression.ledger import ReplayPolicy
from storyquest.kernel.curriculum.loader import CurriculumLoader
from storyquest.logging_config import get_logger
from storyquest.schemas.story import (
    CompleteStoryRequest,
    CompleteStoryResponse,
    NextStoryAccess,
    QuestionResponse,
    StoryAccessResponse,
    StoryContentResponse,
)

logger = get_logger(__name__)

router = APIRouter()


def _raise_if_denied(story_id: int, decision: AccessDecision) -> None:
    """Paywall -> 402, prerequisite or cooldown -> 423."""
    if decision.is_accessible:
        return
    if decision.state == AccessState.LOCKED_BY_ENTITLEMENT:
        code = status.HTTP_402_PAYMENT_REQUIRED
        message = "Subscription required"
    else:
        code = status.HTTP_423_LOCKED
        message = "Story is locked"
    logger.info(
        "Story access denied",
        extra={"story_id": story_id, "state": decision.state.value},
    )
    raise HTTPException(
        status_code=code,
        detail={"message": message, "story_id": story_id, "decision": decision.model_dump(mode="json")},
    )


def _story_after(tree: CurriculumTree, story: Story) -> Optional[Story]:
    """Next story in linear curriculum order."""
    found = False
    for candidate in tree.stories():
        if found:
            return candidate
        found = candidate.id == story.id
    return None


@router.get("/stories/{story_id}/access", response_model=StoryAccessResponse)
async def get_story_access(
    story_id: int,
    user: CurrentUser,
    tree: Tree,
    evaluator: Evaluator,
    ledgers: Ledgers,
    context: PolicyContext,
):
    """Access decision for one story, evaluated at server time."""
    story = tree.get_story(story_id)
    ledger = await ledgers.load_ledger(user.id)
    decision = evaluator.decide(story.id, ledger, context)
    return StoryAccessResponse(
        story_id=story.id,
        week_id=story.week_id,
        day_in_week=story.day_in_week,
        decision=decision,
        evaluated_at=context.now,
    )


@router.get("/stories/{story_id}", response_model=StoryContentResponse)
async def get_story(
    story_id: int,
    user: CurrentUser,
    tree: Tree,
    evaluator: Evaluator,
    ledgers: Ledgers,
    context: PolicyContext,
):
    """
    Story content behind the access guard.

    A completed story stays readable even after the subscription lapses.
    """
    tree.get_story(story_id)
    ledger = await ledgers.load_ledger(user.id)
    decision = evaluator.decide(story_id, ledger, context)
    _raise_if_denied(story_id, decision)

    row = await CurriculumLoader(ledgers.session).get_story_content(story_id)
    return StoryContentResponse(
        id=row.id,
        title=row.title,
        day_in_week=row.day_in_week,
        week_id=row.week_id,
        plot=row.plot,
        full_text=row.full_text,
        therapeutic_goal=row.therapeutic_goal,
        methodology=row.methodology,
        why_important=row.why_important,
        questions=[
            QuestionResponse(
                id=q.id,
                question_type=q.question_type,
                question_text=q.question_text,
                hint=q.hint,
                order_num=q.order_num,
            )
            for q in row.questions
        ],
        decision=decision,
    )


@router.post("/stories/{story_id}/complete", response_model=CompleteStoryResponse)
async def complete_story(
    story_id: int,
    body: CompleteStoryRequest,
    user: CurrentUser,
    tree: Tree,
    evaluator: Evaluator,
    ledgers: Ledgers,
    context: PolicyContext,
):
    """
    Record that the story was read and its questions discussed.

    Only a story the user may open can be completed. The completion instant
    is taken from the server clock.
    """
    story = tree.get_story(story_id)
    ledger = await ledgers.load_ledger(user.id)
    _raise_if_denied(story_id, evaluator.decide(story_id, ledger, context))

    result = await ledgers.record_completion(user.id, story_id, body.questions_answered)

    # Reflect the stored row exactly, whatever the replay policy did
    ledger = ledger.with_completion(story_id, result.entry.completed_at, ReplayPolicy.LAST_WRITE_WINS)
    upcoming = _story_after(tree, story)
    next_story = None
    if upcoming is not None:
        next_story = NextStoryAccess(
            story_id=upcoming.id,
            decision=evaluator.decide(upcoming.id, ledger, context),
        )

    return CompleteStoryResponse(
        story_id=story_id,
        completed_at=result.entry.completed_at,
        replayed=result.replayed,
        questions_answered=result.questions_answered,
        next_story=next_story,
    )
