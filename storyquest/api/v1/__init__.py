"""
API v1 routes.
"""

from fastapi import APIRouter

from storyquest.api.v1 import curriculum, stories

router = APIRouter()

router.include_router(curriculum.router, tags=["Curriculum"])
router.include_router(stories.router, tags=["Stories"])
