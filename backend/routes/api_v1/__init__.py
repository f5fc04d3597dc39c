"""API v1: affiliates, matches, predictions, news, quizzes, profiles, community, admin and meta."""

from fastapi import APIRouter

from .admin import router as admin_router
from .affiliates import router as affiliates_router
from .community import router as community_router
from .matches import router as matches_router
from .meta import router as meta_router
from .news import router as news_router
from .predictions import router as predictions_router
from .profiles import router as profiles_router
from .quizzes import router as quizzes_router

router = APIRouter(prefix="/api/v1", tags=["api_v1"])
router.include_router(affiliates_router)
router.include_router(matches_router)
router.include_router(predictions_router)
router.include_router(news_router)
router.include_router(quizzes_router)
router.include_router(profiles_router)
router.include_router(community_router)
router.include_router(admin_router)
router.include_router(meta_router)

api_v1_router = router
