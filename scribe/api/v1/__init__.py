"""API v1 routes."""

from fastapi import APIRouter

from scribe.api.v1 import admin, articles, auth, comments, health, notifications, replies, statistics
from scribe.realtime import routes as realtime

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
router.include_router(articles.router, prefix="/articles", tags=["articles"])
router.include_router(comments.router, prefix="/comments", tags=["comments"])
router.include_router(replies.router, prefix="/replies", tags=["replies"])
router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
router.include_router(statistics.router, prefix="/statistics", tags=["statistics"])
router.include_router(realtime.router, prefix="/ws", tags=["realtime"])
