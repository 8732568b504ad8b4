"""API v1 router -- aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from boardcore.api.v1 import admin, answers, comments, health, posts, questions

api_v1_router = APIRouter()

api_v1_router.include_router(health.router, tags=["health"])
api_v1_router.include_router(posts.router, prefix="/posts", tags=["posts"])
api_v1_router.include_router(comments.router, tags=["comments"])
api_v1_router.include_router(questions.router, prefix="/questions", tags=["questions"])
api_v1_router.include_router(answers.router, prefix="/answers", tags=["answers"])
api_v1_router.include_router(admin.router, prefix="/admin", tags=["admin"])
