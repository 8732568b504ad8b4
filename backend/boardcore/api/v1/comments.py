"""Comments API endpoints (threads under /posts/{post_id}/comments, items under /comments)."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.dependencies import Caller, get_current_caller, get_db
from boardcore.schemas import (
    ApiResponse,
    CommentCreateRequest,
    CommentResponse,
    CommentUpdateRequest,
    LikeResponse,
    thread_to_response,
)
from boardcore.services.comment_service import CommentService
from boardcore.services.targets import TargetKind
from boardcore.services.vote_service import VoteService

router = APIRouter()


@router.get("/posts/{post_id}/comments", response_model=ApiResponse)
async def list_comments(
    post_id: int,
    include_deleted: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """Get all comments for a post (with nested replies)."""
    service = CommentService(db)
    threads = await service.get_thread(post_id, include_deleted=include_deleted)

    return ApiResponse(
        status="success",
        data=[thread_to_response(t).model_dump(mode="json") for t in threads],
    )


@router.post("/posts/{post_id}/comments", response_model=ApiResponse, status_code=201)
async def create_comment(
    post_id: int,
    body: CommentCreateRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Create a new top-level comment on a post."""
    service = CommentService(db)
    comment = await service.create_comment(post_id=post_id, content=body.content, author_id=caller.user_id)

    return ApiResponse(
        status="success",
        data=CommentResponse.model_validate(comment).model_dump(mode="json"),
    )


@router.post("/comments/{comment_id}/replies", response_model=ApiResponse, status_code=201)
async def create_reply(
    comment_id: int,
    body: CommentCreateRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Reply to a top-level comment. Replies to replies are rejected."""
    service = CommentService(db)
    reply = await service.create_reply(parent_id=comment_id, content=body.content, author_id=caller.user_id)

    return ApiResponse(
        status="success",
        data=CommentResponse.model_validate(reply).model_dump(mode="json"),
    )


@router.put("/comments/{comment_id}", response_model=ApiResponse)
async def update_comment(
    comment_id: int,
    body: CommentUpdateRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Update a comment. Only the author can edit."""
    service = CommentService(db)
    comment = await service.update_comment(comment_id, content=body.content, acting_user_id=caller.user_id)

    return ApiResponse(
        status="success",
        data=CommentResponse.model_validate(comment).model_dump(mode="json"),
    )


@router.delete("/comments/{comment_id}", response_model=ApiResponse)
async def delete_comment(
    comment_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Delete a comment (soft delete). Author or admin only."""
    service = CommentService(db)
    deleted = await service.delete_comment(comment_id, caller.user_id, is_admin=caller.is_admin)

    return ApiResponse(status="success", data={"deleted": deleted})


@router.post("/comments/{comment_id}/like", response_model=ApiResponse)
async def like_comment(
    comment_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    state = await VoteService(db).like(TargetKind.COMMENT, comment_id, caller.user_id)
    return ApiResponse(status="success", data=LikeResponse.model_validate(state).model_dump(mode="json"))


@router.delete("/comments/{comment_id}/like", response_model=ApiResponse)
async def unlike_comment(
    comment_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    votes = VoteService(db)
    state = await votes.unlike(TargetKind.COMMENT, comment_id, caller.user_id)
    if state is None:
        state = await votes.get_like_state(TargetKind.COMMENT, comment_id, caller.user_id)
    data = LikeResponse.model_validate(state).model_dump(mode="json") if state else None
    return ApiResponse(status="success", data=data)
