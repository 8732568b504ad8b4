"""Post API endpoints: CRUD, views, likes and bookmarks."""

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.dependencies import Caller, get_client_ip, get_current_caller, get_db, get_optional_caller
from boardcore.schemas import (
    ApiResponse,
    BookmarkResponse,
    BookmarkStateResponse,
    LikeResponse,
    PaginationMeta,
    PostCreateRequest,
    PostResponse,
    PostSummary,
    PostUpdateRequest,
)
from boardcore.services.post_service import PostService
from boardcore.services.targets import TargetKind
from boardcore.services.view_service import ViewService
from boardcore.services.vote_service import VoteService

router = APIRouter()


@router.post("", response_model=ApiResponse, status_code=201)
async def create_post(
    body: PostCreateRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Create a new post."""
    service = PostService(db)
    post = await service.create_post(title=body.title, content=body.content, author_id=caller.user_id)
    return ApiResponse(
        status="success",
        data=PostResponse.model_validate(post).model_dump(mode="json"),
    )


@router.get("", response_model=ApiResponse)
async def list_posts(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    sort_by: str = Query(
        "newest", pattern="^(newest|oldest|likes|views|comments|title)$", description="Sort method"
    ),
    author_id: Optional[int] = Query(None, description="Filter by author"),
    search: Optional[str] = Query(None, max_length=100, description="Search title and content"),
    db: AsyncSession = Depends(get_db),
):
    """List live posts with pagination and sorting."""
    service = PostService(db)
    posts, total = await service.list_posts(
        page=page, limit=limit, sort_by=sort_by, author_id=author_id, search=search
    )
    return ApiResponse(
        status="success",
        data=[PostSummary.model_validate(post).model_dump(mode="json") for post in posts],
        meta=PaginationMeta(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit)),
    )


@router.get("/bookmarks", response_model=ApiResponse)
async def list_my_bookmarks(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's bookmarks, newest first."""
    service = PostService(db)
    rows, total = await service.list_bookmarks(caller.user_id, page=page, limit=limit)

    data = [
        BookmarkResponse(
            id=bookmark.id,
            post_id=post.id,
            post=PostSummary.model_validate(post),
            created_at=bookmark.created_at,
        ).model_dump(mode="json")
        for bookmark, post in rows
    ]
    return ApiResponse(
        status="success",
        data=data,
        meta=PaginationMeta(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit)),
    )


@router.get("/{post_id}", response_model=ApiResponse)
async def get_post(
    post_id: int,
    request: Request,
    caller: Optional[Caller] = Depends(get_optional_caller),
    db: AsyncSession = Depends(get_db),
):
    """Get a post and count the view (deduplicated per viewer)."""
    service = PostService(db)
    post = await service.get_post(post_id)

    user_id = caller.user_id if caller else None
    await ViewService(db).record_view(post_id, user_id=user_id, ip_address=get_client_ip(request))

    votes = VoteService(db)
    like_state = await votes.get_like_state(TargetKind.POST, post_id, user_id)
    response = PostResponse.model_validate(post)
    response.is_liked = like_state.is_liked if like_state else False
    response.is_bookmarked = await votes.is_bookmarked(post_id, user_id)

    return ApiResponse(status="success", data=response.model_dump(mode="json"))


@router.put("/{post_id}", response_model=ApiResponse)
async def update_post(
    post_id: int,
    body: PostUpdateRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Edit a post. Author or admin only."""
    post = await PostService(db).update_post(
        post_id,
        caller.user_id,
        title=body.title,
        content=body.content,
        is_admin=caller.is_admin,
    )
    return ApiResponse(status="success", data=PostResponse.model_validate(post).model_dump(mode="json"))


@router.delete("/{post_id}", response_model=ApiResponse)
async def delete_post(
    post_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Soft-delete a post. Author or admin only."""
    service = PostService(db)
    await service.delete_post(post_id, caller.user_id, is_admin=caller.is_admin)
    return ApiResponse(status="success", data={"deleted": True})


@router.post("/{post_id}/like", response_model=ApiResponse)
async def like_post(
    post_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Like a post. Liking twice is a 409."""
    state = await VoteService(db).like(TargetKind.POST, post_id, caller.user_id)
    return ApiResponse(status="success", data=LikeResponse.model_validate(state).model_dump(mode="json"))


@router.delete("/{post_id}/like", response_model=ApiResponse)
async def unlike_post(
    post_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Remove a like. Unliking a post that was never liked is not an error."""
    votes = VoteService(db)
    state = await votes.unlike(TargetKind.POST, post_id, caller.user_id)
    if state is None:
        state = await votes.get_like_state(TargetKind.POST, post_id, caller.user_id)
    data = LikeResponse.model_validate(state).model_dump(mode="json") if state else None
    return ApiResponse(status="success", data=data)


@router.post("/{post_id}/bookmark", response_model=ApiResponse)
async def bookmark_post(
    post_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Bookmark a post. Bookmarking twice is a 409."""
    state = await VoteService(db).bookmark(post_id, caller.user_id)
    return ApiResponse(
        status="success",
        data=BookmarkStateResponse.model_validate(state).model_dump(mode="json"),
    )


@router.delete("/{post_id}/bookmark", response_model=ApiResponse)
async def unbookmark_post(
    post_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Remove a bookmark."""
    removed = await VoteService(db).unbookmark(post_id, caller.user_id)
    return ApiResponse(status="success", data={"removed": removed})
