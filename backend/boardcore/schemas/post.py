"""Post Pydantic schemas for request/response validation."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PostCreateRequest(BaseModel):
    """Request to create a new post."""
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)


class PostUpdateRequest(BaseModel):
    """Request to edit a post. Omitted or blank fields are left unchanged."""
    title: Optional[str] = Field(default=None, max_length=200)
    content: Optional[str] = None


class PostResponse(BaseModel):
    """Single post response with counters and the caller's engagement."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    author_id: int
    view_count: int
    like_count: int
    bookmark_count: int
    comment_count: int
    created_at: datetime
    updated_at: datetime
    is_liked: bool = False
    is_bookmarked: bool = False


class PostSummary(BaseModel):
    """Post summary used in post and bookmark listings."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    author_id: int
    view_count: int
    like_count: int
    bookmark_count: int
    comment_count: int
    created_at: datetime


class BookmarkResponse(BaseModel):
    """A bookmark with the bookmarked post."""
    id: int
    post_id: int
    post: PostSummary
    created_at: datetime
