"""Comment Pydantic schemas for request/response validation."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from boardcore.config import settings


class CommentCreateRequest(BaseModel):
    """Request to create a new comment or reply."""
    content: str = Field(min_length=1, max_length=settings.MAX_COMMENT_LENGTH)


class CommentUpdateRequest(BaseModel):
    """Request to update an existing comment."""
    content: str = Field(min_length=1, max_length=settings.MAX_COMMENT_LENGTH)


class CommentResponse(BaseModel):
    """Single comment response.

    Deleted comments always render the placeholder, whichever delete branch
    produced them.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    parent_id: Optional[int] = None
    author_id: int
    content: str
    like_count: int
    is_deleted: bool
    created_at: datetime
    updated_at: datetime
    replies: List["CommentResponse"] = []

    @model_validator(mode="after")
    def mask_deleted_content(self) -> "CommentResponse":
        if self.is_deleted:
            self.content = settings.DELETED_COMMENT_PLACEHOLDER
        return self


def thread_to_response(thread) -> CommentResponse:
    """Build a nested response from a CommentThread."""
    response = CommentResponse.model_validate(thread.comment)
    response.replies = [CommentResponse.model_validate(reply) for reply in thread.replies]
    return response
