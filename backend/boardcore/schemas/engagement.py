"""Engagement Pydantic schemas: likes, bookmarks and votes."""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from boardcore.models.engagement import VoteType


class VoteRequest(BaseModel):
    """Request body for voting on a question or answer."""
    vote_type: VoteType


class LikeResponse(BaseModel):
    """Like state of a post or comment for the caller."""
    model_config = ConfigDict(from_attributes=True)

    like_count: int
    is_liked: bool


class BookmarkStateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bookmark_count: int
    is_bookmarked: bool


class VoteResponse(BaseModel):
    """Vote counters of a question or answer plus the caller's own vote."""
    model_config = ConfigDict(from_attributes=True)

    vote_count: int
    upvote_count: int
    downvote_count: int
    current_user_vote: Optional[VoteType] = None


class CounterDriftResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stored: int
    computed: int
