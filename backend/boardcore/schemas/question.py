"""Q&A Pydantic schemas for request/response validation."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from boardcore.models.engagement import VoteType
from boardcore.models.question import QuestionStatus


class QuestionCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)


class QuestionUpdateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)


class AnswerCreateRequest(BaseModel):
    content: str = Field(min_length=1)


class AnswerUpdateRequest(BaseModel):
    content: str = Field(min_length=1)


class AnswerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question_id: int
    author_id: int
    content: str
    is_accepted: bool
    vote_count: int
    upvote_count: int
    downvote_count: int
    created_at: datetime
    updated_at: datetime
    current_user_vote: Optional[VoteType] = None


class QuestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    author_id: int
    status: QuestionStatus
    accepted_answer_id: Optional[int] = None
    vote_count: int
    upvote_count: int
    downvote_count: int
    answer_count: int
    view_count: int
    created_at: datetime
    updated_at: datetime
    current_user_vote: Optional[VoteType] = None


class QuestionDetailResponse(QuestionResponse):
    """Question with its live answers, accepted answer first."""
    answers: List[AnswerResponse] = []
