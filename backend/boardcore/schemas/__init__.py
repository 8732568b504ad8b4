"""Pydantic schemas for the board API.

All request/response models are defined here for easy import.
"""

from boardcore.schemas.common import ApiResponse, ErrorDetail, ErrorResponse, PaginationMeta
from boardcore.schemas.engagement import (
    BookmarkStateResponse,
    CounterDriftResponse,
    LikeResponse,
    VoteRequest,
    VoteResponse,
)
from boardcore.schemas.post import (
    BookmarkResponse,
    PostCreateRequest,
    PostResponse,
    PostSummary,
    PostUpdateRequest,
)
from boardcore.schemas.comment import (
    CommentCreateRequest,
    CommentResponse,
    CommentUpdateRequest,
    thread_to_response,
)
from boardcore.schemas.question import (
    AnswerCreateRequest,
    AnswerResponse,
    AnswerUpdateRequest,
    QuestionCreateRequest,
    QuestionDetailResponse,
    QuestionResponse,
    QuestionUpdateRequest,
)

__all__ = [
    # Common
    "ApiResponse",
    "ErrorDetail",
    "ErrorResponse",
    "PaginationMeta",
    # Engagement
    "VoteRequest",
    "VoteResponse",
    "LikeResponse",
    "BookmarkStateResponse",
    "CounterDriftResponse",
    # Post
    "PostCreateRequest",
    "PostUpdateRequest",
    "PostResponse",
    "PostSummary",
    "BookmarkResponse",
    # Comment
    "CommentCreateRequest",
    "CommentUpdateRequest",
    "CommentResponse",
    "thread_to_response",
    # Q&A
    "QuestionCreateRequest",
    "QuestionUpdateRequest",
    "QuestionResponse",
    "QuestionDetailResponse",
    "AnswerCreateRequest",
    "AnswerUpdateRequest",
    "AnswerResponse",
]
