"""SQLAlchemy models for the board backend.

All models are imported here so metadata is complete for create_all.
"""

from boardcore.models.base import Base, IdPrimaryKeyMixin, SoftDeleteMixin, TimestampMixin
from boardcore.models.post import Post
from boardcore.models.comment import Comment
from boardcore.models.question import Answer, Question, QuestionStatus
from boardcore.models.engagement import (
    AnswerVote,
    Bookmark,
    CommentLike,
    PostLike,
    QuestionViewRecord,
    QuestionVote,
    ViewRecord,
    VoteType,
)

__all__ = [
    "Base",
    "IdPrimaryKeyMixin",
    "SoftDeleteMixin",
    "TimestampMixin",
    "Post",
    "Comment",
    "Question",
    "QuestionStatus",
    "Answer",
    "PostLike",
    "CommentLike",
    "Bookmark",
    "QuestionVote",
    "AnswerVote",
    "ViewRecord",
    "QuestionViewRecord",
    "VoteType",
]
