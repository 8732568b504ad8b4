"""Engagement ledger records: likes, bookmarks, votes and views.

Each interaction kind has its own table with a uniform ``target_id`` /
``user_id`` shape so the ledger service can treat them generically. Records
are the source of truth for the counters on the owning rows.
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Enum, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from boardcore.models.base import Base, IdPrimaryKeyMixin, utcnow


class VoteType(str, enum.Enum):
    UP = "up"
    DOWN = "down"

    @property
    def opposite(self) -> "VoteType":
        return VoteType.DOWN if self is VoteType.UP else VoteType.UP


_vote_type_column = Enum(
    VoteType, native_enum=False, length=4,
    values_callable=lambda e: [m.value for m in e],
)


class LedgerRecordMixin(IdPrimaryKeyMixin):
    """Columns shared by every one-shot interaction record."""

    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class PostLike(LedgerRecordMixin, Base):
    __tablename__ = "post_likes"

    target_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True,
    )

    __table_args__ = (
        UniqueConstraint("target_id", "user_id", name="uq_post_like_user"),
    )


class CommentLike(LedgerRecordMixin, Base):
    __tablename__ = "comment_likes"

    target_id: Mapped[int] = mapped_column(
        ForeignKey("comments.id", ondelete="CASCADE"), nullable=False, index=True,
    )

    __table_args__ = (
        UniqueConstraint("target_id", "user_id", name="uq_comment_like_user"),
    )


class Bookmark(LedgerRecordMixin, Base):
    __tablename__ = "bookmarks"

    target_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True,
    )

    __table_args__ = (
        UniqueConstraint("target_id", "user_id", name="uq_bookmark_user"),
        Index("idx_bookmarks_user_created", "user_id", "created_at"),
    )


class QuestionVote(LedgerRecordMixin, Base):
    __tablename__ = "question_votes"

    target_id: Mapped[int] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    vote_type: Mapped[VoteType] = mapped_column(_vote_type_column, nullable=False)

    __table_args__ = (
        UniqueConstraint("target_id", "user_id", name="uq_question_vote_user"),
    )


class AnswerVote(LedgerRecordMixin, Base):
    __tablename__ = "answer_votes"

    target_id: Mapped[int] = mapped_column(
        ForeignKey("answers.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    vote_type: Mapped[VoteType] = mapped_column(_vote_type_column, nullable=False)

    __table_args__ = (
        UniqueConstraint("target_id", "user_id", name="uq_answer_vote_user"),
    )


class ViewRecordMixin(IdPrimaryKeyMixin):
    """Append-only record of a counted view.

    Only views that incremented the owning row's ``view_count`` are stored;
    old rows age out of the dedup window logically and are never deleted.
    """

    user_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    viewed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class ViewRecord(ViewRecordMixin, Base):
    __tablename__ = "view_records"

    target_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), nullable=False,
    )

    __table_args__ = (
        Index("idx_view_records_user", "target_id", "user_id", "viewed_at"),
        Index("idx_view_records_ip", "target_id", "ip_address", "viewed_at"),
    )


class QuestionViewRecord(ViewRecordMixin, Base):
    __tablename__ = "question_view_records"

    target_id: Mapped[int] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), nullable=False,
    )

    __table_args__ = (
        Index("idx_question_views_user", "target_id", "user_id", "viewed_at"),
        Index("idx_question_views_ip", "target_id", "ip_address", "viewed_at"),
    )
