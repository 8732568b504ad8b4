"""Comment model for post discussions."""

from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from boardcore.models.base import Base, IdPrimaryKeyMixin, SoftDeleteMixin, TimestampMixin


class Comment(IdPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """A comment on a post, or a reply to a top-level comment.

    Threads are at most two levels deep: a comment whose ``parent_id`` is set
    can never itself be a parent.
    """

    __tablename__ = "comments"

    post_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    parent_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True, index=True,
        comment="Parent comment ID for replies"
    )
    author_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    content: Mapped[str] = mapped_column(
        Text, nullable=False,
        comment="Comment text content"
    )
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    __table_args__ = (
        Index("idx_comments_post_created", "post_id", "created_at"),
    )

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, post_id={self.post_id}, parent={self.parent_id})>"
