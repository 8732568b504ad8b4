"""Post model for the free-form bulletin board."""

from sqlalchemy import BigInteger, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from boardcore.models.base import Base, IdPrimaryKeyMixin, SoftDeleteMixin, TimestampMixin


class Post(IdPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """A board post.

    The counters are denormalized aggregates of the engagement ledger and of
    live child comments. ``version_id`` makes every counter write a
    compare-and-swap on this row, so concurrent engagements on one post
    serialize here.
    """

    __tablename__ = "posts"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    view_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
        comment="Number of counted (deduplicated) views"
    )
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bookmark_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comment_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
        comment="Number of live (not deleted) comments and replies"
    )

    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    __table_args__ = (
        Index("idx_posts_created", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, author={self.author_id}, title='{self.title[:20]}')>"
