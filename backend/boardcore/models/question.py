"""Question and Answer models for the Q&A board."""

import enum
from typing import Optional

from sqlalchemy import BigInteger, Boolean, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from boardcore.models.base import Base, IdPrimaryKeyMixin, SoftDeleteMixin, TimestampMixin


class QuestionStatus(str, enum.Enum):
    OPEN = "open"
    ANSWERED = "answered"
    CLOSED = "closed"


class Question(IdPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """A question that collects answers, votes and at most one accepted answer."""

    __tablename__ = "questions"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    status: Mapped[QuestionStatus] = mapped_column(
        Enum(QuestionStatus, native_enum=False, length=16,
             values_callable=lambda e: [m.value for m in e]),
        nullable=False, default=QuestionStatus.OPEN,
    )
    # Plain column rather than a FK: answers already reference questions and
    # the cycle would complicate table creation order.
    accepted_answer_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    vote_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
        comment="Net votes: upvote_count - downvote_count"
    )
    upvote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    answer_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    view_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
        comment="Number of counted (deduplicated) views"
    )

    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    __table_args__ = (
        Index("idx_questions_status_created", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Question(id={self.id}, status={self.status}, accepted={self.accepted_answer_id})>"


class Answer(IdPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """An answer to a question."""

    __tablename__ = "answers"

    question_id: Mapped[int] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    author_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    vote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    upvote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Answer(id={self.id}, question_id={self.question_id}, accepted={self.is_accepted})>"
