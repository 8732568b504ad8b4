"""Engagement ledger: durable per-(kind, target, user) interaction records.

The ledger only stores and queries records. Keeping the owning entity's
counters in step is the caller's job, inside the same session transaction.
"""

import enum
from datetime import datetime
from typing import Dict, Iterable, Optional, Type, Union

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.core.exceptions import DuplicateInteraction
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
from boardcore.services.targets import TargetKind

logger = structlog.get_logger(__name__)

LedgerRecord = Union[
    PostLike, CommentLike, Bookmark, QuestionVote, AnswerVote, ViewRecord, QuestionViewRecord
]


class LedgerKind(str, enum.Enum):
    POST_LIKE = "post_like"
    COMMENT_LIKE = "comment_like"
    BOOKMARK = "bookmark"
    QUESTION_VOTE = "question_vote"
    ANSWER_VOTE = "answer_vote"
    POST_VIEW = "post_view"
    QUESTION_VIEW = "question_view"

    @property
    def model(self) -> Type[LedgerRecord]:
        return LEDGER_MODELS[self]

    @property
    def target_kind(self) -> TargetKind:
        return LEDGER_TARGETS[self]

    @property
    def is_vote(self) -> bool:
        return self in (LedgerKind.QUESTION_VOTE, LedgerKind.ANSWER_VOTE)

    @property
    def is_view(self) -> bool:
        return self in (LedgerKind.POST_VIEW, LedgerKind.QUESTION_VIEW)


LEDGER_MODELS: Dict[LedgerKind, Type[LedgerRecord]] = {
    LedgerKind.POST_LIKE: PostLike,
    LedgerKind.COMMENT_LIKE: CommentLike,
    LedgerKind.BOOKMARK: Bookmark,
    LedgerKind.QUESTION_VOTE: QuestionVote,
    LedgerKind.ANSWER_VOTE: AnswerVote,
    LedgerKind.POST_VIEW: ViewRecord,
    LedgerKind.QUESTION_VIEW: QuestionViewRecord,
}

LEDGER_TARGETS: Dict[LedgerKind, TargetKind] = {
    LedgerKind.POST_LIKE: TargetKind.POST,
    LedgerKind.COMMENT_LIKE: TargetKind.COMMENT,
    LedgerKind.BOOKMARK: TargetKind.POST,
    LedgerKind.QUESTION_VOTE: TargetKind.QUESTION,
    LedgerKind.ANSWER_VOTE: TargetKind.ANSWER,
    LedgerKind.POST_VIEW: TargetKind.POST,
    LedgerKind.QUESTION_VIEW: TargetKind.QUESTION,
}

LIKE_KINDS: Dict[TargetKind, LedgerKind] = {
    TargetKind.POST: LedgerKind.POST_LIKE,
    TargetKind.COMMENT: LedgerKind.COMMENT_LIKE,
}

VOTE_KINDS: Dict[TargetKind, LedgerKind] = {
    TargetKind.QUESTION: LedgerKind.QUESTION_VOTE,
    TargetKind.ANSWER: LedgerKind.ANSWER_VOTE,
}

VIEW_KINDS: Dict[TargetKind, LedgerKind] = {
    TargetKind.POST: LedgerKind.POST_VIEW,
    TargetKind.QUESTION: LedgerKind.QUESTION_VIEW,
}


class EngagementLedger:
    """Stores and queries interaction records for all ledger kinds."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="ledger")

    async def find(
        self,
        kind: LedgerKind,
        target_id: int,
        user_id: int,
    ) -> Optional[LedgerRecord]:
        """Return the caller's record for a target, if any.

        For views this is the most recent record of that user.
        """
        model = kind.model
        stmt = select(model).where(
            model.target_id == target_id,
            model.user_id == user_id,
        )
        if kind.is_view:
            stmt = stmt.order_by(model.viewed_at.desc()).limit(1)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def find_many(
        self,
        kind: LedgerKind,
        target_ids: Iterable[int],
        user_id: int,
    ) -> Dict[int, LedgerRecord]:
        """Return the caller's records for several targets keyed by target id."""
        ids = list(target_ids)
        if not ids:
            return {}
        model = kind.model
        stmt = select(model).where(
            model.target_id.in_(ids),
            model.user_id == user_id,
        )
        result = await self.db.execute(stmt)
        return {record.target_id: record for record in result.scalars().all()}

    async def record(
        self,
        kind: LedgerKind,
        target_id: int,
        user_id: Optional[int],
        vote_type: Optional[VoteType] = None,
        ip_address: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> LedgerRecord:
        """Append a record.

        Raises:
            DuplicateInteraction: a non-view record already exists for
                (kind, target_id, user_id)
            ValueError: vote kinds without a vote_type, or a non-view
                record without a user
        """
        if kind.is_vote and vote_type is None:
            raise ValueError(f"{kind.value} records require a vote_type")

        if kind.is_view:
            record = kind.model(
                target_id=target_id,
                user_id=user_id,
                ip_address=ip_address,
            )
            if at is not None:
                record.viewed_at = at
        else:
            if user_id is None:
                raise ValueError(f"{kind.value} records require a user_id")
            existing = await self.find(kind, target_id, user_id)
            if existing is not None:
                raise DuplicateInteraction(
                    f"{kind.value} already recorded for target {target_id} by user {user_id}"
                )
            record = kind.model(target_id=target_id, user_id=user_id)
            if kind.is_vote:
                record.vote_type = vote_type
            if at is not None:
                record.created_at = at

        self.db.add(record)
        await self.db.flush()

        self.logger.debug(
            "ledger_recorded",
            kind=kind.value,
            target_id=target_id,
            user_id=user_id,
            record_id=record.id,
        )
        return record

    async def remove(self, kind: LedgerKind, target_id: int, user_id: int) -> bool:
        """Delete the caller's record. Returns False if there was none."""
        if kind.is_view:
            raise ValueError("view records are append-only")

        existing = await self.find(kind, target_id, user_id)
        if existing is None:
            return False

        await self.db.delete(existing)
        await self.db.flush()

        self.logger.debug("ledger_removed", kind=kind.value, target_id=target_id, user_id=user_id)
        return True

    async def count(
        self,
        kind: LedgerKind,
        target_id: int,
        vote_type: Optional[VoteType] = None,
    ) -> int:
        """Count records for a target, optionally restricted to one vote type."""
        model = kind.model
        stmt = select(func.count(model.id)).where(model.target_id == target_id)
        if vote_type is not None:
            stmt = stmt.where(model.vote_type == vote_type)
        result = await self.db.execute(stmt)
        return result.scalar() or 0
