"""Counter reconciliation: recompute derived counters from the ledger.

Counters are maintained incrementally by the other services. This service
recomputes them from the authoritative rows so drift can be detected and
repaired independently of the incremental logic.
"""

from dataclasses import dataclass
from typing import Dict

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.models.comment import Comment
from boardcore.models.engagement import VoteType
from boardcore.models.question import Answer
from boardcore.services.ledger import LIKE_KINDS, VOTE_KINDS, EngagementLedger, LedgerKind
from boardcore.services.targets import Target, TargetKind, get_target

logger = structlog.get_logger(__name__)


@dataclass
class CounterDrift:
    stored: int
    computed: int

    @property
    def delta(self) -> int:
        return self.stored - self.computed


class ReconcileService:
    """Checks and repairs the counters of a single target."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = EngagementLedger(db)
        self.logger = logger.bind(service="reconcile_service")

    async def _count_live(self, model, column, value: int) -> int:
        result = await self.db.execute(
            select(func.count(model.id)).where(
                column == value,
                model.is_deleted == False,  # noqa: E712
            )
        )
        return result.scalar() or 0

    async def compute(self, kind: TargetKind, target: Target) -> Dict[str, int]:
        """Recompute every derived counter of a loaded target."""
        computed: Dict[str, int] = {}

        if kind.is_likeable:
            computed["like_count"] = await self.ledger.count(LIKE_KINDS[kind], target.id)

        if kind is TargetKind.POST:
            computed["bookmark_count"] = await self.ledger.count(LedgerKind.BOOKMARK, target.id)
            computed["view_count"] = await self.ledger.count(LedgerKind.POST_VIEW, target.id)
            computed["comment_count"] = await self._count_live(Comment, Comment.post_id, target.id)

        if kind.is_votable:
            vote_kind = VOTE_KINDS[kind]
            up = await self.ledger.count(vote_kind, target.id, vote_type=VoteType.UP)
            down = await self.ledger.count(vote_kind, target.id, vote_type=VoteType.DOWN)
            computed["upvote_count"] = up
            computed["downvote_count"] = down
            computed["vote_count"] = up - down

        if kind is TargetKind.QUESTION:
            computed["answer_count"] = await self._count_live(Answer, Answer.question_id, target.id)
            computed["view_count"] = await self.ledger.count(LedgerKind.QUESTION_VIEW, target.id)

        return computed

    async def check(self, kind: TargetKind, target_id: int) -> Dict[str, CounterDrift]:
        """Return the counters whose stored value differs from the recomputation."""
        target = await get_target(self.db, kind, target_id, include_deleted=True)
        return await self._drift(kind, target)

    async def _drift(self, kind: TargetKind, target: Target) -> Dict[str, CounterDrift]:
        computed = await self.compute(kind, target)
        return {
            name: CounterDrift(stored=getattr(target, name), computed=value)
            for name, value in computed.items()
            if getattr(target, name) != value
        }

    async def repair(self, kind: TargetKind, target_id: int) -> Dict[str, CounterDrift]:
        """Overwrite drifted counters with recomputed values.

        Returns the drift that was fixed (empty when already consistent).
        """
        # Row lock is held until commit
        target = await get_target(self.db, kind, target_id, include_deleted=True, for_update=True)
        drift = await self._drift(kind, target)
        if not drift:
            return drift

        for name, counter in drift.items():
            setattr(target, name, counter.computed)
        await self.db.flush()

        self.logger.warning(
            "counters_repaired",
            kind=kind.value,
            target_id=target_id,
            drift={name: counter.delta for name, counter in drift.items()},
        )
        return drift
