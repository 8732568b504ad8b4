"""Vote service: likes, bookmarks and up/down votes with derived counters.

Every mutation writes the ledger record and the owning row's counter in the
same session transaction. The owning row is locked and refreshed before the
ledger lookup, so concurrent writers on one target apply one after another.
The version check on flush still rejects writers that skipped the lock.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.config import settings
from boardcore.core.exceptions import (
    AlreadyBookmarked,
    AlreadyLiked,
    DuplicateVote,
    SelfLike,
    SelfVote,
)
from boardcore.models.engagement import VoteType
from boardcore.models.post import Post
from boardcore.models.question import Answer, Question
from boardcore.services.ledger import LIKE_KINDS, VOTE_KINDS, EngagementLedger, LedgerKind
from boardcore.services.targets import TargetKind, find_target, get_target

logger = structlog.get_logger(__name__)

Votable = Union[Question, Answer]


@dataclass
class LikeState:
    like_count: int
    is_liked: bool


@dataclass
class BookmarkState:
    bookmark_count: int
    is_bookmarked: bool


@dataclass
class VoteState:
    vote_count: int
    upvote_count: int
    downvote_count: int
    current_user_vote: Optional[VoteType] = None


def _require_likeable(kind: TargetKind) -> LedgerKind:
    if not kind.is_likeable:
        raise ValueError(f"{kind.value} targets cannot be liked")
    return LIKE_KINDS[kind]


def _require_votable(kind: TargetKind) -> LedgerKind:
    if not kind.is_votable:
        raise ValueError(f"{kind.value} targets cannot be voted on")
    return VOTE_KINDS[kind]


def _vote_state(target: Votable, current_user_vote: Optional[VoteType]) -> VoteState:
    return VoteState(
        vote_count=target.vote_count,
        upvote_count=target.upvote_count,
        downvote_count=target.downvote_count,
        current_user_vote=current_user_vote,
    )


def _bump(target: Votable, vote_type: VoteType, delta: int) -> None:
    """Move one vote bucket by delta (floored at 0) and recompute the net."""
    if vote_type is VoteType.UP:
        target.upvote_count = max(0, target.upvote_count + delta)
    else:
        target.downvote_count = max(0, target.downvote_count + delta)
    target.vote_count = target.upvote_count - target.downvote_count


class VoteService:
    """Handles likes, bookmarks and votes with per-user tracking."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = EngagementLedger(db)
        self.logger = logger.bind(service="vote_service")

    # ------------------------------------------------------------------
    # Likes (posts, comments)
    # ------------------------------------------------------------------

    async def like(self, kind: TargetKind, target_id: int, user_id: int) -> LikeState:
        """Like a post or comment.

        Raises:
            TargetNotFound: target missing or deleted
            SelfLike: author liking own content while ALLOW_SELF_LIKE is off
            AlreadyLiked: the user already liked this target
        """
        ledger_kind = _require_likeable(kind)
        target = await get_target(self.db, kind, target_id, include_deleted=False, for_update=True)

        if not settings.ALLOW_SELF_LIKE and target.author_id == user_id:
            raise SelfLike(f"cannot like your own {kind.value}")

        if await self.ledger.find(ledger_kind, target_id, user_id) is not None:
            raise AlreadyLiked(f"{kind.value} {target_id} is already liked")

        target.like_count = target.like_count + 1
        await self.ledger.record(ledger_kind, target_id, user_id)

        self.logger.info("liked", kind=kind.value, target_id=target_id, user_id=user_id,
                         like_count=target.like_count)
        return LikeState(like_count=target.like_count, is_liked=True)

    async def unlike(self, kind: TargetKind, target_id: int, user_id: int) -> Optional[LikeState]:
        """Remove a like. Returns None if the user never liked the target."""
        ledger_kind = _require_likeable(kind)
        target = await find_target(self.db, kind, target_id, include_deleted=True, for_update=True)
        if target is None:
            return None

        existing = await self.ledger.find(ledger_kind, target_id, user_id)
        if existing is None:
            return None

        target.like_count = max(0, target.like_count - 1)
        await self.ledger.remove(ledger_kind, target_id, user_id)

        self.logger.info("unliked", kind=kind.value, target_id=target_id, user_id=user_id,
                         like_count=target.like_count)
        return LikeState(like_count=target.like_count, is_liked=False)

    async def get_like_state(
        self,
        kind: TargetKind,
        target_id: int,
        user_id: Optional[int],
    ) -> Optional[LikeState]:
        """Current like count plus whether the caller has liked it."""
        ledger_kind = _require_likeable(kind)
        target = await find_target(self.db, kind, target_id, include_deleted=False)
        if target is None:
            return None
        is_liked = False
        if user_id is not None:
            is_liked = await self.ledger.find(ledger_kind, target_id, user_id) is not None
        return LikeState(like_count=target.like_count, is_liked=is_liked)

    # ------------------------------------------------------------------
    # Bookmarks (posts)
    # ------------------------------------------------------------------

    async def bookmark(self, post_id: int, user_id: int) -> BookmarkState:
        """Bookmark a post.

        Raises:
            TargetNotFound: post missing or deleted
            AlreadyBookmarked: the user already bookmarked this post
        """
        post: Post = await get_target(
            self.db, TargetKind.POST, post_id, include_deleted=False, for_update=True
        )

        if await self.ledger.find(LedgerKind.BOOKMARK, post_id, user_id) is not None:
            raise AlreadyBookmarked(f"post {post_id} is already bookmarked")

        post.bookmark_count = post.bookmark_count + 1
        await self.ledger.record(LedgerKind.BOOKMARK, post_id, user_id)

        self.logger.info("bookmarked", post_id=post_id, user_id=user_id)
        return BookmarkState(bookmark_count=post.bookmark_count, is_bookmarked=True)

    async def unbookmark(self, post_id: int, user_id: int) -> bool:
        """Remove a bookmark. Returns False if there was none."""
        post = await find_target(self.db, TargetKind.POST, post_id, include_deleted=True, for_update=True)
        if post is None:
            return False

        existing = await self.ledger.find(LedgerKind.BOOKMARK, post_id, user_id)
        if existing is None:
            return False

        post.bookmark_count = max(0, post.bookmark_count - 1)
        await self.ledger.remove(LedgerKind.BOOKMARK, post_id, user_id)

        self.logger.info("unbookmarked", post_id=post_id, user_id=user_id)
        return True

    async def is_bookmarked(self, post_id: int, user_id: Optional[int]) -> bool:
        if user_id is None:
            return False
        return await self.ledger.find(LedgerKind.BOOKMARK, post_id, user_id) is not None

    # ------------------------------------------------------------------
    # Votes (questions, answers)
    # ------------------------------------------------------------------

    async def vote(
        self,
        kind: TargetKind,
        target_id: int,
        user_id: int,
        vote_type: VoteType,
    ) -> VoteState:
        """Cast or switch a vote.

        A first vote fills one bucket. Voting the opposite way switches the
        stored vote in place. Voting the same way twice is rejected.

        Raises:
            TargetNotFound: target missing or deleted
            SelfVote: the author voting on own content
            DuplicateVote: the same vote was already cast
        """
        ledger_kind = _require_votable(kind)
        target = await get_target(self.db, kind, target_id, include_deleted=False, for_update=True)

        if target.author_id == user_id:
            raise SelfVote(f"cannot vote on your own {kind.value}")

        existing = await self.ledger.find(ledger_kind, target_id, user_id)

        if existing is None:
            _bump(target, vote_type, +1)
            await self.ledger.record(ledger_kind, target_id, user_id, vote_type=vote_type)
            self.logger.info("vote_cast", kind=kind.value, target_id=target_id,
                             user_id=user_id, vote_type=vote_type.value)
        elif existing.vote_type == vote_type:
            raise DuplicateVote(f"already voted {vote_type.value} on {kind.value} {target_id}")
        else:
            previous = existing.vote_type
            # Both buckets and the net move in one flush
            _bump(target, previous, -1)
            _bump(target, vote_type, +1)
            existing.vote_type = vote_type
            await self.db.flush()
            self.logger.info("vote_switched", kind=kind.value, target_id=target_id,
                             user_id=user_id, previous=previous.value, vote_type=vote_type.value)

        return _vote_state(target, vote_type)

    async def remove_vote(self, kind: TargetKind, target_id: int, user_id: int) -> bool:
        """Withdraw a vote. Returns False if the user had not voted."""
        ledger_kind = _require_votable(kind)
        target = await find_target(self.db, kind, target_id, include_deleted=True, for_update=True)
        if target is None:
            return False

        existing = await self.ledger.find(ledger_kind, target_id, user_id)
        if existing is None:
            return False

        _bump(target, existing.vote_type, -1)
        await self.ledger.remove(ledger_kind, target_id, user_id)

        self.logger.info("vote_removed", kind=kind.value, target_id=target_id, user_id=user_id)
        return True

    async def get_user_vote(
        self,
        kind: TargetKind,
        target_id: int,
        user_id: Optional[int],
    ) -> Optional[VoteType]:
        """Get the caller's vote type for a target, or None."""
        if user_id is None:
            return None
        existing = await self.ledger.find(_require_votable(kind), target_id, user_id)
        return existing.vote_type if existing is not None else None

    async def get_user_votes(
        self,
        kind: TargetKind,
        target_ids: List[int],
        user_id: Optional[int],
    ) -> Dict[int, VoteType]:
        """The caller's votes for several targets, keyed by target id."""
        if user_id is None:
            return {}
        records = await self.ledger.find_many(_require_votable(kind), target_ids, user_id)
        return {target_id: record.vote_type for target_id, record in records.items()}

    async def get_vote_state(
        self,
        kind: TargetKind,
        target_id: int,
        user_id: Optional[int],
        include_deleted: bool = False,
    ) -> VoteState:
        """Aggregate counts plus the caller's own vote."""
        target = await get_target(self.db, kind, target_id, include_deleted=include_deleted)
        current = await self.get_user_vote(kind, target_id, user_id)
        return _vote_state(target, current)
