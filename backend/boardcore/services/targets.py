"""Target registry: the closed set of engageable entity kinds.

Services address an entity by ``(TargetKind, id)`` and resolve it through a
lookup table instead of per-entity code paths. Every lookup states whether
soft-deleted rows are visible; there is no implicit default that bypasses
the delete flag.

Mutating paths pass ``for_update=True``: the owning row is locked
(``SELECT ... FOR UPDATE``) and refreshed from the database, so concurrent
writers on one target queue behind each other and each applies its change
to the committed counters. The mapper version check stays as a backstop for
writes that skip the lock.
"""

import enum
from typing import Dict, Optional, Type, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.core.exceptions import TargetNotFound
from boardcore.models.comment import Comment
from boardcore.models.post import Post
from boardcore.models.question import Answer, Question

Target = Union[Post, Comment, Question, Answer]


class TargetKind(str, enum.Enum):
    POST = "post"
    COMMENT = "comment"
    QUESTION = "question"
    ANSWER = "answer"

    @property
    def is_likeable(self) -> bool:
        return self in (TargetKind.POST, TargetKind.COMMENT)

    @property
    def is_votable(self) -> bool:
        return self in (TargetKind.QUESTION, TargetKind.ANSWER)


TARGET_MODELS: Dict[TargetKind, Type[Target]] = {
    TargetKind.POST: Post,
    TargetKind.COMMENT: Comment,
    TargetKind.QUESTION: Question,
    TargetKind.ANSWER: Answer,
}


async def find_target(
    db: AsyncSession,
    kind: TargetKind,
    target_id: int,
    *,
    include_deleted: bool,
    for_update: bool = False,
) -> Optional[Target]:
    """Load a target row, or None if it is missing (or deleted and hidden)."""
    model = TARGET_MODELS[kind]
    stmt = select(model).where(model.id == target_id)
    if not include_deleted:
        stmt = stmt.where(model.is_deleted == False)  # noqa: E712
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_target(
    db: AsyncSession,
    kind: TargetKind,
    target_id: int,
    *,
    include_deleted: bool,
    for_update: bool = False,
) -> Target:
    """Like find_target but raises TargetNotFound."""
    target = await find_target(
        db, kind, target_id, include_deleted=include_deleted, for_update=for_update
    )
    if target is None:
        raise TargetNotFound(kind.value, target_id)
    return target
