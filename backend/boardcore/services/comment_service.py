"""Comment service for two-level post discussions."""

from dataclasses import dataclass, field
from typing import Dict, List

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.config import settings
from boardcore.core.exceptions import (
    NestingTooDeep,
    ParentNotFound,
    PostNotFound,
    TargetNotFound,
    Unauthorized,
)
from boardcore.models.comment import Comment
from boardcore.models.post import Post
from boardcore.services.targets import TargetKind, find_target

logger = structlog.get_logger(__name__)


@dataclass
class CommentThread:
    """A top-level comment with its replies, oldest first."""

    comment: Comment
    replies: List[Comment] = field(default_factory=list)


class CommentService:
    """Creates, edits and soft-deletes comments and keeps Post.comment_count in step."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="comment_service")

    async def _get_live_post(self, post_id: int, for_update: bool = False) -> Post:
        post = await find_target(self.db, TargetKind.POST, post_id, include_deleted=False, for_update=for_update)
        if post is None:
            raise PostNotFound(post_id)
        return post

    async def get_thread(self, post_id: int, include_deleted: bool = False) -> List[CommentThread]:
        """Get all top-level comments for a post with nested replies.

        A deleted top-level comment stays in the thread while it still has a
        live reply so the replies keep their anchor. Pass include_deleted to
        see every row, e.g. for moderation views.
        """
        await self._get_live_post(post_id)

        stmt = (
            select(Comment)
            .where(Comment.post_id == post_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        result = await self.db.execute(stmt)
        comments = list(result.scalars().all())

        replies_by_parent: Dict[int, List[Comment]] = {}
        for comment in comments:
            if comment.parent_id is None:
                continue
            if comment.is_deleted and not include_deleted:
                continue
            replies_by_parent.setdefault(comment.parent_id, []).append(comment)

        threads: List[CommentThread] = []
        for comment in comments:
            if comment.parent_id is not None:
                continue
            replies = replies_by_parent.get(comment.id, [])
            if comment.is_deleted and not include_deleted and not replies:
                continue
            threads.append(CommentThread(comment=comment, replies=replies))
        return threads

    async def get_comment(self, comment_id: int, include_deleted: bool = False) -> Comment:
        comment = await find_target(self.db, TargetKind.COMMENT, comment_id, include_deleted=include_deleted)
        if comment is None:
            raise TargetNotFound("comment", comment_id)
        return comment

    async def create_comment(self, post_id: int, content: str, author_id: int) -> Comment:
        """Create a top-level comment on a post.

        Raises:
            PostNotFound: post missing or deleted
        """
        post = await self._get_live_post(post_id, for_update=True)

        comment = Comment(post_id=post_id, author_id=author_id, content=content)
        self.db.add(comment)
        post.comment_count = post.comment_count + 1
        await self.db.flush()

        self.logger.info("comment_created", comment_id=comment.id, post_id=post_id,
                         comment_count=post.comment_count)
        return comment

    async def create_reply(self, parent_id: int, content: str, author_id: int) -> Comment:
        """Reply to a top-level comment.

        Raises:
            ParentNotFound: parent missing or deleted
            NestingTooDeep: parent is itself a reply
            PostNotFound: the parent's post was deleted
        """
        parent = await find_target(self.db, TargetKind.COMMENT, parent_id, include_deleted=False)
        if parent is None:
            raise ParentNotFound(parent_id)
        if parent.parent_id is not None:
            raise NestingTooDeep("replies cannot be nested more than one level")

        post = await self._get_live_post(parent.post_id, for_update=True)

        reply = Comment(
            post_id=parent.post_id,
            parent_id=parent.id,
            author_id=author_id,
            content=content,
        )
        self.db.add(reply)
        post.comment_count = post.comment_count + 1
        await self.db.flush()

        self.logger.info("reply_created", comment_id=reply.id, parent_id=parent.id,
                         post_id=parent.post_id, comment_count=post.comment_count)
        return reply

    async def update_comment(self, comment_id: int, content: str, acting_user_id: int) -> Comment:
        """Update a comment's content. Only the author can edit."""
        comment = await find_target(
            self.db, TargetKind.COMMENT, comment_id, include_deleted=False, for_update=True
        )
        if comment is None:
            raise TargetNotFound("comment", comment_id)

        if comment.author_id != acting_user_id:
            raise Unauthorized("only the author can edit this comment")

        comment.content = content
        await self.db.flush()
        return comment

    async def delete_comment(self, comment_id: int, acting_user_id: int, is_admin: bool = False) -> bool:
        """Soft-delete a comment. The author or an admin can delete.

        With live replies the row stays as an anchor and its content is
        overwritten with the placeholder. Either way ``is_deleted`` is set and
        the post loses exactly one comment. Returns False if the comment is
        missing or already deleted.
        """
        # Lock order: comment, then post
        comment = await find_target(
            self.db, TargetKind.COMMENT, comment_id, include_deleted=False, for_update=True
        )
        if comment is None:
            return False

        if comment.author_id != acting_user_id and not is_admin:
            raise Unauthorized("only the author or an admin can delete this comment")

        live_replies = await self.count_live_replies(comment.id)
        if live_replies > 0:
            comment.content = settings.DELETED_COMMENT_PLACEHOLDER
        comment.mark_deleted()

        post = await find_target(
            self.db, TargetKind.POST, comment.post_id, include_deleted=True, for_update=True
        )
        if post is not None:
            post.comment_count = max(0, post.comment_count - 1)
        await self.db.flush()

        self.logger.info(
            "comment_deleted",
            comment_id=comment.id,
            post_id=comment.post_id,
            masked=live_replies > 0,
            by=acting_user_id,
            admin=is_admin,
        )
        return True

    async def count_live_replies(self, comment_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Comment.id)).where(
                Comment.parent_id == comment_id,
                Comment.is_deleted == False,  # noqa: E712
            )
        )
        return result.scalar() or 0
