"""Post CRUD service and bookmark listing."""

from typing import List, Optional, Tuple

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.core.exceptions import PostNotFound, Unauthorized
from boardcore.models.engagement import Bookmark
from boardcore.models.post import Post
from boardcore.services.targets import TargetKind, find_target

logger = structlog.get_logger(__name__)


class PostService:
    """Service for creating, listing, editing and deleting posts."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="post_service")

    async def create_post(self, title: str, content: str, author_id: int) -> Post:
        post = Post(title=title, content=content, author_id=author_id)
        self.db.add(post)
        await self.db.flush()

        self.logger.info("post_created", post_id=post.id, author_id=author_id)
        return post

    async def get_post(self, post_id: int, include_deleted: bool = False) -> Post:
        """Get a post by ID.

        Raises:
            PostNotFound: post missing, or deleted and include_deleted is False
        """
        post = await find_target(self.db, TargetKind.POST, post_id, include_deleted=include_deleted)
        if post is None:
            raise PostNotFound(post_id)
        return post

    async def list_posts(
        self,
        page: int = 1,
        limit: int = 20,
        sort_by: str = "newest",
        author_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Post], int]:
        """Get paginated live posts.

        Args:
            page: Page number (1-indexed)
            limit: Results per page
            sort_by: Sort method ("newest", "oldest", "likes", "views", "comments", "title")
            author_id: Only posts by this author
            search: Case-insensitive match on title or content

        Returns:
            Tuple of (posts list, total count)
        """
        self.logger.info("fetching_posts", page=page, limit=limit, sort=sort_by,
                         author_id=author_id, search=search)

        query = select(Post).where(Post.is_deleted == False)  # noqa: E712
        count_query = select(func.count(Post.id)).where(Post.is_deleted == False)  # noqa: E712

        if author_id is not None:
            query = query.where(Post.author_id == author_id)
            count_query = count_query.where(Post.author_id == author_id)

        if search and search.strip():
            pattern = f"%{search.strip()}%"
            matches = or_(Post.title.ilike(pattern), Post.content.ilike(pattern))
            query = query.where(matches)
            count_query = count_query.where(matches)

        sort_map = {
            "newest": Post.created_at.desc(),
            "oldest": Post.created_at.asc(),
            "likes": Post.like_count.desc(),
            "views": Post.view_count.desc(),
            "comments": Post.comment_count.desc(),
            "title": Post.title.asc(),
        }
        order = sort_map.get(sort_by, Post.created_at.desc())
        query = query.order_by(order, Post.id.desc())

        offset = (page - 1) * limit
        query = query.offset(offset).limit(limit)

        result = await self.db.execute(query)
        posts = list(result.scalars().all())

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        self.logger.info("posts_fetched", count=len(posts), total=total, page=page)
        return posts, total

    async def update_post(
        self,
        post_id: int,
        acting_user_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
        is_admin: bool = False,
    ) -> Post:
        """Edit a post's title and/or content. Blank values leave a field as is.

        Raises:
            PostNotFound: post missing or deleted
            Unauthorized: caller is neither the author nor an admin
        """
        post = await find_target(self.db, TargetKind.POST, post_id, include_deleted=False, for_update=True)
        if post is None:
            raise PostNotFound(post_id)

        if post.author_id != acting_user_id and not is_admin:
            raise Unauthorized("only the author or an admin can edit this post")

        if title and title.strip():
            post.title = title
        if content and content.strip():
            post.content = content
        await self.db.flush()

        self.logger.info("post_updated", post_id=post_id, by=acting_user_id, admin=is_admin)
        return post

    async def delete_post(self, post_id: int, acting_user_id: int, is_admin: bool = False) -> bool:
        """Soft-delete a post. The author or an admin can delete."""
        post = await find_target(self.db, TargetKind.POST, post_id, include_deleted=False, for_update=True)
        if post is None:
            raise PostNotFound(post_id)

        if post.author_id != acting_user_id and not is_admin:
            raise Unauthorized("only the author or an admin can delete this post")

        post.mark_deleted()
        await self.db.flush()

        self.logger.info("post_deleted", post_id=post_id, by=acting_user_id, admin=is_admin)
        return True

    async def list_bookmarks(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Tuple[Bookmark, Post]], int]:
        """Get a user's bookmarks on live posts, newest first.

        Returns:
            Tuple of ((bookmark, post) pairs, total count)
        """
        base = (
            select(Bookmark, Post)
            .join(Post, Post.id == Bookmark.target_id)
            .where(Bookmark.user_id == user_id, Post.is_deleted == False)  # noqa: E712
        )
        count_query = (
            select(func.count(Bookmark.id))
            .join(Post, Post.id == Bookmark.target_id)
            .where(Bookmark.user_id == user_id, Post.is_deleted == False)  # noqa: E712
        )

        offset = (page - 1) * limit
        query = base.order_by(Bookmark.created_at.desc(), Bookmark.id.desc()).offset(offset).limit(limit)

        result = await self.db.execute(query)
        rows = [(bookmark, post) for bookmark, post in result.all()]

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        return rows, total
