"""Tests for PostService listing and editing."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.core.exceptions import PostNotFound, Unauthorized
from boardcore.models import Post
from boardcore.services.post_service import PostService

from conftest import AUTHOR_ID, OTHER_READER_ID, READER_ID

BASE_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


async def add_posts(db: AsyncSession) -> list[Post]:
    """Three posts, one hour apart, with distinct counters."""
    posts = [
        Post(title="Alpha notes", content="first", author_id=AUTHOR_ID,
             like_count=1, view_count=30, comment_count=2, created_at=BASE_TIME),
        Post(title="Beta release", content="FastAPI upgrade", author_id=READER_ID,
             like_count=5, view_count=10, comment_count=0, created_at=BASE_TIME + timedelta(hours=1)),
        Post(title="Gamma", content="third", author_id=AUTHOR_ID,
             like_count=3, view_count=20, comment_count=7, created_at=BASE_TIME + timedelta(hours=2)),
    ]
    db.add_all(posts)
    await db.commit()
    return posts


class TestListPosts:
    """Pagination, sorting and filters."""

    async def test_newest_first_by_default(self, test_db: AsyncSession):
        alpha, beta, gamma = await add_posts(test_db)

        posts, total = await PostService(test_db).list_posts()

        assert total == 3
        assert [p.id for p in posts] == [gamma.id, beta.id, alpha.id]

    @pytest.mark.parametrize(
        "sort_by, expected",
        [
            ("oldest", [0, 1, 2]),
            ("likes", [1, 2, 0]),
            ("views", [0, 2, 1]),
            ("comments", [2, 0, 1]),
            ("title", [0, 1, 2]),
        ],
    )
    async def test_sort_methods(self, test_db: AsyncSession, sort_by: str, expected: list[int]):
        created = await add_posts(test_db)

        posts, _ = await PostService(test_db).list_posts(sort_by=sort_by)

        assert [p.id for p in posts] == [created[i].id for i in expected]

    async def test_unknown_sort_falls_back_to_newest(self, test_db: AsyncSession):
        alpha, beta, gamma = await add_posts(test_db)

        posts, _ = await PostService(test_db).list_posts(sort_by="bogus")

        assert [p.id for p in posts] == [gamma.id, beta.id, alpha.id]

    async def test_pagination_keeps_total(self, test_db: AsyncSession):
        alpha, beta, gamma = await add_posts(test_db)
        service = PostService(test_db)

        first_page, total = await service.list_posts(page=1, limit=2)
        second_page, _ = await service.list_posts(page=2, limit=2)

        assert total == 3
        assert [p.id for p in first_page] == [gamma.id, beta.id]
        assert [p.id for p in second_page] == [alpha.id]

    async def test_deleted_posts_are_hidden(self, test_db: AsyncSession):
        alpha, beta, gamma = await add_posts(test_db)
        beta.mark_deleted()
        await test_db.commit()

        posts, total = await PostService(test_db).list_posts()

        assert total == 2
        assert beta.id not in {p.id for p in posts}

    async def test_author_and_search_filters(self, test_db: AsyncSession):
        alpha, beta, gamma = await add_posts(test_db)
        service = PostService(test_db)

        by_author, author_total = await service.list_posts(author_id=AUTHOR_ID)
        by_search, search_total = await service.list_posts(search="fastapi")

        assert author_total == 2
        assert {p.id for p in by_author} == {alpha.id, gamma.id}
        assert search_total == 1
        assert [p.id for p in by_search] == [beta.id]


class TestUpdatePost:
    """Author or admin edits."""

    async def test_author_updates_title_and_content(self, test_db: AsyncSession, sample_post: Post):
        post = await PostService(test_db).update_post(
            sample_post.id, AUTHOR_ID, title="새 제목", content="새 본문"
        )

        assert post.title == "새 제목"
        assert post.content == "새 본문"

    async def test_blank_fields_are_left_unchanged(self, test_db: AsyncSession, sample_post: Post):
        post = await PostService(test_db).update_post(sample_post.id, AUTHOR_ID, title="  ", content="바뀐 본문")

        assert post.title == "테스트 게시글"
        assert post.content == "바뀐 본문"

    async def test_admin_can_edit_others_post(self, test_db: AsyncSession, sample_post: Post):
        post = await PostService(test_db).update_post(
            sample_post.id, OTHER_READER_ID, title="관리자 수정", is_admin=True
        )

        assert post.title == "관리자 수정"

    async def test_non_author_cannot_edit(self, test_db: AsyncSession, sample_post: Post):
        with pytest.raises(Unauthorized):
            await PostService(test_db).update_post(sample_post.id, READER_ID, title="가로채기")

        assert sample_post.title == "테스트 게시글"

    async def test_deleted_post_cannot_be_edited(self, test_db: AsyncSession, sample_post: Post):
        sample_post.mark_deleted()
        await test_db.commit()

        with pytest.raises(PostNotFound):
            await PostService(test_db).update_post(sample_post.id, AUTHOR_ID, title="부활")

    async def test_edit_keeps_counters(self, test_db: AsyncSession, sample_post: Post):
        sample_post.like_count = 4
        await test_db.commit()

        post = await PostService(test_db).update_post(sample_post.id, AUTHOR_ID, content="본문 수정")

        assert post.like_count == 4
