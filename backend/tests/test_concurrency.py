"""Concurrent writers on one target: no lost updates.

Mutating paths lock and refresh the owning row, so a session holding an
older copy still applies its change on top of the committed counters. A
write that bypasses the lock is rejected by the row version check.

Uses a file-backed SQLite database so two sessions get separate connections.
"""

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm.exc import StaleDataError

from boardcore.core.exceptions import AlreadyLiked
from boardcore.models import (
    Answer,
    Base,
    Post,
    PostLike,
    Question,
    QuestionViewRecord,
    QuestionVote,
    ViewRecord,
    VoteType,
)
from boardcore.services.acceptance_service import AcceptanceService
from boardcore.services.targets import TargetKind
from boardcore.services.view_service import ViewService
from boardcore.services.vote_service import VoteService

from conftest import AUTHOR_ID, OTHER_READER_ID, READER_ID


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'board.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


async def seed(factory, *objects) -> list[int]:
    async with factory() as session:
        session.add_all(objects)
        await session.commit()
        return [obj.id for obj in objects]


class TestConcurrentEngagement:
    """Two sessions act on the same row from the same starting version."""

    async def test_concurrent_likes_do_not_lose_updates(self, session_factory):
        (post_id,) = await seed(session_factory, Post(title="동시성", content="본문", author_id=AUTHOR_ID))

        async with session_factory() as first, session_factory() as second:
            # Both load version 1 of the post
            await first.get(Post, post_id)
            await second.get(Post, post_id)

            await VoteService(first).like(TargetKind.POST, post_id, READER_ID)
            await first.commit()

            state = await VoteService(second).like(TargetKind.POST, post_id, OTHER_READER_ID)
            await second.commit()
            assert state.like_count == 2

        async with session_factory() as check:
            post = await check.get(Post, post_id)
            likes = await check.execute(select(func.count(PostLike.id)).where(PostLike.target_id == post_id))
            assert post.like_count == 2
            assert likes.scalar() == 2

    async def test_unlocked_stale_write_is_rejected(self, session_factory):
        (post_id,) = await seed(session_factory, Post(title="동시성", content="본문", author_id=AUTHOR_ID))

        async with session_factory() as first, session_factory() as second:
            await first.get(Post, post_id)
            stale = await second.get(Post, post_id)

            await VoteService(first).like(TargetKind.POST, post_id, READER_ID)
            await first.commit()

            stale.title = "다른 제목"
            with pytest.raises(StaleDataError):
                await second.commit()
            await second.rollback()

        async with session_factory() as check:
            post = await check.get(Post, post_id)
            assert post.title == "동시성"
            assert post.like_count == 1

    async def test_concurrent_views_from_different_viewers(self, session_factory):
        post_id, question_id = await seed(
            session_factory,
            Post(title="동시성", content="본문", author_id=AUTHOR_ID),
            Question(title="동시성", content="본문", author_id=AUTHOR_ID),
        )

        async with session_factory() as first, session_factory() as second:
            await first.get(Post, post_id)
            await second.get(Post, post_id)
            await first.get(Question, question_id)
            await second.get(Question, question_id)

            assert await ViewService(first).record_view(post_id, user_id=READER_ID)
            assert await ViewService(first).record_view(
                question_id, user_id=READER_ID, kind=TargetKind.QUESTION
            )
            await first.commit()

            assert await ViewService(second).record_view(post_id, user_id=OTHER_READER_ID)
            assert await ViewService(second).record_view(
                question_id, user_id=OTHER_READER_ID, kind=TargetKind.QUESTION
            )
            await second.commit()

        async with session_factory() as check:
            post = await check.get(Post, post_id)
            question = await check.get(Question, question_id)
            post_views = await check.execute(
                select(func.count(ViewRecord.id)).where(ViewRecord.target_id == post_id)
            )
            question_views = await check.execute(
                select(func.count(QuestionViewRecord.id)).where(QuestionViewRecord.target_id == question_id)
            )
            assert post.view_count == 2
            assert question.view_count == 2
            assert post_views.scalar() == 2
            assert question_views.scalar() == 2

    async def test_same_user_double_like_records_once(self, session_factory):
        (post_id,) = await seed(session_factory, Post(title="동시성", content="본문", author_id=AUTHOR_ID))

        async with session_factory() as first, session_factory() as second:
            await VoteService(first).like(TargetKind.POST, post_id, READER_ID)
            await first.commit()

            # A writer that skipped the ledger lookup still hits the unique key
            second.add(PostLike(target_id=post_id, user_id=READER_ID))
            with pytest.raises(IntegrityError):
                await second.commit()
            await second.rollback()

            with pytest.raises(AlreadyLiked):
                await VoteService(second).like(TargetKind.POST, post_id, READER_ID)

        async with session_factory() as check:
            post = await check.get(Post, post_id)
            likes = await check.execute(select(func.count(PostLike.id)).where(PostLike.target_id == post_id))
            assert post.like_count == 1
            assert likes.scalar() == 1

    async def test_concurrent_votes_both_apply(self, session_factory):
        (question_id,) = await seed(
            session_factory, Question(title="동시성", content="본문", author_id=AUTHOR_ID)
        )

        async with session_factory() as first, session_factory() as second:
            await first.get(Question, question_id)
            await second.get(Question, question_id)

            await VoteService(first).vote(TargetKind.QUESTION, question_id, READER_ID, VoteType.UP)
            await first.commit()

            state = await VoteService(second).vote(TargetKind.QUESTION, question_id, OTHER_READER_ID, VoteType.DOWN)
            await second.commit()
            assert (state.upvote_count, state.downvote_count, state.vote_count) == (1, 1, 0)

        async with session_factory() as check:
            question = await check.get(Question, question_id)
            votes = await check.execute(
                select(func.count(QuestionVote.id)).where(QuestionVote.target_id == question_id)
            )
            assert (question.upvote_count, question.downvote_count, question.vote_count) == (1, 1, 0)
            assert votes.scalar() == 2

    async def test_concurrent_accepts_leave_one_accepted_answer(self, session_factory):
        (question_id,) = await seed(
            session_factory, Question(title="동시성", content="본문", author_id=AUTHOR_ID)
        )
        first_id, second_id = await seed(
            session_factory,
            Answer(question_id=question_id, author_id=READER_ID, content="답변 1"),
            Answer(question_id=question_id, author_id=OTHER_READER_ID, content="답변 2"),
        )

        async with session_factory() as first, session_factory() as second:
            await first.get(Question, question_id)
            await second.get(Question, question_id)
            await first.get(Answer, first_id)
            await second.get(Answer, first_id)

            await AcceptanceService(first).accept(first_id, AUTHOR_ID)
            await first.commit()

            # The second session still holds the pre-accept copies
            await AcceptanceService(second).accept(second_id, AUTHOR_ID)
            await second.commit()

        async with session_factory() as check:
            accepted = await check.execute(
                select(Answer.id).where(Answer.question_id == question_id, Answer.is_accepted == True)  # noqa: E712
            )
            question = await check.get(Question, question_id)
            assert accepted.scalars().all() == [second_id]
            assert question.accepted_answer_id == second_id
