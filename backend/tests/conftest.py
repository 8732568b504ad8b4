"""Pytest configuration and shared fixtures."""

import os

# Point the app settings at SQLite before anything imports boardcore.config
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from boardcore.models import Answer, Base, Comment, Post, Question, QuestionStatus

AUTHOR_ID = 1
READER_ID = 2
OTHER_READER_ID = 3


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest_asyncio.fixture
async def test_db():
    """Create an in-memory SQLite database for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SessionLocal = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with SessionLocal() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def sample_post(test_db: AsyncSession) -> Post:
    """Create a sample post written by AUTHOR_ID."""
    post = Post(
        title="테스트 게시글",
        content="게시글 본문입니다.",
        author_id=AUTHOR_ID,
    )
    test_db.add(post)
    await test_db.commit()
    await test_db.refresh(post)
    return post


@pytest_asyncio.fixture
async def sample_comment(test_db: AsyncSession, sample_post: Post) -> Comment:
    """Create a top-level comment on the sample post (counter kept in step)."""
    comment = Comment(
        post_id=sample_post.id,
        author_id=READER_ID,
        content="첫 번째 댓글",
    )
    test_db.add(comment)
    sample_post.comment_count = 1
    await test_db.commit()
    await test_db.refresh(comment)
    return comment


@pytest_asyncio.fixture
async def sample_question(test_db: AsyncSession) -> Question:
    """Create an open question asked by AUTHOR_ID."""
    question = Question(
        title="비동기 세션은 어떻게 닫나요?",
        content="질문 본문입니다.",
        author_id=AUTHOR_ID,
        status=QuestionStatus.OPEN,
    )
    test_db.add(question)
    await test_db.commit()
    await test_db.refresh(question)
    return question


@pytest_asyncio.fixture
async def sample_answers(test_db: AsyncSession, sample_question: Question) -> list[Answer]:
    """Create two answers by different users on the sample question."""
    answers = [
        Answer(question_id=sample_question.id, author_id=READER_ID, content="첫 번째 답변"),
        Answer(question_id=sample_question.id, author_id=OTHER_READER_ID, content="두 번째 답변"),
    ]
    test_db.add_all(answers)
    sample_question.answer_count = len(answers)
    await test_db.commit()
    for answer in answers:
        await test_db.refresh(answer)
    return answers
