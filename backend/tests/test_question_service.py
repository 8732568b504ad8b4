"""Tests for QuestionService listing and edits."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.core.exceptions import TargetNotFound, Unauthorized
from boardcore.models import Answer, Question, QuestionStatus
from boardcore.services.question_service import QuestionService

from conftest import AUTHOR_ID, OTHER_READER_ID, READER_ID

BASE_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


async def add_questions(db: AsyncSession) -> list[Question]:
    questions = [
        Question(title="How to close a session", content="async", author_id=AUTHOR_ID,
                 status=QuestionStatus.OPEN, vote_count=2, answer_count=0, view_count=5,
                 created_at=BASE_TIME),
        Question(title="Pydantic validators", content="v2 migration", author_id=READER_ID,
                 status=QuestionStatus.ANSWERED, vote_count=9, answer_count=3, view_count=1,
                 created_at=BASE_TIME + timedelta(hours=1)),
        Question(title="Alembic branches", content="merge heads", author_id=AUTHOR_ID,
                 status=QuestionStatus.CLOSED, vote_count=-1, answer_count=1, view_count=8,
                 created_at=BASE_TIME + timedelta(hours=2)),
    ]
    db.add_all(questions)
    await db.commit()
    return questions


class TestListQuestions:
    """Pagination, status filter and sorting."""

    async def test_newest_first_by_default(self, test_db: AsyncSession):
        first, second, third = await add_questions(test_db)

        questions, total = await QuestionService(test_db).list_questions()

        assert total == 3
        assert [q.id for q in questions] == [third.id, second.id, first.id]

    async def test_status_filter(self, test_db: AsyncSession):
        first, second, third = await add_questions(test_db)
        service = QuestionService(test_db)

        open_questions, open_total = await service.list_questions(status=QuestionStatus.OPEN)
        closed, closed_total = await service.list_questions(status=QuestionStatus.CLOSED)

        assert open_total == 1
        assert [q.id for q in open_questions] == [first.id]
        assert closed_total == 1
        assert [q.id for q in closed] == [third.id]

    @pytest.mark.parametrize(
        "sort_by, expected",
        [
            ("oldest", [0, 1, 2]),
            ("votes", [1, 0, 2]),
            ("answers", [1, 2, 0]),
            ("views", [2, 0, 1]),
        ],
    )
    async def test_sort_methods(self, test_db: AsyncSession, sort_by: str, expected: list[int]):
        created = await add_questions(test_db)

        questions, _ = await QuestionService(test_db).list_questions(sort_by=sort_by)

        assert [q.id for q in questions] == [created[i].id for i in expected]

    async def test_pagination_and_deleted_hidden(self, test_db: AsyncSession):
        first, second, third = await add_questions(test_db)
        third.mark_deleted()
        await test_db.commit()

        page, total = await QuestionService(test_db).list_questions(page=2, limit=1)

        assert total == 2
        assert [q.id for q in page] == [first.id]

    async def test_author_and_search_filters(self, test_db: AsyncSession):
        first, second, third = await add_questions(test_db)
        service = QuestionService(test_db)

        mine, mine_total = await service.list_questions(author_id=AUTHOR_ID)
        found, found_total = await service.list_questions(search="PYDANTIC")

        assert mine_total == 2
        assert {q.id for q in mine} == {first.id, third.id}
        assert found_total == 1
        assert [q.id for q in found] == [second.id]


class TestQuestionEdits:
    """Author-only edits of questions and answers."""

    async def test_author_updates_question(self, test_db: AsyncSession, sample_question: Question):
        question = await QuestionService(test_db).update_question(
            sample_question.id, "수정된 질문", "수정된 본문", AUTHOR_ID
        )

        assert question.title == "수정된 질문"
        assert question.content == "수정된 본문"
        assert question.status == QuestionStatus.OPEN

    async def test_non_author_cannot_update_question(self, test_db: AsyncSession, sample_question: Question):
        with pytest.raises(Unauthorized):
            await QuestionService(test_db).update_question(sample_question.id, "제목", "본문", READER_ID)

    async def test_deleted_question_cannot_be_updated(self, test_db: AsyncSession, sample_question: Question):
        sample_question.mark_deleted()
        await test_db.commit()

        with pytest.raises(TargetNotFound):
            await QuestionService(test_db).update_question(sample_question.id, "제목", "본문", AUTHOR_ID)

    async def test_author_updates_answer(self, test_db: AsyncSession, sample_answers: list[Answer]):
        answer = await QuestionService(test_db).update_answer(sample_answers[0].id, "고친 답변", READER_ID)

        assert answer.content == "고친 답변"

    async def test_non_author_cannot_update_answer(self, test_db: AsyncSession, sample_answers: list[Answer]):
        with pytest.raises(Unauthorized):
            await QuestionService(test_db).update_answer(sample_answers[0].id, "가로채기", OTHER_READER_ID)

        assert sample_answers[0].content == "첫 번째 답변"

    async def test_deleted_answer_cannot_be_updated(self, test_db: AsyncSession, sample_answers: list[Answer]):
        sample_answers[1].mark_deleted()
        await test_db.commit()

        with pytest.raises(TargetNotFound):
            await QuestionService(test_db).update_answer(sample_answers[1].id, "부활", OTHER_READER_ID)
