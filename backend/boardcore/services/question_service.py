"""Question service: question lifecycle and answer creation.

Acceptance and deletion rules live in AcceptanceService; this service covers
the straight-line parts of the Q&A board.
"""

from typing import List, Optional, Tuple

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.core.exceptions import InvalidState, TargetNotFound, Unauthorized
from boardcore.models.question import Answer, Question, QuestionStatus
from boardcore.services.targets import TargetKind, find_target, get_target

logger = structlog.get_logger(__name__)


class QuestionService:
    """Creates, lists and edits questions and answers and manages close/reopen."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="question_service")

    async def create_question(self, title: str, content: str, author_id: int) -> Question:
        question = Question(
            title=title,
            content=content,
            author_id=author_id,
            status=QuestionStatus.OPEN,
        )
        self.db.add(question)
        await self.db.flush()

        self.logger.info("question_created", question_id=question.id, author_id=author_id)
        return question

    async def _lock_question(self, question_id: int) -> Question:
        return await get_target(
            self.db, TargetKind.QUESTION, question_id, include_deleted=False, for_update=True
        )

    async def get_question(self, question_id: int, include_deleted: bool = False) -> Question:
        return await get_target(self.db, TargetKind.QUESTION, question_id, include_deleted=include_deleted)

    async def get_answer(self, answer_id: int, include_deleted: bool = False) -> Answer:
        return await get_target(self.db, TargetKind.ANSWER, answer_id, include_deleted=include_deleted)

    async def list_questions(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[QuestionStatus] = None,
        sort_by: str = "newest",
        author_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Question], int]:
        """Get paginated live questions.

        Args:
            page: Page number (1-indexed)
            limit: Results per page
            status: Only questions in this status
            sort_by: Sort method ("newest", "oldest", "votes", "answers", "views")
            author_id: Only questions by this author
            search: Case-insensitive match on title or content

        Returns:
            Tuple of (questions list, total count)
        """
        self.logger.info("fetching_questions", page=page, limit=limit, sort=sort_by,
                         status=status.value if status else None, author_id=author_id)

        query = select(Question).where(Question.is_deleted == False)  # noqa: E712
        count_query = select(func.count(Question.id)).where(Question.is_deleted == False)  # noqa: E712

        if status is not None:
            query = query.where(Question.status == status)
            count_query = count_query.where(Question.status == status)

        if author_id is not None:
            query = query.where(Question.author_id == author_id)
            count_query = count_query.where(Question.author_id == author_id)

        if search and search.strip():
            pattern = f"%{search.strip()}%"
            matches = or_(Question.title.ilike(pattern), Question.content.ilike(pattern))
            query = query.where(matches)
            count_query = count_query.where(matches)

        sort_map = {
            "newest": Question.created_at.desc(),
            "oldest": Question.created_at.asc(),
            "votes": Question.vote_count.desc(),
            "answers": Question.answer_count.desc(),
            "views": Question.view_count.desc(),
        }
        order = sort_map.get(sort_by, Question.created_at.desc())
        query = query.order_by(order, Question.id.desc())

        offset = (page - 1) * limit
        query = query.offset(offset).limit(limit)

        result = await self.db.execute(query)
        questions = list(result.scalars().all())

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        self.logger.info("questions_fetched", count=len(questions), total=total, page=page)
        return questions, total

    async def update_question(
        self, question_id: int, title: str, content: str, acting_user_id: int
    ) -> Question:
        """Replace a question's title and content. Only the author can edit."""
        question = await self._lock_question(question_id)
        if question.author_id != acting_user_id:
            raise Unauthorized("only the author can edit this question")

        question.title = title
        question.content = content
        await self.db.flush()

        self.logger.info("question_updated", question_id=question_id)
        return question

    async def update_answer(self, answer_id: int, content: str, acting_user_id: int) -> Answer:
        """Replace an answer's content. Only the author can edit."""
        answer: Answer = await get_target(
            self.db, TargetKind.ANSWER, answer_id, include_deleted=False, for_update=True
        )
        if answer.author_id != acting_user_id:
            raise Unauthorized("only the author can edit this answer")

        answer.content = content
        await self.db.flush()

        self.logger.info("answer_updated", answer_id=answer_id, question_id=answer.question_id)
        return answer

    async def list_answers(self, question_id: int, include_deleted: bool = False) -> List[Answer]:
        """Answers of a question: accepted first, then by net votes, then newest."""
        await self.get_question(question_id)

        stmt = select(Answer).where(Answer.question_id == question_id)
        if not include_deleted:
            stmt = stmt.where(Answer.is_deleted == False)  # noqa: E712
        stmt = stmt.order_by(
            Answer.is_accepted.desc(),
            Answer.vote_count.desc(),
            Answer.created_at.desc(),
            Answer.id.desc(),
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_answer(self, question_id: int, content: str, author_id: int) -> Answer:
        """Answer a question and bump its answer_count.

        Raises:
            TargetNotFound: question missing or deleted
            InvalidState: question is closed
        """
        question = await find_target(
            self.db, TargetKind.QUESTION, question_id, include_deleted=False, for_update=True
        )
        if question is None:
            raise TargetNotFound("question", question_id)
        if question.status == QuestionStatus.CLOSED:
            raise InvalidState("cannot answer a closed question")

        answer = Answer(question_id=question_id, author_id=author_id, content=content)
        self.db.add(answer)
        question.answer_count = question.answer_count + 1
        await self.db.flush()

        self.logger.info("answer_created", answer_id=answer.id, question_id=question_id,
                         author_id=author_id, answer_count=question.answer_count)
        return answer

    async def close_question(self, question_id: int, acting_user_id: int) -> Question:
        """Close a question. Any accepted answer stays accepted."""
        question = await self._lock_question(question_id)
        if question.author_id != acting_user_id:
            raise Unauthorized("only the author can close this question")

        question.status = QuestionStatus.CLOSED
        await self.db.flush()

        self.logger.info("question_closed", question_id=question_id)
        return question

    async def reopen_question(self, question_id: int, acting_user_id: int) -> Question:
        """Reopen a closed question.

        The status returns to Answered when an accepted answer is still in
        place, otherwise to Open.

        Raises:
            InvalidState: the question is not closed
        """
        question = await self._lock_question(question_id)
        if question.author_id != acting_user_id:
            raise Unauthorized("only the author can reopen this question")
        if question.status != QuestionStatus.CLOSED:
            raise InvalidState("question is not closed")

        question.status = (
            QuestionStatus.ANSWERED if question.accepted_answer_id is not None else QuestionStatus.OPEN
        )
        await self.db.flush()

        self.logger.info("question_reopened", question_id=question_id, status=question.status.value)
        return question
