"""Answer acceptance state machine and Q&A deletion guards.

Question status moves Open -> Answered on accept and back to Open on
unaccept. Closed is set independently by the question author and blocks
new acceptances. Unaccept always returns the question to Open, including a
question that was closed after its answer was accepted.

Switching the accepted answer clears the old answer's flag and sets the new
one in the same flush, so no committed state ever has two accepted answers.
The question row is locked before any of its answers.
"""

from typing import Optional, Tuple

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.core.exceptions import CannotDelete, InvalidState, Unauthorized
from boardcore.models.question import Answer, Question, QuestionStatus
from boardcore.services.targets import TargetKind, find_target, get_target

logger = structlog.get_logger(__name__)


class AcceptanceService:
    """Accept/unaccept answers and guard Q&A deletions."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="acceptance_service")

    async def _load_pair(self, answer_id: int) -> Tuple[Answer, Question]:
        # Question lock is taken before any answer lock
        found: Answer = await get_target(self.db, TargetKind.ANSWER, answer_id, include_deleted=False)
        question: Question = await get_target(
            self.db, TargetKind.QUESTION, found.question_id, include_deleted=False, for_update=True
        )
        answer: Answer = await get_target(
            self.db, TargetKind.ANSWER, answer_id, include_deleted=False, for_update=True
        )
        return answer, question

    async def accept(self, answer_id: int, acting_user_id: int) -> Answer:
        """Mark an answer as the accepted one for its question.

        Raises:
            TargetNotFound: answer or question missing
            Unauthorized: caller is not the question author
            InvalidState: question is closed
        """
        answer, question = await self._load_pair(answer_id)

        if question.author_id != acting_user_id:
            raise Unauthorized("only the question author can accept an answer")
        if question.status == QuestionStatus.CLOSED:
            raise InvalidState("cannot accept an answer on a closed question")

        previous_id: Optional[int] = question.accepted_answer_id
        if previous_id == answer.id and answer.is_accepted:
            self.logger.info("answer_already_accepted", answer_id=answer.id, question_id=question.id)
            return answer

        if previous_id is not None and previous_id != answer.id:
            previous = await find_target(
                self.db, TargetKind.ANSWER, previous_id, include_deleted=True, for_update=True
            )
            if previous is not None:
                previous.is_accepted = False

        answer.is_accepted = True
        question.accepted_answer_id = answer.id
        question.status = QuestionStatus.ANSWERED
        await self.db.flush()

        self.logger.info(
            "answer_accepted",
            answer_id=answer.id,
            question_id=question.id,
            previous_answer_id=previous_id,
        )
        return answer

    async def unaccept(self, answer_id: int, acting_user_id: int) -> Answer:
        """Withdraw acceptance of the currently accepted answer.

        Raises:
            TargetNotFound: answer or question missing
            Unauthorized: caller is not the question author
            InvalidState: the answer is not the accepted one
        """
        answer, question = await self._load_pair(answer_id)

        if question.author_id != acting_user_id:
            raise Unauthorized("only the question author can unaccept an answer")
        if not answer.is_accepted or question.accepted_answer_id != answer.id:
            raise InvalidState("answer is not the accepted answer")

        previous_status = question.status
        answer.is_accepted = False
        question.accepted_answer_id = None
        question.status = QuestionStatus.OPEN
        await self.db.flush()

        self.logger.info(
            "answer_unaccepted",
            answer_id=answer.id,
            question_id=question.id,
            previous_status=previous_status.value,
        )
        return answer

    async def delete_answer(self, answer_id: int, acting_user_id: int, is_admin: bool = False) -> bool:
        """Soft-delete an answer that is not accepted.

        Raises:
            TargetNotFound: answer missing or already deleted
            Unauthorized: caller is neither the author nor an admin
            CannotDelete: the answer is accepted
        """
        found: Answer = await get_target(self.db, TargetKind.ANSWER, answer_id, include_deleted=False)
        question = await find_target(
            self.db, TargetKind.QUESTION, found.question_id, include_deleted=True, for_update=True
        )
        answer: Answer = await get_target(
            self.db, TargetKind.ANSWER, answer_id, include_deleted=False, for_update=True
        )

        if answer.author_id != acting_user_id and not is_admin:
            raise Unauthorized("only the author can delete this answer")
        if answer.is_accepted:
            raise CannotDelete("an accepted answer cannot be deleted")

        answer.mark_deleted()
        if question is not None:
            question.answer_count = max(0, question.answer_count - 1)
        await self.db.flush()

        self.logger.info("answer_deleted", answer_id=answer.id, question_id=answer.question_id,
                         by=acting_user_id)
        return True

    async def delete_question(self, question_id: int, acting_user_id: int, is_admin: bool = False) -> bool:
        """Soft-delete a question that has no live answers.

        Raises:
            TargetNotFound: question missing or already deleted
            Unauthorized: caller is neither the author nor an admin
            CannotDelete: the question has at least one live answer
        """
        question: Question = await get_target(
            self.db, TargetKind.QUESTION, question_id, include_deleted=False, for_update=True
        )

        if question.author_id != acting_user_id and not is_admin:
            raise Unauthorized("only the author can delete this question")

        live_answers = await self.db.execute(
            select(func.count(Answer.id)).where(
                Answer.question_id == question_id,
                Answer.is_deleted == False,  # noqa: E712
            )
        )
        if (live_answers.scalar() or 0) > 0:
            raise CannotDelete("a question with answers cannot be deleted")

        question.mark_deleted()
        await self.db.flush()

        self.logger.info("question_deleted", question_id=question_id, by=acting_user_id)
        return True
