"""Answer API endpoints: edits, acceptance, votes and deletion."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.dependencies import Caller, get_current_caller, get_db
from boardcore.schemas import AnswerResponse, AnswerUpdateRequest, ApiResponse, VoteRequest, VoteResponse
from boardcore.services.acceptance_service import AcceptanceService
from boardcore.services.question_service import QuestionService
from boardcore.services.targets import TargetKind
from boardcore.services.vote_service import VoteService

router = APIRouter()


@router.put("/{answer_id}", response_model=ApiResponse)
async def update_answer(
    answer_id: int,
    body: AnswerUpdateRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Edit an answer. Author only."""
    answer = await QuestionService(db).update_answer(answer_id, body.content, caller.user_id)
    return ApiResponse(status="success", data=AnswerResponse.model_validate(answer).model_dump(mode="json"))


@router.post("/{answer_id}/accept", response_model=ApiResponse)
async def accept_answer(
    answer_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Accept an answer. Only the question author can accept."""
    answer = await AcceptanceService(db).accept(answer_id, caller.user_id)
    return ApiResponse(status="success", data=AnswerResponse.model_validate(answer).model_dump(mode="json"))


@router.delete("/{answer_id}/accept", response_model=ApiResponse)
async def unaccept_answer(
    answer_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Withdraw acceptance. The question returns to open."""
    answer = await AcceptanceService(db).unaccept(answer_id, caller.user_id)
    return ApiResponse(status="success", data=AnswerResponse.model_validate(answer).model_dump(mode="json"))


@router.post("/{answer_id}/vote", response_model=ApiResponse)
async def vote_on_answer(
    answer_id: int,
    vote: VoteRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    state = await VoteService(db).vote(TargetKind.ANSWER, answer_id, caller.user_id, vote.vote_type)
    return ApiResponse(status="success", data=VoteResponse.model_validate(state).model_dump(mode="json"))


@router.delete("/{answer_id}/vote", response_model=ApiResponse)
async def remove_answer_vote(
    answer_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    votes = VoteService(db)
    removed = await votes.remove_vote(TargetKind.ANSWER, answer_id, caller.user_id)
    state = await votes.get_vote_state(TargetKind.ANSWER, answer_id, caller.user_id, include_deleted=True)
    data = VoteResponse.model_validate(state).model_dump(mode="json")
    data["removed"] = removed
    return ApiResponse(status="success", data=data)


@router.delete("/{answer_id}", response_model=ApiResponse)
async def delete_answer(
    answer_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Delete an answer. Accepted answers cannot be deleted."""
    await AcceptanceService(db).delete_answer(answer_id, caller.user_id, is_admin=caller.is_admin)
    return ApiResponse(status="success", data={"deleted": True})
