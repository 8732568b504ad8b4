"""Question API endpoints: questions, their votes, close/reopen and answers."""

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.dependencies import Caller, get_client_ip, get_current_caller, get_db, get_optional_caller
from boardcore.models.question import QuestionStatus
from boardcore.schemas import (
    AnswerCreateRequest,
    AnswerResponse,
    ApiResponse,
    PaginationMeta,
    QuestionCreateRequest,
    QuestionDetailResponse,
    QuestionResponse,
    QuestionUpdateRequest,
    VoteRequest,
    VoteResponse,
)
from boardcore.services.acceptance_service import AcceptanceService
from boardcore.services.question_service import QuestionService
from boardcore.services.targets import TargetKind
from boardcore.services.view_service import ViewService
from boardcore.services.vote_service import VoteService

router = APIRouter()


@router.get("", response_model=ApiResponse)
async def list_questions(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    status: Optional[QuestionStatus] = Query(None, description="Filter by status"),
    sort_by: str = Query(
        "newest", pattern="^(newest|oldest|votes|answers|views)$", description="Sort method"
    ),
    author_id: Optional[int] = Query(None, description="Filter by author"),
    search: Optional[str] = Query(None, max_length=100, description="Search title and content"),
    db: AsyncSession = Depends(get_db),
):
    """List live questions with pagination, status filter and sorting."""
    service = QuestionService(db)
    questions, total = await service.list_questions(
        page=page, limit=limit, status=status, sort_by=sort_by, author_id=author_id, search=search
    )
    return ApiResponse(
        status="success",
        data=[QuestionResponse.model_validate(q).model_dump(mode="json") for q in questions],
        meta=PaginationMeta(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit)),
    )


@router.post("", response_model=ApiResponse, status_code=201)
async def create_question(
    body: QuestionCreateRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    service = QuestionService(db)
    question = await service.create_question(body.title, body.content, author_id=caller.user_id)
    return ApiResponse(
        status="success",
        data=QuestionResponse.model_validate(question).model_dump(mode="json"),
    )


@router.get("/{question_id}", response_model=ApiResponse)
async def get_question(
    question_id: int,
    request: Request,
    caller: Optional[Caller] = Depends(get_optional_caller),
    db: AsyncSession = Depends(get_db),
):
    """Get a question with its answers and count the view (deduplicated per viewer)."""
    service = QuestionService(db)
    votes = VoteService(db)
    user_id = caller.user_id if caller else None

    question = await service.get_question(question_id)
    await ViewService(db).record_view(
        question_id, user_id=user_id, ip_address=get_client_ip(request), kind=TargetKind.QUESTION
    )
    answers = await service.list_answers(question_id)
    answer_votes = await votes.get_user_votes(TargetKind.ANSWER, [a.id for a in answers], user_id)

    response = QuestionDetailResponse.model_validate(question)
    response.current_user_vote = await votes.get_user_vote(TargetKind.QUESTION, question_id, user_id)
    response.answers = []
    for answer in answers:
        item = AnswerResponse.model_validate(answer)
        item.current_user_vote = answer_votes.get(answer.id)
        response.answers.append(item)

    return ApiResponse(status="success", data=response.model_dump(mode="json"))


@router.put("/{question_id}", response_model=ApiResponse)
async def update_question(
    question_id: int,
    body: QuestionUpdateRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Edit a question. Author only."""
    question = await QuestionService(db).update_question(question_id, body.title, body.content, caller.user_id)
    return ApiResponse(status="success", data=QuestionResponse.model_validate(question).model_dump(mode="json"))


@router.delete("/{question_id}", response_model=ApiResponse)
async def delete_question(
    question_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Delete a question. Questions with live answers cannot be deleted."""
    await AcceptanceService(db).delete_question(question_id, caller.user_id, is_admin=caller.is_admin)
    return ApiResponse(status="success", data={"deleted": True})


@router.post("/{question_id}/vote", response_model=ApiResponse)
async def vote_on_question(
    question_id: int,
    vote: VoteRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Vote on a question.

    Voting the opposite type switches the vote. Voting the same type again
    is a 409.
    """
    state = await VoteService(db).vote(TargetKind.QUESTION, question_id, caller.user_id, vote.vote_type)
    return ApiResponse(status="success", data=VoteResponse.model_validate(state).model_dump(mode="json"))


@router.delete("/{question_id}/vote", response_model=ApiResponse)
async def remove_question_vote(
    question_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    votes = VoteService(db)
    removed = await votes.remove_vote(TargetKind.QUESTION, question_id, caller.user_id)
    state = await votes.get_vote_state(TargetKind.QUESTION, question_id, caller.user_id, include_deleted=True)
    data = VoteResponse.model_validate(state).model_dump(mode="json")
    data["removed"] = removed
    return ApiResponse(status="success", data=data)


@router.post("/{question_id}/close", response_model=ApiResponse)
async def close_question(
    question_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    question = await QuestionService(db).close_question(question_id, caller.user_id)
    return ApiResponse(status="success", data=QuestionResponse.model_validate(question).model_dump(mode="json"))


@router.post("/{question_id}/reopen", response_model=ApiResponse)
async def reopen_question(
    question_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    question = await QuestionService(db).reopen_question(question_id, caller.user_id)
    return ApiResponse(status="success", data=QuestionResponse.model_validate(question).model_dump(mode="json"))


@router.get("/{question_id}/answers", response_model=ApiResponse)
async def list_answers(
    question_id: int,
    caller: Optional[Caller] = Depends(get_optional_caller),
    db: AsyncSession = Depends(get_db),
):
    answers = await QuestionService(db).list_answers(question_id)
    answer_votes = await VoteService(db).get_user_votes(
        TargetKind.ANSWER, [a.id for a in answers], caller.user_id if caller else None
    )
    data = []
    for answer in answers:
        item = AnswerResponse.model_validate(answer)
        item.current_user_vote = answer_votes.get(answer.id)
        data.append(item.model_dump(mode="json"))
    return ApiResponse(status="success", data=data)


@router.post("/{question_id}/answers", response_model=ApiResponse, status_code=201)
async def create_answer(
    question_id: int,
    body: AnswerCreateRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Answer a question. Closed questions reject new answers."""
    answer = await QuestionService(db).create_answer(question_id, body.content, author_id=caller.user_id)
    return ApiResponse(status="success", data=AnswerResponse.model_validate(answer).model_dump(mode="json"))
