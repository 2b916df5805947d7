"""Test attempt endpoints: start, submit answer, complete, review."""

from typing import List

from fastapi import APIRouter, Body, Depends, Response, status

from exam_portal.deps import get_attempt_lifecycle, require_capability, require_login
from exam_portal.models import User
from exam_portal.permissions import Capability
from exam_portal.schemas import (
    AttemptDetailOut,
    AttemptSummaryOut,
    CompleteAttemptOut,
    QuestionReviewOut,
    StartAttemptOut,
    SubmitAnswerIn,
    SubmitAnswerOut,
    TestAttemptOut,
    TestOut,
    UserAnswerOut,
)
from exam_portal.services.attempt_service import AttemptLifecycle, QuestionReview

router = APIRouter()


def _review_out(review: QuestionReview) -> QuestionReviewOut:
    q = review.question
    return QuestionReviewOut.model_validate(
        {
            "id": q.id,
            "test_id": q.test_id,
            "question_text": q.question_text,
            "marks": q.marks,
            "question_type": q.question_type,
            "options": review.options,
            "explanation": review.explanation,
            "user_answer": review.user_answer,
        },
        from_attributes=True,
    )


@router.post("/tests/{test_id}/start", response_model=StartAttemptOut, status_code=status.HTTP_201_CREATED)
def start_test(
    test_id: int,
    response: Response,
    current_user: User = Depends(require_capability(Capability.TAKE_TEST)),
    lifecycle: AttemptLifecycle = Depends(get_attempt_lifecycle),
):
    result = lifecycle.start_attempt(current_user.id, test_id)
    if result.resumed:
        response.status_code = status.HTTP_200_OK
        message = "Test already in progress"
    else:
        message = "Test started successfully"
    return StartAttemptOut(message=message, test_attempt=TestAttemptOut.model_validate(result.attempt))


@router.post("/test-attempts/{attempt_id}/submit-answer", response_model=SubmitAnswerOut)
def submit_answer(
    attempt_id: int,
    payload: SubmitAnswerIn = Body(...),
    current_user: User = Depends(require_capability(Capability.TAKE_TEST)),
    lifecycle: AttemptLifecycle = Depends(get_attempt_lifecycle),
):
    answer = lifecycle.submit_answer(
        attempt_id,
        current_user.id,
        payload.question_id,
        None if payload.answer is None else str(payload.answer),
    )
    return SubmitAnswerOut(message="Answer submitted successfully", user_answer=UserAnswerOut.model_validate(answer))


@router.post("/test-attempts/{attempt_id}/complete", response_model=CompleteAttemptOut)
def complete_test(
    attempt_id: int,
    current_user: User = Depends(require_capability(Capability.TAKE_TEST)),
    lifecycle: AttemptLifecycle = Depends(get_attempt_lifecycle),
):
    attempt = lifecycle.complete_attempt(attempt_id, current_user.id)
    return CompleteAttemptOut(message="Test completed successfully", test_attempt=TestAttemptOut.model_validate(attempt))


@router.get("/test-attempts/{attempt_id}", response_model=AttemptDetailOut)
def get_attempt_detail(
    attempt_id: int,
    current_user: User = Depends(require_login),
    lifecycle: AttemptLifecycle = Depends(get_attempt_lifecycle),
):
    detail = lifecycle.get_attempt_detail(attempt_id, current_user.id, current_user.role)
    return AttemptDetailOut(
        test_attempt=TestAttemptOut.model_validate(detail.attempt),
        questions=[_review_out(r) for r in detail.questions],
    )


@router.get("/users/test-attempts", response_model=List[AttemptSummaryOut])
def list_my_attempts(
    current_user: User = Depends(require_login),
    lifecycle: AttemptLifecycle = Depends(get_attempt_lifecycle),
):
    summaries = []
    for item in lifecycle.list_user_attempts(current_user.id):
        out = AttemptSummaryOut.model_validate(item.attempt)
        out.test = TestOut.model_validate(item.test) if item.test else None
        summaries.append(out)
    return summaries
