"""Test attempt lifecycle: start, answer, complete, review.

An attempt moves NONE -> IN_PROGRESS -> COMPLETED and never back. A user may
hold many completed attempts for a test but at most one in progress. That
rule is checked here and backed by a partial unique index, so the loser of
two concurrent starts resumes the winner's attempt.

Answers are graded as they are submitted, but the attempt's aggregate result
is only computed once, at completion. Submitting an answer therefore never
touches the attempt row and can be retried or reordered freely.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from exam_portal.errors import Forbidden, InvalidState, NotFound, ValidationError
from exam_portal.models import Explanation, Option, Question, Test, TestAttempt, UserAnswer, as_utc, utcnow
from exam_portal.permissions import Capability, has_capability
from exam_portal.services.attempt_store import AnswerStore, AttemptStore
from exam_portal.services.grading import grade_answer, summarize_answers
from exam_portal.services.question_repository import QuestionRepository

logger = logging.getLogger(__name__)


@dataclass
class StartResult:
    attempt: TestAttempt
    resumed: bool


@dataclass
class QuestionReview:
    question: Question
    options: List[Option] = field(default_factory=list)
    explanation: Optional[Explanation] = None
    user_answer: Optional[UserAnswer] = None


@dataclass
class AttemptDetail:
    attempt: TestAttempt
    questions: List[QuestionReview]


@dataclass
class AttemptWithTest:
    attempt: TestAttempt
    test: Optional[Test]


class AttemptLifecycle:
    """Orchestrates the attempt state machine over the injected stores."""

    def __init__(
        self,
        questions: QuestionRepository,
        attempts: AttemptStore,
        answers: AnswerStore,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.questions = questions
        self.attempts = attempts
        self.answers = answers
        self.clock = clock

    @classmethod
    def from_session(cls, session: Session) -> "AttemptLifecycle":
        return cls(QuestionRepository(session), AttemptStore(session), AnswerStore(session))

    # --- helpers ---

    def _get_owned_attempt(self, attempt_id: int, caller_id: int) -> TestAttempt:
        attempt = self.attempts.get(attempt_id)
        if not attempt:
            raise NotFound("Test attempt not found")
        if attempt.user_id != caller_id:
            logger.warning("user_id=%s denied access to attempt_id=%s", caller_id, attempt_id)
            raise Forbidden("Unauthorized access to test attempt")
        return attempt

    @staticmethod
    def _ensure_in_progress(attempt: TestAttempt) -> None:
        if attempt.is_completed:
            logger.warning("rejected change to completed attempt_id=%s", attempt.id)
            raise InvalidState("Test is already completed")

    # --- operations ---

    def start_attempt(self, user_id: int, test_id: int) -> StartResult:
        test = self.questions.get_test(test_id)
        if not test:
            raise NotFound("Test not found")

        existing = self.attempts.list_incomplete(user_id, test_id)
        if existing:
            logger.info("resuming attempt_id=%s for user_id=%s test_id=%s", existing[0].id, user_id, test_id)
            return StartResult(attempt=existing[0], resumed=True)

        if not test.is_active:
            raise InvalidState("Test is not active")

        try:
            attempt = self.attempts.create(
                TestAttempt(
                    user_id=user_id,
                    test_id=test_id,
                    total_marks=test.total_marks,
                    start_time=self.clock(),
                    end_time=None,
                    is_completed=False,
                )
            )
        except IntegrityError:
            # A concurrent start for the same (user, test) committed first.
            existing = self.attempts.list_incomplete(user_id, test_id)
            if not existing:
                raise
            logger.info(
                "start raced for user_id=%s test_id=%s; resuming attempt_id=%s",
                user_id,
                test_id,
                existing[0].id,
            )
            return StartResult(attempt=existing[0], resumed=True)
        logger.info("started attempt_id=%s for user_id=%s test_id=%s", attempt.id, user_id, test_id)
        return StartResult(attempt=attempt, resumed=False)

    def submit_answer(
        self,
        attempt_id: int,
        caller_id: int,
        question_id: Optional[int],
        raw_answer: Optional[str],
    ) -> UserAnswer:
        if not question_id or raw_answer is None or str(raw_answer) == "":
            raise ValidationError("Question ID and answer are required")

        attempt = self._get_owned_attempt(attempt_id, caller_id)
        self._ensure_in_progress(attempt)

        question = self.questions.get_question(question_id)
        if not question:
            raise NotFound("Question not found")
        if question.test_id != attempt.test_id:
            raise ValidationError("Question does not belong to this test")

        test = self.questions.get_test(attempt.test_id)
        negative_marking = test.negative_marking if test else 0.0
        options = self.questions.get_options_by_question(question.id)
        grade = grade_answer(question, options, str(raw_answer), negative_marking)

        return self.answers.upsert(
            attempt_id=attempt.id,
            question_id=question.id,
            answer=str(raw_answer),
            is_correct=grade.is_correct,
            marks_obtained=grade.marks_obtained,
        )

    def complete_attempt(self, attempt_id: int, caller_id: int) -> TestAttempt:
        attempt = self._get_owned_attempt(attempt_id, caller_id)
        self._ensure_in_progress(attempt)

        question_ids = [q.id for q in self.questions.get_questions_by_test(attempt.test_id)]
        answers = self.answers.list_by_attempt(attempt.id)
        summary = summarize_answers(question_ids, answers, attempt.total_marks)

        end_time = as_utc(self.clock())
        time_taken = max(0, math.floor((end_time - as_utc(attempt.start_time)).total_seconds()))

        updated = self.attempts.complete(
            attempt.id,
            end_time=end_time,
            score=summary.score,
            time_taken=time_taken,
            correct_answers=summary.correct_answers,
            incorrect_answers=summary.incorrect_answers,
            unanswered=summary.unanswered,
            percentage=summary.percentage,
        )
        if not updated:
            # Lost a race against a concurrent completion of the same attempt.
            logger.warning("attempt_id=%s was completed concurrently", attempt_id)
            raise InvalidState("Test is already completed")

        logger.info(
            "completed attempt_id=%s score=%s percentage=%.2f",
            attempt_id,
            summary.score,
            summary.percentage,
        )
        return self.attempts.get(attempt_id)

    def get_attempt_detail(self, attempt_id: int, caller_id: int, caller_role: str) -> AttemptDetail:
        attempt = self.attempts.get(attempt_id)
        if not attempt:
            raise NotFound("Test attempt not found")
        if attempt.user_id != caller_id and not has_capability(caller_role, Capability.VIEW_ANY_ATTEMPT):
            logger.warning("user_id=%s denied access to attempt_id=%s", caller_id, attempt_id)
            raise Forbidden("Unauthorized access to test attempt")

        answers_by_question = {a.question_id: a for a in self.answers.list_by_attempt(attempt.id)}
        reviews = [
            QuestionReview(
                question=q,
                options=self.questions.get_options_by_question(q.id),
                explanation=self.questions.get_explanation_by_question(q.id),
                user_answer=answers_by_question.get(q.id),
            )
            for q in self.questions.get_questions_by_test(attempt.test_id)
        ]
        return AttemptDetail(attempt=attempt, questions=reviews)

    def list_user_attempts(self, user_id: int) -> List[AttemptWithTest]:
        return [
            AttemptWithTest(attempt=a, test=self.questions.get_test(a.test_id))
            for a in self.attempts.list_by_user(user_id)
        ]
