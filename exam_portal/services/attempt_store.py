"""Persistence for test attempts and their answers.

These stores hold no business rules; the lifecycle checks live in
``attempt_service``. Every public write is a single commit, so a concurrent
reader never sees half of a logical update.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from exam_portal.models import TestAttempt, UserAnswer

logger = logging.getLogger(__name__)


class AttemptStore:
    def __init__(self, session: Session):
        self.session = session

    def create(self, attempt: TestAttempt) -> TestAttempt:
        self.session.add(attempt)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise
        self.session.refresh(attempt)
        return attempt

    def get(self, attempt_id: int) -> Optional[TestAttempt]:
        return self.session.get(TestAttempt, attempt_id)

    def update(self, attempt: TestAttempt) -> TestAttempt:
        self.session.add(attempt)
        self.session.commit()
        self.session.refresh(attempt)
        return attempt

    def list_incomplete(self, user_id: int, test_id: int) -> List[TestAttempt]:
        stmt = (
            select(TestAttempt)
            .where(
                (TestAttempt.user_id == user_id)
                & (TestAttempt.test_id == test_id)
                & (TestAttempt.is_completed == False)  # noqa: E712
            )
            .order_by(TestAttempt.start_time, TestAttempt.id)
        )
        return list(self.session.exec(stmt).all())

    def list_by_user(self, user_id: int) -> List[TestAttempt]:
        stmt = (
            select(TestAttempt)
            .where(TestAttempt.user_id == user_id)
            .order_by(TestAttempt.start_time.desc(), TestAttempt.id.desc())
        )
        return list(self.session.exec(stmt).all())

    def complete(
        self,
        attempt_id: int,
        *,
        end_time: datetime,
        score: float,
        time_taken: int,
        correct_answers: int,
        incorrect_answers: int,
        unanswered: int,
        percentage: float,
    ) -> bool:
        """Mark an attempt completed and store its result in one conditional UPDATE.

        The row is only touched while ``is_completed`` is still false, so of
        two racing completions exactly one wins. Returns False when no row was
        updated (missing or already completed).
        """
        stmt = (
            update(TestAttempt)
            .where(
                (TestAttempt.id == attempt_id)
                & (TestAttempt.is_completed == False)  # noqa: E712
            )
            .values(
                is_completed=True,
                end_time=end_time,
                score=score,
                time_taken=time_taken,
                correct_answers=correct_answers,
                incorrect_answers=incorrect_answers,
                unanswered=unanswered,
                percentage=percentage,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.exec(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        # The UPDATE bypassed the identity map; reload on next access.
        self.session.expire_all()
        return result.rowcount == 1


class AnswerStore:
    def __init__(self, session: Session):
        self.session = session

    def create(self, answer: UserAnswer) -> UserAnswer:
        self.session.add(answer)
        self.session.commit()
        self.session.refresh(answer)
        return answer

    def get(self, answer_id: int) -> Optional[UserAnswer]:
        return self.session.get(UserAnswer, answer_id)

    def update(self, answer: UserAnswer) -> UserAnswer:
        self.session.add(answer)
        self.session.commit()
        self.session.refresh(answer)
        return answer

    def list_by_attempt(self, attempt_id: int) -> List[UserAnswer]:
        stmt = select(UserAnswer).where(UserAnswer.test_attempt_id == attempt_id).order_by(UserAnswer.id)
        return list(self.session.exec(stmt).all())

    def get_by_attempt_and_question(self, attempt_id: int, question_id: int) -> Optional[UserAnswer]:
        stmt = select(UserAnswer).where(
            (UserAnswer.test_attempt_id == attempt_id) & (UserAnswer.question_id == question_id)
        )
        return self.session.exec(stmt).first()

    def upsert(
        self,
        attempt_id: int,
        question_id: int,
        answer: str,
        is_correct: Optional[bool],
        marks_obtained: float,
    ) -> UserAnswer:
        """Insert or overwrite the answer for (attempt, question); last write wins."""
        existing = self.get_by_attempt_and_question(attempt_id, question_id)
        if existing:
            return self._overwrite(existing, answer, is_correct, marks_obtained)

        new = UserAnswer(
            test_attempt_id=attempt_id,
            question_id=question_id,
            answer=answer,
            is_correct=is_correct,
            marks_obtained=marks_obtained,
        )
        try:
            return self.create(new)
        except IntegrityError:
            # A concurrent request inserted the same (attempt, question) first.
            self.session.rollback()
            logger.info(
                "answer insert raced for attempt_id=%s question_id=%s; updating instead",
                attempt_id,
                question_id,
            )
            existing = self.get_by_attempt_and_question(attempt_id, question_id)
            if existing is None:
                raise
            return self._overwrite(existing, answer, is_correct, marks_obtained)

    def _overwrite(
        self,
        existing: UserAnswer,
        answer: str,
        is_correct: Optional[bool],
        marks_obtained: float,
    ) -> UserAnswer:
        existing.answer = answer
        existing.is_correct = is_correct
        existing.marks_obtained = marks_obtained
        return self.update(existing)
