"""Read-only access to tests, questions and their answer keys.

The content itself is authored by another subsystem; the attempt engine only
ever reads it through this repository.
"""

from typing import List, Optional

from sqlmodel import Session, select

from exam_portal.models import Explanation, Option, Question, Test


class QuestionRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_test(self, test_id: int) -> Optional[Test]:
        return self.session.get(Test, test_id)

    def get_questions_by_test(self, test_id: int) -> List[Question]:
        stmt = select(Question).where(Question.test_id == test_id).order_by(Question.id)
        return list(self.session.exec(stmt).all())

    def get_question(self, question_id: int) -> Optional[Question]:
        return self.session.get(Question, question_id)

    def get_options_by_question(self, question_id: int) -> List[Option]:
        stmt = select(Option).where(Option.question_id == question_id).order_by(Option.id)
        return list(self.session.exec(stmt).all())

    def get_explanation_by_question(self, question_id: int) -> Optional[Explanation]:
        stmt = select(Explanation).where(Explanation.question_id == question_id)
        return self.session.exec(stmt).first()
