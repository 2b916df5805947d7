"""Request and response bodies of the JSON API.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# --- requests ---


class LoginIn(BaseModel):
    email: str
    password: str


class SubmitAnswerIn(CamelModel):
    # Both optional so a missing field is reported as a business validation error
    question_id: Optional[int] = None
    answer: Optional[Union[int, str]] = None


# --- responses ---


class UserOut(CamelModel):
    id: int
    name: str
    email: str
    role: str


class TestOut(CamelModel):
    id: int
    title: str
    description: str
    duration: int
    total_marks: int
    passing_marks: int
    negative_marking: float
    instructions: Optional[str] = None
    is_active: bool


class TestAttemptOut(CamelModel):
    id: int
    user_id: int
    test_id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    total_marks: int
    is_completed: bool
    score: Optional[float] = None
    time_taken: Optional[int] = None
    correct_answers: Optional[int] = None
    incorrect_answers: Optional[int] = None
    unanswered: Optional[int] = None
    percentage: Optional[float] = None


class UserAnswerOut(CamelModel):
    id: int
    test_attempt_id: int
    question_id: int
    answer: str
    is_correct: Optional[bool] = None
    marks_obtained: Optional[float] = None


class OptionOut(CamelModel):
    id: int
    question_id: int
    option_text: str
    is_correct: bool


class ExplanationOut(CamelModel):
    id: int
    question_id: int
    explanation_text: str


class QuestionReviewOut(CamelModel):
    id: int
    test_id: int
    question_text: str
    marks: int
    question_type: str
    options: List[OptionOut]
    explanation: Optional[ExplanationOut] = None
    user_answer: Optional[UserAnswerOut] = None


class StartAttemptOut(CamelModel):
    message: str
    test_attempt: TestAttemptOut


class SubmitAnswerOut(CamelModel):
    message: str
    user_answer: UserAnswerOut


class CompleteAttemptOut(CamelModel):
    message: str
    test_attempt: TestAttemptOut


class AttemptDetailOut(CamelModel):
    test_attempt: TestAttemptOut
    questions: List[QuestionReviewOut]


class AttemptSummaryOut(TestAttemptOut):
    test: Optional[TestOut] = None
