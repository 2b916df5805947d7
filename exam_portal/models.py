"""SQLModel models for the test-series attempt engine."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Index, UniqueConstraint, text
from sqlmodel import Field, SQLModel

# Only this question type is auto-graded; anything else is stored for manual grading.
QUESTION_TYPE_MCQ = "mcq"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime read back from a backend that drops the offset."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _timestamp_field(**kwargs):
    return Field(sa_type=DateTime(timezone=True), **kwargs)


class User(SQLModel, table=True):
    """Application user that can log in and own a role (admin / teacher / student)."""

    __table_args__ = (UniqueConstraint("email", name="uq_user_email"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str
    password_hash: str
    role: str = Field(default="student")  # see exam_portal.permissions.Role
    is_active: bool = Field(default=True)
    created_at: datetime = _timestamp_field(default_factory=utcnow)


# --- Content authored elsewhere; read-only for the attempt engine ---


class Test(SQLModel, table=True):
    __table_args__ = (CheckConstraint("negative_marking >= 0", name="ck_test_negative_marking"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: str = ""
    duration: int  # minutes
    total_marks: int
    passing_marks: int
    # factor applied to a question's marks on a wrong MCQ answer (e.g. 0.25)
    negative_marking: float = Field(default=0.0, ge=0)
    instructions: Optional[str] = None
    is_active: bool = Field(default=True)
    created_at: datetime = _timestamp_field(default_factory=utcnow)


class Question(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    test_id: int = Field(foreign_key="test.id", index=True)
    question_text: str
    marks: int = Field(default=1)
    question_type: str = Field(default=QUESTION_TYPE_MCQ)
    created_at: datetime = _timestamp_field(default_factory=utcnow)


class Option(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    question_id: int = Field(foreign_key="question.id", index=True)
    option_text: str
    is_correct: bool = Field(default=False)


class Explanation(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    question_id: int = Field(foreign_key="question.id", index=True)
    explanation_text: str


# --- Attempt engine ---


class TestAttempt(SQLModel, table=True):
    """One user's session against one test.

    ``total_marks`` is copied from the test when the attempt starts so later
    edits to the test never change how a historical attempt is scored. The
    result fields stay null until the attempt is completed, at which point
    they are all written together.

    At most one attempt per (user, test) may be in progress; the partial
    unique index below backs the check done when an attempt is started.
    """

    __table_args__ = (
        Index(
            "uq_attempt_in_progress",
            "user_id",
            "test_id",
            unique=True,
            sqlite_where=text("is_completed = 0"),
            postgresql_where=text("is_completed = false"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    test_id: int = Field(foreign_key="test.id", index=True)
    start_time: datetime = _timestamp_field(default_factory=utcnow)
    end_time: Optional[datetime] = _timestamp_field(default=None)
    total_marks: int
    is_completed: bool = Field(default=False)
    score: Optional[float] = None
    time_taken: Optional[int] = None  # seconds
    correct_answers: Optional[int] = None
    incorrect_answers: Optional[int] = None
    unanswered: Optional[int] = None
    percentage: Optional[float] = None
    created_at: datetime = _timestamp_field(default_factory=utcnow)


class UserAnswer(SQLModel, table=True):
    """Answer to one question within an attempt."""

    __table_args__ = (
        UniqueConstraint("test_attempt_id", "question_id", name="uq_attempt_question"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    test_attempt_id: int = Field(foreign_key="testattempt.id", index=True)
    question_id: int = Field(foreign_key="question.id")
    # selected option id for MCQs, free text for other question types
    answer: str
    is_correct: Optional[bool] = None
    marks_obtained: Optional[float] = None  # negative under negative marking
    created_at: datetime = _timestamp_field(default_factory=utcnow)
