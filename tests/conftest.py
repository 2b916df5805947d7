import sys
from pathlib import Path
from types import SimpleNamespace
from typing import List, Optional

import pytest
from sqlmodel import Session, SQLModel, create_engine, text


def _ensure_app_on_path():
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))
    return repo_root


_ensure_app_on_path()

# ============================================================================
# IN-MEMORY DATABASE FOR TESTING
# ============================================================================

from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from exam_portal import models
from exam_portal.security import hash_password

test_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # CRITICAL: all connections share the same in-memory database
)

TEST_PASSWORD = "testpass123"
# bcrypt is slow on purpose; hash once for every fixture user
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture(scope="session")
def engine():
    return test_engine


@pytest.fixture
def password():
    """Plain-text password of every fixture user."""
    return TEST_PASSWORD


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create all tables in the test database once per session."""
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(autouse=True)
def cleanup_db_between_tests():
    """Clean up test data after each test."""
    yield

    # Clean up in FK-safe order
    with Session(test_engine) as session:
        session.exec(text("DELETE FROM useranswer"))
        session.exec(text("DELETE FROM testattempt"))
        session.exec(text("DELETE FROM explanation"))
        session.exec(text("DELETE FROM option"))
        session.exec(text("DELETE FROM question"))
        session.exec(text("DELETE FROM test"))
        session.exec(text("DELETE FROM user"))
        session.commit()


@pytest.fixture
def session():
    """Provide a database session for tests."""
    with Session(test_engine) as session:
        yield session


# ============================================================================
# FASTAPI APP & TEST CLIENT
# ============================================================================

from exam_portal.database import get_session
from exam_portal.main import app


@pytest.fixture
def client():
    def override_get_session():
        # Must use the same test_engine instance that has the tables
        with Session(test_engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    # Not entered as a context manager: the startup hook would touch the real database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Log ``client`` in as the given user."""

    def _login(user) -> None:
        response = client.post("/auth/login", json={"email": user.email, "password": TEST_PASSWORD})
        assert response.status_code == 200, response.text

    return _login


# ============================================================================
# ENTITY FIXTURES
# ============================================================================


def _create_user(name: str, email: str, role: str) -> models.User:
    with Session(test_engine) as session:
        user = models.User(name=name, email=email, password_hash=TEST_PASSWORD_HASH, role=role)
        session.add(user)
        session.commit()
        session.refresh(user)
        user_id = user.id

    with Session(test_engine) as session:
        return session.get(models.User, user_id)


@pytest.fixture
def student_user():
    return _create_user("Alice Student", "alice@example.com", "student")


@pytest.fixture
def other_student():
    return _create_user("Bob Student", "bob@example.com", "student")


@pytest.fixture
def teacher_user():
    return _create_user("Dr. Carol Teacher", "carol@example.com", "teacher")


@pytest.fixture
def admin_user():
    return _create_user("Admin User", "admin@example.com", "admin")


def _create_test(
    questions: List[dict],
    total_marks: Optional[int] = None,
    negative_marking: float = 0.25,
    is_active: bool = True,
) -> SimpleNamespace:
    """Create a test with questions and options.

    Each question dict takes ``marks`` and optionally ``question_type`` and
    ``explanation``. MCQs get four options, the first of which is correct.
    Returns ids: ``test_id``, ``question_ids``, and per question the
    ``correct_option_ids`` / ``wrong_option_ids``.
    """
    with Session(test_engine) as session:
        test = models.Test(
            title="Physics Mock Test",
            description="Full-length mock test",
            duration=60,
            total_marks=total_marks if total_marks is not None else sum(q["marks"] for q in questions),
            passing_marks=1,
            negative_marking=negative_marking,
            is_active=is_active,
        )
        session.add(test)
        session.commit()
        session.refresh(test)

        ids = SimpleNamespace(test_id=test.id, question_ids=[], correct_option_ids=[], wrong_option_ids=[])
        for i, q_def in enumerate(questions):
            question = models.Question(
                test_id=test.id,
                question_text=f"Question {i + 1}?",
                marks=q_def["marks"],
                question_type=q_def.get("question_type", models.QUESTION_TYPE_MCQ),
            )
            session.add(question)
            session.commit()
            session.refresh(question)
            ids.question_ids.append(question.id)

            correct_id = None
            wrong_ids = []
            if question.question_type == models.QUESTION_TYPE_MCQ:
                for j in range(4):
                    option = models.Option(question_id=question.id, option_text=f"Option {j + 1}", is_correct=j == 0)
                    session.add(option)
                    session.commit()
                    session.refresh(option)
                    if j == 0:
                        correct_id = option.id
                    else:
                        wrong_ids.append(option.id)
            ids.correct_option_ids.append(correct_id)
            ids.wrong_option_ids.append(wrong_ids)

            if q_def.get("explanation"):
                session.add(models.Explanation(question_id=question.id, explanation_text=q_def["explanation"]))
                session.commit()
    return ids


@pytest.fixture
def make_test():
    """Factory for tests with questions; see ``_create_test``."""
    return _create_test


@pytest.fixture
def mcq_test():
    """Three MCQs worth 1, 2 and 3 marks with a negative-marking factor of 0.5."""
    return _create_test(
        [
            {"marks": 1, "explanation": "Newton's first law."},
            {"marks": 2},
            {"marks": 3},
        ],
        total_marks=6,
        negative_marking=0.5,
    )
