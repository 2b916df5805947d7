"""Unit tests for the pure grading and aggregation functions."""

import pytest

from exam_portal import models
from exam_portal.errors import ValidationError
from exam_portal.services.grading import compute_percentage, grade_answer, summarize_answers


def _question(marks=4, question_type=models.QUESTION_TYPE_MCQ):
    return models.Question(id=10, test_id=1, question_text="Q?", marks=marks, question_type=question_type)


def _options(correct_flags=(True, False, False, False)):
    return [
        models.Option(id=100 + i, question_id=10, option_text=f"Opt {i}", is_correct=flag)
        for i, flag in enumerate(correct_flags)
    ]


def test_correct_option_earns_full_marks():
    result = grade_answer(_question(), _options(), "100", 0.25)
    assert result.is_correct is True
    assert result.marks_obtained == 4


def test_wrong_option_is_penalised_by_factor():
    result = grade_answer(_question(), _options(), "101", 0.25)
    assert result.is_correct is False
    assert result.marks_obtained == -1


def test_unknown_option_is_wrong_without_penalty():
    result = grade_answer(_question(), _options(), "999", 0.25)
    assert result.is_correct is False
    assert result.marks_obtained == 0


def test_non_numeric_answer_to_mcq_is_wrong_without_penalty():
    result = grade_answer(_question(), _options(), "B", 0.25)
    assert result.is_correct is False
    assert result.marks_obtained == 0


def test_option_id_with_whitespace_is_accepted():
    result = grade_answer(_question(), _options(), " 100 ", 0.25)
    assert result.is_correct is True


def test_zero_factor_means_no_penalty():
    result = grade_answer(_question(), _options(), "102", 0)
    assert result.is_correct is False
    assert result.marks_obtained == 0
    # no negative zero leaking into results
    assert str(result.marks_obtained) == "0.0"


def test_non_mcq_is_left_ungraded():
    q = _question(question_type="subjective")
    result = grade_answer(q, [], "Energy is conserved.", 0.25)
    assert result.is_correct is None
    assert result.marks_obtained == 0


def test_any_option_marked_correct_earns_marks():
    options = _options(correct_flags=(True, True, False, False))
    assert grade_answer(_question(), options, "100", 0.25).is_correct is True
    assert grade_answer(_question(), options, "101", 0.25).is_correct is True


def test_no_option_marked_correct_makes_every_selection_wrong():
    options = _options(correct_flags=(False, False, False, False))
    result = grade_answer(_question(), options, "100", 0.25)
    assert result.is_correct is False
    assert result.marks_obtained == -1


def test_negative_factor_is_rejected():
    with pytest.raises(ValidationError):
        grade_answer(_question(), _options(), "101", -0.5)


def test_grading_is_deterministic():
    q, opts = _question(), _options()
    results = {grade_answer(q, opts, "101", 0.25) for _ in range(5)}
    assert len(results) == 1


def _answer(question_id, is_correct, marks):
    return models.UserAnswer(
        test_attempt_id=1, question_id=question_id, answer="x", is_correct=is_correct, marks_obtained=marks
    )


def test_summary_counts_and_score():
    answers = [_answer(1, True, 1.0), _answer(2, False, -1.0)]
    summary = summarize_answers([1, 2, 3], answers, total_marks=6)

    assert summary.correct_answers == 1
    assert summary.incorrect_answers == 1
    assert summary.unanswered == 1
    assert summary.score == 0
    assert summary.percentage == 0


def test_summary_ungraded_answers_count_as_answered_only():
    answers = [_answer(1, None, 0.0), _answer(2, True, 3.0)]
    summary = summarize_answers([1, 2], answers, total_marks=5)

    assert summary.correct_answers == 1
    assert summary.incorrect_answers == 0
    assert summary.unanswered == 0
    assert summary.score == 3
    assert summary.percentage == pytest.approx(60.0)


def test_summary_ignores_answers_to_questions_outside_the_test():
    # question 2 was moved to another test after it was answered
    answers = [_answer(1, True, 1.0), _answer(2, True, 2.0), _answer(3, False, -0.5)]
    summary = summarize_answers([1], answers, total_marks=1)

    assert summary.correct_answers == 1
    assert summary.incorrect_answers == 0
    assert summary.unanswered == 0
    assert summary.score == 1
    assert summary.percentage == pytest.approx(100.0)


def test_summary_with_no_answers():
    summary = summarize_answers([1, 2, 3], [], total_marks=6)
    assert summary.unanswered == 3
    assert summary.score == 0
    assert summary.percentage == 0


def test_negative_percentage_is_not_clamped():
    assert compute_percentage(-2.0, 8) == pytest.approx(-25.0)


def test_percentage_with_zero_total_marks():
    assert compute_percentage(5.0, 0) == 0.0
