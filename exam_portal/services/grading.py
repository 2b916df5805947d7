"""Auto-grading of submitted answers and aggregation of attempt results.

Everything here is pure: no session, no clock. Grading the same
(question, options, answer, factor) input always gives the same result, which
matters because an answer may be resubmitted any number of times.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from exam_portal.errors import ValidationError
from exam_portal.models import QUESTION_TYPE_MCQ, Option, Question, UserAnswer


@dataclass(frozen=True)
class GradeResult:
    is_correct: Optional[bool]
    marks_obtained: float


@dataclass(frozen=True)
class AttemptSummary:
    score: float
    correct_answers: int
    incorrect_answers: int
    unanswered: int
    percentage: float


def _parse_option_id(raw_answer: str) -> Optional[int]:
    try:
        return int(str(raw_answer).strip())
    except ValueError:
        return None


def grade_answer(
    question: Question,
    options: Sequence[Option],
    raw_answer: str,
    negative_marking: float,
) -> GradeResult:
    """Grade one answer against the question's answer key.

    Only MCQs are auto-graded; other question types come back with
    ``is_correct=None`` and zero marks, pending manual grading.

    The selected option's own ``is_correct`` flag decides the outcome, so if
    several options are marked correct any of them earns full marks, and if
    none is marked correct every valid selection is wrong. A selection that
    matches no option of the question is wrong but carries no penalty.

    A negative ``negative_marking`` factor is rejected with ValidationError
    rather than clamped, since it would turn a wrong answer into a reward.
    """
    if negative_marking < 0:
        raise ValidationError("Negative marking factor must not be negative")
    if question.question_type != QUESTION_TYPE_MCQ:
        return GradeResult(is_correct=None, marks_obtained=0.0)

    option_id = _parse_option_id(raw_answer)
    selected = next((o for o in options if option_id is not None and o.id == option_id), None)
    if selected is None:
        return GradeResult(is_correct=False, marks_obtained=0.0)

    if selected.is_correct:
        return GradeResult(is_correct=True, marks_obtained=float(question.marks))
    penalty = question.marks * float(negative_marking)
    return GradeResult(is_correct=False, marks_obtained=-penalty if penalty else 0.0)


def compute_percentage(score: float, total_marks: int) -> float:
    """Percentage of ``total_marks``; not clamped, so it is negative for a net negative score."""
    if total_marks <= 0:
        return 0.0
    return score / total_marks * 100


def summarize_answers(
    question_ids: Iterable[int],
    answers: Sequence[UserAnswer],
    total_marks: int,
) -> AttemptSummary:
    """Aggregate the answers of an attempt into its final result.

    Unanswered questions contribute nothing to the score. Answers whose
    ``is_correct`` is null (ungraded types) count neither as correct nor as
    incorrect, though they still count as answered. Answers to questions
    outside ``question_ids`` are ignored for every total.
    """
    question_ids = set(question_ids)
    answers = [a for a in answers if a.question_id in question_ids]
    answered = {a.question_id for a in answers}

    correct = sum(1 for a in answers if a.is_correct is True)
    incorrect = sum(1 for a in answers if a.is_correct is False)
    score = math.fsum(a.marks_obtained or 0.0 for a in answers)

    return AttemptSummary(
        score=score,
        correct_answers=correct,
        incorrect_answers=incorrect,
        unanswered=len(question_ids) - len(answered),
        percentage=compute_percentage(score, total_marks),
    )
