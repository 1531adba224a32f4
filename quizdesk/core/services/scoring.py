"""Grading of submitted quiz attempts."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from uuid import uuid4

from quizdesk.constants.quiz_constants import UNANSWERED
from quizdesk.core.models import Question, Quiz, QuizAttempt


def percentage(part: int, whole: int) -> int:
    """Return ``100 * part / whole`` rounded half-up, or 0 for an empty whole."""
    if whole <= 0:
        return 0
    # Integer form of floor(100 * part / whole + 0.5); avoids round()'s half-to-even.
    return (200 * part + whole) // (2 * whole)


def is_answered(answer: int | None) -> bool:
    return answer is not None and answer != UNANSWERED


def has_unanswered(answers: Sequence[int | None], expected_count: int) -> bool:
    """True when fewer than ``expected_count`` answers were given or any is unset."""
    if len(answers) < expected_count:
        return True
    return any(not is_answered(answer) for answer in answers[:expected_count])


def count_correct(questions: Sequence[Question], answers: Sequence[int | None]) -> int:
    correct = 0
    for index, question in enumerate(questions):
        answer = answers[index] if index < len(answers) else None
        if is_answered(answer) and answer == question.correct_answer:
            correct += 1
    return correct


def score_answers(questions: Sequence[Question], answers: Sequence[int | None]) -> int:
    """Score a set of answers as an integer percentage in [0, 100]."""
    return percentage(count_correct(questions, answers), len(questions))


def presented_questions(quiz: Quiz, question_ids: Sequence[str] | None = None) -> list[Question]:
    """Narrow ``quiz`` to ``question_ids`` in the order they are listed.

    The order matters: stored answers are parallel to it. Ids the quiz does
    not contain are skipped.
    """
    if not question_ids:
        return list(quiz.questions)
    by_id = {question.id: question for question in quiz.questions}
    return [by_id[question_id] for question_id in question_ids if question_id in by_id]


def grade_attempt(
    student_id: str,
    quiz: Quiz,
    questions: Sequence[Question],
    answers: Sequence[int | None],
    *,
    attempt_id: str | None = None,
    submitted_at: datetime | None = None,
) -> QuizAttempt:
    """Grade ``answers`` against ``questions`` and build the attempt record.

    ``questions`` is the list actually presented, which may be a subset of
    ``quiz.questions``. Unset answers are stored as ``-1`` and count as wrong.
    """
    normalized = tuple(
        answers[index] if index < len(answers) and is_answered(answers[index]) else UNANSWERED
        for index in range(len(questions))
    )
    full_quiz = [q.id for q in questions] == [q.id for q in quiz.questions]
    return QuizAttempt(
        id=attempt_id or f"attempt-{uuid4().hex[:12]}",
        student_id=student_id,
        quiz_id=quiz.id,
        answers=normalized,
        score=score_answers(questions, normalized),
        timestamp=submitted_at or datetime.now(timezone.utc),
        question_ids=() if full_quiz else tuple(q.id for q in questions),
    )


def recompute_score(quiz: Quiz, attempt: QuizAttempt) -> int:
    """Re-grade a stored attempt from its answers and the quiz's questions."""
    return score_answers(presented_questions(quiz, attempt.question_ids), attempt.answers)
