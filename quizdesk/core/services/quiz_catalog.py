"""Service for authoring quizzes and listing them for teachers and students."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from typing import Literal
from uuid import uuid4

from quizdesk.constants.quiz_constants import MIN_OPTION_COUNT
from quizdesk.core.errors import EntityNotFound, PreconditionViolation
from quizdesk.core.models import Question, Quiz, QuizAttempt, SchoolClass
from quizdesk.core.services.roster import find_class

QuizSort = Literal["name", "questions", "attempts"]


def find_quiz(quizzes: Sequence[Quiz], quiz_id: str) -> Quiz:
    for quiz in quizzes:
        if quiz.id == quiz_id:
            return quiz
    raise EntityNotFound("Quiz", quiz_id)


def create_quiz(
    quizzes: Sequence[Quiz],
    classes: Sequence[SchoolClass],
    class_id: str,
    name: str,
    questions: Sequence[Question],
    created_by: str,
) -> tuple[Quiz, ...]:
    """Validate and append a new, visible quiz for ``class_id``."""
    school_class = find_class(classes, class_id)
    if school_class.teacher_id != created_by:
        raise PreconditionViolation("You can only create quizzes for your own classes.")

    cleaned_name = name.strip()
    if not cleaned_name:
        raise PreconditionViolation("Please enter a quiz name.")
    if not questions:
        raise PreconditionViolation("A quiz must contain at least one question.")

    quiz = Quiz(
        id=f"quiz-{uuid4().hex[:8]}",
        class_id=school_class.id,
        name=cleaned_name,
        questions=tuple(_prepare_question(q) for q in questions),
        visible=True,
        created_by=created_by,
    )
    return (*quizzes, quiz)


def toggle_visibility(quizzes: Sequence[Quiz], quiz_id: str) -> tuple[Quiz, ...]:
    quiz = find_quiz(quizzes, quiz_id)
    return tuple(replace(q, visible=not quiz.visible) if q.id == quiz_id else q for q in quizzes)


def delete_quiz(quizzes: Sequence[Quiz], quiz_id: str) -> tuple[Quiz, ...]:
    find_quiz(quizzes, quiz_id)
    return tuple(q for q in quizzes if q.id != quiz_id)


def duplicate_quiz(
    quizzes: Sequence[Quiz],
    quiz_id: str,
    created_by: str,
    name: str | None = None,
) -> tuple[Quiz, ...]:
    """Copy a quiz under fresh quiz and question ids so attempts never cross over."""
    source = find_quiz(quizzes, quiz_id)
    copy = Quiz(
        id=f"quiz-{uuid4().hex[:8]}",
        class_id=source.class_id,
        name=(name or "").strip() or f"{source.name} (Copy)",
        questions=tuple(replace(q, id=_new_question_id()) for q in source.questions),
        visible=source.visible,
        created_by=created_by,
    )
    return (*quizzes, copy)


def class_quizzes(
    quizzes: Sequence[Quiz],
    class_id: str,
    sort_by: QuizSort = "name",
    attempts: Sequence[QuizAttempt] = (),
) -> list[Quiz]:
    selected = [quiz for quiz in quizzes if quiz.class_id == class_id]
    if sort_by == "questions":
        return sorted(selected, key=lambda q: len(q.questions), reverse=True)
    if sort_by == "attempts":
        counts: dict[str, int] = {}
        for attempt in attempts:
            counts[attempt.quiz_id] = counts.get(attempt.quiz_id, 0) + 1
        return sorted(selected, key=lambda q: counts.get(q.id, 0), reverse=True)
    return sorted(selected, key=lambda q: q.name.casefold())


def visible_quizzes_for_student(
    quizzes: Sequence[Quiz],
    classes: Sequence[SchoolClass],
    student_id: str,
) -> list[Quiz]:
    my_class_ids = {c.id for c in classes if student_id in c.student_ids}
    return [quiz for quiz in quizzes if quiz.visible and quiz.class_id in my_class_ids]


def _prepare_question(question: Question) -> Question:
    """Validate and normalize a question before storage."""
    cleaned_text = question.text.strip()
    if not cleaned_text:
        raise PreconditionViolation("Please fill in all questions and options.")
    options = _validate_options(question.options)
    if not 0 <= question.correct_answer < len(options):
        raise PreconditionViolation(
            f"Correct answer must be between 0 and {len(options) - 1}."
        )
    topic = question.topic.strip() if question.topic else None
    explanation = question.explanation.strip() if question.explanation else None
    return Question(
        id=question.id or _new_question_id(),
        text=cleaned_text,
        options=options,
        correct_answer=question.correct_answer,
        explanation=explanation or None,
        topic=topic or None,
    )


def _validate_options(options: Sequence[str]) -> tuple[str, ...]:
    if len(options) < MIN_OPTION_COUNT:
        raise PreconditionViolation(f"Each question needs at least {MIN_OPTION_COUNT} options.")
    cleaned = tuple(option.strip() for option in options)
    if any(not option for option in cleaned):
        raise PreconditionViolation("Please fill in all questions and options.")
    return cleaned


def _new_question_id() -> str:
    return f"q-{uuid4().hex[:8]}"
