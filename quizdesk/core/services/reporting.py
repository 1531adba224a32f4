"""Aggregate statistics over attempt history: best/average scores and topic accuracy."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from quizdesk.core.models import Quiz, QuizAttempt, SchoolClass
from quizdesk.core.services.scoring import is_answered, presented_questions


@dataclass(slots=True, frozen=True)
class TopicAccuracy:
    topic: str
    correct: int
    total: int

    @property
    def accuracy(self) -> float:
        return 100.0 * self.correct / self.total if self.total else 0.0


@dataclass(slots=True, frozen=True)
class QuizSummary:
    quiz_id: str
    quiz_name: str
    question_count: int
    attempt_count: int
    average_score: int


@dataclass(slots=True, frozen=True)
class ClassSummary:
    class_id: str
    student_count: int
    quiz_count: int
    visible_quiz_count: int
    total_questions: int
    attempt_count: int
    average_score: int
    quizzes: tuple[QuizSummary, ...]


@dataclass(slots=True, frozen=True)
class StudentSummary:
    class_count: int
    available_quiz_count: int
    attempt_count: int
    average_score: int


def attempts_for(
    attempts: Iterable[QuizAttempt],
    *,
    student_id: str | None = None,
    quiz_id: str | None = None,
) -> list[QuizAttempt]:
    return [
        attempt
        for attempt in attempts
        if (student_id is None or attempt.student_id == student_id)
        and (quiz_id is None or attempt.quiz_id == quiz_id)
    ]


def best_score(attempts: Iterable[QuizAttempt], student_id: str, quiz_id: str) -> int | None:
    """Highest score of ``student_id`` on ``quiz_id``; None when there is no attempt."""
    scores = [a.score for a in attempts_for(attempts, student_id=student_id, quiz_id=quiz_id)]
    return max(scores) if scores else None


def average_score(attempts: Sequence[QuizAttempt]) -> int:
    """Mean score rounded half-up; an empty set averages to 0, unlike ``best_score``."""
    if not attempts:
        return 0
    total = sum(attempt.score for attempt in attempts)
    return (2 * total + len(attempts)) // (2 * len(attempts))


def latest_attempt(attempts: Iterable[QuizAttempt]) -> QuizAttempt | None:
    latest: QuizAttempt | None = None
    for attempt in attempts:
        if latest is None or attempt.timestamp > latest.timestamp:
            latest = attempt
    return latest


def attempt_history(attempts: Iterable[QuizAttempt], student_id: str) -> list[QuizAttempt]:
    """Attempts of one student, newest first."""
    return sorted(
        attempts_for(attempts, student_id=student_id),
        key=lambda a: a.timestamp,
        reverse=True,
    )


def incorrect_question_ids(quiz: Quiz, attempt: QuizAttempt) -> list[str]:
    """Ids of the questions ``attempt`` got wrong or left unanswered."""
    questions = presented_questions(quiz, attempt.question_ids)
    return [
        question.id
        for index, question in enumerate(questions)
        if index >= len(attempt.answers) or attempt.answers[index] != question.correct_answer
    ]


def topic_accuracy(
    attempts: Iterable[QuizAttempt],
    quizzes: Mapping[str, Quiz],
    student_id: str,
) -> list[TopicAccuracy]:
    """Per-topic accuracy of one student over every answered question, weakest first.

    Topics are collected in encounter order; the sort is stable so equal
    accuracies keep that order. Attempts on unknown quizzes are skipped.
    """
    counts: dict[str, list[int]] = {}
    for attempt in attempts_for(attempts, student_id=student_id):
        quiz = quizzes.get(attempt.quiz_id)
        if quiz is None:
            continue
        for index, question in enumerate(presented_questions(quiz, attempt.question_ids)):
            answer = attempt.answers[index] if index < len(attempt.answers) else None
            bucket = counts.setdefault(question.topic_label, [0, 0])
            bucket[1] += 1
            if is_answered(answer) and answer == question.correct_answer:
                bucket[0] += 1

    stats = [TopicAccuracy(topic=topic, correct=c, total=t) for topic, (c, t) in counts.items()]
    return sorted(stats, key=lambda s: s.accuracy)


def quiz_summary(attempts: Iterable[QuizAttempt], quiz: Quiz) -> QuizSummary:
    quiz_attempts = attempts_for(attempts, quiz_id=quiz.id)
    return QuizSummary(
        quiz_id=quiz.id,
        quiz_name=quiz.name,
        question_count=len(quiz.questions),
        attempt_count=len(quiz_attempts),
        average_score=average_score(quiz_attempts),
    )


def class_summary(
    school_class: SchoolClass,
    quizzes: Iterable[Quiz],
    attempts: Sequence[QuizAttempt],
) -> ClassSummary:
    class_quizzes = [quiz for quiz in quizzes if quiz.class_id == school_class.id]
    quiz_ids = {quiz.id for quiz in class_quizzes}
    class_attempts = [attempt for attempt in attempts if attempt.quiz_id in quiz_ids]
    return ClassSummary(
        class_id=school_class.id,
        student_count=len(school_class.student_ids),
        quiz_count=len(class_quizzes),
        visible_quiz_count=sum(1 for quiz in class_quizzes if quiz.visible),
        total_questions=sum(len(quiz.questions) for quiz in class_quizzes),
        attempt_count=len(class_attempts),
        average_score=average_score(class_attempts),
        quizzes=tuple(quiz_summary(class_attempts, quiz) for quiz in class_quizzes),
    )


def student_summary(
    student_id: str,
    classes: Iterable[SchoolClass],
    available_quizzes: Sequence[Quiz],
    attempts: Iterable[QuizAttempt],
) -> StudentSummary:
    my_attempts = attempts_for(attempts, student_id=student_id)
    return StudentSummary(
        class_count=sum(1 for c in classes if student_id in c.student_ids),
        available_quiz_count=len(available_quizzes),
        attempt_count=len(my_attempts),
        average_score=average_score(my_attempts),
    )
