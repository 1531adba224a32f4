"""Domain models for the quiz application.

Every record is frozen. Services never edit a record in place: they build the
next tuple of records and hand it back to the caller, which swaps it in.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from quizdesk.constants.quiz_constants import DEFAULT_TOPIC, PRACTICE_CLASS_ID


class Role(str, Enum):
    """Dashboard a user is allowed to reach."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


@dataclass(slots=True, frozen=True)
class User:
    id: str
    name: str
    email: str
    role: Role


@dataclass(slots=True, frozen=True)
class SchoolClass:
    """A class taught by one teacher, with an ordered roster of students."""

    id: str
    name: str
    teacher_id: str
    student_ids: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class Question:
    """Multiple-choice question; ``correct_answer`` indexes into ``options``."""

    id: str
    text: str
    options: tuple[str, ...]
    correct_answer: int
    explanation: str | None = None
    topic: str | None = None

    @property
    def topic_label(self) -> str:
        if self.topic and self.topic.strip():
            return self.topic.strip()
        return DEFAULT_TOPIC


@dataclass(slots=True, frozen=True)
class Quiz:
    id: str
    class_id: str
    name: str
    questions: tuple[Question, ...]
    visible: bool
    created_by: str

    @property
    def is_practice(self) -> bool:
        return self.class_id == PRACTICE_CLASS_ID


@dataclass(slots=True, frozen=True)
class QuizAttempt:
    """One graded submission. ``score`` is stored and never recomputed in place.

    ``question_ids`` lists the questions presented, in order, when the attempt
    covered a subset of the quiz (retry modes). Empty means the whole quiz.
    """

    id: str
    student_id: str
    quiz_id: str
    answers: tuple[int, ...]
    score: int
    timestamp: datetime
    question_ids: tuple[str, ...] = ()
