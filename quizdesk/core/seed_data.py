"""Initial in-memory collections loaded when the application starts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from quizdesk.core.models import Question, Quiz, QuizAttempt, Role, SchoolClass, User


@dataclass(slots=True, frozen=True)
class SeedState:
    users: tuple[User, ...]
    classes: tuple[SchoolClass, ...]
    quizzes: tuple[Quiz, ...]
    attempts: tuple[QuizAttempt, ...]


def initial_users() -> tuple[User, ...]:
    return (
        User("admin1", "Admin User", "admin@school.com", Role.ADMIN),
        User("teacher1", "Dorian Gorgan", "dorian.gorgan@utcluj.ro", Role.TEACHER),
        User("teacher2", "Antonia Zeibel", "antonia.zeibel@utcluj.ro", Role.TEACHER),
        User("student1", "Ana Candea", "ana.candea@utcluj.ro", Role.STUDENT),
        User("student2", "Orosz Barbara", "orosz.barbara@utcluj.ro", Role.STUDENT),
        User("student3", "Todor Ioan", "todor.ioan@utcluj.ro", Role.STUDENT),
        User("student4", "Gonda Bogdan", "gonda.bogdan@utcluj.ro", Role.STUDENT),
    )


def initial_classes() -> tuple[SchoolClass, ...]:
    return (
        SchoolClass("class1", "Mathematics 101", "teacher1", ("student1", "student2", "student3")),
        SchoolClass("class2", "Physics 101", "teacher2", ("student1", "student4")),
    )


def initial_quizzes() -> tuple[Quiz, ...]:
    algebra = (
        Question(
            id="q1",
            text="What is 2 + 2?",
            options=("3", "4", "5", "6"),
            correct_answer=1,
            explanation="Basic addition: 2 + 2 equals 4. This is a fundamental arithmetic operation.",
            topic="Addition",
        ),
        Question(
            id="q2",
            text="What is 5 × 3?",
            options=("12", "13", "14", "15"),
            correct_answer=3,
            explanation="Multiplication: 5 × 3 means adding 5 three times (5 + 5 + 5) which equals 15.",
            topic="Multiplication",
        ),
        Question(
            id="q3",
            text="What is 10 - 7?",
            options=("2", "3", "4", "5"),
            correct_answer=1,
            explanation="Subtraction: 10 - 7 equals 3. Count down from 10 to find the difference.",
            topic="Subtraction",
        ),
    )
    geometry = (
        Question(
            id="q4",
            text="How many sides does a triangle have?",
            options=("2", "3", "4", "5"),
            correct_answer=1,
            explanation='A triangle is a polygon with three sides and three angles. The prefix "tri-" means three.',
            topic="Polygons",
        ),
        Question(
            id="q5",
            text="What is the sum of angles in a triangle?",
            options=("90°", "180°", "270°", "360°"),
            correct_answer=1,
            explanation="The interior angles of any triangle always add up to 180 degrees.",
            topic="Angles",
        ),
    )
    newton = (
        Question(
            id="q6",
            text="What is the formula for force?",
            options=("F = m/a", "F = ma", "F = m + a", "F = m - a"),
            correct_answer=1,
            explanation="Newton's Second Law states that Force equals mass times acceleration (F = ma).",
            topic="Forces",
        ),
    )
    return (
        Quiz("quiz1", "class1", "Algebra Basics", algebra, True, "teacher1"),
        Quiz("quiz2", "class1", "Geometry Fundamentals", geometry, True, "teacher1"),
        Quiz("quiz3", "class2", "Newton's Laws", newton, True, "teacher2"),
    )


def initial_attempts(now: datetime | None = None) -> tuple[QuizAttempt, ...]:
    now = now or datetime.now(timezone.utc)
    day = timedelta(days=1)
    return (
        QuizAttempt("attempt1", "student1", "quiz1", (1, 3, 1), 100, now - day),
        QuizAttempt("attempt2", "student2", "quiz1", (1, 2, 1), 67, now - 2 * day),
        QuizAttempt("attempt3", "student3", "quiz1", (0, 3, 0), 33, now - 3 * day),
    )


def initial_state(now: datetime | None = None) -> SeedState:
    return SeedState(
        users=initial_users(),
        classes=initial_classes(),
        quizzes=initial_quizzes(),
        attempts=initial_attempts(now),
    )
