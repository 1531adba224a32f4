"""Built-in quiz templates offered when a teacher starts a new quiz."""

from __future__ import annotations

from dataclasses import dataclass

from quizdesk.core.errors import EntityNotFound

_FOUR_BLANKS = ("", "", "", "")
_TRUE_FALSE = ("True", "False")


@dataclass(slots=True, frozen=True)
class QuizTemplate:
    name: str
    description: str
    default_name: str
    question_count: int
    default_options: tuple[str, ...] = _FOUR_BLANKS


QUIZ_TEMPLATES: tuple[QuizTemplate, ...] = (
    QuizTemplate(
        name="Exam Template",
        description="Standard exam format with multiple-choice questions",
        default_name="Exam",
        question_count=5,
    ),
    QuizTemplate(
        name="Quick Quiz Template",
        description="Short 3-question quiz for quick assessments",
        default_name="Quick Quiz",
        question_count=3,
    ),
    QuizTemplate(
        name="True/False Template",
        description="Quiz with True/False questions only",
        default_name="True or False Quiz",
        question_count=5,
        default_options=_TRUE_FALSE,
    ),
    QuizTemplate(
        name="Comprehensive Test Template",
        description="Long-form test with 10 questions",
        default_name="Comprehensive Test",
        question_count=10,
    ),
)


def get_template(name: str) -> QuizTemplate:
    for template in QUIZ_TEMPLATES:
        if template.name == name:
            return template
    raise EntityNotFound("Template", name)
