"""Parsing of quizzes written in a human-friendly text format.

Questions are separated by blank lines or '---' lines:

    Q: Question text (markdown + LaTeX). Following lines without a marker
       continue the question.
    A: First option
    B: Second option
    ...            (two to six options, lettered A-F in order)
    CORRECT: B
    TOPIC: Addition         (optional, defaults to "General")
    EXPLANATION: Shown after submission, may span several lines (optional)

Example:

    Q: What is $2 + 2$?
    A: 3
    B: 4
    C: 5
    D: 22
    CORRECT: B
    TOPIC: Addition
"""

from __future__ import annotations

from itertools import groupby
import re

from quizdesk.constants.quiz_constants import MIN_OPTION_COUNT
from quizdesk.core.errors import QuizDeskError
from quizdesk.core.models import Question
from quizdesk.core.quiz_templates import QuizTemplate

_OPTION_LETTERS = "ABCDEF"
_MARKER = re.compile(r"^(Q|[A-F]|CORRECT|TOPIC|EXPLANATION):(.*)$", re.IGNORECASE)
_SEPARATOR = "---"


class QuizImportError(QuizDeskError, ValueError):
    """Raised when a quiz definition cannot be parsed."""


def parse_quiz_text(text: str) -> list[Question]:
    """Parse every question block in ``text``; ids are left empty for the catalog to assign."""
    blocks = _split_blocks(text)
    if not blocks:
        raise QuizImportError("Quiz text did not contain any questions.")
    return [_parse_block(block, number) for number, block in enumerate(blocks, start=1)]


def template_skeleton(template: QuizTemplate) -> str:
    """Render a template as text for the teacher to fill in."""
    option_lines = [
        f"{letter}: {option}".rstrip()
        for letter, option in zip(_OPTION_LETTERS, template.default_options)
    ]
    block = "\n".join(["Q: ", *option_lines, "CORRECT: A", "TOPIC: "])
    return "\n---\n".join([block] * template.question_count) + "\n"


def _split_blocks(text: str) -> list[list[str]]:
    lines = [line.strip() for line in text.splitlines()]
    return [
        list(group)
        for has_content, group in groupby(lines, key=lambda line: bool(line) and line != _SEPARATOR)
        if has_content
    ]


def _parse_block(lines: list[str], number: int) -> Question:
    prompt: list[str] = []
    options: dict[str, list[str]] = {}
    explanation: list[str] = []
    fields: dict[str, str] = {}
    # Lines without a marker are appended to whichever section is open.
    open_section: list[str] | None = None

    for line in lines:
        match = _MARKER.match(line)
        if match is None:
            if open_section is None:
                raise _error(number, f"encountered text outside of a known section: '{line}'.")
            open_section.append(line)
            continue

        marker, value = match.group(1).upper(), match.group(2).strip()
        if marker == "Q":
            prompt = [value]
            open_section = prompt
        elif marker == "EXPLANATION":
            explanation = [value]
            open_section = explanation
        elif marker in ("CORRECT", "TOPIC"):
            fields[marker] = value
            open_section = None
        else:
            options[marker] = [value]
            open_section = options[marker]

    question_text = "\n".join(prompt).strip()
    if not question_text:
        raise _error(number, "question text missing (Q: ...).")

    letters = list(_OPTION_LETTERS[: len(options)])
    if len(options) < MIN_OPTION_COUNT or sorted(options) != letters:
        raise _error(
            number,
            f"options must be lettered consecutively from A and there must be at least {MIN_OPTION_COUNT}.",
        )
    option_texts = tuple("\n".join(options[letter]).strip() for letter in letters)
    if not all(option_texts):
        raise _error(number, "option text cannot be empty.")

    if "CORRECT" not in fields:
        raise _error(number, "CORRECT is required.")
    correct_letter = fields["CORRECT"].upper()
    if correct_letter not in letters:
        raise _error(number, f"CORRECT must be one of {', '.join(letters)}.")

    return Question(
        id="",
        text=question_text,
        options=option_texts,
        correct_answer=letters.index(correct_letter),
        explanation="\n".join(explanation).strip() or None,
        topic=fields.get("TOPIC") or None,
    )


def _error(number: int, message: str) -> QuizImportError:
    return QuizImportError(f"Question {number}: {message}")
