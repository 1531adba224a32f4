"""Utilities for exporting a graded attempt as a CSV results report."""

from __future__ import annotations

import csv
from dataclasses import dataclass
import io

from quizdesk.constants.ui_constants import NOT_ANSWERED_LABEL
from quizdesk.core.models import Quiz, QuizAttempt
from quizdesk.core.services.scoring import presented_questions

_HEADER = ("Question", "Your Answer", "Correct Answer", "Result")


@dataclass(slots=True, frozen=True)
class ResultRow:
    question_text: str
    chosen_label: str
    correct_label: str
    is_correct: bool


def result_rows(quiz: Quiz, attempt: QuizAttempt) -> list[ResultRow]:
    """One row per question presented in ``attempt``."""
    rows: list[ResultRow] = []
    for index, question in enumerate(presented_questions(quiz, attempt.question_ids)):
        answer = attempt.answers[index] if index < len(attempt.answers) else -1
        chosen = question.options[answer] if 0 <= answer < len(question.options) else NOT_ANSWERED_LABEL
        rows.append(
            ResultRow(
                question_text=question.text,
                chosen_label=chosen,
                correct_label=question.options[question.correct_answer],
                is_correct=answer == question.correct_answer,
            )
        )
    return rows


def render_results_csv(quiz: Quiz, attempt: QuizAttempt) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(_HEADER)
    for row in result_rows(quiz, attempt):
        writer.writerow(
            (row.question_text, row.chosen_label, row.correct_label, "Correct" if row.is_correct else "Incorrect")
        )
    writer.writerow(())
    writer.writerow(("Score", f"{attempt.score}%"))
    writer.writerow(("Date", attempt.timestamp.strftime("%Y-%m-%d %H:%M:%S")))
    return buffer.getvalue()


def results_filename(quiz: Quiz) -> str:
    return f"{quiz.name}_results.csv"
