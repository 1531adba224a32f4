"""Service for ranking students on a quiz leaderboard."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from quizdesk.constants.quiz_constants import MEDALS
from quizdesk.constants.ui_constants import UNKNOWN_LABEL
from quizdesk.core.models import QuizAttempt, User


@dataclass(slots=True, frozen=True)
class LeaderboardRow:
    """Immutable snapshot returned to consumers."""

    position: int
    student_id: str
    student_name: str
    attempt_id: str
    score: int
    timestamp: datetime
    medal: str | None = None


def best_attempt_per_student(attempts: Iterable[QuizAttempt]) -> list[QuizAttempt]:
    """Keep each student's highest-scoring attempt; the earliest one wins a tie."""
    best: dict[str, QuizAttempt] = {}
    for attempt in attempts:
        current = best.get(attempt.student_id)
        if (
            current is None
            or attempt.score > current.score
            or (attempt.score == current.score and attempt.timestamp < current.timestamp)
        ):
            best[attempt.student_id] = attempt
    return list(best.values())


def rank_attempts(
    attempts: Iterable[QuizAttempt],
    quiz_id: str,
    users: Iterable[User] = (),
) -> list[LeaderboardRow]:
    """Return one row per student, sorted by score and then by submission time."""
    names = {user.id: user.name for user in users}
    ranked = sorted(
        best_attempt_per_student(a for a in attempts if a.quiz_id == quiz_id),
        key=lambda a: (-a.score, a.timestamp),
    )
    return [
        LeaderboardRow(
            position=index + 1,
            student_id=attempt.student_id,
            student_name=names.get(attempt.student_id, UNKNOWN_LABEL),
            attempt_id=attempt.id,
            score=attempt.score,
            timestamp=attempt.timestamp,
            medal=MEDALS[index] if index < len(MEDALS) else None,
        )
        for index, attempt in enumerate(ranked)
    ]
