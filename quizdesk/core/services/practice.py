"""Selection of self-practice question sets, optionally targeted at weak topics."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from enum import Enum
import random
from uuid import uuid4

from quizdesk.constants.quiz_constants import (
    MAX_WEAK_TOPICS,
    PRACTICE_CLASS_ID,
    QUICK_PRACTICE_SIZE,
    SMART_PRACTICE_SIZE,
    WEAK_TOPIC_THRESHOLD,
)
from quizdesk.core.models import Question, Quiz
from quizdesk.core.services.reporting import TopicAccuracy


class PracticeMode(str, Enum):
    QUICK = "quick"
    CUSTOM = "custom"
    SMART = "smart"


def question_pool(quizzes: Iterable[Quiz]) -> list[Question]:
    """Flatten the questions of ``quizzes``, dropping repeated question ids."""
    seen: set[str] = set()
    pool: list[Question] = []
    for quiz in quizzes:
        for question in quiz.questions:
            if question.id not in seen:
                seen.add(question.id)
                pool.append(question)
    return pool


def weak_topics(
    topic_stats: Sequence[TopicAccuracy],
    threshold: float = WEAK_TOPIC_THRESHOLD,
    limit: int = MAX_WEAK_TOPICS,
) -> list[str]:
    """Topics below ``threshold`` accuracy, weakest first, at most ``limit``."""
    ordered = sorted(topic_stats, key=lambda s: s.accuracy)
    return [s.topic for s in ordered if s.accuracy < threshold][:limit]


class PracticeSelector:
    """Draws practice questions by shuffling a copy of the pool and taking the head."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def quick(self, pool: Sequence[Question]) -> list[Question]:
        return self._sample(pool, QUICK_PRACTICE_SIZE)

    def custom(self, pool: Sequence[Question], count: int) -> list[Question]:
        if count < 1:
            raise ValueError("Question count must be at least 1.")
        return self._sample(pool, count)

    def smart(
        self,
        pool: Sequence[Question],
        topic_stats: Sequence[TopicAccuracy],
    ) -> list[Question]:
        """Favour questions from the student's weakest topics, topping up at random.

        Without any topic history there is nothing to target, so this behaves
        exactly like :meth:`quick`.
        """
        if not topic_stats:
            return self.quick(pool)

        targets = set(weak_topics(topic_stats))
        focused = [q for q in pool if q.topic_label in targets]
        selected = self._sample(focused, SMART_PRACTICE_SIZE)

        missing = SMART_PRACTICE_SIZE - len(selected)
        if missing > 0:
            chosen = {q.id for q in selected}
            remainder = [q for q in pool if q.id not in chosen]
            selected.extend(self._sample(remainder, missing))
        return selected

    def select(
        self,
        mode: PracticeMode,
        pool: Sequence[Question],
        count: int | None = None,
        topic_stats: Sequence[TopicAccuracy] = (),
    ) -> list[Question]:
        if mode is PracticeMode.QUICK:
            return self.quick(pool)
        if mode is PracticeMode.CUSTOM:
            if count is None:
                raise ValueError("Custom practice requires a question count.")
            return self.custom(pool, count)
        return self.smart(pool, topic_stats)

    def _sample(self, pool: Sequence[Question], size: int) -> list[Question]:
        shuffled = list(pool)
        self._rng.shuffle(shuffled)
        return shuffled[: max(0, min(size, len(shuffled)))]


def build_practice_quiz(
    questions: Sequence[Question],
    student_id: str,
    *,
    name: str = "Random Practice Quiz",
) -> Quiz:
    """Wrap a practice selection in an ephemeral quiz that belongs to no class."""
    return Quiz(
        id=f"practice-{uuid4().hex[:12]}",
        class_id=PRACTICE_CLASS_ID,
        name=name,
        questions=tuple(questions),
        visible=True,
        created_by=student_id,
    )
