import random

import pytest

from factories import make_question, make_quiz

from quizdesk.core.services.practice import (
    PracticeMode,
    PracticeSelector,
    build_practice_quiz,
    question_pool,
    weak_topics,
)
from quizdesk.core.services.reporting import TopicAccuracy


def _pool(size, topic="General"):
    return [make_question(f"p{i}", 0, topic) for i in range(size)]


class FixedOrderRandom(random.Random):
    """Leaves every shuffled list in its original order."""

    def shuffle(self, x):
        return None


def _ids(questions):
    return [q.id for q in questions]


def test_question_pool_flattens_and_dedupes():
    quiz_a = make_quiz([0, 1], quiz_id="a")
    quiz_b = make_quiz([2], quiz_id="b")
    pool = question_pool([quiz_a, quiz_b, quiz_a])
    assert _ids(pool) == ["a-q0", "a-q1", "b-q0"]


def test_quick_takes_at_most_ten_without_duplicates():
    selector = PracticeSelector(random.Random(1))
    pool = _pool(25)
    selected = selector.quick(pool)
    assert len(selected) == 10
    assert len(set(_ids(selected))) == 10
    assert set(_ids(selected)) <= set(_ids(pool))

    assert len(selector.quick(_pool(4))) == 4
    assert selector.quick([]) == []


def test_custom_respects_requested_count_and_pool_size():
    selector = PracticeSelector(random.Random(2))
    pool = _pool(8)
    assert len(selector.custom(pool, 3)) == 3
    assert len(selector.custom(pool, 50)) == 8
    with pytest.raises(ValueError):
        selector.custom(pool, 0)


def test_fixed_permutation_gives_exact_selection():
    selector = PracticeSelector(FixedOrderRandom())
    assert _ids(selector.custom(_pool(5), 2)) == ["p0", "p1"]


def test_weak_topics_below_threshold_weakest_first_limited_to_three():
    stats = [
        TopicAccuracy("Strong", 9, 10),
        TopicAccuracy("Mid", 6, 10),
        TopicAccuracy("Bad", 1, 10),
        TopicAccuracy("Worse", 0, 10),
        TopicAccuracy("Meh", 5, 10),
        TopicAccuracy("Edge", 7, 10),
    ]
    assert weak_topics(stats) == ["Worse", "Bad", "Meh"]


def test_smart_prefers_weak_topics_and_tops_up_from_rest():
    weak = [make_question(f"w{i}", 0, "Fractions") for i in range(4)]
    strong = [make_question(f"s{i}", 0, "Addition") for i in range(20)]
    stats = [TopicAccuracy("Fractions", 1, 4), TopicAccuracy("Addition", 10, 10)]
    selector = PracticeSelector(random.Random(3))

    selected = selector.smart(strong + weak, stats)

    assert len(selected) == 10
    assert len(set(_ids(selected))) == 10
    assert set(_ids(weak)) <= set(_ids(selected))
    assert all(q.topic == "Fractions" for q in selected[:4])


def test_smart_caps_weak_topic_questions_at_ten():
    weak = [make_question(f"w{i}", 0, "Fractions") for i in range(15)]
    other = [make_question(f"o{i}", 0, "Addition") for i in range(5)]
    stats = [TopicAccuracy("Fractions", 0, 3)]
    selected = PracticeSelector(random.Random(4)).smart(other + weak, stats)
    assert len(selected) == 10
    assert all(q.topic == "Fractions" for q in selected)


def test_smart_without_history_behaves_like_quick():
    pool = _pool(30)
    smart = PracticeSelector(random.Random(5)).smart(pool, [])
    quick = PracticeSelector(random.Random(5)).quick(pool)
    assert _ids(smart) == _ids(quick)


def test_smart_on_small_pool_returns_whole_pool():
    pool = _pool(3, topic="Forces")
    selected = PracticeSelector(random.Random(6)).smart(pool, [TopicAccuracy("Forces", 0, 1)])
    assert sorted(_ids(selected)) == sorted(_ids(pool))


def test_select_dispatches_modes():
    selector = PracticeSelector(random.Random(8))
    pool = _pool(12)
    assert len(selector.select(PracticeMode.QUICK, pool)) == 10
    assert len(selector.select(PracticeMode.CUSTOM, pool, count=4)) == 4
    assert len(selector.select(PracticeMode.SMART, pool)) == 10
    with pytest.raises(ValueError):
        selector.select(PracticeMode.CUSTOM, pool)


def test_build_practice_quiz_is_not_tied_to_a_class():
    questions = _pool(2)
    quiz = build_practice_quiz(questions, "student1")
    assert quiz.class_id == "practice"
    assert quiz.is_practice
    assert quiz.created_by == "student1"
    assert quiz.questions == tuple(questions)
