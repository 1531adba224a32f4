import pytest

from factories import make_attempt, make_question

from quizdesk.core.errors import EntityNotFound, PreconditionViolation
from quizdesk.core.models import Question
from quizdesk.core.services.quiz_catalog import (
    class_quizzes,
    create_quiz,
    delete_quiz,
    duplicate_quiz,
    find_quiz,
    toggle_visibility,
    visible_quizzes_for_student,
)


def _draft(text="What is 3 + 4?", options=("6", "7", "8"), correct=1, topic=" Addition "):
    return Question(id="", text=text, options=options, correct_answer=correct, topic=topic)


def test_create_quiz_assigns_ids_and_cleans_questions(seed):
    quizzes = create_quiz(seed.quizzes, seed.classes, "class1", " Fractions ", [_draft()], "teacher1")
    quiz = quizzes[-1]
    assert quiz.name == "Fractions"
    assert quiz.class_id == "class1"
    assert quiz.visible
    assert quiz.created_by == "teacher1"
    assert quiz.id.startswith("quiz-")
    question = quiz.questions[0]
    assert question.id.startswith("q-")
    assert question.topic == "Addition"
    assert question.explanation is None


def test_create_quiz_keeps_given_question_ids(seed):
    quizzes = create_quiz(
        seed.quizzes, seed.classes, "class1", "Kept", [make_question("custom-1", 0)], "teacher1"
    )
    assert quizzes[-1].questions[0].id == "custom-1"


@pytest.mark.parametrize(
    "name, questions",
    [
        ("", [_draft()]),
        ("No Questions", []),
        ("Blank Text", [_draft(text="  ")]),
        ("Blank Option", [_draft(options=("6", " ", "8"))]),
        ("One Option", [_draft(options=("6",), correct=0)]),
        ("Bad Index", [_draft(correct=3)]),
        ("Negative Index", [_draft(correct=-1)]),
    ],
)
def test_create_quiz_rejects_invalid_input(seed, name, questions):
    with pytest.raises(PreconditionViolation):
        create_quiz(seed.quizzes, seed.classes, "class1", name, questions, "teacher1")


def test_create_quiz_only_for_own_class(seed):
    with pytest.raises(PreconditionViolation):
        create_quiz(seed.quizzes, seed.classes, "class2", "Mine", [_draft()], "teacher1")
    with pytest.raises(EntityNotFound):
        create_quiz(seed.quizzes, seed.classes, "class9", "Mine", [_draft()], "teacher1")


def test_toggle_visibility_flips_only_target(seed):
    quizzes = toggle_visibility(seed.quizzes, "quiz1")
    assert not find_quiz(quizzes, "quiz1").visible
    assert find_quiz(quizzes, "quiz2").visible
    assert find_quiz(toggle_visibility(quizzes, "quiz1"), "quiz1").visible


def test_delete_quiz(seed):
    quizzes = delete_quiz(seed.quizzes, "quiz2")
    assert [q.id for q in quizzes] == ["quiz1", "quiz3"]
    with pytest.raises(EntityNotFound):
        delete_quiz(quizzes, "quiz2")


def test_duplicate_quiz_uses_fresh_ids(seed):
    quizzes = duplicate_quiz(seed.quizzes, "quiz1", "teacher1")
    source, copy = find_quiz(quizzes, "quiz1"), quizzes[-1]
    assert copy.name == "Algebra Basics (Copy)"
    assert copy.id != source.id
    assert copy.class_id == source.class_id
    assert [q.text for q in copy.questions] == [q.text for q in source.questions]
    assert not {q.id for q in copy.questions} & {q.id for q in source.questions}

    renamed = duplicate_quiz(seed.quizzes, "quiz1", "teacher1", name="Algebra Retake")
    assert renamed[-1].name == "Algebra Retake"


def test_class_quizzes_sorting(seed):
    by_name = class_quizzes(seed.quizzes, "class1")
    assert [q.id for q in by_name] == ["quiz1", "quiz2"]

    by_questions = class_quizzes(seed.quizzes, "class1", sort_by="questions")
    assert [q.id for q in by_questions] == ["quiz1", "quiz2"]

    attempts = [make_attempt(f"a{i}", "student1", "quiz2", 50) for i in range(3)]
    by_attempts = class_quizzes(seed.quizzes, "class1", sort_by="attempts", attempts=attempts)
    assert [q.id for q in by_attempts] == ["quiz2", "quiz1"]


def test_students_only_see_visible_quizzes_of_their_classes(seed):
    assert [q.id for q in visible_quizzes_for_student(seed.quizzes, seed.classes, "student1")] == [
        "quiz1",
        "quiz2",
        "quiz3",
    ]
    assert [q.id for q in visible_quizzes_for_student(seed.quizzes, seed.classes, "student4")] == [
        "quiz3"
    ]
    hidden = toggle_visibility(seed.quizzes, "quiz3")
    assert visible_quizzes_for_student(hidden, seed.classes, "student4") == []
