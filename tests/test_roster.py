import pytest

from quizdesk.core.errors import EntityNotFound, PreconditionViolation
from quizdesk.core.models import Role
from quizdesk.core.services.roster import (
    add_user,
    available_students,
    create_class,
    delete_class,
    delete_user,
    enroll_student,
    enrolled_students,
    find_class,
    find_user,
    unenroll_student,
    users_with_role,
)


def test_add_user_appends_with_role_prefixed_id(seed):
    users = add_user(seed.users, "  Maria Pop ", "maria.pop@utcluj.ro", Role.STUDENT)
    assert len(users) == len(seed.users) + 1
    new_user = users[-1]
    assert new_user.name == "Maria Pop"
    assert new_user.role is Role.STUDENT
    assert new_user.id.startswith("student-")


@pytest.mark.parametrize("email", ["ana.candea@utcluj.ro", "ANA.Candea@UTCLUJ.ro"])
def test_add_user_rejects_duplicate_email_in_any_case(seed, email):
    with pytest.raises(PreconditionViolation):
        add_user(seed.users, "Someone", email, Role.STUDENT)


@pytest.mark.parametrize("name, email", [("", "x@y.z"), ("Name", "no-at-sign"), ("Name", "  ")])
def test_add_user_requires_name_and_email(seed, name, email):
    with pytest.raises(PreconditionViolation):
        add_user(seed.users, name, email, Role.TEACHER)


def test_delete_user_guards(seed):
    with pytest.raises(PreconditionViolation):
        delete_user(seed.users, seed.classes, "teacher1")
    with pytest.raises(PreconditionViolation):
        delete_user(seed.users, seed.classes, "student1")
    with pytest.raises(PreconditionViolation):
        delete_user(seed.users, seed.classes, "admin1", acting_user_id="admin1")
    with pytest.raises(EntityNotFound):
        delete_user(seed.users, seed.classes, "nobody")


def test_delete_unenrolled_student(seed):
    users = add_user(seed.users, "Free Student", "free@example.com", Role.STUDENT)
    new_id = users[-1].id
    remaining = delete_user(users, seed.classes, new_id)
    assert new_id not in {u.id for u in remaining}
    assert len(remaining) == len(seed.users)


def test_create_class_validation(seed):
    classes = create_class(seed.classes, seed.users, "Chemistry 101", "teacher2")
    assert classes[-1].name == "Chemistry 101"
    assert classes[-1].teacher_id == "teacher2"
    assert classes[-1].student_ids == ()

    with pytest.raises(PreconditionViolation):
        create_class(seed.classes, seed.users, "AB", "teacher1")
    with pytest.raises(PreconditionViolation):
        create_class(seed.classes, seed.users, "mathematics 101", "teacher1")
    with pytest.raises(EntityNotFound):
        create_class(seed.classes, seed.users, "History", "teacher9")
    with pytest.raises(EntityNotFound):
        create_class(seed.classes, seed.users, "History", "student1")


def test_delete_occupied_class_is_refused_and_collection_unchanged(seed):
    before = seed.classes
    with pytest.raises(PreconditionViolation):
        delete_class(before, "class1")
    assert seed.classes == before
    assert find_class(seed.classes, "class1").student_ids == ("student1", "student2", "student3")


def test_delete_empty_class(seed):
    classes = create_class(seed.classes, seed.users, "Empty Room", "teacher1")
    new_id = classes[-1].id
    assert [c.id for c in delete_class(classes, new_id)] == ["class1", "class2"]


def test_enroll_and_unenroll(seed):
    classes = enroll_student(seed.classes, seed.users, "class2", "student2")
    assert find_class(classes, "class2").student_ids == ("student1", "student4", "student2")
    assert find_class(seed.classes, "class2").student_ids == ("student1", "student4")

    with pytest.raises(PreconditionViolation):
        enroll_student(classes, seed.users, "class2", "student2")
    with pytest.raises(EntityNotFound):
        enroll_student(classes, seed.users, "class2", "teacher1")

    classes = unenroll_student(classes, "class2", "student1")
    assert find_class(classes, "class2").student_ids == ("student4", "student2")
    with pytest.raises(EntityNotFound):
        unenroll_student(classes, "class2", "student1")


def test_roster_views(seed):
    school_class = find_class(seed.classes, "class2")
    assert [u.id for u in enrolled_students(seed.users, school_class)] == ["student1", "student4"]
    assert [u.id for u in available_students(seed.users, school_class)] == ["student2", "student3"]
    assert [u.id for u in users_with_role(seed.users, Role.TEACHER)] == ["teacher1", "teacher2"]
    assert find_user(seed.users, "teacher1", Role.TEACHER).name == "Dorian Gorgan"
    with pytest.raises(EntityNotFound):
        find_user(seed.users, "teacher1", Role.STUDENT)
