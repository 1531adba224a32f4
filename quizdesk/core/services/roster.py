"""User and class administration.

Each operation takes the current collections and returns the next one. A
refused operation raises before anything is built, so the caller's snapshot
stays as it was.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import uuid4

from quizdesk.constants.quiz_constants import MIN_CLASS_NAME_LENGTH
from quizdesk.core.errors import EntityNotFound, PreconditionViolation
from quizdesk.core.models import Role, SchoolClass, User


def find_user(users: Sequence[User], user_id: str, role: Role | None = None) -> User:
    """Look up a user, optionally requiring a role; a role mismatch counts as not found."""
    for user in users:
        if user.id == user_id and (role is None or user.role is role):
            return user
    raise EntityNotFound(role.value.capitalize() if role else "User", user_id)


def find_class(classes: Sequence[SchoolClass], class_id: str) -> SchoolClass:
    for school_class in classes:
        if school_class.id == class_id:
            return school_class
    raise EntityNotFound("Class", class_id)


def users_with_role(users: Sequence[User], role: Role) -> list[User]:
    return [user for user in users if user.role is role]


def add_user(users: Sequence[User], name: str, email: str, role: Role) -> tuple[User, ...]:
    cleaned_name = name.strip()
    cleaned_email = email.strip()
    if not cleaned_name:
        raise PreconditionViolation("Name must not be empty.")
    if not cleaned_email or "@" not in cleaned_email:
        raise PreconditionViolation("A valid email address is required.")
    if any(user.email.lower() == cleaned_email.lower() for user in users):
        raise PreconditionViolation(f"A user with email '{cleaned_email}' already exists.")

    user = User(
        id=f"{role.value}-{uuid4().hex[:8]}",
        name=cleaned_name,
        email=cleaned_email,
        role=role,
    )
    return (*users, user)


def delete_user(
    users: Sequence[User],
    classes: Sequence[SchoolClass],
    user_id: str,
    acting_user_id: str | None = None,
) -> tuple[User, ...]:
    user = find_user(users, user_id)
    if user.id == acting_user_id:
        raise PreconditionViolation("You cannot delete your own account.")
    if user.role is Role.TEACHER:
        owned = [c.name for c in classes if c.teacher_id == user.id]
        if owned:
            raise PreconditionViolation(
                f"{user.name} still teaches: {', '.join(owned)}. Reassign or delete those classes first."
            )
    if user.role is Role.STUDENT:
        enrolled = [c.name for c in classes if user.id in c.student_ids]
        if enrolled:
            raise PreconditionViolation(
                f"{user.name} is still enrolled in: {', '.join(enrolled)}."
            )
    return tuple(u for u in users if u.id != user.id)


def create_class(
    classes: Sequence[SchoolClass],
    users: Sequence[User],
    name: str,
    teacher_id: str,
) -> tuple[SchoolClass, ...]:
    cleaned = name.strip()
    if len(cleaned) < MIN_CLASS_NAME_LENGTH:
        raise PreconditionViolation(
            f"Class name must be at least {MIN_CLASS_NAME_LENGTH} characters long."
        )
    if any(c.name.lower() == cleaned.lower() for c in classes):
        raise PreconditionViolation(f"A class named '{cleaned}' already exists.")
    teacher = find_user(users, teacher_id, Role.TEACHER)

    school_class = SchoolClass(
        id=f"class-{uuid4().hex[:8]}",
        name=cleaned,
        teacher_id=teacher.id,
    )
    return (*classes, school_class)


def delete_class(classes: Sequence[SchoolClass], class_id: str) -> tuple[SchoolClass, ...]:
    school_class = find_class(classes, class_id)
    if school_class.student_ids:
        raise PreconditionViolation(
            f"Cannot delete '{school_class.name}' while {len(school_class.student_ids)} student(s) are enrolled."
        )
    return tuple(c for c in classes if c.id != class_id)


def enroll_student(
    classes: Sequence[SchoolClass],
    users: Sequence[User],
    class_id: str,
    student_id: str,
) -> tuple[SchoolClass, ...]:
    school_class = find_class(classes, class_id)
    student = find_user(users, student_id, Role.STUDENT)
    if student.id in school_class.student_ids:
        raise PreconditionViolation(f"{student.name} is already enrolled in {school_class.name}.")
    return _replace_roster(classes, class_id, (*school_class.student_ids, student.id))


def unenroll_student(
    classes: Sequence[SchoolClass],
    class_id: str,
    student_id: str,
) -> tuple[SchoolClass, ...]:
    school_class = find_class(classes, class_id)
    if student_id not in school_class.student_ids:
        raise EntityNotFound("Enrolled student", student_id)
    remaining = tuple(sid for sid in school_class.student_ids if sid != student_id)
    return _replace_roster(classes, class_id, remaining)


def enrolled_students(users: Sequence[User], school_class: SchoolClass) -> list[User]:
    """Students of ``school_class`` in enrolment order."""
    by_id = {user.id: user for user in users if user.role is Role.STUDENT}
    return [by_id[sid] for sid in school_class.student_ids if sid in by_id]


def available_students(users: Sequence[User], school_class: SchoolClass) -> list[User]:
    return [
        user
        for user in users
        if user.role is Role.STUDENT and user.id not in school_class.student_ids
    ]


def _replace_roster(
    classes: Sequence[SchoolClass],
    class_id: str,
    student_ids: tuple[str, ...],
) -> tuple[SchoolClass, ...]:
    return tuple(
        SchoolClass(id=c.id, name=c.name, teacher_id=c.teacher_id, student_ids=student_ids)
        if c.id == class_id
        else c
        for c in classes
    )
