"""In-memory application state shared by every dashboard of the web layer."""

from __future__ import annotations

from collections.abc import Sequence
import logging
from threading import Lock

from quizdesk.constants.ui_constants import (
    ALL_CORRECT_MESSAGE,
    EMPTY_PRACTICE_MESSAGE,
    UNANSWERED_MESSAGE,
)
from quizdesk.core.errors import EntityNotFound, PreconditionViolation
from quizdesk.core.models import Question, Quiz, QuizAttempt, Role, SchoolClass, User
from quizdesk.core.results_exporter import render_results_csv, results_filename
from quizdesk.core.seed_data import SeedState, initial_state
from quizdesk.core.services import quiz_catalog, reporting, roster
from quizdesk.core.services.leaderboard import LeaderboardRow, rank_attempts
from quizdesk.core.services.practice import (
    PracticeMode,
    PracticeSelector,
    build_practice_quiz,
    question_pool,
)
from quizdesk.core.services.quiz_catalog import QuizSort
from quizdesk.core.services.reporting import (
    ClassSummary,
    QuizSummary,
    StudentSummary,
    TopicAccuracy,
)
from quizdesk.core.services.scoring import grade_attempt, has_unanswered, presented_questions

logger = logging.getLogger(__name__)


class ClassroomManager:
    """Owns the Users, Classes, Quizzes and Attempts collections.

    Reads return snapshots. Every mutation reads the current collection,
    computes the next one with a service function and swaps it in whole; a
    service that refuses raises before the swap, leaving state unchanged.
    """

    def __init__(
        self,
        seed: SeedState | None = None,
        selector: PracticeSelector | None = None,
    ) -> None:
        self._lock = Lock()
        self._users: tuple[User, ...] = seed.users if seed else ()
        self._classes: tuple[SchoolClass, ...] = seed.classes if seed else ()
        self._quizzes: tuple[Quiz, ...] = seed.quizzes if seed else ()
        self._attempts: tuple[QuizAttempt, ...] = seed.attempts if seed else ()
        # Ephemeral practice quizzes, kept only so their attempts stay gradable.
        self._practice_quizzes: dict[str, Quiz] = {}
        # Deleted class quizzes, so past attempts still resolve.
        self._retired_quizzes: dict[str, Quiz] = {}
        self._selector = selector or PracticeSelector()

    @classmethod
    def with_sample_data(cls, selector: PracticeSelector | None = None) -> "ClassroomManager":
        return cls(seed=initial_state(), selector=selector)

    # --- Snapshots ---

    def get_users(self, role: Role | None = None) -> list[User]:
        with self._lock:
            if role is None:
                return list(self._users)
            return roster.users_with_role(self._users, role)

    def get_user(self, user_id: str) -> User:
        with self._lock:
            return roster.find_user(self._users, user_id)

    def get_classes(self) -> list[SchoolClass]:
        with self._lock:
            return list(self._classes)

    def get_class(self, class_id: str) -> SchoolClass:
        with self._lock:
            return roster.find_class(self._classes, class_id)

    def get_quizzes(self) -> list[Quiz]:
        with self._lock:
            return list(self._quizzes)

    def get_quiz(self, quiz_id: str) -> Quiz:
        with self._lock:
            return self._resolve_quiz(quiz_id)

    def get_quiz_names(self) -> dict[str, str]:
        """Names of every known quiz, practice quizzes included."""
        with self._lock:
            return {quiz_id: quiz.name for quiz_id, quiz in self._quiz_lookup().items()}

    def get_attempts(self) -> list[QuizAttempt]:
        with self._lock:
            return list(self._attempts)

    def get_attempt(self, attempt_id: str) -> QuizAttempt:
        with self._lock:
            return self._find_attempt(attempt_id)

    # --- Administration ---

    def add_user(self, name: str, email: str, role: Role) -> User:
        with self._lock:
            self._users = roster.add_user(self._users, name, email, role)
            user = self._users[-1]
        logger.info("Added %s %s (%s)", role.value, user.name, user.id)
        return user

    def delete_user(self, user_id: str, acting_user_id: str | None = None) -> None:
        with self._lock:
            self._users = roster.delete_user(self._users, self._classes, user_id, acting_user_id)
        logger.info("Deleted user %s", user_id)

    def create_class(self, name: str, teacher_id: str) -> SchoolClass:
        with self._lock:
            self._classes = roster.create_class(self._classes, self._users, name, teacher_id)
            school_class = self._classes[-1]
        logger.info("Created class %s (%s) for %s", school_class.name, school_class.id, teacher_id)
        return school_class

    def delete_class(self, class_id: str) -> None:
        with self._lock:
            self._classes = roster.delete_class(self._classes, class_id)
        logger.info("Deleted class %s", class_id)

    # --- Teacher: classes ---

    def get_teacher_classes(self, teacher_id: str) -> list[SchoolClass]:
        with self._lock:
            return [c for c in self._classes if c.teacher_id == teacher_id]

    def enroll_student(self, class_id: str, student_id: str, teacher_id: str) -> SchoolClass:
        with self._lock:
            self._require_class_owner(class_id, teacher_id)
            self._classes = roster.enroll_student(self._classes, self._users, class_id, student_id)
            school_class = roster.find_class(self._classes, class_id)
        logger.info("Enrolled %s in %s", student_id, class_id)
        return school_class

    def unenroll_student(self, class_id: str, student_id: str, teacher_id: str) -> SchoolClass:
        with self._lock:
            self._require_class_owner(class_id, teacher_id)
            self._classes = roster.unenroll_student(self._classes, class_id, student_id)
            school_class = roster.find_class(self._classes, class_id)
        logger.info("Removed %s from %s", student_id, class_id)
        return school_class

    def get_class_students(self, class_id: str) -> tuple[list[User], list[User]]:
        """Return (enrolled, available) students for a class."""
        with self._lock:
            school_class = roster.find_class(self._classes, class_id)
            return (
                roster.enrolled_students(self._users, school_class),
                roster.available_students(self._users, school_class),
            )

    def get_class_summary(self, class_id: str, viewer_id: str | None = None) -> ClassSummary:
        """Class statistics; a teacher viewer must own the class."""
        with self._lock:
            school_class = roster.find_class(self._classes, class_id)
            if viewer_id is not None:
                viewer = roster.find_user(self._users, viewer_id)
                if viewer.role is not Role.ADMIN:
                    self._require_class_owner(class_id, viewer_id)
            return reporting.class_summary(school_class, self._quizzes, self._attempts)

    # --- Teacher: quizzes ---

    def get_class_quizzes(self, class_id: str, sort_by: QuizSort = "name") -> list[Quiz]:
        with self._lock:
            return quiz_catalog.class_quizzes(self._quizzes, class_id, sort_by, self._attempts)

    def get_quiz_summary(self, quiz_id: str) -> QuizSummary:
        with self._lock:
            return reporting.quiz_summary(self._attempts, self._resolve_quiz(quiz_id))

    def create_quiz(
        self,
        class_id: str,
        name: str,
        questions: Sequence[Question],
        teacher_id: str,
    ) -> Quiz:
        with self._lock:
            self._quizzes = quiz_catalog.create_quiz(
                self._quizzes, self._classes, class_id, name, questions, teacher_id
            )
            quiz = self._quizzes[-1]
        logger.info("Created quiz %s (%s) with %d question(s)", quiz.name, quiz.id, len(quiz.questions))
        return quiz

    def toggle_quiz_visibility(self, quiz_id: str, teacher_id: str) -> Quiz:
        with self._lock:
            self._require_quiz_owner(quiz_id, teacher_id)
            self._quizzes = quiz_catalog.toggle_visibility(self._quizzes, quiz_id)
            quiz = quiz_catalog.find_quiz(self._quizzes, quiz_id)
        logger.info("Quiz %s is now %s", quiz_id, "visible" if quiz.visible else "hidden")
        return quiz

    def duplicate_quiz(self, quiz_id: str, teacher_id: str, name: str | None = None) -> Quiz:
        with self._lock:
            self._require_quiz_owner(quiz_id, teacher_id)
            self._quizzes = quiz_catalog.duplicate_quiz(self._quizzes, quiz_id, teacher_id, name)
            quiz = self._quizzes[-1]
        logger.info("Duplicated quiz %s as %s", quiz_id, quiz.id)
        return quiz

    def delete_quiz(self, quiz_id: str, teacher_id: str) -> None:
        """Remove a quiz from its class; its attempts keep their results and exports."""
        with self._lock:
            quiz = self._require_quiz_owner(quiz_id, teacher_id)
            self._quizzes = quiz_catalog.delete_quiz(self._quizzes, quiz_id)
            self._retired_quizzes[quiz_id] = quiz
        logger.info("Deleted quiz %s", quiz_id)

    def get_leaderboard(self, quiz_id: str, viewer_id: str | None = None) -> list[LeaderboardRow]:
        """Rank a quiz's attempts.

        With ``viewer_id`` the quiz must be one the viewer can see: a student's
        available or own practice quiz, or a quiz of one of a teacher's classes.
        """
        with self._lock:
            quiz = self._resolve_quiz(quiz_id)
            if viewer_id is not None:
                self._require_viewable(quiz, viewer_id)
            return rank_attempts(self._attempts, quiz_id, self._users)

    # --- Student ---

    def get_student_quizzes(self, student_id: str) -> list[Quiz]:
        with self._lock:
            return quiz_catalog.visible_quizzes_for_student(self._quizzes, self._classes, student_id)

    def get_student_classes(self, student_id: str) -> list[SchoolClass]:
        with self._lock:
            return [c for c in self._classes if student_id in c.student_ids]

    def get_student_summary(self, student_id: str) -> StudentSummary:
        with self._lock:
            available = quiz_catalog.visible_quizzes_for_student(
                self._quizzes, self._classes, student_id
            )
            return reporting.student_summary(student_id, self._classes, available, self._attempts)

    def get_student_attempts(self, student_id: str, quiz_id: str | None = None) -> list[QuizAttempt]:
        """A student's attempts, newest first."""
        with self._lock:
            history = reporting.attempt_history(self._attempts, student_id)
        if quiz_id is None:
            return history
        return [attempt for attempt in history if attempt.quiz_id == quiz_id]

    def get_best_score(self, student_id: str, quiz_id: str) -> int | None:
        with self._lock:
            return reporting.best_score(self._attempts, student_id, quiz_id)

    def get_topic_accuracy(self, student_id: str) -> list[TopicAccuracy]:
        with self._lock:
            return reporting.topic_accuracy(self._attempts, self._quiz_lookup(), student_id)

    def prepare_attempt(
        self,
        student_id: str,
        quiz_id: str,
        *,
        retry_incorrect: bool = False,
        question_id: str | None = None,
    ) -> tuple[Quiz, list[Question]]:
        """Return the quiz and the questions to present for a new attempt."""
        with self._lock:
            quiz = self._student_quiz(student_id, quiz_id)
            if question_id is not None:
                questions = [q for q in quiz.questions if q.id == question_id]
                if not questions:
                    raise EntityNotFound("Question", question_id)
                return quiz, questions
            if retry_incorrect:
                latest = reporting.latest_attempt(
                    reporting.attempts_for(self._attempts, student_id=student_id, quiz_id=quiz_id)
                )
                if latest is None:
                    raise PreconditionViolation("There is no previous attempt to retry.")
                incorrect = reporting.incorrect_question_ids(quiz, latest)
                if not incorrect:
                    raise PreconditionViolation(ALL_CORRECT_MESSAGE)
                return quiz, presented_questions(quiz, incorrect)
            return quiz, list(quiz.questions)

    def submit_attempt(
        self,
        student_id: str,
        quiz_id: str,
        answers: Sequence[int | None],
        question_ids: Sequence[str] | None = None,
    ) -> QuizAttempt:
        """Grade and store a new attempt; refused while any question is unanswered."""
        with self._lock:
            roster.find_user(self._users, student_id, Role.STUDENT)
            quiz = self._student_quiz(student_id, quiz_id)
            if question_ids:
                if len(set(question_ids)) != len(question_ids):
                    raise PreconditionViolation("Each question can only be answered once per attempt.")
                known = {q.id for q in quiz.questions}
                unknown = [qid for qid in question_ids if qid not in known]
                if unknown:
                    raise EntityNotFound("Question", ", ".join(unknown))
            # Caller order is kept; answers line up with it.
            questions = presented_questions(quiz, question_ids)
            if not questions:
                raise PreconditionViolation("This quiz has no questions.")
            if len(answers) != len(questions) or has_unanswered(answers, len(questions)):
                raise PreconditionViolation(UNANSWERED_MESSAGE)
            for question, answer in zip(questions, answers):
                if not 0 <= answer < len(question.options):
                    raise PreconditionViolation(f"Answer {answer} is not an option of '{question.text}'.")

            attempt = grade_attempt(student_id, quiz, questions, answers)
            self._attempts = (*self._attempts, attempt)
        logger.info(
            "Recorded %s for %s on %s: %d%%", attempt.id, student_id, quiz_id, attempt.score
        )
        return attempt

    def generate_practice_quiz(
        self,
        student_id: str,
        mode: PracticeMode,
        count: int | None = None,
    ) -> Quiz:
        with self._lock:
            available = quiz_catalog.visible_quizzes_for_student(
                self._quizzes, self._classes, student_id
            )
            pool = question_pool(available)
            if not pool:
                raise PreconditionViolation(EMPTY_PRACTICE_MESSAGE)
            topic_stats = reporting.topic_accuracy(self._attempts, self._quiz_lookup(), student_id)
            selection = self._selector.select(mode, pool, count=count, topic_stats=topic_stats)
            name = "Smart Practice Quiz" if mode is PracticeMode.SMART else "Random Practice Quiz"
            quiz = build_practice_quiz(selection, student_id, name=name)
            attempted = {attempt.quiz_id for attempt in self._attempts}
            # A student's earlier practice quiz is dropped once replaced, unless it was taken.
            self._practice_quizzes = {
                practice_id: practice
                for practice_id, practice in self._practice_quizzes.items()
                if practice.created_by != student_id or practice_id in attempted
            }
            self._practice_quizzes[quiz.id] = quiz
        logger.info("Generated %s practice quiz %s with %d question(s)", mode.value, quiz.id, len(selection))
        return quiz

    def export_attempt(self, attempt_id: str, student_id: str) -> tuple[str, str]:
        """Return ``(filename, csv_text)`` for one of the student's attempts."""
        with self._lock:
            attempt = self._find_attempt(attempt_id)
            if attempt.student_id != student_id:
                raise EntityNotFound("Attempt", attempt_id)
            quiz = self._resolve_quiz(attempt.quiz_id)
        return results_filename(quiz), render_results_csv(quiz, attempt)

    # --- Internal helpers (callers hold the lock) ---

    def _quiz_lookup(self) -> dict[str, Quiz]:
        lookup = dict(self._retired_quizzes)
        lookup.update(self._practice_quizzes)
        lookup.update((quiz.id, quiz) for quiz in self._quizzes)
        return lookup

    def _resolve_quiz(self, quiz_id: str) -> Quiz:
        detached = self._practice_quizzes.get(quiz_id) or self._retired_quizzes.get(quiz_id)
        if detached is not None:
            return detached
        return quiz_catalog.find_quiz(self._quizzes, quiz_id)

    def _find_attempt(self, attempt_id: str) -> QuizAttempt:
        for attempt in self._attempts:
            if attempt.id == attempt_id:
                return attempt
        raise EntityNotFound("Attempt", attempt_id)

    def _student_quiz(self, student_id: str, quiz_id: str) -> Quiz:
        quiz = self._resolve_quiz(quiz_id)
        if quiz.is_practice:
            if quiz.created_by != student_id:
                raise EntityNotFound("Quiz", quiz_id)
            return quiz
        visible = quiz_catalog.visible_quizzes_for_student(self._quizzes, self._classes, student_id)
        if all(q.id != quiz_id for q in visible):
            raise EntityNotFound("Quiz", quiz_id)
        return quiz

    def _require_viewable(self, quiz: Quiz, viewer_id: str) -> None:
        viewer = roster.find_user(self._users, viewer_id)
        if viewer.role is Role.STUDENT:
            self._student_quiz(viewer_id, quiz.id)
        elif viewer.role is Role.TEACHER:
            if quiz.is_practice:
                raise EntityNotFound("Quiz", quiz.id)
            self._require_class_owner(quiz.class_id, viewer_id)

    def _require_class_owner(self, class_id: str, teacher_id: str) -> SchoolClass:
        school_class = roster.find_class(self._classes, class_id)
        if school_class.teacher_id != teacher_id:
            raise PreconditionViolation("You can only manage your own classes.")
        return school_class

    def _require_quiz_owner(self, quiz_id: str, teacher_id: str) -> Quiz:
        quiz = quiz_catalog.find_quiz(self._quizzes, quiz_id)
        self._require_class_owner(quiz.class_id, teacher_id)
        return quiz
