"""FastAPI server that exposes the dashboards and the JSON API."""

from __future__ import annotations

from dataclasses import asdict
import logging
from urllib.parse import quote

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from pydantic import BaseModel, Field
import uvicorn

from quizdesk.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from quizdesk.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT, USER_COOKIE
from quizdesk.core.classroom_manager import ClassroomManager
from quizdesk.core.errors import EntityNotFound, PreconditionViolation
from quizdesk.core.models import Question, Role, User
from quizdesk.core.quiz_importer import parse_quiz_text, template_skeleton
from quizdesk.core.quiz_templates import QUIZ_TEMPLATES, get_template
from quizdesk.core.results_exporter import result_rows
from quizdesk.core.services.practice import PracticeMode
from quizdesk.core.services.quiz_catalog import QuizSort
from quizdesk.core.services.reporting import average_score
from quizdesk.core.services.scoring import presented_questions
from quizdesk.server import pages

logger = logging.getLogger(__name__)

_DASHBOARDS = {role: f"/{role.value}" for role in Role}


class NewUserPayload(BaseModel):
    name: str
    email: str
    role: Role = Role.STUDENT


class NewClassPayload(BaseModel):
    name: str
    teacher_id: str


class EnrollPayload(BaseModel):
    student_id: str


class QuestionPayload(BaseModel):
    text: str
    options: list[str]
    correct_answer: int
    explanation: str | None = None
    topic: str | None = None


class QuizPayload(BaseModel):
    """Either ``text`` in the import format or structured ``questions``."""

    name: str
    text: str | None = None
    questions: list[QuestionPayload] = Field(default_factory=list)


class AttemptPayload(BaseModel):
    quiz_id: str
    answers: list[int | None]
    question_ids: list[str] | None = None


class PracticePayload(BaseModel):
    mode: PracticeMode = PracticeMode.QUICK
    count: int | None = None


def _get_classroom_dependency(manager: ClassroomManager):
    def dependency() -> ClassroomManager:
        return manager

    return dependency


def _session_user(request: Request, manager: ClassroomManager) -> User | None:
    user_id = request.cookies.get(USER_COOKIE)
    if not user_id:
        return None
    try:
        return manager.get_user(user_id)
    except EntityNotFound:
        return None


def _redirect_for(user: User | None) -> RedirectResponse:
    """Send anonymous visitors to the login page and others to their own dashboard."""
    target = "/" if user is None else _DASHBOARDS[user.role]
    return RedirectResponse(url=target, status_code=303)


def _require_role(request: Request, manager: ClassroomManager, *roles: Role) -> User:
    user = _session_user(request, manager)
    if user is None:
        raise HTTPException(status_code=401, detail="Not logged in.")
    if user.role not in roles:
        raise HTTPException(status_code=403, detail="This action is not available for your role.")
    return user


def _to_questions(payload: QuizPayload) -> list[Question]:
    if payload.text and payload.text.strip():
        return parse_quiz_text(payload.text)
    return [
        Question(
            id="",
            text=q.text,
            options=tuple(q.options),
            correct_answer=q.correct_answer,
            explanation=q.explanation,
            topic=q.topic,
        )
        for q in payload.questions
    ]


def create_api_app(manager: ClassroomManager) -> FastAPI:
    """Create a FastAPI application wired to the provided classroom manager."""
    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        license_info={"name": APP_LICENSE},
    )
    classroom_dep = _get_classroom_dependency(manager)

    @app.exception_handler(PreconditionViolation)
    async def handle_precondition(request: Request, exc: PreconditionViolation) -> JSONResponse:
        logger.warning("Refused %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(EntityNotFound)
    async def handle_not_found(request: Request, exc: EntityNotFound) -> JSONResponse:
        logger.warning("Refused %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def handle_invalid(request: Request, exc: ValueError) -> JSONResponse:
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    # --- Identity ---

    @app.get("/", response_class=HTMLResponse, response_model=None)
    def login_page(
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> HTMLResponse | RedirectResponse:
        user = _session_user(request, classroom)
        if user is not None:
            return _redirect_for(user)
        return HTMLResponse(pages.login_page(classroom.get_users()))

    @app.get("/login/{user_id}")
    def login(user_id: str, classroom: ClassroomManager = Depends(classroom_dep)) -> RedirectResponse:
        try:
            user = classroom.get_user(user_id)
        except EntityNotFound:
            return RedirectResponse(url="/", status_code=303)
        response = _redirect_for(user)
        response.set_cookie(key=USER_COOKIE, value=user.id, samesite="lax", httponly=True)
        logger.info("%s logged in as %s", user.name, user.role.value)
        return response

    @app.get("/logout")
    def logout() -> RedirectResponse:
        response = RedirectResponse(url="/", status_code=303)
        response.delete_cookie(USER_COOKIE)
        return response

    # --- Dashboards ---

    @app.get("/admin", response_class=HTMLResponse, response_model=None)
    def admin_dashboard(
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> HTMLResponse | RedirectResponse:
        user = _session_user(request, classroom)
        if user is None or user.role is not Role.ADMIN:
            return _redirect_for(user)
        return HTMLResponse(pages.admin_page(user, classroom.get_users(), classroom.get_classes()))

    @app.get("/teacher", response_class=HTMLResponse, response_model=None)
    def teacher_dashboard(
        request: Request,
        class_id: str | None = None,
        sort: QuizSort = "name",
        template: str | None = None,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> HTMLResponse | RedirectResponse:
        user = _session_user(request, classroom)
        if user is None or user.role is not Role.TEACHER:
            return _redirect_for(user)

        my_classes = classroom.get_teacher_classes(user.id)
        selected = next((c for c in my_classes if c.id == class_id), my_classes[0] if my_classes else None)
        if selected is None:
            html = pages.teacher_page(user, my_classes, None, None, [], [], [], {}, sort, QUIZ_TEMPLATES, "")
            return HTMLResponse(html)

        enrolled, available = classroom.get_class_students(selected.id)
        quizzes = classroom.get_class_quizzes(selected.id, sort)
        summaries = {quiz.id: classroom.get_quiz_summary(quiz.id) for quiz in quizzes}
        template_text = ""
        if template:
            try:
                template_text = template_skeleton(get_template(template))
            except EntityNotFound:
                template_text = ""
        html = pages.teacher_page(
            user,
            my_classes,
            selected,
            classroom.get_class_summary(selected.id, viewer_id=user.id),
            enrolled,
            available,
            quizzes,
            summaries,
            sort,
            QUIZ_TEMPLATES,
            template_text,
        )
        return HTMLResponse(html)

    @app.get("/student", response_class=HTMLResponse, response_model=None)
    def student_dashboard(
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> HTMLResponse | RedirectResponse:
        user = _session_user(request, classroom)
        if user is None or user.role is not Role.STUDENT:
            return _redirect_for(user)

        quizzes = classroom.get_student_quizzes(user.id)
        history = classroom.get_student_attempts(user.id)
        attempt_counts: dict[str, int] = {}
        for attempt in history:
            attempt_counts[attempt.quiz_id] = attempt_counts.get(attempt.quiz_id, 0) + 1
        html = pages.student_page(
            user,
            classroom.get_student_summary(user.id),
            classroom.get_student_classes(user.id),
            quizzes,
            {quiz.id: classroom.get_best_score(user.id, quiz.id) for quiz in quizzes},
            attempt_counts,
            history,
            classroom.get_quiz_names(),
            classroom.get_topic_accuracy(user.id),
        )
        return HTMLResponse(html)

    @app.get("/student/quizzes/{quiz_id}/take", response_class=HTMLResponse, response_model=None)
    def take_quiz(
        quiz_id: str,
        request: Request,
        retry: str | None = None,
        question_id: str | None = None,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> HTMLResponse | RedirectResponse:
        user = _session_user(request, classroom)
        if user is None or user.role is not Role.STUDENT:
            return _redirect_for(user)
        try:
            quiz, questions = classroom.prepare_attempt(
                user.id,
                quiz_id,
                retry_incorrect=retry == "incorrect",
                question_id=question_id,
            )
        except (PreconditionViolation, EntityNotFound) as exc:
            logger.warning("Refused quiz start for %s on %s: %s", user.id, quiz_id, exc)
            return HTMLResponse(pages.message_page(user, "Quiz", str(exc), "/student"), status_code=409)
        label = None
        if question_id is not None:
            label = "Retrying a single question"
        elif retry == "incorrect":
            label = f"Retrying {len(questions)} incorrect question(s)"
        return HTMLResponse(pages.take_quiz_page(user, quiz, questions, label))

    @app.get("/student/quizzes/{quiz_id}/results", response_class=HTMLResponse, response_model=None)
    def quiz_results(
        quiz_id: str,
        request: Request,
        attempt_id: str | None = None,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> HTMLResponse | RedirectResponse:
        user = _session_user(request, classroom)
        if user is None or user.role is not Role.STUDENT:
            return _redirect_for(user)
        attempts = classroom.get_student_attempts(user.id, quiz_id)
        attempt = next((a for a in attempts if a.id == attempt_id), attempts[0] if attempts else None)
        if attempt is None:
            return _redirect_for(user)
        quiz = classroom.get_quiz(quiz_id)
        offered = any(q.id == quiz_id for q in classroom.get_student_quizzes(user.id))
        html = pages.results_page(
            user,
            quiz,
            attempt,
            result_rows(quiz, attempt),
            presented_questions(quiz, attempt.question_ids),
            classroom.get_best_score(user.id, quiz_id),
            average_score(attempts),
            len(attempts),
            can_retry=offered,
        )
        return HTMLResponse(html)

    @app.get("/quizzes/{quiz_id}/leaderboard", response_class=HTMLResponse, response_model=None)
    def leaderboard_page(
        quiz_id: str,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> HTMLResponse | RedirectResponse:
        user = _session_user(request, classroom)
        if user is None:
            return _redirect_for(user)
        rows = classroom.get_leaderboard(quiz_id, viewer_id=user.id)
        return HTMLResponse(pages.leaderboard_page(user, classroom.get_quiz(quiz_id), rows))

    # --- Administration API ---

    @app.post("/api/users", status_code=201)
    def add_user(
        payload: NewUserPayload,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> dict[str, object]:
        _require_role(request, classroom, Role.ADMIN)
        return asdict(classroom.add_user(payload.name, payload.email, payload.role))

    @app.delete("/api/users/{user_id}")
    def delete_user(
        user_id: str,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> dict[str, object]:
        admin = _require_role(request, classroom, Role.ADMIN)
        classroom.delete_user(user_id, acting_user_id=admin.id)
        return {"deleted": user_id}

    @app.post("/api/classes", status_code=201)
    def create_class(
        payload: NewClassPayload,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> dict[str, object]:
        _require_role(request, classroom, Role.ADMIN)
        return asdict(classroom.create_class(payload.name, payload.teacher_id))

    @app.delete("/api/classes/{class_id}")
    def delete_class(
        class_id: str,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> dict[str, object]:
        _require_role(request, classroom, Role.ADMIN)
        classroom.delete_class(class_id)
        return {"deleted": class_id}

    # --- Teacher API ---

    @app.post("/api/classes/{class_id}/students", status_code=201)
    def enroll_student(
        class_id: str,
        payload: EnrollPayload,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> dict[str, object]:
        teacher = _require_role(request, classroom, Role.TEACHER)
        return asdict(classroom.enroll_student(class_id, payload.student_id, teacher.id))

    @app.delete("/api/classes/{class_id}/students/{student_id}")
    def unenroll_student(
        class_id: str,
        student_id: str,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> dict[str, object]:
        teacher = _require_role(request, classroom, Role.TEACHER)
        return asdict(classroom.unenroll_student(class_id, student_id, teacher.id))

    @app.get("/api/classes/{class_id}/statistics")
    def class_statistics(
        class_id: str,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> dict[str, object]:
        viewer = _require_role(request, classroom, Role.TEACHER, Role.ADMIN)
        return asdict(classroom.get_class_summary(class_id, viewer_id=viewer.id))

    @app.post("/api/classes/{class_id}/quizzes", status_code=201)
    def create_quiz(
        class_id: str,
        payload: QuizPayload,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> dict[str, object]:
        teacher = _require_role(request, classroom, Role.TEACHER)
        quiz = classroom.create_quiz(class_id, payload.name, _to_questions(payload), teacher.id)
        return asdict(quiz)

    @app.post("/api/quizzes/{quiz_id}/visibility")
    def toggle_visibility(
        quiz_id: str,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> dict[str, object]:
        teacher = _require_role(request, classroom, Role.TEACHER)
        quiz = classroom.toggle_quiz_visibility(quiz_id, teacher.id)
        return {"id": quiz.id, "visible": quiz.visible}

    @app.post("/api/quizzes/{quiz_id}/duplicate", status_code=201)
    def duplicate_quiz(
        quiz_id: str,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> dict[str, object]:
        teacher = _require_role(request, classroom, Role.TEACHER)
        return asdict(classroom.duplicate_quiz(quiz_id, teacher.id))

    @app.delete("/api/quizzes/{quiz_id}")
    def delete_quiz(
        quiz_id: str,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> dict[str, object]:
        teacher = _require_role(request, classroom, Role.TEACHER)
        classroom.delete_quiz(quiz_id, teacher.id)
        return {"deleted": quiz_id}

    @app.get("/api/quizzes/{quiz_id}/leaderboard")
    def quiz_leaderboard(
        quiz_id: str,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> list[dict[str, object]]:
        viewer = _require_role(request, classroom, Role.TEACHER, Role.STUDENT, Role.ADMIN)
        return [asdict(row) for row in classroom.get_leaderboard(quiz_id, viewer_id=viewer.id)]

    # --- Student API ---

    @app.post("/api/attempts", status_code=201)
    def submit_attempt(
        payload: AttemptPayload,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> dict[str, object]:
        student = _require_role(request, classroom, Role.STUDENT)
        attempt = classroom.submit_attempt(
            student.id, payload.quiz_id, payload.answers, payload.question_ids
        )
        return asdict(attempt)

    @app.get("/api/attempts/{attempt_id}/export")
    def export_attempt(
        attempt_id: str,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> Response:
        student = _require_role(request, classroom, Role.STUDENT)
        filename, content = classroom.export_attempt(attempt_id, student.id)
        return Response(
            content=content,
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
        )

    @app.post("/api/practice", status_code=201)
    def start_practice(
        payload: PracticePayload,
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> dict[str, object]:
        student = _require_role(request, classroom, Role.STUDENT)
        quiz = classroom.generate_practice_quiz(student.id, payload.mode, payload.count)
        return {"id": quiz.id, "name": quiz.name, "question_count": len(quiz.questions)}

    @app.get("/api/students/me/topics")
    def my_topics(
        request: Request,
        classroom: ClassroomManager = Depends(classroom_dep),
    ) -> list[dict[str, object]]:
        student = _require_role(request, classroom, Role.STUDENT)
        return [
            {"topic": t.topic, "correct": t.correct, "total": t.total, "accuracy": t.accuracy}
            for t in classroom.get_topic_accuracy(student.id)
        ]

    return app


def run_api_server(
    manager: ClassroomManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the application with uvicorn until interrupted."""
    app = create_api_app(manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info", log_config=None)
    server = uvicorn.Server(config)
    server.run()
