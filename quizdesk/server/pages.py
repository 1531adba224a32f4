"""Server-rendered HTML for the login page and the three dashboards.

Pages are plain strings; dynamic values go through ``escape`` and question
text through the markdown renderer. Buttons call the JSON API with the small
``api()`` helper in the shared layout and reload on success.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from html import escape
import json

from quizdesk.constants.about import APP_NAME
from quizdesk.constants.quiz_constants import HIGH_SCORE_THRESHOLD
from quizdesk.constants.ui_constants import (
    ADMIN_TITLE,
    LOGIN_TITLE,
    NO_ATTEMPTS_MESSAGE,
    NO_CLASSES_MESSAGE,
    NO_QUIZZES_MESSAGE,
    NO_STUDENTS_MESSAGE,
    STUDENT_TITLE,
    TEACHER_TITLE,
    UNKNOWN_LABEL,
)
from quizdesk.core.markdown_math_renderer import MATHJAX_CONFIG, MATHJAX_SCRIPT, renderer
from quizdesk.core.models import Question, Quiz, QuizAttempt, Role, SchoolClass, User
from quizdesk.core.quiz_templates import QuizTemplate
from quizdesk.core.results_exporter import ResultRow
from quizdesk.core.services.leaderboard import LeaderboardRow
from quizdesk.core.services.reporting import ClassSummary, QuizSummary, StudentSummary, TopicAccuracy

_MEDAL_ICONS = {"gold": "🥇", "silver": "🥈", "bronze": "🥉"}

_STYLE = """
:root { font-family: 'Inter', system-ui, sans-serif; background: #0b1120; color: #f5f7ff; }
body { margin: 0 auto; padding: 1.5rem; max-width: 64rem; display: flex; flex-direction: column; gap: 1rem; }
header { display: flex; justify-content: space-between; align-items: center; }
a { color: #5eead4; }
.card { background: #111a30; border-radius: 0.75rem; padding: 1.25rem 1.5rem; box-shadow: 0 0.5rem 1.5rem rgba(0, 0, 0, 0.4); }
.stats { display: grid; grid-template-columns: repeat(auto-fit, minmax(10rem, 1fr)); gap: 0.75rem; }
.stat strong { display: block; font-size: 1.6rem; }
.row { display: flex; justify-content: space-between; align-items: center; gap: 0.75rem; padding: 0.5rem 0; border-bottom: 1px solid #1e293b; }
.muted { color: #94a3b8; }
.badge { border-radius: 999px; padding: 0.15rem 0.6rem; background: #334155; font-size: 0.85rem; }
.badge.high { background: #15803d; }
.correct { border-left: 4px solid #4ade80; padding-left: 0.75rem; }
.incorrect { border-left: 4px solid #f87171; padding-left: 0.75rem; }
button, .button { border: none; border-radius: 0.5rem; padding: 0.45rem 0.9rem; background: #1f9aa5; color: #fff; cursor: pointer; text-decoration: none; font-size: 0.95rem; }
button.danger { background: #b91c1c; }
input, select, textarea { background: #0b1120; color: #f5f7ff; border: 1px solid #334155; border-radius: 0.5rem; padding: 0.4rem; }
textarea { width: 100%; min-height: 12rem; font-family: monospace; }
#flash { min-height: 1.25rem; color: #f87171; }
"""

_SCRIPT = """
async function api(method, url, body) {
  const flash = document.getElementById('flash');
  flash.textContent = '';
  const response = await fetch(url, {
    method,
    headers: { 'Content-Type': 'application/json' },
    body: body === undefined ? undefined : JSON.stringify(body),
  });
  const payload = await response.json().catch(() => ({}));
  if (!response.ok) {
    flash.textContent = payload.detail ?? 'Request failed.';
    return null;
  }
  return payload;
}
async function apiThenReload(method, url, body) {
  if (await api(method, url, body) !== null) { location.reload(); }
}
function value(id) { return document.getElementById(id).value; }
"""


def _layout(title: str, body: str, user: User | None = None, script: str = "") -> str:
    account = ""
    if user is not None:
        account = (
            f'<span class="muted">{escape(user.name)} ({user.role.value})</span> '
            '<a class="button" href="/logout">Logout</a>'
        )
    return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{escape(title)} · {APP_NAME}</title>
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <style>{_STYLE}</style>
    <script>{MATHJAX_CONFIG}</script>
    <script defer src="{MATHJAX_SCRIPT}"></script>
  </head>
  <body>
    <header><h1>{escape(title)}</h1><div>{account}</div></header>
    <p id="flash"></p>
    {body}
    <script>{_SCRIPT}{script}</script>
  </body>
</html>"""


def _js(value: object) -> str:
    """Encode a value for an inline onclick attribute."""
    return escape(json.dumps(value), quote=True)


def _date(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def _score_badge(score: int) -> str:
    css = "badge high" if score >= HIGH_SCORE_THRESHOLD else "badge"
    return f'<span class="{css}">{score}%</span>'


def _stat(label: str, value: object) -> str:
    return f'<div class="card stat"><span class="muted">{escape(label)}</span><strong>{escape(str(value))}</strong></div>'


def login_page(users: Sequence[User]) -> str:
    sections = []
    for role in Role:
        entries = "".join(
            f'<div class="row"><span>{escape(u.name)} <span class="muted">{escape(u.email)}</span></span>'
            f'<a class="button" href="/login/{escape(u.id)}">Log in</a></div>'
            for u in users
            if u.role is role
        )
        sections.append(f'<section class="card"><h2>{role.value.capitalize()}s</h2>{entries}</section>')
    return _layout(LOGIN_TITLE, "".join(sections))


def admin_page(user: User, users: Sequence[User], classes: Sequence[SchoolClass]) -> str:
    names = {u.id: u.name for u in users}
    teachers = [u for u in users if u.role is Role.TEACHER]

    user_rows = "".join(
        f'<div class="row"><span>{escape(u.name)} <span class="muted">{escape(u.email)} · {u.role.value}</span></span>'
        f'<button class="danger" onclick="apiThenReload(\'DELETE\', {_js("/api/users/" + u.id)})">Delete</button></div>'
        for u in users
        if u.id != user.id
    )
    class_rows = "".join(
        f'<div class="row"><span>{escape(c.name)} <span class="muted">{escape(names.get(c.teacher_id, "Unknown"))}'
        f" · {len(c.student_ids)} student(s)</span></span>"
        f'<button class="danger" onclick="apiThenReload(\'DELETE\', {_js("/api/classes/" + c.id)})">Delete</button></div>'
        for c in classes
    )
    teacher_options = "".join(f'<option value="{escape(t.id)}">{escape(t.name)}</option>' for t in teachers)
    role_options = "".join(f'<option value="{r.value}">{r.value.capitalize()}</option>' for r in Role)

    body = f"""
    <section class="stats">{_stat("Teachers", len(teachers))}{_stat("Students", sum(1 for u in users if u.role is Role.STUDENT))}{_stat("Classes", len(classes))}</section>
    <section class="card">
      <h2>Add User</h2>
      <input id="user-name" placeholder="Name" /> <input id="user-email" type="email" placeholder="Email" />
      <select id="user-role">{role_options}</select>
      <button onclick="apiThenReload('POST', '/api/users', {{name: value('user-name'), email: value('user-email'), role: value('user-role')}})">Add User</button>
    </section>
    <section class="card"><h2>Users ({len(users)})</h2>{user_rows}</section>
    <section class="card">
      <h2>Create New Class</h2>
      <input id="class-name" placeholder="Class name" />
      <select id="class-teacher"><option value="">Assign teacher</option>{teacher_options}</select>
      <button onclick="apiThenReload('POST', '/api/classes', {{name: value('class-name'), teacher_id: value('class-teacher')}})">Create Class</button>
    </section>
    <section class="card"><h2>Classes ({len(classes)})</h2>{class_rows}</section>
    """
    return _layout(ADMIN_TITLE, body, user)


def teacher_page(
    user: User,
    classes: Sequence[SchoolClass],
    selected: SchoolClass | None,
    summary: ClassSummary | None,
    enrolled: Sequence[User],
    available: Sequence[User],
    quizzes: Sequence[Quiz],
    quiz_summaries: dict[str, QuizSummary],
    sort_by: str,
    templates: Sequence[QuizTemplate],
    template_text: str,
) -> str:
    if not classes or selected is None or summary is None:
        return _layout(TEACHER_TITLE, f'<section class="card"><p>{NO_CLASSES_MESSAGE}</p></section>', user)

    class_links = " ".join(
        f'<a class="button" href="/teacher?class_id={escape(c.id)}">{escape(c.name)}</a>' for c in classes
    )
    base = f"/api/classes/{selected.id}"
    student_rows = "".join(
        f'<div class="row"><span>{escape(s.name)} <span class="muted">{escape(s.email)}</span></span>'
        f'<button class="danger" onclick="apiThenReload(\'DELETE\', {_js(base + "/students/" + s.id)})">Remove</button></div>'
        for s in enrolled
    ) or f'<p class="muted">{NO_STUDENTS_MESSAGE}</p>'
    student_options = "".join(f'<option value="{escape(s.id)}">{escape(s.name)}</option>' for s in available)

    sort_links = " ".join(
        f'<a class="button" href="/teacher?class_id={escape(selected.id)}&sort={key}">Sort by {key.capitalize()}</a>'
        for key in ("name", "questions", "attempts")
    )
    quiz_rows = "".join(_teacher_quiz_row(q, quiz_summaries[q.id]) for q in quizzes) or (
        f'<p class="muted">{NO_QUIZZES_MESSAGE}</p>'
    )
    template_links = " ".join(
        f'<a class="button" href="/teacher?class_id={escape(selected.id)}&template={escape(t.name)}" '
        f'title="{escape(t.description)}">{escape(t.name)}</a>'
        for t in templates
    )

    body = f"""
    <section class="card"><h2>My Classes</h2>{class_links}</section>
    <section class="stats">
      {_stat("Students", summary.student_count)}{_stat("Quizzes", summary.quiz_count)}
      {_stat("Active Quizzes", summary.visible_quiz_count)}{_stat("Attempts", summary.attempt_count)}
      {_stat("Average Score", f"{summary.average_score}%")}
    </section>
    <section class="card">
      <h2>{escape(selected.name)}: Students</h2>
      <select id="enroll-student"><option value="">Select student</option>{student_options}</select>
      <button onclick="apiThenReload('POST', {_js(base + "/students")}, {{student_id: value('enroll-student')}})">Add Student</button>
      {student_rows}
    </section>
    <section class="card"><h2>Quizzes</h2><p>{sort_links}</p>{quiz_rows}</section>
    <section class="card">
      <h2>Create Quiz</h2>
      <p class="muted">Templates: {template_links}</p>
      <input id="quiz-name" placeholder="Enter quiz name" />
      <textarea id="quiz-text" placeholder="Q: What is 2 + 2?&#10;A: 3&#10;B: 4&#10;CORRECT: B&#10;TOPIC: Addition">{escape(template_text)}</textarea>
      <button onclick="apiThenReload('POST', {_js(base + "/quizzes")}, {{name: value('quiz-name'), text: value('quiz-text')}})">Save Quiz</button>
    </section>
    """
    return _layout(TEACHER_TITLE, body, user)


def _teacher_quiz_row(quiz: Quiz, summary: QuizSummary) -> str:
    base = f"/api/quizzes/{quiz.id}"
    hidden = "" if quiz.visible else ' <span class="badge">Hidden</span>'
    return (
        f'<div class="row"><span><strong>{escape(quiz.name)}</strong>{hidden}<br/>'
        f'<span class="muted">{summary.question_count} questions · {summary.attempt_count} attempts · '
        f"{summary.average_score}% avg</span></span><span>"
        f'<a class="button" href="/quizzes/{escape(quiz.id)}/leaderboard">Leaderboard</a> '
        f'<button onclick="apiThenReload(\'POST\', {_js(base + "/duplicate")})">Duplicate</button> '
        f'<button onclick="apiThenReload(\'POST\', {_js(base + "/visibility")})">{"Hide" if quiz.visible else "Show"}</button> '
        f'<button class="danger" onclick="apiThenReload(\'DELETE\', {_js(base)})">Delete</button>'
        "</span></div>"
    )


def student_page(
    user: User,
    summary: StudentSummary,
    classes: Sequence[SchoolClass],
    quizzes: Sequence[Quiz],
    best_scores: dict[str, int | None],
    attempt_counts: dict[str, int],
    history: Sequence[QuizAttempt],
    quiz_names: dict[str, str],
    topics: Sequence[TopicAccuracy],
) -> str:
    class_sections = []
    for school_class in classes:
        rows = []
        for quiz in (q for q in quizzes if q.class_id == school_class.id):
            best = best_scores.get(quiz.id)
            best_label = f" · Best: {best}%" if best is not None else ""
            results = (
                f'<a class="button" href="/student/quizzes/{escape(quiz.id)}/results">View Results</a> '
                if attempt_counts.get(quiz.id)
                else ""
            )
            rows.append(
                f'<div class="row"><span><strong>{escape(quiz.name)}</strong><br/>'
                f'<span class="muted">{len(quiz.questions)} questions{best_label}</span></span><span>'
                f'<a class="button" href="/quizzes/{escape(quiz.id)}/leaderboard">Leaderboard</a> {results}'
                f'<a class="button" href="/student/quizzes/{escape(quiz.id)}/take">'
                f'{"Retry" if attempt_counts.get(quiz.id) else "Start"}</a></span></div>'
            )
        if rows:
            class_sections.append(
                f'<section class="card"><h2>{escape(school_class.name)}</h2>'
                f'<p class="muted">{len(rows)} quizzes</p>{"".join(rows)}</section>'
            )

    history_rows = "".join(
        f'<div class="row"><span>{escape(quiz_names.get(a.quiz_id, UNKNOWN_LABEL))} '
        f'<span class="muted">{_date(a.timestamp)}</span></span><span>{_score_badge(a.score)} '
        f'<a class="button" href="/api/attempts/{escape(a.id)}/export">CSV</a></span></div>'
        for a in history
    ) or f'<p class="muted">{NO_ATTEMPTS_MESSAGE}</p>'
    topic_rows = "".join(
        f'<div class="row"><span>{escape(t.topic)}</span><span class="muted">{t.correct}/{t.total} · {int(t.accuracy + 0.5)}%</span></div>'
        for t in topics
    ) or '<p class="muted">Complete a quiz to see your topic breakdown.</p>'

    body = f"""
    <section class="stats">
      {_stat("My Classes", summary.class_count)}{_stat("Available Quizzes", summary.available_quiz_count)}
      {_stat("Overall Average", f"{summary.average_score}%")}
    </section>
    {"".join(class_sections)}
    <section class="card">
      <h2>Practice</h2>
      <button onclick="startPractice('quick')">Quick Practice (10)</button>
      <button onclick="startPractice('smart')">Practice Weak Topics</button>
      <input id="practice-count" type="number" min="1" value="10" />
      <button onclick="startPractice('custom', Number(value('practice-count')))">Custom Practice</button>
    </section>
    <section class="card"><h2>Topics (weakest first)</h2>{topic_rows}</section>
    <section class="card"><h2>Quiz History</h2>{history_rows}</section>
    """
    script = """
async function startPractice(mode, count) {
  const quiz = await api('POST', '/api/practice', { mode, count: count ?? null });
  if (quiz !== null) { location.href = `/student/quizzes/${quiz.id}/take`; }
}
"""
    return _layout(STUDENT_TITLE, body, user, script)


def take_quiz_page(user: User, quiz: Quiz, questions: Sequence[Question], retry_label: str | None) -> str:
    blocks = []
    for number, question in enumerate(questions, start=1):
        options = "".join(
            f'<label class="row"><span><input type="radio" name="{escape(question.id)}" value="{index}" /> '
            f"{renderer.render_inline(option)}</span></label>"
            for index, option in enumerate(question.options)
        )
        blocks.append(
            f'<section class="card question" data-question-id="{escape(question.id)}">'
            f'<p class="muted">Question {number} of {len(questions)} · {escape(question.topic_label)}</p>'
            f"{renderer.render_fragment(question.text)}{options}</section>"
        )
    subtitle = f'<p class="muted">{escape(retry_label)}</p>' if retry_label else ""
    body = f"""
    <h2>{escape(quiz.name)}</h2>{subtitle}
    {"".join(blocks)}
    <button onclick="submitQuiz()">Submit Quiz</button>
    """
    script = f"""
async function submitQuiz() {{
  const sections = [...document.querySelectorAll('.question')];
  const questionIds = sections.map(s => s.dataset.questionId);
  const answers = sections.map(s => {{
    const checked = s.querySelector('input:checked');
    return checked ? Number(checked.value) : -1;
  }});
  if (answers.includes(-1)) {{
    document.getElementById('flash').textContent = 'Please answer all questions before submitting.';
    return;
  }}
  const attempt = await api('POST', '/api/attempts', {{ quiz_id: {json.dumps(quiz.id)}, answers, question_ids: questionIds }});
  if (attempt !== null) {{ location.href = `/student/quizzes/{quiz.id}/results?attempt_id=${{attempt.id}}`; }}
}}
"""
    return _layout(quiz.name, body, user, script)


def results_page(
    user: User,
    quiz: Quiz,
    attempt: QuizAttempt,
    rows: Sequence[ResultRow],
    questions: Sequence[Question],
    best: int | None,
    average: int,
    attempt_count: int,
    can_retry: bool = True,
) -> str:
    items = []
    for number, (row, question) in enumerate(zip(rows, questions), start=1):
        css = "correct" if row.is_correct else "incorrect"
        fix = "" if row.is_correct else f"<p>Correct answer: {renderer.render_inline(row.correct_label)}</p>"
        explanation = renderer.render_fragment(question.explanation) if question.explanation else ""
        retry = (
            ""
            if not can_retry
            else f'<a class="button" href="/student/quizzes/{escape(quiz.id)}/take?question_id={escape(question.id)}">Retry this question</a>'
        )
        items.append(
            f'<div class="{css}"><p><strong>Question {number}:</strong></p>{renderer.render_fragment(row.question_text)}'
            f"<p>Your answer: {renderer.render_inline(row.chosen_label)}</p>{fix}{explanation}{retry}</div>"
        )
    retry_links = (
        ""
        if not can_retry
        else f'<a class="button" href="/student/quizzes/{escape(quiz.id)}/take">Retry Complete Quiz</a> '
        f'<a class="button" href="/student/quizzes/{escape(quiz.id)}/take?retry=incorrect">Retry Incorrect Only</a>'
    )
    best_stat = _stat("Best Score", f"{best}%") if best is not None else ""
    body = f"""
    <h2>{escape(quiz.name)}: Results</h2>
    <section class="stats">
      {_stat("This Attempt", f"{attempt.score}%")}{best_stat}{_stat("Average", f"{average}%")}{_stat("Attempts", attempt_count)}
    </section>
    <p><a class="button" href="/student">Back</a> <a class="button" href="/api/attempts/{escape(attempt.id)}/export">Export to CSV</a> {retry_links}</p>
    <section class="card">{"".join(items)}</section>
    """
    return _layout(quiz.name, body, user)


def leaderboard_page(user: User, quiz: Quiz, rows: Sequence[LeaderboardRow]) -> str:
    entries = "".join(
        f'<div class="row"><span>{_MEDAL_ICONS.get(row.medal or "", str(row.position))} '
        f'{escape(row.student_name)} <span class="muted">{_date(row.timestamp)}</span></span>'
        f"{_score_badge(row.score)}</div>"
        for row in rows
    ) or f'<p class="muted">{NO_ATTEMPTS_MESSAGE}</p>'
    back = "/teacher" if user.role is Role.TEACHER else "/student"
    body = f"""
    <h2>{escape(quiz.name)}: Leaderboard</h2>
    <p><a class="button" href="{back}">Back</a></p>
    <section class="card">{entries}</section>
    """
    return _layout(quiz.name, body, user)


def message_page(user: User | None, title: str, message: str, back_href: str) -> str:
    body = f"""
    <section class="card"><p>{escape(message)}</p><a class="button" href="{escape(back_href)}">Back</a></section>
    """
    return _layout(title, body, user)
