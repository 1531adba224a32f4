from urllib.parse import unquote

from factories import login

from quizdesk.constants.network_constants import USER_COOKIE


def test_login_page_lists_users(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "Ana Candea" in response.text
    assert "/login/teacher1" in response.text


def test_login_sets_cookie_and_redirects_to_role_dashboard(client):
    response = login(client, "teacher1")
    assert response.headers["location"] == "/teacher"
    assert client.cookies.get(USER_COOKIE) == "teacher1"

    response = client.get("/", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/teacher"


def test_unknown_login_and_logout_go_back_home(client):
    response = client.get("/login/ghost", follow_redirects=False)
    assert response.headers["location"] == "/"

    login(client, "student1")
    response = client.get("/logout", follow_redirects=False)
    assert response.headers["location"] == "/"
    assert client.get("/", follow_redirects=False).status_code == 200


def test_dashboards_redirect_other_roles(client):
    assert client.get("/admin", follow_redirects=False).headers["location"] == "/"
    login(client, "student1")
    response = client.get("/admin", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/student"


def test_each_dashboard_renders(client):
    login(client, "admin1")
    admin = client.get("/admin")
    assert admin.status_code == 200
    assert "Mathematics 101" in admin.text

    login(client, "teacher1")
    teacher = client.get("/teacher", params={"class_id": "class1", "sort": "questions"})
    assert teacher.status_code == 200
    assert "Algebra Basics" in teacher.text

    with_template = client.get("/teacher", params={"template": "Quick Quiz Template"})
    assert with_template.status_code == 200
    assert "CORRECT: A" in with_template.text

    login(client, "student1")
    student = client.get("/student")
    assert student.status_code == 200
    assert "Newton&#x27;s Laws" in student.text or "Newton's Laws" in student.text


def test_api_requires_login_and_role(client):
    assert client.post("/api/users", json={"name": "X", "email": "x@y.z"}).status_code == 401
    login(client, "student1")
    assert client.post("/api/users", json={"name": "X", "email": "x@y.z"}).status_code == 403


def test_take_quiz_submit_and_results(client):
    login(client, "student4")
    page = client.get("/student/quizzes/quiz3/take")
    assert page.status_code == 200
    assert "What is the formula for force?" in page.text

    response = client.post("/api/attempts", json={"quiz_id": "quiz3", "answers": [1]})
    assert response.status_code == 201
    attempt = response.json()
    assert attempt["score"] == 100
    assert attempt["student_id"] == "student4"

    results = client.get(f"/student/quizzes/quiz3/results?attempt_id={attempt['id']}")
    assert results.status_code == 200
    assert "100%" in results.text
    assert "Retry Complete Quiz" in results.text


def test_unanswered_submission_is_refused(client, manager):
    login(client, "student1")
    before = len(manager.get_attempts())
    response = client.post("/api/attempts", json={"quiz_id": "quiz1", "answers": [1, None, 1]})
    assert response.status_code == 409
    assert response.json()["detail"] == "Please answer all questions before submitting."
    assert len(manager.get_attempts()) == before


def test_hidden_quiz_is_not_found_for_students(client):
    login(client, "teacher2")
    assert client.post("/api/quizzes/quiz3/visibility").json() == {"id": "quiz3", "visible": False}

    login(client, "student4")
    response = client.post("/api/attempts", json={"quiz_id": "quiz3", "answers": [1]})
    assert response.status_code == 404
    assert client.get("/student/quizzes/quiz3/take").status_code == 409


def test_retry_incorrect_page(client):
    login(client, "student1")
    response = client.get("/student/quizzes/quiz1/take?retry=incorrect")
    assert response.status_code == 409
    assert "You got all questions correct! No questions to retry." in response.text

    login(client, "student3")
    response = client.get("/student/quizzes/quiz1/take?retry=incorrect")
    assert response.status_code == 200
    assert "Retrying 2 incorrect question(s)" in response.text


def test_export_returns_csv_attachment(client):
    login(client, "student1")
    response = client.get("/api/attempts/attempt1/export")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert unquote(disposition.split("''", 1)[1]) == "Algebra Basics_results.csv"
    assert response.text.startswith('"Question","Your Answer","Correct Answer","Result"')

    login(client, "student2")
    assert client.get("/api/attempts/attempt1/export").status_code == 404


def test_admin_user_and_class_management(client, manager):
    login(client, "admin1")
    created = client.post(
        "/api/users", json={"name": "Radu Pop", "email": "radu.pop@utcluj.ro", "role": "teacher"}
    )
    assert created.status_code == 201
    teacher_id = created.json()["id"]
    assert created.json()["role"] == "teacher"

    duplicate = client.post(
        "/api/users", json={"name": "Other", "email": "RADU.POP@utcluj.ro", "role": "student"}
    )
    assert duplicate.status_code == 409

    new_class = client.post("/api/classes", json={"name": "Chemistry 101", "teacher_id": teacher_id})
    assert new_class.status_code == 201
    assert client.delete(f"/api/classes/{new_class.json()['id']}").status_code == 200

    occupied = client.delete("/api/classes/class1")
    assert occupied.status_code == 409
    assert "class1" in {c.id for c in manager.get_classes()}

    assert client.delete("/api/users/admin1").status_code == 409
    assert client.delete("/api/users/nobody").status_code == 404


def test_teacher_creates_quiz_from_text_and_enrolls(client):
    login(client, "teacher1")
    text = "Q: What is 9 - 4?\nA: 5\nB: 6\nCORRECT: A\nTOPIC: Subtraction"
    created = client.post("/api/classes/class1/quizzes", json={"name": "Warm Up", "text": text})
    assert created.status_code == 201
    quiz = created.json()
    assert quiz["questions"][0]["topic"] == "Subtraction"

    broken = client.post("/api/classes/class1/quizzes", json={"name": "Broken", "text": "Q: ?\nA: 1"})
    assert broken.status_code == 422

    empty = client.post("/api/classes/class1/quizzes", json={"name": "Empty"})
    assert empty.status_code == 409

    enrolled = client.post("/api/classes/class1/students", json={"student_id": "student4"})
    assert enrolled.status_code == 201
    assert "student4" in enrolled.json()["student_ids"]
    removed = client.delete("/api/classes/class1/students/student4")
    assert "student4" not in removed.json()["student_ids"]

    assert client.post("/api/classes/class2/students", json={"student_id": "student2"}).status_code == 409

    stats = client.get("/api/classes/class1/statistics").json()
    assert stats["quiz_count"] == 3
    assert stats["average_score"] == 67

    copy = client.post(f"/api/quizzes/{quiz['id']}/duplicate")
    assert copy.status_code == 201
    assert client.delete(f"/api/quizzes/{quiz['id']}").status_code == 200


def test_leaderboard_views(client):
    login(client, "student2")
    rows = client.get("/api/quizzes/quiz1/leaderboard").json()
    assert [(row["student_id"], row["medal"]) for row in rows] == [
        ("student1", "gold"),
        ("student2", "silver"),
        ("student3", "bronze"),
    ]
    page = client.get("/quizzes/quiz1/leaderboard")
    assert page.status_code == 200
    assert "Orosz Barbara" in page.text
    assert client.get("/api/quizzes/missing/leaderboard").status_code == 404


def test_practice_endpoints(client):
    login(client, "student1")
    response = client.post("/api/practice", json={"mode": "custom", "count": 2})
    assert response.status_code == 201
    practice = response.json()
    assert practice["question_count"] == 2
    assert practice["name"] == "Random Practice Quiz"

    page = client.get(f"/student/quizzes/{practice['id']}/take")
    assert page.status_code == 200

    assert client.post("/api/practice", json={"mode": "custom", "count": 0}).status_code == 422
    assert client.post("/api/practice", json={"mode": "custom"}).status_code == 422

    topics = client.get("/api/students/me/topics").json()
    assert {t["topic"] for t in topics} == {"Addition", "Multiplication", "Subtraction"}
    assert all(t["accuracy"] == 100.0 for t in topics)


def test_openapi_metadata(client):
    info = client.get("/openapi.json").json()["info"]
    assert info["title"] == "QuizDesk API"
    assert info["license"]["name"] == "MIT License"


def test_subset_submission_keeps_question_order(client):
    login(client, "student1")
    response = client.post(
        "/api/attempts", json={"quiz_id": "quiz1", "answers": [3, 1], "question_ids": ["q2", "q1"]}
    )
    assert response.status_code == 201
    assert response.json()["score"] == 100
    assert response.json()["question_ids"] == ["q2", "q1"]

    repeated = client.post(
        "/api/attempts", json={"quiz_id": "quiz1", "answers": [3, 3], "question_ids": ["q2", "q2"]}
    )
    assert repeated.status_code == 409


def test_deleted_quiz_history_stays_usable(client):
    login(client, "teacher1")
    assert client.delete("/api/quizzes/quiz1").status_code == 200

    login(client, "student1")
    dashboard = client.get("/student")
    assert "Algebra Basics" in dashboard.text
    assert "/student/quizzes/quiz1/take" not in dashboard.text
    assert client.get("/api/attempts/attempt1/export").status_code == 200

    results = client.get("/student/quizzes/quiz1/results?attempt_id=attempt1")
    assert results.status_code == 200
    assert "Retry Complete Quiz" not in results.text


def test_statistics_and_leaderboards_are_scoped_to_viewer(client):
    login(client, "teacher2")
    assert client.get("/api/classes/class1/statistics").status_code == 409
    assert client.get("/api/classes/class2/statistics").status_code == 200

    login(client, "student4")
    assert client.get("/api/quizzes/quiz1/leaderboard").status_code == 404
    assert client.get("/quizzes/quiz1/leaderboard").status_code == 404

    login(client, "student1")
    practice = client.post("/api/practice", json={"mode": "quick"}).json()
    assert client.get(f"/api/quizzes/{practice['id']}/leaderboard").json() == []
    login(client, "student2")
    assert client.get(f"/api/quizzes/{practice['id']}/leaderboard").status_code == 404
