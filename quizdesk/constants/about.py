"""Static metadata describing QuizDesk."""

APP_NAME = "QuizDesk"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "QuizDesk is a classroom quiz manager with admin, teacher and student dashboards. "
    "Teachers publish quizzes to their classes, students take them, review their results "
    "and practice their weakest topics."
)
