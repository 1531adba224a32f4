"""Page titles and user-facing messages used by the web layer."""

LOGIN_TITLE: str = "QuizDesk Login"
ADMIN_TITLE: str = "Admin Dashboard"
TEACHER_TITLE: str = "Teacher Dashboard"
STUDENT_TITLE: str = "Student Dashboard"

UNANSWERED_MESSAGE: str = "Please answer all questions before submitting."
ALL_CORRECT_MESSAGE: str = "You got all questions correct! No questions to retry."
EMPTY_PRACTICE_MESSAGE: str = "No questions available for practice."
NO_CLASSES_MESSAGE: str = "No classes assigned yet. Please contact your administrator."
NO_ATTEMPTS_MESSAGE: str = "No attempts yet"
NO_QUIZZES_MESSAGE: str = "No quizzes created yet"
NO_STUDENTS_MESSAGE: str = "No students enrolled yet"
NOT_ANSWERED_LABEL: str = "Not answered"
UNKNOWN_LABEL: str = "Unknown"
