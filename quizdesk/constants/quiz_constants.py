"""Quiz-related constants shared across the engine and the web layer."""

DEFAULT_TOPIC: str = "General"
PRACTICE_CLASS_ID: str = "practice"
UNANSWERED: int = -1

QUICK_PRACTICE_SIZE: int = 10
SMART_PRACTICE_SIZE: int = 10
WEAK_TOPIC_THRESHOLD: float = 70.0
MAX_WEAK_TOPICS: int = 3

MIN_CLASS_NAME_LENGTH: int = 3
MIN_OPTION_COUNT: int = 2
HIGH_SCORE_THRESHOLD: int = 80
MEDALS: tuple[str, ...] = ("gold", "silver", "bronze")
