"""Quiz-related constants shared across the core, server and client layers."""

DEFAULT_TIME_PER_QUESTION_SECONDS: int = 30
MIN_TIME_PER_QUESTION_SECONDS: int = 5
MAX_TIME_PER_QUESTION_SECONDS: int = 120
POINTS_PER_CORRECT_ANSWER: int = 100

PIN_MIN_VALUE: int = 100_000
PIN_MAX_VALUE: int = 999_999
PIN_GENERATION_ATTEMPTS: int = 50

OPTION_LETTERS: tuple[str, ...] = ("A", "B", "C", "D")

# Client cadence
SESSION_POLL_INTERVAL_SECONDS: float = 1.0
LEADERBOARD_AUTO_ADVANCE_SECONDS: float = 5.0
PODIUM_SIZE: int = 3
