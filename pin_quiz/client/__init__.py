"""Polling client for the quiz API."""

from .api_client import ApiClient
from .poller import LeaderboardAutoAdvance, SessionPoller, SessionSnapshot
from .presenter import (
    average_score,
    current_question,
    podium,
    progress_percent,
    resolve_current_player,
    winner,
)

__all__ = [
    "ApiClient",
    "LeaderboardAutoAdvance",
    "SessionPoller",
    "SessionSnapshot",
    "average_score",
    "current_question",
    "podium",
    "progress_percent",
    "resolve_current_player",
    "winner",
]
