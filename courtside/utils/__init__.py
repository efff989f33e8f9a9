"""
Utilities package for the Courtside game tracker.

This package contains time formatting helpers and configuration constants.
"""
from .time_utils import INVALID_TIME, format_time, parse_time, is_valid_time_input, now_ms
from .constants import (
    APP_TITLE, MAX_ACTIVE_PLAYERS, FOUL_LIMIT, FOUL_WARNING_THRESHOLD,
    MIN_RECOMMENDED_ON_COURT, PERIOD_LENGTHS, DEFAULT_PERIOD_LENGTH,
    DEFAULT_PERIOD_COUNT, MIN_PERIOD_COUNT, MAX_PERIOD_COUNT, TICK_INTERVAL_SECONDS,
    DATA_DIR, LOG_LEVEL, WEB_HOST, WEB_PORT,
)

__all__ = [
    "INVALID_TIME", "format_time", "parse_time", "is_valid_time_input", "now_ms",
    "APP_TITLE", "MAX_ACTIVE_PLAYERS", "FOUL_LIMIT", "FOUL_WARNING_THRESHOLD",
    "MIN_RECOMMENDED_ON_COURT", "PERIOD_LENGTHS", "DEFAULT_PERIOD_LENGTH",
    "DEFAULT_PERIOD_COUNT", "MIN_PERIOD_COUNT", "MAX_PERIOD_COUNT", "TICK_INTERVAL_SECONDS",
    "DATA_DIR", "LOG_LEVEL", "WEB_HOST", "WEB_PORT",
]
