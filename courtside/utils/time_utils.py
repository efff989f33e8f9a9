"""
Time utilities for the Courtside game tracker.

Converts between seconds and the ``M:SS`` text shown on the game clock, and
provides the wall clock used by the timer engine.
"""
import math
import re
import time
from typing import Optional, Union


class _InvalidTime:
    """Sentinel returned by :func:`parse_time` for unparseable input."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "INVALID_TIME"


INVALID_TIME = _InvalidTime()

_TIME_PATTERN = re.compile(r"^(\d+):(\d{2})$")


def format_time(seconds: Optional[Union[int, float]]) -> str:
    """
    Format seconds as an M:SS string.

    Minutes are not padded; seconds are always two digits. ``None`` and NaN
    produce an empty string so optional times can be displayed directly.

    Example:
        >>> format_time(90)
        '1:30'
        >>> format_time(1200)
        '20:00'
        >>> format_time(None)
        ''
    """
    if seconds is None:
        return ""
    if isinstance(seconds, float):
        if math.isnan(seconds):
            return ""
        seconds = int(seconds)
    m, s = divmod(seconds, 60)
    return f"{m}:{s:02d}"


def parse_time(text: Optional[str]) -> Union[int, _InvalidTime]:
    """
    Parse ``M:SS`` text (any number of minute digits) into seconds.

    Returns:
        Number of seconds, or ``INVALID_TIME`` when the text is malformed or
        the seconds field is outside 0-59. Never raises, so input widgets can
        validate while the user is still typing.
    """
    if not text or not isinstance(text, str):
        return INVALID_TIME
    match = _TIME_PATTERN.match(text.strip())
    if match is None:
        return INVALID_TIME
    minutes = int(match.group(1))
    secs = int(match.group(2))
    if secs > 59:
        return INVALID_TIME
    return minutes * 60 + secs


def is_valid_time_input(text: Optional[str]) -> bool:
    """Return True when ``text`` parses to a clock value."""
    return parse_time(text) is not INVALID_TIME


def now_ms() -> float:
    """Get current timestamp in epoch milliseconds."""
    return time.time() * 1000
