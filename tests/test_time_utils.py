"""Tests for the M:SS time codec."""

import pytest

from courtside.utils import INVALID_TIME, format_time, is_valid_time_input, parse_time


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "0:00"), (5, "0:05"), (59, "0:59"), (60, "1:00"), (90, "1:30"), (1200, "20:00"), (754, "12:34")],
)
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected


def test_format_time_blank_for_missing_values():
    assert format_time(None) == ""
    assert format_time(float("nan")) == ""


def test_format_time_truncates_float_seconds():
    assert format_time(61.9) == "1:01"


@pytest.mark.parametrize(
    "text, expected",
    [("0:00", 0), ("1:30", 90), ("09:05", 545), ("20:00", 1200), (" 12:34 ", 754),
     ("100:00", 6000), ("123:45", 7425)],
)
def test_parse_time_accepts_any_minute_width(text, expected):
    assert parse_time(text) == expected


@pytest.mark.parametrize(
    "text",
    ["", None, "1:60", "1:5", "-1:00", "abc", "1:30:00", "1.30", ":30", 90, 1.5, ["1:30"]],
)
def test_parse_time_rejects_malformed_input(text):
    assert parse_time(text) is INVALID_TIME
    assert not is_valid_time_input(text)


def test_invalid_marker_is_falsy_singleton():
    assert not INVALID_TIME
    assert repr(INVALID_TIME) == "INVALID_TIME"


def test_parse_format_round_trip():
    for seconds in list(range(0, 100 * 60, 7)) + [5999, 6000, 6001, 60 * 1000 + 59]:
        assert parse_time(format_time(seconds)) == seconds
