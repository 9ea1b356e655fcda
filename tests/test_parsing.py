"""Tests for value parsing and coercion."""

from __future__ import annotations

import datetime
from decimal import Decimal
from enum import Enum

import pytest

from hybrid_filter.exceptions import FilterValueError
from hybrid_filter.parsing import (
    coerce_bool,
    coerce_datetime,
    coerce_number,
    coerce_text,
    coerce_time,
    parse_bool,
    parse_datetime,
    parse_number,
    parse_time,
)

# -- numbers -----------------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (42, 42),
        (2.5, 2.5),
        ("42", 42),
        (" -7 ", -7),
        ("3.25", 3.25),
        ("3,5", 3.5),
        (Decimal("3"), 3),
        (Decimal("2.50"), 2.5),
    ],
)
def test_parse_number(raw, expected):
    assert parse_number(raw) == expected


def test_parse_number_keeps_integers_integral():
    assert isinstance(parse_number("42"), int)
    assert isinstance(parse_number(Decimal("10")), int)


@pytest.mark.parametrize("raw", ["abc", "", None, True, [1]])
def test_parse_number_rejects(raw):
    with pytest.raises(FilterValueError) as exc_info:
        parse_number(raw, "age")
    assert exc_info.value.path == "age"


def test_coerce_number_is_lenient():
    assert coerce_number("abc") is None
    assert coerce_number(None) is None
    assert coerce_number(False) is None
    assert coerce_number("12") == 12


# -- booleans ----------------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (True, True),
        (False, False),
        (1, True),
        (0, False),
        ("true", True),
        ("YES", True),
        ("on", True),
        ("f", False),
        ("Off", False),
        ("0", False),
    ],
)
def test_parse_bool(raw, expected):
    assert parse_bool(raw) is expected


@pytest.mark.parametrize("raw", ["maybe", 2, None, ""])
def test_parse_bool_rejects(raw):
    with pytest.raises(FilterValueError):
        parse_bool(raw)


def test_coerce_bool_unreadable_is_none():
    assert coerce_bool("maybe") is None
    assert coerce_bool("y") is True


# -- text --------------------------------------------------------------------


class Color(Enum):
    RED = "Red"


def test_coerce_text():
    assert coerce_text(None) == ""
    assert coerce_text("AbC") == "abc"
    assert coerce_text(12) == "12"
    assert coerce_text(Color.RED) == "red"


# -- dates -------------------------------------------------------------------


def test_parse_date_only_text():
    parsed = parse_datetime("2024-02-01")
    assert parsed.date_only is True
    assert parsed.value == datetime.datetime(2024, 2, 1)


def test_parse_date_object_is_date_only():
    parsed = parse_datetime(datetime.date(2024, 2, 1))
    assert parsed.date_only is True
    assert parsed.value == datetime.datetime(2024, 2, 1)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-02-01T10:30:00", datetime.datetime(2024, 2, 1, 10, 30)),
        ("2024-02-01T10:30:00Z", datetime.datetime(2024, 2, 1, 10, 30)),
        ("2024-02-01T12:30:00+02:00", datetime.datetime(2024, 2, 1, 10, 30)),
        ("2024-02-01 10:30:00", datetime.datetime(2024, 2, 1, 10, 30)),
        (
            "2024-02-01T10:30:00.1234567",
            datetime.datetime(2024, 2, 1, 10, 30, 0, 123456),
        ),
        ("2024/02/01 10:30:00", datetime.datetime(2024, 2, 1, 10, 30)),
    ],
)
def test_parse_timestamps_to_naive_utc(raw, expected):
    parsed = parse_datetime(raw)
    assert parsed.date_only is False
    assert parsed.value == expected


def test_parse_aware_datetime_object():
    aware = datetime.datetime(
        2024, 2, 1, 10, 0, tzinfo=datetime.timezone(datetime.timedelta(hours=-5))
    )
    assert parse_datetime(aware).value == datetime.datetime(2024, 2, 1, 15, 0)


def test_parse_slashed_date():
    parsed = parse_datetime("02/15/2024")
    assert parsed.date_only is True
    assert parsed.value == datetime.datetime(2024, 2, 15)


@pytest.mark.parametrize("raw", ["not a date", "", "2024-13-45", 12345])
def test_parse_datetime_rejects(raw):
    with pytest.raises(FilterValueError, match="as a date"):
        parse_datetime(raw, "created_at")


def test_coerce_datetime_unreadable_is_none():
    assert coerce_datetime("garbage") is None
    assert coerce_datetime(None) is None


# -- time of day -------------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("10:30", datetime.time(10, 30)),
        ("10:30:15", datetime.time(10, 30, 15)),
        ("10:30:15.250", datetime.time(10, 30, 15, 250000)),
        ("2:15 PM", datetime.time(14, 15)),
        ("2:15pm", datetime.time(14, 15)),
        ("10:30:00Z", datetime.time(10, 30)),
        ("10:30:00+02:00", datetime.time(10, 30)),
        ("2024-02-01T10:30:00", datetime.time(10, 30)),
        (datetime.time(8, 0), datetime.time(8, 0)),
        (datetime.datetime(2024, 2, 1, 8, 5), datetime.time(8, 5)),
    ],
)
def test_parse_time(raw, expected):
    assert parse_time(raw) == expected


@pytest.mark.parametrize("raw", ["25:00", "noon", "", "2024-02-01", 930])
def test_parse_time_rejects(raw):
    with pytest.raises(FilterValueError, match="time of day"):
        parse_time(raw)


def test_coerce_time_unreadable_is_none():
    assert coerce_time("noon") is None
