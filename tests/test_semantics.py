"""Tests for the shared comparison rules."""

from __future__ import annotations

import datetime

import pytest

from hybrid_filter.exceptions import (
    FilterValueError,
    RangeError,
    UnsupportedModeError,
)
from hybrid_filter.models import DataType, FilterRange, Mode
from hybrid_filter.semantics import (
    Condition,
    Operator,
    build_condition,
    compare,
    order,
    order_values,
)

# -- text --------------------------------------------------------------------


@pytest.mark.parametrize(
    ("mode", "field_value", "filter_value", "expected"),
    [
        ("equal", "Admin", "admin", True),
        ("equal", "admin", "ADMIN", True),
        ("equal", "admin", "user", False),
        ("notEqual", "admin", "user", True),
        ("notEqual", None, "user", True),
        ("contains", "Hello World", "WORLD", True),
        ("contains", "Hello", "world", False),
        ("notContains", "Hello", "world", True),
        ("startsWith", "Acme Corp", "acme", True),
        ("endsWith", "Acme Corp", "CORP", True),
        ("endsWith", None, "corp", False),
        ("contains", "100% pure", "0% p", True),
        ("contains", 12345, "234", True),
    ],
)
def test_text_modes(mode, field_value, filter_value, expected):
    assert compare("text", mode, field_value, filter_value) is expected


@pytest.mark.parametrize(
    ("field_value", "empty"),
    [(None, True), ("", True), ("x", False), (" ", False)],
)
def test_text_empty_modes(field_value, empty):
    assert compare("text", "isEmpty", field_value, None) is empty
    assert compare("text", "isNotEmpty", field_value, None) is not empty


def test_empty_modes_ignore_value():
    assert compare("text", "isEmpty", "", "anything") is True


# -- numbers -----------------------------------------------------------------


@pytest.mark.parametrize(
    ("mode", "field_value", "filter_value", "expected"),
    [
        ("equal", 5, "5", True),
        ("equal", 5.0, 5, True),
        ("notEqual", 5, 6, True),
        ("gt", 5, "3", True),
        ("gt", 3, 3, False),
        ("gte", 3, 3, True),
        ("lt", 2, 2.5, True),
        ("lte", 2.5, "2,5", True),
        ("equal", "7", 7, True),
    ],
)
def test_number_modes(mode, field_value, filter_value, expected):
    assert compare("number", mode, field_value, filter_value) is expected


@pytest.mark.parametrize("mode", ["equal", "notEqual", "gt", "gte", "lt", "lte"])
def test_null_number_never_matches(mode):
    assert compare("number", mode, None, 1) is False


def test_number_range_is_inclusive():
    bounds = {"from": 1, "to": 5}
    assert compare("number", "range", 1, bounds) is True
    assert compare("number", "range", 5, bounds) is True
    assert compare("number", "range", 5.01, bounds) is False
    assert compare("number", "range", None, bounds) is False


def test_number_range_accepts_model_and_pair():
    assert compare("number", "range", 3, FilterRange(**{"from": 1, "to": 3}))
    assert compare("number", "range", 3, [1, 3])


def test_degenerate_range_matches_single_value():
    assert compare("number", "range", 4, {"from": 4, "to": 4}) is True


def test_inverted_range_raises():
    with pytest.raises(RangeError) as exc_info:
        build_condition("number", "range", {"from": 10, "to": 1}, path="age")
    err = exc_info.value
    assert err.lower == 10
    assert err.upper == 1
    assert err.to_dict()["error"] == "RANGE_ERROR"


def test_range_needs_both_bounds():
    with pytest.raises(FilterValueError, match="both"):
        build_condition("number", "range", {"from": 1})
    with pytest.raises(FilterValueError):
        build_condition("number", "range", 5)


def test_collection_where_scalar_expected():
    with pytest.raises(FilterValueError, match="single value"):
        build_condition("number", "equal", [1, 2])


# -- booleans ----------------------------------------------------------------


def test_bool_modes():
    assert compare("bool", "equal", True, "true") is True
    assert compare("bool", "equal", "yes", True) is True
    assert compare("bool", "notEqual", False, True) is True
    assert compare("bool", "equal", None, False) is False
    assert compare("bool", "notEqual", None, False) is False


# -- dates -------------------------------------------------------------------


def test_date_only_equal_covers_whole_day():
    assert compare("date", "equal", datetime.datetime(2024, 2, 1, 0, 0), "2024-02-01")
    assert compare("date", "equal", datetime.datetime(2024, 2, 1, 23, 59), "2024-02-01")
    assert not compare("date", "equal", datetime.datetime(2024, 2, 2), "2024-02-01")
    assert compare("date", "notEqual", datetime.datetime(2024, 2, 2), "2024-02-01")


def test_date_only_after_starts_next_day():
    late = datetime.datetime(2024, 2, 1, 23, 0)
    next_day = datetime.datetime(2024, 2, 2)
    assert compare("date", "after", late, "2024-02-01") is False
    assert compare("date", "after", next_day, "2024-02-01") is True
    assert compare("date", "gt", late, "2024-02-01") is False


def test_date_only_lte_includes_whole_day():
    assert compare("date", "lte", datetime.datetime(2024, 2, 1, 23, 59), "2024-02-01")
    assert not compare("date", "lte", datetime.datetime(2024, 2, 2), "2024-02-01")


def test_date_only_before_and_gte_use_start_of_day():
    assert compare("date", "before", datetime.datetime(2024, 1, 31, 23, 59), "2024-02-01")
    assert not compare("date", "before", datetime.datetime(2024, 2, 1), "2024-02-01")
    assert compare("date", "gte", datetime.datetime(2024, 2, 1), "2024-02-01")


def test_date_range_includes_last_day():
    bounds = {"from": "2024-02-01", "to": "2024-02-29"}
    assert compare("date", "range", datetime.datetime(2024, 2, 29, 18), bounds)
    assert compare("date", "range", datetime.date(2024, 2, 1), bounds)
    assert not compare("date", "range", datetime.datetime(2024, 3, 1), bounds)
    assert not compare("date", "range", datetime.datetime(2024, 1, 31, 23), bounds)


def test_timestamp_range_is_closed():
    bounds = {"from": "2024-02-01T08:00:00", "to": "2024-02-01T17:00:00"}
    condition = build_condition("date", "range", bounds)
    assert condition.op is Operator.BETWEEN
    assert compare("date", "range", datetime.datetime(2024, 2, 1, 17), bounds)
    assert not compare("date", "range", datetime.datetime(2024, 2, 1, 17, 0, 1), bounds)


def test_timestamp_equal_is_exact():
    stamp = "2024-02-01T10:30:00Z"
    assert compare("date", "equal", datetime.datetime(2024, 2, 1, 10, 30), stamp)
    assert not compare("date", "equal", datetime.datetime(2024, 2, 1, 10, 31), stamp)


def test_date_field_text_is_parsed():
    assert compare("date", "equal", "2024-02-01T10:00:00Z", "2024-02-01")
    assert compare("date", "equal", datetime.date(2024, 2, 1), "2024-02-01")


def test_unreadable_date_field_never_matches():
    assert compare("date", "notEqual", "garbage", "2024-02-01") is False
    assert compare("date", "equal", None, "2024-02-01") is False


def test_unparseable_date_value_raises():
    with pytest.raises(FilterValueError) as exc_info:
        build_condition("date", "equal", "yesterday-ish", path="created_at")
    assert exc_info.value.to_dict()["path"] == "created_at"


def test_inverted_date_range_raises():
    with pytest.raises(RangeError):
        build_condition("date", "range", {"from": "2024-03-01", "to": "2024-02-01"})


def test_timestamp_from_inside_date_only_to_day():
    bounds = {"from": "2024-02-01T10:00", "to": "2024-02-01"}
    condition = build_condition("date", "range", bounds)
    assert condition.operand == (
        datetime.datetime(2024, 2, 1, 10),
        datetime.datetime(2024, 2, 2),
    )
    assert compare("date", "range", datetime.datetime(2024, 2, 1, 23, 59), bounds)
    assert not compare("date", "range", datetime.datetime(2024, 2, 1, 9), bounds)


def test_timestamp_from_after_date_only_to_day_raises():
    bounds = {"from": "2024-02-02T00:00", "to": "2024-02-01"}
    with pytest.raises(RangeError):
        build_condition("date", "range", bounds)


# -- time of day -------------------------------------------------------------


def test_time_after_and_before_are_strict():
    assert compare("time", "after", datetime.time(10, 0), "10:00") is False
    assert compare("time", "after", datetime.time(10, 0, 1), "10:00") is True
    assert compare("time", "before", datetime.time(10, 0), "10:00") is False
    assert compare("time", "gte", datetime.time(10, 0), "10:00") is True


def test_time_ignores_date_part():
    assert compare("time", "equal", datetime.datetime(2020, 5, 5, 7, 0), "07:00")
    assert compare("time", "lt", "2024-02-01T06:59:59", "7:00 AM")


def test_time_range():
    bounds = {"from": "09:00", "to": "17:00"}
    assert compare("time", "range", datetime.time(17, 0), bounds)
    assert not compare("time", "range", datetime.time(17, 0, 0, 1), bounds)
    with pytest.raises(RangeError):
        build_condition("time", "range", {"from": "17:00", "to": "09:00"})


# -- mode validation ---------------------------------------------------------


@pytest.mark.parametrize(
    ("data_type", "mode"),
    [
        ("bool", "gt"),
        ("bool", "range"),
        ("text", "range"),
        ("text", "gt"),
        ("number", "contains"),
        ("number", "after"),
        ("date", "isEmpty"),
    ],
)
def test_unsupported_modes(data_type, mode):
    with pytest.raises(UnsupportedModeError) as exc_info:
        build_condition(data_type, mode, "1", path="x")
    assert exc_info.value.to_dict()["error"] == "UNSUPPORTED_MODE"


def test_unsupported_mode_suggests_close_match():
    with pytest.raises(UnsupportedModeError) as exc_info:
        build_condition("number", "before", 3)
    assert exc_info.value.mode == "before"
    assert "range" in exc_info.value.valid_modes


def test_modes_and_types_are_case_insensitive():
    condition = build_condition("TEXT", "STARTSWITH", "Ac")
    assert condition == Condition(Operator.STARTS_WITH, "ac", DataType.TEXT)
    assert build_condition(DataType.NUMBER, Mode.GTE, "1").op is Operator.GE


def test_unknown_mode_is_rejected():
    with pytest.raises(ValueError):
        build_condition("text", "fuzzy", "a")


@pytest.mark.parametrize(
    "value_type", [datetime.datetime, datetime.date, datetime.time]
)
def test_text_modes_refused_for_temporal_fields(value_type):
    with pytest.raises(UnsupportedModeError, match="filterDataType") as exc_info:
        build_condition("text", "equal", "2024", path="at", value_type=value_type)
    assert exc_info.value.reason
    assert exc_info.value.valid_modes == []


def test_text_modes_allowed_for_other_fields():
    for value_type in (str, int, bool, Mode, None):
        condition = build_condition("text", "equal", "On", value_type=value_type)
        assert condition.operand == "on"


# -- ordering ----------------------------------------------------------------


def test_order_values_nulls_first():
    assert order_values(None, 1) == -1
    assert order_values(1, None) == 1
    assert order_values(None, None) == 0


def test_order_values_mixed_types_fall_back_to_text():
    assert order_values(1, "a") == -1


def test_order_by_type():
    assert order("number", "10", 9) == 1
    assert order("bool", False, True) == -1
    assert order("text", "b", "a") == 1
    assert order("text", "B", "a") == -1
    assert order(
        "date", datetime.date(2024, 1, 1), datetime.datetime(2024, 1, 1, 10)
    ) == -1
    assert order("time", "10:00", datetime.time(9, 59)) == 1
    assert order("number", None, 0) == -1
