"""Tests for request value parsing."""

import math
from datetime import datetime, timedelta, timezone

import pytest

from schemas import (
    EPOCH,
    coerce_number,
    format_timestamp,
    is_number,
    offset_from_now,
    parse_timestamp,
    to_bson_number,
)


class TestParseTimestamp:

    def test_iso_with_zulu(self):
        assert parse_timestamp("2025-03-14T15:09:26Z") == datetime(2025, 3, 14, 15, 9, 26, tzinfo=timezone.utc)

    def test_date_only_is_utc_midnight(self):
        assert parse_timestamp("2025-03-14") == datetime(2025, 3, 14, tzinfo=timezone.utc)

    def test_epoch_milliseconds(self):
        assert parse_timestamp(1500) == EPOCH + timedelta(milliseconds=1500)
        assert parse_timestamp(-86400000) == datetime(1969, 12, 31, tzinfo=timezone.utc)

    def test_fractional_milliseconds_are_truncated(self):
        assert parse_timestamp(1.5) == EPOCH + timedelta(milliseconds=1)
        assert parse_timestamp(-1.9) == EPOCH - timedelta(milliseconds=1)

    @pytest.mark.parametrize("value", ["tomorrow", "", True, None, [], math.inf, math.nan, 1e20])
    def test_invalid(self, value):
        assert parse_timestamp(value) is None


def test_offset_from_now():
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)

    assert offset_from_now(EPOCH + timedelta(minutes=90), now) == now + timedelta(minutes=90)
    assert offset_from_now(datetime(9999, 1, 1, tzinfo=timezone.utc), now) is None


@pytest.mark.parametrize(
    "value,expected",
    [(5, True), (2.5, True), (0, True), (True, False), ("5", False), (None, False)],
)
def test_is_number(value, expected):
    assert is_number(value) is expected


@pytest.mark.parametrize(
    "value,expected",
    [
        (7, 7),
        (None, 0),
        (False, 0),
        ("  ", 0),
        ("+3", 3),
        (".5", 0.5),
        ("-1.5e1", -15.0),
        ("0b101", 5),
        ("0o17", 15),
        ("Infinity", math.inf),
        ("-Infinity", -math.inf),
    ],
)
def test_coerce_number(value, expected):
    assert coerce_number(value) == expected


@pytest.mark.parametrize("value", ["abc", "1,000", "1_000", "inf", "nan", "0x", "\u0661\u0662\u0663", "4\uff12", math.nan, {}, [3]])
def test_coerce_number_rejects(value):
    assert coerce_number(value) is None


def test_format_timestamp():
    assert format_timestamp(datetime(2025, 1, 1, 12, tzinfo=timezone.utc)) == "2025-01-01T12:00:00.000Z"
    assert format_timestamp(datetime(2025, 1, 1, 12)) == "2025-01-01T12:00:00.000Z"
    assert format_timestamp("2025-01-01") == "2025-01-01"


def test_to_bson_number():
    assert to_bson_number(2**63 - 1) == 2**63 - 1
    assert isinstance(to_bson_number(2**63 - 1), int)
    assert to_bson_number(-(2**63)) == -(2**63)
    assert isinstance(to_bson_number(2**63), float)
    assert isinstance(to_bson_number(-(2**63) - 1), float)
    assert to_bson_number(10**400) == math.inf
    assert to_bson_number(2.5) == 2.5


def test_coerce_number_large_integers_become_doubles():
    assert coerce_number("99999999999999999999") == pytest.approx(1e20)
    assert isinstance(coerce_number("99999999999999999999"), float)
    assert isinstance(coerce_number(10**19), float)
    assert isinstance(coerce_number("0x" + "f" * 20), float)
