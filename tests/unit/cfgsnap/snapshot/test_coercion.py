"""Tests for snapshot value coercion."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from cfgsnap.snapshot.coercion import as_int, epoch_days, wrap_int


class TestAsInt:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (7, 7),
            (-7, -7),
            (3.0, 3),
            (Decimal("42"), 42),
            (Decimal("5.000"), 5),
            ("19", 19),
            (" -4 ", -4),
            (2**70, 2**70),
        ],
    )
    def test_integral_inputs(self, value, expected):
        assert as_int(value) == expected

    @pytest.mark.parametrize(
        "value", [1.5, float("nan"), float("inf"), Decimal("0.1"), Decimal("NaN"), "1.5", "ten"]
    )
    def test_non_integral_inputs(self, value):
        with pytest.raises(ValueError):
            as_int(value)

    @pytest.mark.parametrize("value", [True, None, [1], b"1"])
    def test_non_numeric_types(self, value):
        with pytest.raises(TypeError):
            as_int(value)


class TestWrapInt:
    @pytest.mark.parametrize(
        "value,bits,signed,expected",
        [
            (5, 32, False, 5),
            (-1, 32, False, 2**32 - 1),
            (2**32 + 3, 32, False, 3),
            (2**31, 32, True, -(2**31)),
            (-(2**31) - 1, 32, True, 2**31 - 1),
            (-1, 8, False, 255),
            (256, 8, False, 0),
            (2**63, 64, True, -(2**63)),
            (2**64 + 5, 64, False, 5),
            (-5, 64, True, -5),
        ],
    )
    def test_wrap(self, value, bits, signed, expected):
        assert wrap_int(value, bits, signed) == expected


class TestEpochDays:
    def test_epoch(self):
        assert epoch_days(date(1970, 1, 1)) == 0

    def test_date(self):
        assert epoch_days(date(2024, 1, 1)) == 19723
        assert epoch_days(date(2024, 1, 2)) == 19724

    def test_naive_datetime_is_utc(self):
        assert epoch_days(datetime(2024, 1, 1, 23, 59, 59)) == 19723

    def test_aware_datetime_is_normalised_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        assert epoch_days(datetime(2024, 1, 1, 1, 0, tzinfo=plus_two)) == 19722

    def test_before_epoch_floors(self):
        assert epoch_days(datetime(1969, 12, 31, 12, 0)) == -1

    @pytest.mark.parametrize(
        "text", ["2024-01-01", "2024-01-01T00:00:00Z", "2024-01-01T12:30:00+00:00", " 2024-01-01 "]
    )
    def test_iso_strings(self, text):
        assert epoch_days(text) == 19723

    def test_bad_string(self):
        with pytest.raises(ValueError):
            epoch_days("June 21st")

    def test_bad_type(self):
        with pytest.raises(TypeError):
            epoch_days(19723)

    def test_utc_aware_matches_naive(self):
        aware = datetime(2030, 5, 17, 8, tzinfo=timezone.utc)
        assert epoch_days(aware) == epoch_days(aware.replace(tzinfo=None))
