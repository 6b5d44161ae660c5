from datetime import datetime, timedelta, timezone

import pytest

from errors import InvalidExpirationFormat
from expiration import compute_expiration

T = datetime(2021, 1, 31, 10, 30, tzinfo=timezone.utc)


def test_never():
    assert compute_expiration("never", T) is None


@pytest.mark.parametrize("expr, expected", [
    ("1m", T + timedelta(minutes=1)),
    ("90m", T + timedelta(minutes=90)),
    ("2h", T + timedelta(hours=2)),
    ("1d", datetime(2021, 2, 1, 10, 30, tzinfo=timezone.utc)),
    ("2w", datetime(2021, 2, 14, 10, 30, tzinfo=timezone.utc)),
    ("1y", datetime(2022, 1, 31, 10, 30, tzinfo=timezone.utc)),
    ("12M", datetime(2022, 1, 31, 10, 30, tzinfo=timezone.utc)),
    ("007m", T + timedelta(minutes=7)),
])
def test_units(expr, expected):
    assert compute_expiration(expr, T) == expected


def test_month_addition_normalises_overflowing_day():
    # Feb 31 does not exist, it rolls into March
    assert compute_expiration("1M", T) == datetime(2021, 3, 3, 10, 30, tzinfo=timezone.utc)
    leap = datetime(2024, 1, 31, tzinfo=timezone.utc)
    assert compute_expiration("1M", leap) == datetime(2024, 3, 2, tzinfo=timezone.utc)
    assert compute_expiration("1M", datetime(2024, 12, 15, tzinfo=timezone.utc)) == \
        datetime(2025, 1, 15, tzinfo=timezone.utc)


def test_leap_day_plus_year():
    assert compute_expiration("1y", datetime(2024, 2, 29, tzinfo=timezone.utc)) == \
        datetime(2025, 3, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize("unit", list("mhdwMy"))
def test_result_is_strictly_later(unit):
    for n in (1, 5, 31, 400):
        assert compute_expiration(f"{n}{unit}", T) > T


@pytest.mark.parametrize("expr", [
    "", "m", "never!", "Never", "10", "10s", "10 m", "-1m", "1.5h", "h1", "10mm", "0m", "0y", "5m\n", "1d\n", "\n1d",
])
def test_invalid_formats(expr):
    with pytest.raises(InvalidExpirationFormat) as exc:
        compute_expiration(expr, T)
    assert repr(expr) in str(exc.value)


@pytest.mark.parametrize("expr", ["99999999999999999999m", "999999999h", "20000y", "999999999999M", "9999999999d"])
def test_overflow(expr):
    with pytest.raises(InvalidExpirationFormat):
        compute_expiration(expr, T)
