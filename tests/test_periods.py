from __future__ import annotations

from datetime import date

import pytest

from capacity_forecast.periods import (
    InvalidMonthError,
    days_in_month,
    month_bounds,
    month_label,
    parse_month_key,
    shift_month,
)


@pytest.mark.parametrize(
    "year, month, delta, expected",
    [
        (2025, 11, 2, (2026, 1)),
        (2025, 12, 1, (2026, 1)),
        (2025, 1, -1, (2024, 12)),
        (2025, 1, -13, (2023, 12)),
        (2025, 6, 0, (2025, 6)),
        (2025, 6, 24, (2027, 6)),
    ],
)
def test_shift_month_carries_into_year(year, month, delta, expected) -> None:
    assert shift_month(year, month, delta) == expected


def test_days_in_month_handles_leap_years() -> None:
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2023, 2) == 28
    assert days_in_month(1900, 2) == 28
    assert days_in_month(2000, 2) == 29
    assert days_in_month(2025, 4) == 30
    assert days_in_month(2025, 12) == 31


def test_month_bounds_cover_whole_month() -> None:
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(2025, 12) == (date(2025, 12, 1), date(2025, 12, 31))


def test_month_label_with_and_without_year() -> None:
    assert month_label(2026, 1) == "Jan"
    assert month_label(2026, 1, with_year=True) == "Jan '26"
    assert month_label(2005, 3, with_year=True) == "Mar '05"


@pytest.mark.parametrize("month", [0, 13, -1])
def test_invalid_month_is_rejected(month) -> None:
    with pytest.raises(InvalidMonthError):
        days_in_month(2025, month)


def test_invalid_month_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        shift_month(2025, 0, 1)


def test_parse_month_key() -> None:
    assert parse_month_key("2024-02") == (2024, 2)
    with pytest.raises(InvalidMonthError):
        parse_month_key("2024-13")
    with pytest.raises(ValueError):
        parse_month_key("Feb 2024")
