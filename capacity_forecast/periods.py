from __future__ import annotations

from datetime import date
from typing import Tuple


MONTH_ABBREVIATIONS: Tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

# Open-ended allocation windows resolve to these so they overlap any period.
DISTANT_PAST = date.min
DISTANT_FUTURE = date.max


class InvalidMonthError(ValueError):
    def __init__(self, month: object) -> None:
        super().__init__(f"month must be in 1..12, got {month!r}")
        self.month = month


def validate_month(month: int) -> int:
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidMonthError(month)
    return month


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move ``delta`` months from (year, month), carrying into the year."""
    validate_month(month)
    carry, index = divmod(month - 1 + delta, 12)
    return year + carry, index + 1


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_month(year: int, month: int) -> int:
    validate_month(month)
    if month == 2:
        return 29 if is_leap_year(year) else 28
    if month in (4, 6, 9, 11):
        return 30
    return 31


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    return date(year, month, 1), date(year, month, days_in_month(year, month))


def month_label(year: int, month: int, with_year: bool = False) -> str:
    label = MONTH_ABBREVIATIONS[validate_month(month) - 1]
    if with_year:
        label += f" '{year % 100:02d}"
    return label


def parse_month_key(value: str) -> Tuple[int, int]:
    """Parse a ``YYYY-MM`` string into (year, month)."""
    parts = value.strip().split("-")
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        raise ValueError(f"expected YYYY-MM, got '{value}'")
    year, month = int(parts[0]), int(parts[1])
    validate_month(month)
    return year, month
