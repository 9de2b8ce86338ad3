from __future__ import annotations

from datetime import date, timedelta
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from .models import Quarter, Sprint
from .periods import DISTANT_FUTURE, DISTANT_PAST

# Sprint 1 starts on this date; every sprint lasts SPRINT_DAYS calendar days.
ANCHOR_DATE = date(2026, 1, 7)
SPRINT_DAYS = 14


def quarter_of(value: date) -> int:
    return (value.month - 1) // 3 + 1


@lru_cache(maxsize=None)
def quarters_for_year(year: int) -> Tuple[Quarter, ...]:
    """Return Q1..Q4 of ``year`` with the sprints that start inside each quarter.

    Raises ``ValueError`` for years whose sprint boundaries fall outside the
    ``date`` range.
    """
    try:
        return _build_quarters(year)
    except OverflowError as exc:
        raise ValueError(f"sprint calendar cannot cover year {year}") from exc


def _build_quarters(year: int) -> Tuple[Quarter, ...]:
    offset_days = (date(year, 1, 1) - ANCHOR_DATE).days
    sprint_index = offset_days // SPRINT_DAYS
    sprint_start = ANCHOR_DATE + timedelta(days=sprint_index * SPRINT_DAYS)
    by_quarter: Dict[int, List[Sprint]] = {q: [] for q in range(1, 5)}
    while sprint_start.year <= year:
        if sprint_start.year == year:
            by_quarter[quarter_of(sprint_start)].append(
                Sprint(
                    id=f"S{sprint_index + 1}",
                    name=f"Sprint {sprint_index + 1}",
                    start_date=sprint_start,
                    end_date=sprint_start + timedelta(days=SPRINT_DAYS - 1),
                )
            )
        sprint_start += timedelta(days=SPRINT_DAYS)
        sprint_index += 1
    return tuple(
        Quarter(id=f"{year}-Q{q}", name=f"Q{q} {year}", year=year, sprints=tuple(by_quarter[q]))
        for q in range(1, 5)
    )


def sprint_within_project(
    sprint: Sprint, project_start: Optional[date], project_end: Optional[date]
) -> bool:
    if project_start is None and project_end is None:
        return True
    start = project_start or DISTANT_PAST
    end = project_end or DISTANT_FUTURE
    return sprint.start_date <= end and sprint.end_date >= start


def available_years(today: date) -> List[int]:
    return [today.year - 1, today.year, today.year + 1, today.year + 2]
