from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import (
    Allocation,
    DayForecast,
    MonthForecast,
    Percentage,
    Project,
    ProjectShare,
    Sprint,
    SprintForecast,
    project_lookup,
)
from .periods import (
    DISTANT_FUTURE,
    DISTANT_PAST,
    days_in_month,
    month_bounds,
    month_label,
    shift_month,
    validate_month,
)
from .status import classify

logger = logging.getLogger(__name__)

FULL_CAPACITY = 100.0


@dataclass(frozen=True)
class AllocationWindow:
    """An allocation with its validity window resolved to concrete dates."""

    allocation: Allocation
    start: date
    end: date

    def overlaps(self, period_start: date, period_end: date) -> bool:
        return self.start <= period_end and self.end >= period_start


def effective_window(
    allocation: Allocation, projects_by_id: Optional[Dict[str, Project]] = None
) -> Tuple[date, date]:
    """Resolve an allocation's inclusive window.

    Missing allocation dates fall back to the owning project's dates, then to
    the open-ended sentinels.
    """
    project = projects_by_id.get(allocation.project_id) if projects_by_id else None
    start = allocation.start_date or (project.start_date if project else None)
    end = allocation.end_date or (project.end_date if project else None)
    return start or DISTANT_PAST, end or DISTANT_FUTURE


def resolve_windows(
    allocations: Iterable[Allocation], projects: Optional[Iterable[Project]] = None
) -> List[AllocationWindow]:
    projects_by_id = project_lookup(projects)
    windows: List[AllocationWindow] = []
    for allocation in allocations:
        start, end = effective_window(allocation, projects_by_id)
        windows.append(AllocationWindow(allocation=allocation, start=start, end=end))
    return windows


def _sum_overlapping(windows: Sequence[AllocationWindow], period_start: date, period_end: date) -> Percentage:
    return sum(
        (window.allocation.percentage for window in windows if window.overlaps(period_start, period_end)),
        0.0,
    )


def build_month_forecast(
    allocations: Iterable[Allocation],
    months_count: int,
    month_offset: int = 0,
    *,
    today: date,
    projects: Optional[Iterable[Project]] = None,
) -> List[MonthForecast]:
    """Aggregate allocation load for ``months_count`` consecutive months.

    The first month is the calendar month of ``today`` shifted by
    ``month_offset``. The first label and every January carry a two-digit year
    suffix so that horizons crossing a year boundary stay unambiguous.
    """
    if months_count <= 0:
        return []
    windows = resolve_windows(allocations, projects)
    anchor_year, anchor_month = shift_month(today.year, today.month, month_offset)
    forecast: List[MonthForecast] = []
    for idx in range(months_count):
        year, month = shift_month(anchor_year, anchor_month, idx)
        month_start, month_end = month_bounds(year, month)
        total = _sum_overlapping(windows, month_start, month_end)
        forecast.append(
            MonthForecast(
                label=month_label(year, month, with_year=idx == 0 or month == 1),
                year=year,
                month=month,
                start=month_start,
                end=month_end,
                percentage=total,
                status=classify(total),
            )
        )
    logger.debug(
        "built %d-month forecast from %04d-%02d over %d allocations",
        months_count,
        anchor_year,
        anchor_month,
        len(windows),
    )
    return forecast


def _breakdown_for_day(
    windows: Sequence[AllocationWindow], day: date, projects_by_id: Dict[str, Project]
) -> List[ProjectShare]:
    shares: List[ProjectShare] = []
    for window in windows:
        if not window.overlaps(day, day):
            continue
        project = projects_by_id.get(window.allocation.project_id)
        if project is None:
            continue
        shares.append(
            ProjectShare(project_id=project.id, name=project.name, percentage=window.allocation.percentage)
        )
    return shares


def day_project_breakdown(
    day: date, allocations: Iterable[Allocation], projects: Iterable[Project]
) -> List[ProjectShare]:
    """List the projects booked on ``day``; unknown project ids are skipped."""
    projects = list(projects)
    return _breakdown_for_day(resolve_windows(allocations, projects), day, project_lookup(projects))


def build_month_day_forecast(
    year: int,
    month: int,
    allocations: Iterable[Allocation],
    projects: Iterable[Project],
) -> List[DayForecast]:
    """Per-day load for every calendar day of ``month`` (1-12) in ``year``.

    The allocation list is summed as given; callers filter to a single
    resource beforehand when they want per-person figures.
    """
    validate_month(month)
    projects = list(projects)
    projects_by_id = project_lookup(projects)
    windows = resolve_windows(allocations, projects)
    forecast: List[DayForecast] = []
    for day_of_month in range(1, days_in_month(year, month) + 1):
        day = date(year, month, day_of_month)
        total = _sum_overlapping(windows, day, day)
        forecast.append(
            DayForecast(
                date=day,
                day_of_month=day_of_month,
                percentage=total,
                availability=max(0.0, FULL_CAPACITY - total),
                status=classify(total),
                projects=tuple(_breakdown_for_day(windows, day, projects_by_id)),
            )
        )
    return forecast


def build_sprint_forecast(
    allocations: Iterable[Allocation],
    sprints: Iterable[Sprint],
    projects: Optional[Iterable[Project]] = None,
) -> List[SprintForecast]:
    windows = resolve_windows(allocations, projects)
    forecast: List[SprintForecast] = []
    for sprint in sprints:
        total = _sum_overlapping(windows, sprint.start_date, sprint.end_date)
        forecast.append(SprintForecast(sprint=sprint, percentage=total, status=classify(total)))
    return forecast
