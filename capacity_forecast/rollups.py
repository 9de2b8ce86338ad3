"""Portfolio rollups over raw allocation percentages.

These figures describe the current total load and ignore allocation date
windows; the time-windowed views live in :mod:`capacity_forecast.engine`.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .engine import build_month_forecast
from .models import Allocation, DayForecast, Percentage, Project, Resource
from .status import AllocationStatus, classify

DEFAULT_WORKING_DAYS = 20.0

PROJECT_CAPACITY_COLUMNS = ["project_id", "name", "status", "priority", "committed_fte", "monthly_cost"]
TRIBE_COLUMNS = ["resource_id", "name", "role", "tribe_pct", "global_pct", "global_status"]
DAY_COLUMNS = [
    "resource_id",
    "date",
    "day_of_month",
    "weekend",
    "percentage",
    "availability",
    "status",
    "projects",
]


def allocations_for_resource(allocations: Iterable[Allocation], resource_id: str) -> List[Allocation]:
    return [allocation for allocation in allocations if allocation.resource_id == resource_id]


def resource_load(allocations: Iterable[Allocation], resource_id: str) -> Percentage:
    return sum(allocation.percentage for allocation in allocations_for_resource(allocations, resource_id))


def resource_loads(
    resources: Iterable[Resource], allocations: Sequence[Allocation]
) -> List[Tuple[Resource, Percentage]]:
    """Return (resource, total load) pairs, highest load first."""
    loads = [(resource, resource_load(allocations, resource.id)) for resource in resources]
    loads.sort(key=lambda item: item[1], reverse=True)
    return loads


def over_allocated(
    resources: Iterable[Resource], allocations: Sequence[Allocation]
) -> List[Tuple[Resource, Percentage]]:
    return [
        (resource, total)
        for resource, total in resource_loads(resources, allocations)
        if classify(total) is AllocationStatus.OVER
    ]


def status_buckets(resources: Iterable[Resource], allocations: Sequence[Allocation]) -> Dict[AllocationStatus, int]:
    buckets = {status: 0 for status in AllocationStatus}
    for _, total in resource_loads(resources, allocations):
        buckets[classify(total)] += 1
    return buckets


def _monthly_cost(
    allocations: Iterable[Allocation], resources_by_id: Dict[str, Resource], working_days: float
) -> float:
    total = 0.0
    for allocation in allocations:
        resource = resources_by_id.get(allocation.resource_id)
        rate = resource.daily_rate if resource else 0.0
        total += rate * working_days * (allocation.percentage / 100.0)
    return total


def portfolio_summary(
    projects: Sequence[Project],
    resources: Sequence[Resource],
    allocations: Sequence[Allocation],
    working_days: float = DEFAULT_WORKING_DAYS,
) -> Dict[str, object]:
    resources_by_id = {resource.id: resource for resource in resources}
    loads = resource_loads(resources, allocations)
    average = round(sum(total for _, total in loads) / len(loads)) if loads else 0
    return {
        "active_projects": sum(1 for project in projects if project.is_active()),
        "total_projects": len(projects),
        "total_resources": len(resources),
        "total_fte": sum(allocation.percentage for allocation in allocations) / 100.0,
        "monthly_run_rate": _monthly_cost(allocations, resources_by_id, working_days),
        "average_utilization": average,
        "over_allocated": sum(1 for _, total in loads if classify(total) is AllocationStatus.OVER),
    }


def project_capacity_frame(
    projects: Sequence[Project],
    resources: Sequence[Resource],
    allocations: Sequence[Allocation],
    working_days: float = DEFAULT_WORKING_DAYS,
) -> pd.DataFrame:
    resources_by_id = {resource.id: resource for resource in resources}
    rows: List[Dict[str, object]] = []
    for project in projects:
        project_allocs = [allocation for allocation in allocations if allocation.project_id == project.id]
        rows.append(
            {
                "project_id": project.id,
                "name": project.name,
                "status": project.status,
                "priority": project.priority,
                "committed_fte": round(sum(a.percentage for a in project_allocs) / 100.0, 2),
                "monthly_cost": round(_monthly_cost(project_allocs, resources_by_id, working_days), 2),
            }
        )
    return pd.DataFrame(rows, columns=PROJECT_CAPACITY_COLUMNS)


def tribes(projects: Iterable[Project]) -> List[str]:
    return sorted({project.client_name for project in projects if project.client_name})


def tribe_rollup(
    tribe: str,
    projects: Sequence[Project],
    resources: Sequence[Resource],
    allocations: Sequence[Allocation],
) -> pd.DataFrame:
    """Resources deployed on a tribe's projects, with tribe and global load."""
    tribe_project_ids = {project.id for project in projects if project.client_name == tribe}
    tribe_load: Dict[str, Percentage] = {}
    for allocation in allocations:
        if allocation.project_id in tribe_project_ids:
            tribe_load[allocation.resource_id] = tribe_load.get(allocation.resource_id, 0) + allocation.percentage
    rows: List[Dict[str, object]] = []
    for resource in resources:
        if resource.id not in tribe_load:
            continue
        global_pct = resource_load(allocations, resource.id)
        rows.append(
            {
                "resource_id": resource.id,
                "name": resource.name,
                "role": resource.role,
                "tribe_pct": tribe_load[resource.id],
                "global_pct": global_pct,
                "global_status": classify(global_pct).value,
            }
        )
    return pd.DataFrame(rows, columns=TRIBE_COLUMNS)


def resource_forecast_frame(
    resources: Sequence[Resource],
    allocations: Sequence[Allocation],
    projects: Optional[Sequence[Project]] = None,
    months_count: int = 6,
    month_offset: int = 0,
    *,
    today: date,
) -> pd.DataFrame:
    """One row per resource and one column per forecast month.

    Columns are the month labels, or ``YYYY-MM`` keys once the horizon is long
    enough for labels to repeat.
    """
    template = build_month_forecast([], months_count, month_offset, today=today)
    labels = [period.label for period in template]
    if len(set(labels)) != len(labels):
        labels = [period.key for period in template]
    rows: List[Dict[str, object]] = []
    for resource in resources:
        forecast = build_month_forecast(
            allocations_for_resource(allocations, resource.id),
            months_count,
            month_offset,
            today=today,
            projects=projects,
        )
        row: Dict[str, object] = {"resource_id": resource.id, "resource": resource.name}
        for column, period in zip(labels, forecast):
            row[column] = period.percentage
        rows.append(row)
    return pd.DataFrame(rows, columns=["resource_id", "resource", *labels])


def day_forecast_frame(days: Iterable[DayForecast], resource_id: str = "") -> pd.DataFrame:
    rows: List[Dict[str, object]] = []
    for day in days:
        rows.append(
            {
                "resource_id": resource_id,
                "date": day.date.isoformat(),
                "day_of_month": day.day_of_month,
                "weekend": day.is_weekend(),
                "percentage": day.percentage,
                "availability": day.availability,
                "status": day.status.value,
                "projects": "; ".join(f"{share.name} ({share.percentage:g}%)" for share in day.projects),
            }
        )
    return pd.DataFrame(rows, columns=DAY_COLUMNS)
