from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from .status import AllocationStatus


Percentage = float

PROJECT_STATUSES: Tuple[str, ...] = ("Active", "On Hold", "Planning", "Completed")
PROJECT_PRIORITIES: Tuple[str, ...] = ("High", "Medium", "Low")
RESOURCE_TYPES: Tuple[str, ...] = ("Permanent", "Contractor")


@dataclass(frozen=True)
class Allocation:
    """Percentage commitment of one resource to one project, optionally time-bounded."""

    id: str
    resource_id: str
    project_id: str
    percentage: Percentage
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    color: str = ""
    status: str = "Active"
    priority: str = "Medium"
    client_name: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def is_active(self) -> bool:
        return self.status == "Active"


@dataclass(frozen=True)
class Resource:
    id: str
    name: str
    role: str = ""
    department: str = ""
    resource_type: str = "Permanent"
    total_capacity: Percentage = 100.0
    daily_rate: float = 0.0


@dataclass(frozen=True)
class ForecastConfig:
    as_of: Optional[date]
    months_count: int = 6
    month_offset: int = 0
    working_days_per_month: float = 20.0
    logging_level: str = "INFO"

    def resolve_today(self) -> date:
        return self.as_of or date.today()


@dataclass(frozen=True)
class MonthForecast:
    label: str
    year: int
    month: int
    start: date
    end: date
    percentage: Percentage
    status: AllocationStatus

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def to_dict(self) -> Dict[str, object]:
        return {
            "label": self.label,
            "year": self.year,
            "month": self.month,
            "percentage": self.percentage,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class ProjectShare:
    project_id: str
    name: str
    percentage: Percentage


@dataclass(frozen=True)
class DayForecast:
    date: date
    day_of_month: int
    percentage: Percentage
    availability: Percentage
    status: AllocationStatus
    projects: Tuple[ProjectShare, ...] = ()

    def is_weekend(self) -> bool:
        return self.date.weekday() >= 5

    def to_dict(self) -> Dict[str, object]:
        return {
            "date": self.date.isoformat(),
            "day_of_month": self.day_of_month,
            "weekend": self.is_weekend(),
            "percentage": self.percentage,
            "availability": self.availability,
            "status": self.status.value,
            "projects": [
                {"id": share.project_id, "name": share.name, "pct": share.percentage}
                for share in self.projects
            ],
        }


@dataclass(frozen=True)
class Sprint:
    id: str
    name: str
    start_date: date
    end_date: date


@dataclass(frozen=True)
class Quarter:
    id: str
    name: str
    year: int
    sprints: Tuple[Sprint, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SprintForecast:
    sprint: Sprint
    percentage: Percentage
    status: AllocationStatus


def project_lookup(projects: Optional[Iterable[Project]]) -> Dict[str, Project]:
    if not projects:
        return {}
    return {project.id: project for project in projects}


def flatten_sprints(quarters: Iterable[Quarter]) -> List[Sprint]:
    return [sprint for quarter in quarters for sprint in quarter.sprints]
