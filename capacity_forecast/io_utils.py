from __future__ import annotations

import json
import math
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pandas as pd
from dateutil import parser as dateparser

from .models import (
    PROJECT_PRIORITIES,
    PROJECT_STATUSES,
    RESOURCE_TYPES,
    Allocation,
    ForecastConfig,
    Project,
    Resource,
)

INPUT_FILES = {
    "allocations": "allocations.json",
    "projects": "projects.csv",
    "resources": "resources.json",
    "config": "config.json",
}

_PROJECT_REQUIRED_COLUMNS = {"id", "name"}


def _require_columns(df: pd.DataFrame, required: Iterable[str], source: str) -> None:
    missing = [col for col in sorted(required) if col not in df.columns]
    if missing:
        raise ValueError(f"{source} missing required columns: {', '.join(missing)}")


def _is_blank(value: object) -> bool:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return True
    return isinstance(value, str) and value.strip() == ""


def parse_optional_date(value: object, field_name: str) -> Optional[date]:
    """Parse an ISO ``YYYY-MM-DD`` value; blanks mean "no date"."""
    if _is_blank(value):
        return None
    try:
        return dateparser.isoparse(str(value).strip()).date()
    except (ValueError, TypeError, OverflowError) as exc:
        raise ValueError(f"invalid date in '{field_name}': {value}") from exc


def _parse_percentage(value: object, owner: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"percentage must be a number for {owner}")
    try:
        pct = float(value)
    except ValueError as exc:
        raise ValueError(f"percentage must be a number for {owner}") from exc
    if not math.isfinite(pct):
        raise ValueError(f"percentage must be finite for {owner}")
    if pct < 0:
        raise ValueError(f"percentage must not be negative for {owner}")
    return pct


def _load_json_array(path: str | Path, label: str) -> List[dict]:
    data = json.loads(Path(path).read_text())
    if not isinstance(data, list):
        raise ValueError(f"{label} file must be a JSON array")
    for entry in data:
        if not isinstance(entry, dict):
            raise ValueError(f"{label} entries must be objects")
    return data


def _text(entry: dict, *keys: str, default: str = "") -> str:
    # Accept camelCase and snake_case keys from upstream exports.
    for key in keys:
        value = entry.get(key)
        if not _is_blank(value):
            return str(value).strip()
    return default


def load_allocations(path: str | Path) -> List[Allocation]:
    allocations: List[Allocation] = []
    for idx, entry in enumerate(_load_json_array(path, "allocations"), start=1):
        alloc_id = _text(entry, "id", default=f"a{idx}")
        resource_id = _text(entry, "resource_id", "resourceId")
        project_id = _text(entry, "project_id", "projectId")
        if not resource_id or not project_id:
            raise ValueError(f"allocation {alloc_id} requires resource_id and project_id")
        allocations.append(
            Allocation(
                id=alloc_id,
                resource_id=resource_id,
                project_id=project_id,
                percentage=_parse_percentage(entry.get("percentage"), f"allocation {alloc_id}"),
                start_date=parse_optional_date(entry.get("start_date", entry.get("startDate")), "start_date"),
                end_date=parse_optional_date(entry.get("end_date", entry.get("endDate")), "end_date"),
            )
        )
    return allocations


def load_projects(path: str | Path) -> List[Project]:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    _require_columns(df, _PROJECT_REQUIRED_COLUMNS, "projects.csv")
    projects: List[Project] = []
    for row in df.to_dict(orient="records"):
        project_id = _text(row, "id")
        if not project_id:
            raise ValueError("projects.csv contains a row without an id")
        status = _text(row, "status", default="Active")
        if status not in PROJECT_STATUSES:
            raise ValueError(f"unsupported project status '{status}' for {project_id}")
        priority = _text(row, "priority", default="Medium")
        if priority not in PROJECT_PRIORITIES:
            raise ValueError(f"unsupported project priority '{priority}' for {project_id}")
        projects.append(
            Project(
                id=project_id,
                name=_text(row, "name", default=project_id),
                color=_text(row, "color"),
                status=status,
                priority=priority,
                client_name=_text(row, "client_name"),
                start_date=parse_optional_date(row.get("start_date"), "start_date"),
                end_date=parse_optional_date(row.get("end_date"), "end_date"),
            )
        )
    return projects


def load_resources(path: str | Path) -> List[Resource]:
    resources: List[Resource] = []
    for entry in _load_json_array(path, "resources"):
        resource_id = _text(entry, "id")
        if not resource_id:
            raise ValueError("resource id is required")
        resource_type = _text(entry, "type", "resource_type", default="Permanent")
        if resource_type not in RESOURCE_TYPES:
            raise ValueError(f"unsupported resource type '{resource_type}' for {resource_id}")
        daily_rate = entry.get("daily_rate", entry.get("dailyRate", 0)) or 0
        if not isinstance(daily_rate, (int, float)) or not math.isfinite(daily_rate) or daily_rate < 0:
            raise ValueError(f"daily_rate must be a non-negative number for {resource_id}")
        capacity = entry.get("total_capacity", entry.get("totalCapacity", 100))
        resources.append(
            Resource(
                id=resource_id,
                name=_text(entry, "name", default=resource_id),
                role=_text(entry, "role"),
                department=_text(entry, "department"),
                resource_type=resource_type,
                total_capacity=_parse_percentage(capacity, f"resource {resource_id}"),
                daily_rate=float(daily_rate),
            )
        )
    return resources


def load_config(path: str | Path) -> ForecastConfig:
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError("config file must be a JSON object")
    try:
        as_of = parse_optional_date(data.get("as_of"), "as_of")
    except ValueError as exc:
        raise ValueError("as_of must be null or an ISO date string") from exc
    months_count = data.get("months_count", 6)
    if isinstance(months_count, bool) or not isinstance(months_count, int) or months_count <= 0:
        raise ValueError("months_count must be a positive integer")
    month_offset = data.get("month_offset", 0)
    if isinstance(month_offset, bool) or not isinstance(month_offset, int):
        raise ValueError("month_offset must be an integer")
    working_days = data.get("working_days_per_month", 20)
    if not isinstance(working_days, (int, float)) or not math.isfinite(working_days) or working_days <= 0:
        raise ValueError("working_days_per_month must be a positive number")
    logging_level = data.get("logging_level", "INFO")
    if not isinstance(logging_level, str):
        raise ValueError("logging_level must be a string")
    return ForecastConfig(
        as_of=as_of,
        months_count=months_count,
        month_offset=month_offset,
        working_days_per_month=float(working_days),
        logging_level=logging_level,
    )


def missing_inputs(input_dir: Path) -> List[str]:
    if not input_dir.is_dir():
        return list(INPUT_FILES.values())
    return [name for name in INPUT_FILES.values() if not (input_dir / name).is_file()]


def input_paths(workspace_dir: Path) -> Dict[str, Path]:
    input_dir = workspace_dir / "input"
    return {key: input_dir / name for key, name in INPUT_FILES.items()}


def ensure_directory(path: str | Path) -> Path:
    target = Path(path)
    target.mkdir(parents=True, exist_ok=True)
    return target


def write_csv(df: pd.DataFrame, path: str | Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
