from __future__ import annotations

import os
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from flask import Flask, jsonify, request

from capacity_forecast import rollups
from capacity_forecast.engine import build_month_day_forecast, build_month_forecast, build_sprint_forecast
from capacity_forecast.io_utils import (
    input_paths,
    load_allocations,
    load_config,
    load_projects,
    load_resources,
    missing_inputs,
    parse_optional_date,
)
from capacity_forecast.models import Allocation, ForecastConfig, Project, Resource, flatten_sprints, project_lookup
from capacity_forecast.sprints import available_years, quarters_for_year, sprint_within_project
from capacity_forecast.status import is_available, status_color

Workspace = Tuple[ForecastConfig, List[Allocation], List[Project], List[Resource]]


class WorkspaceNotFoundError(LookupError):
    pass


def _default_workspaces_root() -> Path:
    return (Path(__file__).resolve().parent.parent / "workspaces").resolve()


def _resolve_workspaces_root() -> Path:
    env_value = os.getenv("WORKSPACES_ROOT")
    if env_value:
        return Path(env_value).expanduser().resolve()
    return _default_workspaces_root()


def _validate_within_root(path: Path, root: Path) -> None:
    try:
        path.relative_to(root)
    except ValueError as exc:
        raise ValueError(f"Workspace directory must be inside {root}") from exc


def _list_workspace_dirs(root: Path) -> List[Dict[str, object]]:
    entries: List[Dict[str, object]] = []
    if not root.exists():
        return entries
    for child in sorted(root.iterdir()):
        if not child.is_dir():
            continue
        input_dir = child / "input"
        entries.append(
            {
                "name": child.relative_to(root).as_posix(),
                "input_dir": input_dir.as_posix(),
                "is_valid": not missing_inputs(input_dir),
            }
        )
    return entries


def _load_workspace(root: Path, name: str) -> Workspace:
    workspace_dir = (root / name).resolve()
    _validate_within_root(workspace_dir, root)
    if not workspace_dir.is_dir():
        raise WorkspaceNotFoundError(f"Workspace not found: {name}")
    missing = missing_inputs(workspace_dir / "input")
    if missing:
        raise ValueError(f"Workspace {name} is missing input files: {', '.join(missing)}")
    paths = input_paths(workspace_dir)
    return (
        load_config(paths["config"]),
        load_allocations(paths["allocations"]),
        load_projects(paths["projects"]),
        load_resources(paths["resources"]),
    )


def _query_int(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc


def _resolve_today(cfg: ForecastConfig) -> date:
    as_of = parse_optional_date(request.args.get("as_of"), "as_of")
    return as_of or cfg.resolve_today()


def _filter_resource(allocations: List[Allocation]) -> Tuple[Optional[str], List[Allocation]]:
    resource_id = request.args.get("resource")
    if not resource_id:
        return None, allocations
    return resource_id, rollups.allocations_for_resource(allocations, resource_id)


def create_app() -> Flask:
    app = Flask(__name__)
    workspaces_root = _resolve_workspaces_root()
    app.config["WORKSPACES_ROOT"] = workspaces_root

    @app.errorhandler(WorkspaceNotFoundError)
    def workspace_not_found(exc: WorkspaceNotFoundError):
        return jsonify({"error": str(exc)}), 404

    @app.errorhandler(ValueError)
    def invalid_input(exc: ValueError):
        return jsonify({"error": str(exc)}), 400

    @app.get("/dirs")
    def directories():
        return jsonify({"workspaces": _list_workspace_dirs(app.config["WORKSPACES_ROOT"])})

    @app.get("/api/forecast/<workspace>")
    def month_forecast(workspace: str):
        """Month forecast for one resource, or the whole workspace without ``resource``."""
        cfg, allocations, projects, _ = _load_workspace(app.config["WORKSPACES_ROOT"], workspace)
        resource_id, scoped = _filter_resource(allocations)
        forecast = build_month_forecast(
            scoped,
            _query_int("months", cfg.months_count),
            _query_int("offset", cfg.month_offset),
            today=_resolve_today(cfg),
            projects=projects,
        )
        months = []
        for period in forecast:
            payload = period.to_dict()
            payload["color"] = status_color(period.status)
            payload["available"] = is_available(period.percentage, period.status)
            months.append(payload)
        return jsonify({"workspace": workspace, "resource": resource_id, "months": months})

    @app.get("/api/calendar/<workspace>/<int:year>/<int:month>")
    def day_forecast(workspace: str, year: int, month: int):
        _, allocations, projects, _ = _load_workspace(app.config["WORKSPACES_ROOT"], workspace)
        resource_id, scoped = _filter_resource(allocations)
        days = build_month_day_forecast(year, month, scoped, projects)
        return jsonify(
            {
                "workspace": workspace,
                "resource": resource_id,
                "year": year,
                "month": month,
                "days": [day.to_dict() for day in days],
            }
        )

    @app.get("/api/summary/<workspace>")
    def summary(workspace: str):
        cfg, allocations, projects, resources = _load_workspace(app.config["WORKSPACES_ROOT"], workspace)
        overview = rollups.portfolio_summary(projects, resources, allocations, cfg.working_days_per_month)
        buckets = rollups.status_buckets(resources, allocations)
        over = rollups.over_allocated(resources, allocations)
        return jsonify(
            {
                "workspace": workspace,
                "overview": overview,
                "status_buckets": {status.value: count for status, count in buckets.items()},
                "over_allocated": [
                    {"id": resource.id, "name": resource.name, "percentage": total} for resource, total in over
                ],
                "projects": rollups.project_capacity_frame(
                    projects, resources, allocations, cfg.working_days_per_month
                ).to_dict(orient="records"),
                "tribes": rollups.tribes(projects),
            }
        )

    @app.get("/api/tribes/<workspace>/<tribe>")
    def tribe(workspace: str, tribe: str):
        _, allocations, projects, resources = _load_workspace(app.config["WORKSPACES_ROOT"], workspace)
        frame = rollups.tribe_rollup(tribe, projects, resources, allocations)
        return jsonify({"workspace": workspace, "tribe": tribe, "resources": frame.to_dict(orient="records")})

    @app.get("/api/sprints/<int:year>")
    def sprints(year: int):
        quarters = quarters_for_year(year)
        today = parse_optional_date(request.args.get("as_of"), "as_of") or date.today()
        return jsonify(
            {
                "year": year,
                "years": available_years(today),
                "quarters": [
                    {
                        "id": quarter.id,
                        "name": quarter.name,
                        "sprints": [
                            {
                                "id": sprint.id,
                                "name": sprint.name,
                                "start_date": sprint.start_date.isoformat(),
                                "end_date": sprint.end_date.isoformat(),
                            }
                            for sprint in quarter.sprints
                        ],
                    }
                    for quarter in quarters
                ],
            }
        )

    @app.get("/api/sprint-forecast/<workspace>/<int:year>")
    def sprint_forecast(workspace: str, year: int):
        """Sprint load for a year; ``project`` narrows to that project's allocations and sprints."""
        _, allocations, projects, _ = _load_workspace(app.config["WORKSPACES_ROOT"], workspace)
        resource_id, scoped = _filter_resource(allocations)
        sprints = flatten_sprints(quarters_for_year(year))
        project_id = request.args.get("project")
        if project_id:
            project = project_lookup(projects).get(project_id)
            if project is None:
                raise ValueError(f"unknown project: {project_id}")
            scoped = [allocation for allocation in scoped if allocation.project_id == project_id]
            sprints = [
                sprint
                for sprint in sprints
                if sprint_within_project(sprint, project.start_date, project.end_date)
            ]
        forecast = build_sprint_forecast(scoped, sprints, projects)
        return jsonify(
            {
                "workspace": workspace,
                "resource": resource_id,
                "project": project_id,
                "sprints": [
                    {"id": item.sprint.id, "percentage": item.percentage, "status": item.status.value}
                    for item in forecast
                ],
            }
        )

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
