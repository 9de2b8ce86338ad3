from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from . import rollups
from .engine import build_month_day_forecast
from .io_utils import (
    ensure_directory,
    input_paths,
    load_allocations,
    load_config,
    load_projects,
    load_resources,
    parse_optional_date,
    write_csv,
)
from .models import Allocation, ForecastConfig, Project, Resource
from .periods import parse_month_key

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Capacity forecast export (JSON/CSV in, CSV and markdown out)."
    )
    parser.add_argument(
        "--workspace-dir",
        help="Workspace directory containing input/ and output/ subfolders",
    )
    parser.add_argument("--allocations", help="Path to allocations JSON (overrides workspace-dir default)")
    parser.add_argument("--projects", help="Path to projects CSV (overrides workspace-dir default)")
    parser.add_argument("--resources", help="Path to resources JSON (overrides workspace-dir default)")
    parser.add_argument("--config", help="Path to configuration JSON (overrides workspace-dir default)")
    parser.add_argument(
        "--outdir",
        default=None,
        help="Output directory for generated files (default: <workspace-dir>/output or ./out)",
    )
    parser.add_argument("--as-of", help="Forecast reference date (YYYY-MM-DD); defaults to config or today")
    parser.add_argument("--months", type=int, help="Override config.months_count")
    parser.add_argument("--offset", type=int, help="Override config.month_offset")
    parser.add_argument(
        "--calendar",
        metavar="YYYY-MM",
        help="Also export the day-level forecast of this month for every resource",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the forecast without writing output files",
    )
    return parser.parse_args(argv)


def _resolve_io_paths(args: argparse.Namespace) -> Tuple[Dict[str, Path], Path]:
    workspace_dir = Path(args.workspace_dir).resolve() if args.workspace_dir else None
    if workspace_dir and not workspace_dir.exists():
        raise ValueError(f"workspace directory not found: {workspace_dir}")
    defaults = input_paths(workspace_dir) if workspace_dir else {}

    paths: Dict[str, Path] = {}
    missing: List[str] = []
    for name in ("allocations", "projects", "resources", "config"):
        override = getattr(args, name)
        path = Path(override) if override else defaults.get(name)
        if path is None:
            missing.append(name)
        else:
            paths[name] = path
    if missing:
        joined = ", ".join(f"--{name}" for name in missing)
        raise ValueError(f"missing required input paths: {joined} (or provide --workspace-dir)")

    for label, path in paths.items():
        if not path.exists():
            raise ValueError(f"{label} file not found at {path}")

    if args.outdir:
        outdir = Path(args.outdir)
    elif workspace_dir:
        outdir = workspace_dir / "output"
    else:
        outdir = Path("out")
    return paths, outdir


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s %(message)s")


def _apply_overrides(cfg: ForecastConfig, args: argparse.Namespace) -> ForecastConfig:
    if args.as_of:
        cfg = replace(cfg, as_of=parse_optional_date(args.as_of, "--as-of"))
    if args.months is not None:
        if args.months <= 0:
            raise ValueError("--months must be a positive integer")
        cfg = replace(cfg, months_count=args.months)
    if args.offset is not None:
        cfg = replace(cfg, month_offset=args.offset)
    return cfg


def build_calendar_frame(
    year: int,
    month: int,
    resources: List[Resource],
    allocations: List[Allocation],
    projects: List[Project],
) -> pd.DataFrame:
    frames = []
    for resource in resources:
        days = build_month_day_forecast(
            year, month, rollups.allocations_for_resource(allocations, resource.id), projects
        )
        frames.append(rollups.day_forecast_frame(days, resource.id))
    if not frames:
        return rollups.day_forecast_frame([])
    return pd.concat(frames, ignore_index=True)


def _format_pct(value: float) -> str:
    return f"{value:g}%"


def render_summary_markdown(
    summary: Dict[str, object],
    over: List[Tuple[Resource, float]],
    projects_df: pd.DataFrame,
    forecast_df: pd.DataFrame,
    today: date,
) -> str:
    lines: List[str] = ["# Executive Summary", "", f"Generated for {today.isoformat()}", ""]
    lines.append("## Portfolio Overview")
    lines.append("")
    lines.append(f"- Active Projects: {summary['active_projects']} / {summary['total_projects']} Total")
    lines.append(f"- Total FTE Committed: {float(summary['total_fte']):.1f}")
    lines.append(f"- Est. Monthly Run Rate: {float(summary['monthly_run_rate']):,.2f}")
    lines.append(f"- Average Utilization: {summary['average_utilization']}%")
    lines.append("")
    lines.append("## Over-Allocated Personnel (>100%)")
    lines.append("")
    if not over:
        lines.append("No resources are currently over-allocated.")
    else:
        for resource, total in over:
            department = resource.department or "-"
            role = resource.role or "-"
            lines.append(f"- **{resource.name}** ({department}, {role}): {_format_pct(total)}")
    lines.append("")
    lines.append("## Project Capacity Distribution")
    lines.append("")
    if projects_df.empty:
        lines.append("No projects.")
    else:
        for row in projects_df.itertuples(index=False):
            lines.append(
                f"- {row.name} [{row.status}, {row.priority}]: "
                f"{row.committed_fte:.1f} FTE, {row.monthly_cost:,.2f} per month"
            )
    lines.append("")
    month_columns = [col for col in forecast_df.columns if col not in ("resource_id", "resource")]
    lines.append(f"## {len(month_columns)}-Month Resource Availability Forecast")
    lines.append("")
    if forecast_df.empty:
        lines.append("No resources.")
    else:
        lines.append("| Resource | " + " | ".join(month_columns) + " |")
        lines.append("|---" * (len(month_columns) + 1) + "|")
        for row in forecast_df.to_dict(orient="records"):
            cells = []
            for col in month_columns:
                value = float(row[col])
                cells.append("0% (Avail)" if value == 0 else _format_pct(value))
            lines.append(f"| {row['resource']} | " + " | ".join(cells) + " |")
    return "\n".join(lines).strip() + "\n"


def _print_dry_run_summary(forecast_df: pd.DataFrame, over: List[Tuple[Resource, float]]) -> None:
    if forecast_df.empty:
        print("No resources to forecast.")
    else:
        print(forecast_df.to_string(index=False))
    if over:
        print("\nOver-allocated resources:")
        for resource, total in over:
            print(f"- {resource.id} {resource.name}: {_format_pct(total)}")
    else:
        print("\nOver-allocated resources: none")


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        paths, outdir = _resolve_io_paths(args)
        cfg = _apply_overrides(load_config(paths["config"]), args)
        allocations = load_allocations(paths["allocations"])
        projects = load_projects(paths["projects"])
        resources = load_resources(paths["resources"])
        calendar_month = parse_month_key(args.calendar) if args.calendar else None
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    _configure_logging(cfg.logging_level)
    today = cfg.resolve_today()
    logger.info(
        "forecasting %d resources, %d allocations from %s",
        len(resources),
        len(allocations),
        today.isoformat(),
    )

    try:
        forecast_df = rollups.resource_forecast_frame(
            resources,
            allocations,
            projects,
            cfg.months_count,
            cfg.month_offset,
            today=today,
        )
        calendar_df = (
            build_calendar_frame(*calendar_month, resources, allocations, projects) if calendar_month else None
        )
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    projects_df = rollups.project_capacity_frame(projects, resources, allocations, cfg.working_days_per_month)
    summary = rollups.portfolio_summary(projects, resources, allocations, cfg.working_days_per_month)
    over = rollups.over_allocated(resources, allocations)

    if args.dry_run:
        _print_dry_run_summary(forecast_df, over)
        return 0

    outdir_path = ensure_directory(outdir)
    written = [outdir_path / "resource_forecast.csv", outdir_path / "project_capacity.csv"]
    write_csv(forecast_df, written[0])
    write_csv(projects_df, written[1])
    summary_path = outdir_path / "exec_summary.md"
    summary_path.write_text(render_summary_markdown(summary, over, projects_df, forecast_df, today))
    written.append(summary_path)
    if calendar_df is not None:
        calendar_path = outdir_path / "day_forecast.csv"
        write_csv(calendar_df, calendar_path)
        written.append(calendar_path)
    for path in written:
        print(f"Wrote {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
