from __future__ import annotations

from pathlib import Path

import pandas as pd

from capacity_forecast.main import main


def test_export_writes_forecast_and_summary(workspace_dir: Path) -> None:
    assert main(["--workspace-dir", str(workspace_dir)]) == 0
    outdir = workspace_dir / "output"

    forecast = pd.read_csv(outdir / "resource_forecast.csv")
    assert list(forecast.columns) == ["resource_id", "resource", "Jun '25", "Jul", "Aug"]
    ada = forecast.set_index("resource_id").loc["r1"]
    assert ada["Jun '25"] == 110
    assert ada["Jul"] == 60

    projects = pd.read_csv(outdir / "project_capacity.csv")
    assert list(projects["project_id"]) == ["p1", "p2"]

    summary = (outdir / "exec_summary.md").read_text()
    assert "Generated for 2025-06-15" in summary
    assert "Active Projects: 1 / 2 Total" in summary
    assert "**Ada** (Engineering, Dev): 110%" in summary
    assert "| Linus | 20% | 0% (Avail) | 0% (Avail) |" in summary
    assert not (outdir / "day_forecast.csv").exists()


def test_overrides_and_calendar_export(workspace_dir: Path, tmp_path: Path) -> None:
    outdir = tmp_path / "exports"
    code = main(
        [
            "--workspace-dir",
            str(workspace_dir),
            "--outdir",
            str(outdir),
            "--as-of",
            "2025-05-02",
            "--months",
            "2",
            "--calendar",
            "2025-06",
        ]
    )
    assert code == 0
    forecast = pd.read_csv(outdir / "resource_forecast.csv")
    assert list(forecast.columns) == ["resource_id", "resource", "May '25", "Jun"]

    days = pd.read_csv(outdir / "day_forecast.csv")
    assert len(days) == 3 * 30
    linus = days[days["resource_id"] == "r3"].set_index("day_of_month")["percentage"]
    assert linus.loc[9] == 0
    assert linus.loc[10] == 20
    assert linus.loc[12] == 20
    assert linus.loc[13] == 0


def test_dry_run_prints_without_writing(workspace_dir: Path, capsys) -> None:
    assert main(["--workspace-dir", str(workspace_dir), "--dry-run"]) == 0
    out = capsys.readouterr().out
    assert "Ada" in out
    assert "r1 Ada: 110%" in out
    assert not (workspace_dir / "output").exists()


def test_missing_inputs_exit_with_usage_error(tmp_path: Path, capsys) -> None:
    assert main(["--projects", str(tmp_path / "projects.csv")]) == 2
    assert "missing required input paths" in capsys.readouterr().err


def test_bad_calendar_month_is_rejected(workspace_dir: Path, capsys) -> None:
    assert main(["--workspace-dir", str(workspace_dir), "--calendar", "2025-13"]) == 2
    assert "month must be in 1..12" in capsys.readouterr().err


def test_bad_as_of_is_rejected(workspace_dir: Path, capsys) -> None:
    assert main(["--workspace-dir", str(workspace_dir), "--as-of", "yesterday"]) == 2
    assert "--as-of" in capsys.readouterr().err


def test_offset_beyond_calendar_range_is_rejected(workspace_dir: Path, capsys) -> None:
    code = main(["--workspace-dir", str(workspace_dir), "--offset", "200000", "--dry-run"])
    assert code == 2
    assert "out of range" in capsys.readouterr().err
    assert not (workspace_dir / "output").exists()
