from __future__ import annotations

from pathlib import Path

import pytest

from webapp.app import create_app


@pytest.fixture
def client(workspace_dir: Path, monkeypatch):
    monkeypatch.setenv("WORKSPACES_ROOT", str(workspace_dir.parent))
    app = create_app()
    app.config["TESTING"] = True
    return app.test_client()


def test_lists_workspaces(client, workspace_dir: Path) -> None:
    (workspace_dir.parent / "empty").mkdir()
    response = client.get("/dirs")
    assert response.status_code == 200
    entries = {entry["name"]: entry["is_valid"] for entry in response.get_json()["workspaces"]}
    assert entries == {"demo": True, "empty": False}


def test_resource_month_forecast(client) -> None:
    response = client.get("/api/forecast/demo?resource=r1&months=2")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["resource"] == "r1"
    assert [month["label"] for month in payload["months"]] == ["Jun '25", "Jul"]
    assert [month["percentage"] for month in payload["months"]] == [110, 60]
    assert payload["months"][0]["status"] == "Over"
    assert payload["months"][0]["color"] == "#ef4444"
    assert payload["months"][0]["available"] is False
    assert payload["months"][1]["available"] is True


def test_workspace_month_forecast_with_as_of(client) -> None:
    response = client.get("/api/forecast/demo?as_of=2025-07-01&months=1")
    month = response.get_json()["months"][0]
    assert (month["year"], month["month"]) == (2025, 7)
    assert month["percentage"] == 130


def test_calendar_for_leap_february(client) -> None:
    response = client.get("/api/calendar/demo/2024/2?resource=r2")
    assert response.status_code == 200
    days = response.get_json()["days"]
    assert len(days) == 29
    assert days[0]["percentage"] == 70
    assert days[0]["availability"] == 30
    assert days[0]["projects"] == [{"id": "p1", "name": "Apollo Revamp", "pct": 70}]


def test_calendar_rejects_invalid_month(client) -> None:
    response = client.get("/api/calendar/demo/2025/13")
    assert response.status_code == 400
    assert "month" in response.get_json()["error"]


def test_unknown_workspace_is_404(client) -> None:
    response = client.get("/api/forecast/nope")
    assert response.status_code == 404


def test_bad_query_parameter_is_400(client) -> None:
    response = client.get("/api/forecast/demo?months=six")
    assert response.status_code == 400


def test_summary(client) -> None:
    payload = client.get("/api/summary/demo").get_json()
    assert payload["overview"]["active_projects"] == 1
    assert payload["overview"]["monthly_run_rate"] == pytest.approx(16600.0)
    assert payload["status_buckets"] == {"Under": 1, "Optimal": 1, "High": 0, "Over": 1}
    assert payload["over_allocated"] == [{"id": "r1", "name": "Ada", "percentage": 110}]
    assert payload["tribes"] == ["Acme", "Globex"]
    assert [project["project_id"] for project in payload["projects"]] == ["p1", "p2"]


def test_tribe_rollup(client) -> None:
    payload = client.get("/api/tribes/demo/Globex").get_json()
    assert [row["resource_id"] for row in payload["resources"]] == ["r1", "r3"]


def test_sprint_calendar_and_forecast(client) -> None:
    quarters = client.get("/api/sprints/2026").get_json()["quarters"]
    assert [quarter["id"] for quarter in quarters] == ["2026-Q1", "2026-Q2", "2026-Q3", "2026-Q4"]
    assert quarters[0]["sprints"][0] == {
        "id": "S1",
        "name": "Sprint 1",
        "start_date": "2026-01-07",
        "end_date": "2026-01-20",
    }
    sprints = client.get("/api/sprint-forecast/demo/2026?resource=r2").get_json()["sprints"]
    assert len(sprints) == 26
    assert all(item["percentage"] == 70 for item in sprints)


def test_sprint_years_follow_as_of(client) -> None:
    payload = client.get("/api/sprints/2026?as_of=2025-06-15").get_json()
    assert payload["years"] == [2024, 2025, 2026, 2027]


def test_sprint_calendar_outside_date_range_is_400(client) -> None:
    response = client.get("/api/sprints/9999")
    assert response.status_code == 400
    assert "9999" in response.get_json()["error"]


def test_sprint_forecast_narrowed_to_project_window(client) -> None:
    payload = client.get("/api/sprint-forecast/demo/2025?resource=r3&project=p2").get_json()
    assert payload["project"] == "p2"
    # Skyline runs through June 2025: three sprints touch it.
    assert [item["percentage"] for item in payload["sprints"]] == [20, 20, 0]
    ada = client.get("/api/sprint-forecast/demo/2025?resource=r1&project=p2").get_json()
    assert [item["percentage"] for item in ada["sprints"]] == [50, 50, 50]


def test_sprint_forecast_unknown_project_is_400(client) -> None:
    response = client.get("/api/sprint-forecast/demo/2025?project=ghost")
    assert response.status_code == 400
