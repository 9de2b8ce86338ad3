from __future__ import annotations

import json
from pathlib import Path

import pytest

PROJECTS_CSV = """id,name,color,status,priority,client_name,start_date,end_date
p1,Apollo Revamp,#2196F3,Active,High,Acme,,
p2,Skyline API,#F44336,Planning,Medium,Globex,2025-06-01,2025-06-30
"""

RESOURCES = [
    {"id": "r1", "name": "Ada", "role": "Dev", "department": "Engineering", "dailyRate": 500},
    {"id": "r2", "name": "Grace", "role": "QA", "department": "Quality", "daily_rate": 400},
    {"id": "r3", "name": "Linus", "role": "Ops", "type": "Contractor"},
]

ALLOCATIONS = [
    {"id": "a1", "resourceId": "r1", "projectId": "p1", "percentage": 60},
    # No dates of its own: inherits the Skyline window (June 2025).
    {"id": "a2", "resourceId": "r1", "projectId": "p2", "percentage": 50},
    {"id": "a3", "resource_id": "r2", "project_id": "p1", "percentage": 70},
    {
        "id": "a4",
        "resource_id": "r3",
        "project_id": "p2",
        "percentage": 20,
        "start_date": "2025-06-10",
        "end_date": "2025-06-12",
    },
]

CONFIG = {"as_of": "2025-06-15", "months_count": 3, "logging_level": "WARNING"}


def write_workspace(root: Path, name: str = "demo") -> Path:
    workspace = root / name
    input_dir = workspace / "input"
    input_dir.mkdir(parents=True)
    (input_dir / "projects.csv").write_text(PROJECTS_CSV)
    (input_dir / "resources.json").write_text(json.dumps(RESOURCES))
    (input_dir / "allocations.json").write_text(json.dumps(ALLOCATIONS))
    (input_dir / "config.json").write_text(json.dumps(CONFIG))
    return workspace


@pytest.fixture
def workspace_dir(tmp_path: Path) -> Path:
    return write_workspace(tmp_path)
