"""Load job definitions for the in-memory engine from a JSON file.

The file holds a list of objects such as::

    [{"name": "importJob", "incrementable": true, "requiredParameters": ["input"],
      "steps": ["read", "write"]}]
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from batch_admin.core.domain import JobDefinition


def parse_job_definition(raw: dict[str, Any]) -> JobDefinition:
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        raise ValueError(f"Job definition without a name: {raw!r}")
    return JobDefinition(
        name=name,
        launchable=bool(raw.get("launchable", True)),
        incrementable=bool(raw.get("incrementable", False)),
        restartable=bool(raw.get("restartable", True)),
        required_parameters=tuple(raw.get("requiredParameters", ())),
        step_names=tuple(raw.get("steps", ())),
    )


def load_job_definitions(path: str | Path) -> list[JobDefinition]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of job definitions")
    return [parse_job_definition(item) for item in data]
