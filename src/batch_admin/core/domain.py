"""Engine-level records as returned by a ``JobRepository`` adapter.

These mirror what a batch engine persists; the gateway never mutates them and
only projects them into the response models of ``batch_admin.core.models``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class BatchStatus(str, enum.Enum):
    COMPLETED = "COMPLETED"
    STARTING = "STARTING"
    STARTED = "STARTED"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"
    FAILED = "FAILED"
    ABANDONED = "ABANDONED"
    UNKNOWN = "UNKNOWN"

    @property
    def is_running(self) -> bool:
        return self in (BatchStatus.STARTING, BatchStatus.STARTED, BatchStatus.STOPPING)


@dataclass(frozen=True)
class ExitStatus:
    code: str
    description: str = ""

    @property
    def running(self) -> bool:
        return self.code in ("EXECUTING", "UNKNOWN")


EXECUTING = ExitStatus("EXECUTING")
COMPLETED = ExitStatus("COMPLETED")
FAILED = ExitStatus("FAILED")
STOPPED = ExitStatus("STOPPED")


@dataclass(frozen=True)
class JobDefinition:
    name: str
    launchable: bool = True
    incrementable: bool = False
    restartable: bool = True
    required_parameters: tuple[str, ...] = ()
    step_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class JobInstance:
    id: int
    job_name: str
    parameters: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class StepExecution:
    id: int
    step_name: str
    job_execution_id: int
    status: BatchStatus = BatchStatus.STARTING
    read_count: int = 0
    write_count: int = 0
    commit_count: int = 0
    start_time: datetime | None = None
    end_time: datetime | None = None
    last_updated: datetime | None = None
    execution_context: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class JobExecution:
    id: int
    job_name: str | None
    job_instance_id: int | None
    parameters: dict[str, str] = field(default_factory=dict)
    status: BatchStatus = BatchStatus.STARTING
    exit_status: ExitStatus | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    last_updated: datetime | None = None
    step_executions: tuple[StepExecution, ...] = ()
