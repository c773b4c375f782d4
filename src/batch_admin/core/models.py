"""Request-scoped projections returned by the gateway services.

These are plain frozen dataclasses; the HTTP layer converts them to Pydantic
response schemas (``batch_admin.api.schemas``) when serializing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from batch_admin.core.domain import JobExecution, StepExecution

T = TypeVar("T")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_duration(start: datetime | None, end: datetime | None, now: datetime | None = None) -> str | None:
    """Format the elapsed time between ``start`` and ``end`` as ``HH:MM:SS``.

    An unfinished run (``end`` is None) is measured against ``now``.
    """
    if start is None:
        return None
    finish = end or now or utcnow()
    seconds = max(0, int((finish - start).total_seconds()))
    return format_seconds(seconds)


def format_seconds(seconds: float) -> str:
    total = int(round(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


@dataclass(frozen=True)
class FileInfo:
    path: str
    short_path: str
    timestamp: str
    local: bool
    delete_count: int = 0


@dataclass(frozen=True)
class ExitStatusInfo:
    code: str
    description: str
    running: bool


@dataclass(frozen=True)
class JobExecutionInfo:
    id: int
    job_instance_id: int | None
    job_name: str | None
    parameters: dict[str, str]
    start_time: datetime | None
    end_time: datetime | None
    last_updated: datetime | None
    exit_status: ExitStatusInfo | None
    step_execution_count: int
    duration: str | None
    status: str
    running: bool

    @classmethod
    def from_execution(cls, execution: JobExecution, now: datetime | None = None) -> JobExecutionInfo:
        exit_status = None
        if execution.exit_status is not None:
            exit_status = ExitStatusInfo(
                code=execution.exit_status.code,
                description=execution.exit_status.description,
                running=execution.exit_status.running,
            )
        return cls(
            id=execution.id,
            job_instance_id=execution.job_instance_id,
            job_name=execution.job_name,
            parameters=dict(execution.parameters),
            start_time=execution.start_time,
            end_time=execution.end_time,
            last_updated=execution.last_updated,
            exit_status=exit_status,
            step_execution_count=len(execution.step_executions),
            duration=format_duration(execution.start_time, execution.end_time, now),
            status=execution.status.value,
            running=execution.status.is_running,
        )


@dataclass(frozen=True)
class JobInstanceInfo:
    id: int
    job_name: str
    executions: list[JobExecutionInfo] = field(default_factory=list)


@dataclass(frozen=True)
class JobSummary:
    name: str
    launchable: bool
    incrementable: bool
    execution_count: int
    last_execution: JobExecutionInfo | None = None
    job_instances: list[JobInstanceInfo] | None = None


@dataclass(frozen=True)
class StepExecutionInfo:
    id: int
    name: str
    job_execution_id: int
    execution_context: dict[str, Any]
    last_updated: datetime | None
    status: str
    read_count: int
    write_count: int
    commit_count: int
    start_time: datetime | None
    end_time: datetime | None
    duration: str | None

    @classmethod
    def from_step(cls, step: StepExecution, now: datetime | None = None) -> StepExecutionInfo:
        return cls(
            id=step.id,
            name=step.step_name,
            job_execution_id=step.job_execution_id,
            execution_context=dict(step.execution_context),
            last_updated=step.last_updated,
            status=step.status.value,
            read_count=step.read_count,
            write_count=step.write_count,
            commit_count=step.commit_count,
            start_time=step.start_time,
            end_time=step.end_time,
            duration=format_duration(step.start_time, step.end_time, now),
        )


@dataclass(frozen=True)
class StepExecutionProgressInfo:
    current: StepExecutionInfo
    percent_complete: float | None
    estimated_duration: str | None
    history_count: int = 0


@dataclass(frozen=True)
class Link:
    rel: str
    href: str


@dataclass(frozen=True)
class Page(Generic[T]):
    content: list[T]
    page_number: int
    page_size: int
    total_elements: int
    total_pages: int


@dataclass(frozen=True)
class LinkedResource(Generic[T]):
    entity: T
    links: list[Link]

    def link(self, rel: str) -> Link | None:
        for candidate in self.links:
            if candidate.rel == rel:
                return candidate
        return None


@dataclass(frozen=True)
class LinkedPage(Generic[T]):
    page: Page[LinkedResource[T]]
    links: list[Link]
