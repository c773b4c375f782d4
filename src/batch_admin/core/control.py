"""Job control: launch, stop and restart executions."""

from __future__ import annotations

import logging

from batch_admin.core.domain import BatchStatus
from batch_admin.core.errors import (
    InvalidParameters,
    JobAlreadyRunning,
    JobInstanceAlreadyComplete,
    JobNotRestartable,
    NoSuchJob,
)
from batch_admin.core.jobs import JobQueryService
from batch_admin.core.models import JobExecutionInfo
from batch_admin.core.ports.repository import JobRepository
from batch_admin.logging_config import ServiceLogger

_logger = logging.getLogger(__name__)


def parse_job_parameters(text: str | None) -> dict[str, str]:
    """Parse ``"foo=1,bar=baz"`` into a parameter mapping.

    Blank entries are ignored; an entry without ``=`` or with an empty key
    raises ``InvalidParameters``.
    """
    parameters: dict[str, str] = {}
    if not text:
        return parameters
    for entry in text.split(","):
        entry = entry.strip()
        if not entry:
            continue
        key, sep, value = entry.partition("=")
        key = key.strip()
        if not sep or not key:
            raise InvalidParameters(f"Malformed job parameter {entry!r}, expected key=value")
        parameters[key] = value.strip()
    return parameters


class JobControlService:
    def __init__(
        self,
        repository: JobRepository,
        queries: JobQueryService,
        log: ServiceLogger | None = None,
    ) -> None:
        self._repository = repository
        self._queries = queries
        self._log = log or _logger

    async def launch(self, job_name: str, parameters: dict[str, str]) -> JobExecutionInfo:
        if not await self._repository.is_registered(job_name):
            raise NoSuchJob(job_name)
        if not await self._repository.is_launchable(job_name):
            raise NoSuchJob(job_name)
        if any(not key.strip() for key in parameters):
            raise InvalidParameters("Job parameter names must not be blank")

        execution = await self._repository.launch(job_name, {k: str(v) for k, v in parameters.items()})
        self._log.info("Launched job %s as execution %d", job_name, execution.id)
        return await self._queries.get_execution(execution.id)

    async def stop(self, execution_id: int) -> JobExecutionInfo:
        """Ask the engine to stop an execution; completion is up to the engine."""
        execution = await self._queries.find_execution(execution_id)
        if not execution.status.is_running:
            self._log.info("Execution %d is not running (%s), nothing to stop", execution_id, execution.status.value)
            return await self._queries.get_execution(execution_id)
        await self._repository.stop(execution_id)
        self._log.info("Requested stop of execution %d", execution_id)
        return await self._queries.get_execution(execution_id)

    async def stop_all(self) -> int:
        """Signal every running execution to stop; return how many were signalled."""
        stopped = 0
        for execution in await self._repository.list_running_executions():
            try:
                await self._repository.stop(execution.id)
            except Exception:
                self._log.warning("Could not stop execution %d", execution.id, exc_info=True)
                continue
            stopped += 1
        self._log.info("Requested stop of %d running execution(s)", stopped)
        return stopped

    async def restart(self, execution_id: int) -> JobExecutionInfo:
        """Start a new execution of a job instance that terminated abnormally."""
        execution = await self._queries.find_execution(execution_id)
        if execution.status.is_running:
            raise JobAlreadyRunning(f"Execution {execution_id} is still running")
        if execution.status == BatchStatus.COMPLETED:
            raise JobNotRestartable(f"Execution {execution_id} already completed successfully")
        if execution.job_name is None or not await self._repository.is_restartable(execution.job_name):
            raise JobNotRestartable(f"Job of execution {execution_id} is not restartable")
        if execution.job_instance_id is not None:
            siblings = await self._repository.get_job_executions_for_job_instance(
                execution.job_name, execution.job_instance_id
            )
            if any(e.status.is_running for e in siblings):
                raise JobAlreadyRunning(f"Job instance {execution.job_instance_id} already has a running execution")
            if any(e.status == BatchStatus.COMPLETED for e in siblings):
                raise JobInstanceAlreadyComplete(f"Job instance {execution.job_instance_id} already completed")

        restarted = await self._repository.restart(execution_id)
        self._log.info("Restarted execution %d as %d", execution_id, restarted.id)
        return await self._queries.get_execution(restarted.id)
