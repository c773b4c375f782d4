"""Read-side queries over the job repository.

Every derived field (launchable, incrementable, execution counts, running
flags) is recomputed from the repository on each call.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from statistics import mean

from batch_admin.core.domain import JobExecution, JobInstance, StepExecution
from batch_admin.core.errors import NoSuchExecution, NoSuchJob, NoSuchJobInstance, NoSuchStepExecution
from batch_admin.core.models import (
    JobExecutionInfo,
    JobInstanceInfo,
    JobSummary,
    StepExecutionInfo,
    StepExecutionProgressInfo,
    format_seconds,
    utcnow,
)
from batch_admin.core.pagination import check_window
from batch_admin.core.ports.repository import JobRepository
from batch_admin.logging_config import ServiceLogger

_logger = logging.getLogger(__name__)

# Upper bound on prior step executions sampled for progress estimates
HISTORY_LIMIT = 1000

# A running step is never reported as fully complete
_MAX_RUNNING_ESTIMATE = 0.99


class JobQueryService:
    def __init__(
        self,
        repository: JobRepository,
        log: ServiceLogger | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._repository = repository
        self._log = log or _logger
        self._clock = clock

    def _execution_info(self, execution: JobExecution) -> JobExecutionInfo:
        return JobExecutionInfo.from_execution(execution, now=self._clock())

    # --- jobs ---

    async def _summarize(self, job_name: str) -> JobSummary:
        last = await self._repository.list_job_executions_for_job(job_name, 0, 1)
        return JobSummary(
            name=job_name,
            launchable=await self._repository.is_launchable(job_name),
            incrementable=await self._repository.is_incrementable(job_name),
            execution_count=await self._repository.count_job_executions_for_job(job_name),
            last_execution=self._execution_info(last[0]) if last else None,
        )

    async def list_jobs(self, offset: int, limit: int) -> list[JobSummary]:
        check_window(offset, limit)
        names = await self._repository.list_jobs(offset, limit)
        return [await self._summarize(name) for name in names]

    async def count_jobs(self) -> int:
        return await self._repository.count_jobs()

    async def get_job(self, job_name: str, instance_offset: int = 0, instance_limit: int = 20) -> JobSummary:
        """Summarize one job together with a window of its instances."""
        if not await self._repository.is_registered(job_name):
            raise NoSuchJob(job_name)
        summary = await self._summarize(job_name)
        instances = await self.list_instances(job_name, instance_offset, instance_limit)
        return JobSummary(
            name=summary.name,
            launchable=summary.launchable,
            incrementable=summary.incrementable,
            execution_count=summary.execution_count,
            last_execution=summary.last_execution,
            job_instances=instances,
        )

    # --- instances ---

    async def _instance_info(self, instance: JobInstance) -> JobInstanceInfo:
        executions = await self._repository.get_job_executions_for_job_instance(instance.job_name, instance.id)
        return JobInstanceInfo(
            id=instance.id,
            job_name=instance.job_name,
            executions=[self._execution_info(e) for e in executions],
        )

    async def list_instances(self, job_name: str, offset: int, limit: int) -> list[JobInstanceInfo]:
        check_window(offset, limit)
        instances = await self._repository.list_job_instances(job_name, offset, limit)
        return [await self._instance_info(i) for i in instances]

    async def count_instances(self, job_name: str) -> int:
        return await self._repository.count_job_instances(job_name)

    async def get_instance(self, instance_id: int) -> JobInstanceInfo:
        instance = await self._repository.get_job_instance(instance_id)
        if instance is None:
            raise NoSuchJobInstance(instance_id)
        return await self._instance_info(instance)

    # --- executions ---

    async def list_executions(self, offset: int, limit: int) -> list[JobExecutionInfo]:
        check_window(offset, limit)
        executions = await self._repository.list_job_executions(offset, limit)
        return [self._execution_info(e) for e in executions]

    async def count_executions(self) -> int:
        return await self._repository.count_job_executions()

    async def list_executions_for_job(self, job_name: str, offset: int, limit: int) -> list[JobExecutionInfo]:
        check_window(offset, limit)
        executions = await self._repository.list_job_executions_for_job(job_name, offset, limit)
        return [self._execution_info(e) for e in executions]

    async def count_executions_for_job(self, job_name: str) -> int:
        return await self._repository.count_job_executions_for_job(job_name)

    async def list_executions_for_instance(self, job_name: str, instance_id: int) -> list[JobExecutionInfo]:
        instance = await self._repository.get_job_instance(instance_id)
        if instance is None or instance.job_name != job_name:
            raise NoSuchJobInstance(instance_id)
        executions = await self._repository.get_job_executions_for_job_instance(job_name, instance_id)
        return [self._execution_info(e) for e in executions]

    async def find_execution(self, execution_id: int) -> JobExecution:
        """Return the raw execution record, raising ``NoSuchExecution`` if absent."""
        execution = await self._repository.get_job_execution(execution_id)
        if execution is None:
            raise NoSuchExecution(execution_id)
        return execution

    async def get_execution(self, execution_id: int) -> JobExecutionInfo:
        return self._execution_info(await self.find_execution(execution_id))

    # --- steps ---

    async def list_step_executions(self, job_execution_id: int) -> list[StepExecutionInfo]:
        await self.find_execution(job_execution_id)
        steps = await self._repository.get_step_executions(job_execution_id)
        now = self._clock()
        return [StepExecutionInfo.from_step(s, now) for s in steps]

    async def _find_step(self, job_execution_id: int, step_execution_id: int) -> StepExecution:
        step = await self._repository.get_step_execution(job_execution_id, step_execution_id)
        if step is None:
            raise NoSuchStepExecution(job_execution_id, step_execution_id)
        return step

    async def get_step_execution(self, job_execution_id: int, step_execution_id: int) -> StepExecutionInfo:
        step = await self._find_step(job_execution_id, step_execution_id)
        return StepExecutionInfo.from_step(step, self._clock())

    async def get_step_progress(self, job_execution_id: int, step_execution_id: int) -> StepExecutionProgressInfo:
        """Estimate how far a step has progressed from prior runs of the same step.

        With no prior run to compare against, ``percent_complete`` stays None.
        """
        step = await self._find_step(job_execution_id, step_execution_id)
        execution = await self.find_execution(job_execution_id)
        now = self._clock()

        history: list[StepExecution] = []
        if execution.job_name is not None:
            total = await self._repository.count_step_executions_for_step(execution.job_name, step.step_name)
            if total > 0:
                history = await self._repository.list_step_executions_for_step(
                    execution.job_name, step.step_name, 0, min(total, HISTORY_LIMIT)
                )
        samples = [h for h in history if h.id != step.id]

        durations = [
            (h.end_time - h.start_time).total_seconds()
            for h in samples
            if h.start_time is not None and h.end_time is not None
        ]
        mean_duration = mean(durations) if durations else None

        percent: float | None = None
        if samples:
            mean_reads = mean(h.read_count for h in samples)
            if not step.status.is_running:
                percent = 1.0
            elif mean_reads > 0:
                percent = min(step.read_count / mean_reads, _MAX_RUNNING_ESTIMATE)
            elif mean_duration and step.start_time is not None:
                elapsed = (now - step.start_time).total_seconds()
                percent = min(elapsed / mean_duration, _MAX_RUNNING_ESTIMATE)

        self._log.debug(
            "Progress of step %s (%d prior runs): %s", step.step_name, len(samples), percent
        )
        return StepExecutionProgressInfo(
            current=StepExecutionInfo.from_step(step, now),
            percent_complete=percent,
            estimated_duration=format_seconds(mean_duration) if mean_duration is not None else None,
            history_count=len(samples),
        )
