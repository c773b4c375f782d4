from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime
from typing import Any

from batch_admin.core.domain import (
    COMPLETED,
    FAILED,
    STOPPED,
    BatchStatus,
    ExitStatus,
    JobDefinition,
    JobExecution,
    JobInstance,
    StepExecution,
)
from batch_admin.core.errors import (
    InvalidParameters,
    JobAlreadyRunning,
    JobInstanceAlreadyComplete,
    JobNotRestartable,
    NoSuchExecution,
    NoSuchJob,
)
from batch_admin.core.models import utcnow

RUN_ID_KEY = "run.id"

_FINAL_EXIT_STATUS = {
    BatchStatus.COMPLETED: COMPLETED,
    BatchStatus.FAILED: FAILED,
    BatchStatus.STOPPED: STOPPED,
}


class InMemoryJobRepository:
    """Job registry and execution bookkeeping held entirely in memory.

    It implements the ``JobRepository`` port for development servers and tests;
    executions only change state through ``launch``/``stop``/``restart`` and the
    ``add_step``/``finish`` helpers, nothing is actually run.
    """

    def __init__(
        self,
        definitions: Iterable[JobDefinition] = (),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.definitions: dict[str, JobDefinition] = {}
        self.instances: dict[int, JobInstance] = {}
        self.executions: dict[int, JobExecution] = {}
        self._clock = clock
        self._next_instance_id = 1
        self._next_execution_id = 1
        self._next_step_id = 1
        for definition in definitions:
            self.register(definition)

    def register(self, definition: JobDefinition) -> None:
        self.definitions[definition.name] = definition

    # --- jobs ---

    async def list_jobs(self, offset: int, limit: int) -> list[str]:
        return sorted(self.definitions)[offset : offset + limit]

    async def count_jobs(self) -> int:
        return len(self.definitions)

    async def is_registered(self, job_name: str) -> bool:
        return job_name in self.definitions

    async def is_launchable(self, job_name: str) -> bool:
        definition = self.definitions.get(job_name)
        return definition is not None and definition.launchable

    async def is_incrementable(self, job_name: str) -> bool:
        definition = self.definitions.get(job_name)
        return definition is not None and definition.incrementable

    async def is_restartable(self, job_name: str) -> bool:
        definition = self.definitions.get(job_name)
        return definition is not None and definition.restartable

    # --- instances ---

    def _instances_for(self, job_name: str) -> list[JobInstance]:
        return sorted(
            (i for i in self.instances.values() if i.job_name == job_name),
            key=lambda i: i.id,
            reverse=True,
        )

    async def list_job_instances(self, job_name: str, offset: int, limit: int) -> list[JobInstance]:
        return self._instances_for(job_name)[offset : offset + limit]

    async def count_job_instances(self, job_name: str) -> int:
        return len(self._instances_for(job_name))

    async def get_job_instance(self, instance_id: int) -> JobInstance | None:
        return self.instances.get(instance_id)

    # --- executions ---

    def _newest_first(self, executions: Iterable[JobExecution]) -> list[JobExecution]:
        return sorted(executions, key=lambda e: e.id, reverse=True)

    async def list_job_executions(self, offset: int, limit: int) -> list[JobExecution]:
        return self._newest_first(self.executions.values())[offset : offset + limit]

    async def count_job_executions(self) -> int:
        return len(self.executions)

    async def list_job_executions_for_job(self, job_name: str, offset: int, limit: int) -> list[JobExecution]:
        matching = (e for e in self.executions.values() if e.job_name == job_name)
        return self._newest_first(matching)[offset : offset + limit]

    async def count_job_executions_for_job(self, job_name: str) -> int:
        return sum(1 for e in self.executions.values() if e.job_name == job_name)

    async def get_job_executions_for_job_instance(self, job_name: str, instance_id: int) -> list[JobExecution]:
        matching = (
            e for e in self.executions.values() if e.job_instance_id == instance_id and e.job_name == job_name
        )
        return self._newest_first(matching)

    async def get_job_execution(self, execution_id: int) -> JobExecution | None:
        return self.executions.get(execution_id)

    async def list_running_executions(self) -> list[JobExecution]:
        return self._newest_first(e for e in self.executions.values() if e.status.is_running)

    # --- steps ---

    async def get_step_executions(self, job_execution_id: int) -> list[StepExecution]:
        execution = self.executions.get(job_execution_id)
        return list(execution.step_executions) if execution else []

    async def get_step_execution(self, job_execution_id: int, step_execution_id: int) -> StepExecution | None:
        for step in await self.get_step_executions(job_execution_id):
            if step.id == step_execution_id:
                return step
        return None

    def _steps_for(self, job_name: str, step_name: str) -> list[StepExecution]:
        steps = [
            s
            for e in self.executions.values()
            if e.job_name == job_name
            for s in e.step_executions
            if s.step_name == step_name
        ]
        return sorted(steps, key=lambda s: s.id, reverse=True)

    async def count_step_executions_for_step(self, job_name: str, step_name: str) -> int:
        return len(self._steps_for(job_name, step_name))

    async def list_step_executions_for_step(
        self, job_name: str, step_name: str, offset: int, limit: int
    ) -> list[StepExecution]:
        return self._steps_for(job_name, step_name)[offset : offset + limit]

    # --- control ---

    def _next_run_id(self, job_name: str) -> int:
        run_ids = [
            int(i.parameters[RUN_ID_KEY])
            for i in self.instances.values()
            if i.job_name == job_name and i.parameters.get(RUN_ID_KEY, "").isdigit()
        ]
        return max(run_ids, default=0) + 1

    def _find_instance(self, job_name: str, parameters: dict[str, str]) -> JobInstance | None:
        for instance in self.instances.values():
            if instance.job_name == job_name and instance.parameters == parameters:
                return instance
        return None

    def add_instance(self, job_name: str, parameters: dict[str, str] | None = None) -> JobInstance:
        instance = JobInstance(id=self._next_instance_id, job_name=job_name, parameters=dict(parameters or {}))
        self._next_instance_id += 1
        self.instances[instance.id] = instance
        return instance

    def add_execution(
        self,
        job_name: str | None,
        instance: JobInstance | None = None,
        parameters: dict[str, str] | None = None,
        status: BatchStatus = BatchStatus.STARTED,
        exit_status: ExitStatus | None = None,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
    ) -> JobExecution:
        """Record an execution directly; ``instance=None`` models a single-run execution."""
        now = self._clock()
        execution = JobExecution(
            id=self._next_execution_id,
            job_name=job_name,
            job_instance_id=instance.id if instance else None,
            parameters=dict(parameters if parameters is not None else (instance.parameters if instance else {})),
            status=status,
            exit_status=exit_status,
            start_time=start_time or now,
            end_time=end_time,
            last_updated=now,
        )
        self._next_execution_id += 1
        self.executions[execution.id] = execution
        return execution

    def _require(self, execution_id: int) -> JobExecution:
        execution = self.executions.get(execution_id)
        if execution is None:
            raise NoSuchExecution(execution_id)
        return execution

    async def launch(self, job_name: str, parameters: dict[str, str]) -> JobExecution:
        definition = self.definitions.get(job_name)
        if definition is None:
            raise NoSuchJob(job_name)
        missing = [p for p in definition.required_parameters if p not in parameters]
        if missing:
            raise InvalidParameters(f"Job {job_name!r} requires parameter(s): {', '.join(missing)}")

        identifying = dict(parameters)
        if definition.incrementable and RUN_ID_KEY not in identifying:
            identifying[RUN_ID_KEY] = str(self._next_run_id(job_name))

        instance = self._find_instance(job_name, identifying)
        if instance is not None:
            prior = await self.get_job_executions_for_job_instance(job_name, instance.id)
            if any(e.status.is_running for e in prior):
                raise JobAlreadyRunning(f"A job execution for {job_name!r} with these parameters is already running")
            if any(e.status == BatchStatus.COMPLETED for e in prior):
                raise JobInstanceAlreadyComplete(
                    f"A job instance for {job_name!r} with these parameters already completed"
                )
            if prior and not definition.restartable:
                raise JobNotRestartable(f"Job {job_name!r} is not restartable")
        else:
            instance = self.add_instance(job_name, identifying)

        return self.add_execution(job_name, instance)

    async def stop(self, execution_id: int) -> JobExecution:
        execution = self._require(execution_id)
        if not execution.status.is_running:
            return execution
        now = self._clock()
        steps = tuple(
            replace(s, status=BatchStatus.STOPPING, last_updated=now) if s.status.is_running else s
            for s in execution.step_executions
        )
        stopped = replace(execution, status=BatchStatus.STOPPING, last_updated=now, step_executions=steps)
        self.executions[execution_id] = stopped
        return stopped

    async def restart(self, execution_id: int) -> JobExecution:
        execution = self._require(execution_id)
        if execution.status.is_running:
            raise JobAlreadyRunning(f"Execution {execution_id} is still running")
        if execution.status == BatchStatus.COMPLETED:
            raise JobNotRestartable(f"Execution {execution_id} already completed")
        if execution.job_name is None or not await self.is_restartable(execution.job_name):
            raise JobNotRestartable(f"Execution {execution_id} cannot be restarted")
        instance = self.instances.get(execution.job_instance_id) if execution.job_instance_id else None
        if instance is not None:
            siblings = await self.get_job_executions_for_job_instance(execution.job_name, instance.id)
            if any(e.status.is_running for e in siblings):
                raise JobAlreadyRunning(f"Job instance {instance.id} already has a running execution")
            if any(e.status == BatchStatus.COMPLETED for e in siblings):
                raise JobInstanceAlreadyComplete(f"Job instance {instance.id} already completed")
        return self.add_execution(execution.job_name, instance, parameters=execution.parameters)

    # --- state helpers ---

    def add_step(self, job_execution_id: int, step_name: str, **fields: Any) -> StepExecution:
        execution = self._require(job_execution_id)
        now = self._clock()
        fields.setdefault("status", BatchStatus.STARTED)
        fields.setdefault("start_time", now)
        fields.setdefault("last_updated", now)
        step = StepExecution(id=self._next_step_id, step_name=step_name, job_execution_id=job_execution_id, **fields)
        self._next_step_id += 1
        self.executions[job_execution_id] = replace(
            execution, step_executions=(*execution.step_executions, step), last_updated=now
        )
        return step

    def finish(
        self,
        execution_id: int,
        status: BatchStatus = BatchStatus.COMPLETED,
        exit_status: ExitStatus | None = None,
    ) -> JobExecution:
        """Move an execution (and its unfinished steps) into a final ``status``."""
        execution = self._require(execution_id)
        now = self._clock()
        steps = tuple(
            replace(s, status=status, end_time=now, last_updated=now) if s.status.is_running else s
            for s in execution.step_executions
        )
        finished = replace(
            execution,
            status=status,
            exit_status=exit_status or _FINAL_EXIT_STATUS.get(status, ExitStatus(status.value)),
            end_time=now,
            last_updated=now,
            step_executions=steps,
        )
        self.executions[execution_id] = finished
        return finished
