from typing import Protocol

from batch_admin.core.domain import JobExecution, JobInstance, StepExecution


class JobRepository(Protocol):
    async def list_jobs(self, offset: int, limit: int) -> list[str]: ...

    async def count_jobs(self) -> int: ...

    async def is_registered(self, job_name: str) -> bool: ...

    async def is_launchable(self, job_name: str) -> bool: ...

    async def is_incrementable(self, job_name: str) -> bool: ...

    async def is_restartable(self, job_name: str) -> bool: ...

    async def list_job_instances(self, job_name: str, offset: int, limit: int) -> list[JobInstance]: ...

    async def count_job_instances(self, job_name: str) -> int: ...

    async def get_job_instance(self, instance_id: int) -> JobInstance | None: ...

    async def list_job_executions(self, offset: int, limit: int) -> list[JobExecution]: ...

    async def count_job_executions(self) -> int: ...

    async def list_job_executions_for_job(self, job_name: str, offset: int, limit: int) -> list[JobExecution]: ...

    async def count_job_executions_for_job(self, job_name: str) -> int: ...

    async def get_job_executions_for_job_instance(self, job_name: str, instance_id: int) -> list[JobExecution]: ...

    async def get_job_execution(self, execution_id: int) -> JobExecution | None: ...

    async def list_running_executions(self) -> list[JobExecution]: ...

    async def get_step_executions(self, job_execution_id: int) -> list[StepExecution]: ...

    async def get_step_execution(self, job_execution_id: int, step_execution_id: int) -> StepExecution | None: ...

    async def count_step_executions_for_step(self, job_name: str, step_name: str) -> int: ...

    async def list_step_executions_for_step(
        self, job_name: str, step_name: str, offset: int, limit: int
    ) -> list[StepExecution]: ...

    async def launch(self, job_name: str, parameters: dict[str, str]) -> JobExecution: ...

    async def stop(self, execution_id: int) -> JobExecution: ...

    async def restart(self, execution_id: int) -> JobExecution: ...
