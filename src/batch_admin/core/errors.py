"""Domain error taxonomy shared by the services and the HTTP layer.

Every error carries a machine-readable ``code`` and the HTTP ``status`` it maps
to; ``batch_admin.api.errors`` turns them into structured JSON bodies.
"""

from __future__ import annotations


class BatchAdminError(Exception):
    """Base class for all errors raised by the gateway services."""

    code = "batch.error"
    status = 500

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


# --- 404 ---


class NotFound(BatchAdminError):
    code = "not.found"
    status = 404


class NoSuchJob(NotFound):
    code = "job.not.found"

    def __init__(self, job_name: str) -> None:
        super().__init__(f"No job named {job_name!r} is registered")
        self.job_name = job_name


class NoSuchJobInstance(NotFound):
    code = "job.instance.not.found"

    def __init__(self, instance_id: int) -> None:
        super().__init__(f"Job instance {instance_id} not found")
        self.instance_id = instance_id


class NoSuchExecution(NotFound):
    code = "job.execution.not.found"

    def __init__(self, execution_id: int) -> None:
        super().__init__(f"Job execution {execution_id} not found")
        self.execution_id = execution_id


class NoSuchStepExecution(NotFound):
    code = "step.execution.not.found"

    def __init__(self, job_execution_id: int, step_execution_id: int) -> None:
        super().__init__(f"Step execution {step_execution_id} not found in job execution {job_execution_id}")
        self.job_execution_id = job_execution_id
        self.step_execution_id = step_execution_id


class NoSuchFile(NotFound):
    code = "file.not.found"

    def __init__(self, path: str) -> None:
        super().__init__(f"File {path!r} not found")
        self.path = path


# --- 409 ---


class Conflict(BatchAdminError):
    code = "conflict"
    status = 409


class JobAlreadyRunning(Conflict):
    code = "job.already.running"


class JobInstanceAlreadyComplete(Conflict):
    code = "job.instance.already.complete"


class JobNotRestartable(Conflict):
    code = "job.not.restartable"


class PathConflict(Conflict):
    code = "file.path.conflict"

    def __init__(self, path: str) -> None:
        super().__init__(f"File {path!r} already exists")
        self.path = path


# --- 400 ---


class InvalidRequest(BatchAdminError):
    code = "invalid.request"
    status = 400


class InvalidPageRequest(InvalidRequest):
    code = "page.invalid"


class InvalidParameters(InvalidRequest):
    code = "job.parameters.invalid"


class InvalidPattern(InvalidRequest):
    code = "file.pattern.invalid"


class InvalidPath(InvalidRequest):
    code = "file.path.invalid"


# --- uploads ---


class UploadFailure(BatchAdminError):
    """An upload was rejected or could not be completed."""

    code = "file.upload.failed"

    def __init__(self, filename: str, message: str | None = None) -> None:
        super().__init__(message)
        self.filename = filename


class EmptyUpload(UploadFailure):
    code = "file.upload.empty"
    status = 400

    def __init__(self, filename: str) -> None:
        super().__init__(filename, f"File upload was empty for filename={filename!r}")


class UploadFailed(UploadFailure):
    code = "file.upload.failed"
    status = 500

    def __init__(self, filename: str) -> None:
        super().__init__(filename, f"File upload failed for {filename!r}")


class DownstreamPublishFailed(UploadFailure):
    code = "file.upload.failed.downstream"
    status = 502

    def __init__(self, filename: str) -> None:
        super().__init__(filename, f"File upload failed downstream processing for {filename!r}")
