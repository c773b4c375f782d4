from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from batch_admin.core.models import LinkedPage, LinkedResource


class ApiModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class LinkSchema(ApiModel):
    rel: str
    href: str


class Resource(ApiModel):
    links: list[LinkSchema] = Field(default_factory=list)


# --- resources ---


class FileInfoResource(Resource):
    path: str
    short_path: str
    timestamp: str
    local: bool
    delete_count: int = 0


class ExitStatusSchema(ApiModel):
    code: str
    description: str
    running: bool


class JobExecutionResource(Resource):
    id: int
    job_instance_id: int | None = None
    job_name: str | None = None
    parameters: dict[str, str] = Field(default_factory=dict)
    start_time: datetime | None = None
    end_time: datetime | None = None
    last_updated: datetime | None = None
    exit_status: ExitStatusSchema | None = None
    step_execution_count: int = 0
    duration: str | None = None
    status: str
    running: bool


class JobInstanceResource(Resource):
    id: int
    job_name: str
    executions: list[JobExecutionResource] = Field(default_factory=list)


class JobSummaryResource(Resource):
    name: str
    launchable: bool
    incrementable: bool
    execution_count: int
    last_execution: JobExecutionResource | None = None
    job_instances: list[JobInstanceResource] | None = None


class StepExecutionResource(Resource):
    id: int
    name: str
    job_execution_id: int
    execution_context: dict[str, Any] = Field(default_factory=dict)
    last_updated: datetime | None = None
    status: str
    read_count: int = 0
    write_count: int = 0
    commit_count: int = 0
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: str | None = None


class StepExecutionProgressResource(Resource):
    current: StepExecutionResource
    percent_complete: float | None = None
    estimated_duration: str | None = None
    history_count: int = 0


ResourceT = TypeVar("ResourceT", bound=Resource)


class PageMetadata(ApiModel):
    number: int
    size: int
    total_elements: int
    total_pages: int


class PagedResources(ApiModel, Generic[ResourceT]):
    content: list[ResourceT]
    links: list[LinkSchema]
    page: PageMetadata


def resource(schema: type[ResourceT], linked: LinkedResource[Any]) -> ResourceT:
    """Flatten a linked entity into its response schema."""
    model = schema.model_validate(linked.entity)
    return model.model_copy(update={"links": [LinkSchema.model_validate(link) for link in linked.links]})


def resources(schema: type[ResourceT], linked: list[LinkedResource[Any]]) -> list[ResourceT]:
    return [resource(schema, item) for item in linked]


def paged(schema: type[ResourceT], linked: LinkedPage[Any]) -> PagedResources[ResourceT]:
    page = linked.page
    return PagedResources[schema](  # type: ignore[valid-type]
        content=resources(schema, page.content),
        links=[LinkSchema.model_validate(link) for link in linked.links],
        page=PageMetadata(
            number=page.page_number,
            size=page.page_size,
            total_elements=page.total_elements,
            total_pages=page.total_pages,
        ),
    )


# --- requests and plain responses ---


class JobLaunchRequest(BaseModel):
    """POST /executions body; ``jobparameters`` is the ``key=value,...`` form."""

    jobname: str
    jobparameters: str | None = None
    parameters: dict[str, str] = Field(default_factory=dict)


class StopAllResponse(ApiModel):
    stop_count: int


class ErrorResponse(ApiModel):
    error: str
    message: str
    status: int


class HealthResponse(BaseModel):
    status: str = "ok"


class ReadinessResponse(BaseModel):
    status: str = "ok"
    repository: str = "up"
    files: str = "up"
