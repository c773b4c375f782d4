from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from batch_admin.api.dependencies import get_app_settings, get_control_service, get_query_service
from batch_admin.api.pagination import get_page_request
from batch_admin.api.schemas import (
    JobExecutionResource,
    JobLaunchRequest,
    PagedResources,
    StepExecutionProgressResource,
    StepExecutionResource,
    StopAllResponse,
    paged,
    resource,
    resources,
)
from batch_admin.config import Settings
from batch_admin.core.control import JobControlService, parse_job_parameters
from batch_admin.core.errors import InvalidRequest
from batch_admin.core.jobs import JobQueryService
from batch_admin.core.links import link, link_all, link_page
from batch_admin.core.pagination import PageRequest, paginate

router = APIRouter(prefix="/executions", tags=["executions"])


@router.get("", response_model=None)
async def list_executions(
    jobname: str | None = Query(None, description="Only executions of this job"),
    jobinstanceid: int | None = Query(None, description="Only executions of this job instance"),
    page_request: PageRequest = Depends(get_page_request),
    queries: JobQueryService = Depends(get_query_service),
    settings: Settings = Depends(get_app_settings),
) -> PagedResources[JobExecutionResource] | list[JobExecutionResource]:
    """List executions: all, those of one job (paged), or those of one job instance (unpaged)."""
    root = settings.api_prefix
    base = f"{root}/executions"

    if jobinstanceid is not None:
        if not jobname:
            raise InvalidRequest("jobname is required together with jobinstanceid")
        executions = await queries.list_executions_for_instance(jobname, jobinstanceid)
        return resources(JobExecutionResource, link_all(executions, base, root))

    offset, limit = page_request.offset, page_request.limit
    if jobname:
        executions = await queries.list_executions_for_job(jobname, offset, limit)
        total = await queries.count_executions_for_job(jobname)
        query = {"jobname": jobname}
    else:
        executions = await queries.list_executions(offset, limit)
        total = await queries.count_executions()
        query = {}
    page = paginate(offset, limit, total, executions)
    return paged(JobExecutionResource, link_page(page, base, query=query, root=root))


@router.post("", response_model=JobExecutionResource, status_code=status.HTTP_201_CREATED)
async def launch(
    body: JobLaunchRequest,
    control: JobControlService = Depends(get_control_service),
    settings: Settings = Depends(get_app_settings),
) -> JobExecutionResource:
    parameters = {**parse_job_parameters(body.jobparameters), **body.parameters}
    execution = await control.launch(body.jobname, parameters)
    root = settings.api_prefix
    return resource(JobExecutionResource, link(execution, f"{root}/executions", root))


@router.put("", response_model=StopAllResponse)
async def stop_all(
    stop: bool = Query(False, description="must equal true"),
    control: JobControlService = Depends(get_control_service),
) -> StopAllResponse:
    if not stop:
        raise InvalidRequest("PUT /executions requires stop=true")
    return StopAllResponse(stop_count=await control.stop_all())


@router.put("/{execution_id}", response_model=JobExecutionResource)
async def control_execution(
    execution_id: int,
    response: Response,
    stop: bool = Query(False),
    restart: bool = Query(False),
    control: JobControlService = Depends(get_control_service),
    settings: Settings = Depends(get_app_settings),
) -> JobExecutionResource:
    """Stop (``stop=true``) or restart (``restart=true``) one execution."""
    if stop == restart:
        raise InvalidRequest("Exactly one of stop=true or restart=true is required")
    if stop:
        execution = await control.stop(execution_id)
    else:
        execution = await control.restart(execution_id)
        response.status_code = status.HTTP_201_CREATED
    root = settings.api_prefix
    return resource(JobExecutionResource, link(execution, f"{root}/executions", root))


@router.get("/{execution_id}", response_model=JobExecutionResource)
async def execution_detail(
    execution_id: int,
    queries: JobQueryService = Depends(get_query_service),
    settings: Settings = Depends(get_app_settings),
) -> JobExecutionResource:
    execution = await queries.get_execution(execution_id)
    root = settings.api_prefix
    return resource(JobExecutionResource, link(execution, f"{root}/executions", root))


@router.get("/{execution_id}/steps", response_model=list[StepExecutionResource])
async def list_steps(
    execution_id: int,
    queries: JobQueryService = Depends(get_query_service),
    settings: Settings = Depends(get_app_settings),
) -> list[StepExecutionResource]:
    steps = await queries.list_step_executions(execution_id)
    return resources(StepExecutionResource, link_all(steps, f"{settings.api_prefix}/executions"))


@router.get("/{execution_id}/steps/{step_execution_id}", response_model=StepExecutionResource)
async def step_detail(
    execution_id: int,
    step_execution_id: int,
    queries: JobQueryService = Depends(get_query_service),
    settings: Settings = Depends(get_app_settings),
) -> StepExecutionResource:
    step = await queries.get_step_execution(execution_id, step_execution_id)
    return resource(StepExecutionResource, link(step, f"{settings.api_prefix}/executions"))


@router.get("/{execution_id}/steps/{step_execution_id}/progress", response_model=StepExecutionProgressResource)
async def step_progress(
    execution_id: int,
    step_execution_id: int,
    queries: JobQueryService = Depends(get_query_service),
    settings: Settings = Depends(get_app_settings),
) -> StepExecutionProgressResource:
    progress = await queries.get_step_progress(execution_id, step_execution_id)
    return resource(StepExecutionProgressResource, link(progress, f"{settings.api_prefix}/executions"))
