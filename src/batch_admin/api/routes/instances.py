from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from batch_admin.api.dependencies import get_app_settings, get_query_service
from batch_admin.api.pagination import get_page_request
from batch_admin.api.schemas import JobInstanceResource, PagedResources, paged, resource
from batch_admin.config import Settings
from batch_admin.core.jobs import JobQueryService
from batch_admin.core.links import link, link_page
from batch_admin.core.pagination import PageRequest, paginate

router = APIRouter(prefix="/instances", tags=["instances"])


@router.get("", response_model=PagedResources[JobInstanceResource])
async def list_instances(
    jobname: str = Query(..., description="name of the job"),
    page_request: PageRequest = Depends(get_page_request),
    queries: JobQueryService = Depends(get_query_service),
    settings: Settings = Depends(get_app_settings),
) -> PagedResources[JobInstanceResource]:
    instances = await queries.list_instances(jobname, page_request.offset, page_request.limit)
    total = await queries.count_instances(jobname)
    page = paginate(page_request.offset, page_request.limit, total, instances)
    root = settings.api_prefix
    return paged(JobInstanceResource, link_page(page, f"{root}/instances", query={"jobname": jobname}, root=root))


@router.get("/{instance_id}", response_model=JobInstanceResource)
async def instance_detail(
    instance_id: int,
    queries: JobQueryService = Depends(get_query_service),
    settings: Settings = Depends(get_app_settings),
) -> JobInstanceResource:
    instance = await queries.get_instance(instance_id)
    root = settings.api_prefix
    return resource(JobInstanceResource, link(instance, f"{root}/instances", root))
