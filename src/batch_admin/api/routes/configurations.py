from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from batch_admin.api.dependencies import get_app_settings, get_query_service
from batch_admin.api.pagination import get_page_request
from batch_admin.api.schemas import JobSummaryResource, PagedResources, paged, resource
from batch_admin.config import Settings
from batch_admin.core.jobs import JobQueryService
from batch_admin.core.links import link, link_page
from batch_admin.core.pagination import PageRequest, paginate

router = APIRouter(prefix="/configurations", tags=["jobs"])


@router.get("", response_model=PagedResources[JobSummaryResource])
async def list_jobs(
    page_request: PageRequest = Depends(get_page_request),
    queries: JobQueryService = Depends(get_query_service),
    settings: Settings = Depends(get_app_settings),
) -> PagedResources[JobSummaryResource]:
    jobs = await queries.list_jobs(page_request.offset, page_request.limit)
    total = await queries.count_jobs()
    page = paginate(page_request.offset, page_request.limit, total, jobs)
    root = settings.api_prefix
    return paged(JobSummaryResource, link_page(page, f"{root}/configurations", root=root))


@router.get("/{job_name}", response_model=JobSummaryResource)
async def job_detail(
    job_name: str,
    start_job_instance: int = Query(0, alias="startJobInstance"),
    page_size: int = Query(20, alias="pageSize"),
    queries: JobQueryService = Depends(get_query_service),
    settings: Settings = Depends(get_app_settings),
) -> JobSummaryResource:
    """Summary of one job plus up to ``pageSize`` of its instances starting at ``startJobInstance``."""
    summary = await queries.get_job(job_name, start_job_instance, page_size)
    root = settings.api_prefix
    return resource(JobSummaryResource, link(summary, f"{root}/configurations", root=root))
