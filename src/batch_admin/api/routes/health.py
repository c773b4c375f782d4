import logging

from fastapi import APIRouter, Depends, Response, status

from batch_admin.api.dependencies import get_file_store, get_job_repository
from batch_admin.api.schemas import HealthResponse, ReadinessResponse
from batch_admin.core.ports.files import FileStore
from batch_admin.core.ports.repository import JobRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse()


@router.get("/healthz/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    """Liveness check: is the process alive?"""
    return HealthResponse()


@router.get("/healthz/ready", response_model=ReadinessResponse)
async def readiness(
    response: Response,
    repository: JobRepository = Depends(get_job_repository),
    store: FileStore = Depends(get_file_store),
) -> ReadinessResponse:
    """Readiness check: can the job repository and the file store be queried?"""
    result = ReadinessResponse()
    try:
        await repository.count_jobs()
    except Exception:
        logger.warning("Job repository is not ready", exc_info=True)
        result.repository = "down"
    try:
        await store.stat("healthz")
    except Exception:
        logger.warning("File store is not ready", exc_info=True)
        result.files = "down"

    if result.repository == "down" or result.files == "down":
        result.status = "degraded"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return result
