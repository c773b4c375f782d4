"""FastAPI dependencies wiring the ports to their adapters and the services."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from fastapi import Depends, Request

from batch_admin.config import Settings, get_settings
from batch_admin.core.control import JobControlService
from batch_admin.core.files import FileStagingService
from batch_admin.core.jobs import JobQueryService
from batch_admin.core.ports.files import FileStore
from batch_admin.core.ports.publisher import FilePublisher
from batch_admin.core.ports.repository import JobRepository
from batch_admin.db.definitions import load_job_definitions
from batch_admin.db.memory import InMemoryJobRepository
from batch_admin.logging_config import service_logger
from batch_admin.storage import InMemoryFilePublisher, LocalFileStore

logger = logging.getLogger(__name__)

_repository: JobRepository | None = None
_file_store: FileStore | None = None
_publisher: FilePublisher | None = None


def get_app_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


def get_request_id(request: Request) -> str:
    return str(getattr(request.state, "request_id", "-"))


async def get_job_repository(settings: Settings = Depends(get_app_settings)) -> AsyncIterator[JobRepository]:
    """Yield the job repository, creating it lazily on first call."""
    global _repository  # noqa: PLW0603
    if _repository is None:
        definitions = load_job_definitions(settings.jobs_file) if settings.jobs_file else []
        _repository = InMemoryJobRepository(definitions)
        logger.info("Job repository ready with %d job(s)", len(definitions))
    yield _repository


async def get_file_store(settings: Settings = Depends(get_app_settings)) -> AsyncIterator[FileStore]:
    global _file_store  # noqa: PLW0603
    if _file_store is None:
        _file_store = LocalFileStore(settings.files_dir)
        logger.info("Staging files under %s", settings.files_dir)
    yield _file_store


async def get_file_publisher() -> AsyncIterator[FilePublisher]:
    global _publisher  # noqa: PLW0603
    if _publisher is None:
        _publisher = InMemoryFilePublisher()
    yield _publisher


def get_file_service(
    store: FileStore = Depends(get_file_store),
    publisher: FilePublisher = Depends(get_file_publisher),
    settings: Settings = Depends(get_app_settings),
    request_id: str = Depends(get_request_id),
) -> FileStagingService:
    return FileStagingService(
        store,
        publisher,
        unique_paths=settings.unique_paths,
        log=service_logger("batch_admin.core.files", request_id),
    )


def get_query_service(
    repository: JobRepository = Depends(get_job_repository),
    request_id: str = Depends(get_request_id),
) -> JobQueryService:
    return JobQueryService(repository, log=service_logger("batch_admin.core.jobs", request_id))


def get_control_service(
    repository: JobRepository = Depends(get_job_repository),
    queries: JobQueryService = Depends(get_query_service),
    request_id: str = Depends(get_request_id),
) -> JobControlService:
    return JobControlService(repository, queries, log=service_logger("batch_admin.core.control", request_id))


async def shutdown_dependencies() -> None:
    global _repository, _file_store, _publisher  # noqa: PLW0603
    _repository = None
    _file_store = None
    _publisher = None
