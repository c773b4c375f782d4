from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, File, Form, UploadFile

from batch_admin.api.dependencies import get_app_settings, get_file_service
from batch_admin.api.pagination import get_page_request
from batch_admin.api.schemas import FileInfoResource, PagedResources, paged, resource
from batch_admin.config import Settings
from batch_admin.core.files import FileStagingService
from batch_admin.core.links import link, link_page
from batch_admin.core.models import FileInfo
from batch_admin.core.pagination import PageRequest, paginate

router = APIRouter(prefix="/files", tags=["files"])

_CHUNK_SIZE = 1024 * 1024


async def _read_chunks(upload: UploadFile) -> AsyncIterator[bytes]:
    while True:
        chunk = await upload.read(_CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


async def _upload(
    directory: str,
    upload: UploadFile,
    service: FileStagingService,
    settings: Settings,
) -> FileInfoResource:
    try:
        info = await service.upload_and_publish(directory, upload.filename, _read_chunks(upload))
    finally:
        await upload.close()
    return resource(FileInfoResource, link(info, f"{settings.api_prefix}/files"))


@router.get("", response_model=PagedResources[FileInfoResource])
async def list_files(
    page_request: PageRequest = Depends(get_page_request),
    service: FileStagingService = Depends(get_file_service),
    settings: Settings = Depends(get_app_settings),
) -> PagedResources[FileInfoResource]:
    files, total = await service.list(page_request.offset, page_request.limit)
    page = paginate(page_request.offset, page_request.limit, total, files)
    return paged(FileInfoResource, link_page(page, f"{settings.api_prefix}/files", root=settings.api_prefix))


@router.get("/{path:path}", response_model=FileInfoResource)
async def get_file(
    path: str,
    service: FileStagingService = Depends(get_file_service),
    settings: Settings = Depends(get_app_settings),
) -> FileInfoResource:
    info = await service.get(path)
    return resource(FileInfoResource, link(info, f"{settings.api_prefix}/files"))


@router.delete("/{pattern:path}", response_model=FileInfoResource)
async def delete_files(
    pattern: str,
    service: FileStagingService = Depends(get_file_service),
    settings: Settings = Depends(get_app_settings),
) -> FileInfoResource:
    """Delete every staged file matching ``pattern``; ``deleteCount`` reports how many were removed."""
    deleted = await service.delete(pattern)
    info = FileInfo(path=pattern, short_path=pattern, timestamp="", local=True, delete_count=deleted)
    return resource(FileInfoResource, link(info, f"{settings.api_prefix}/files"))


@router.post("", response_model=FileInfoResource)
async def upload_request(
    path: str = Form(..., description="Directory the file should be stored in"),
    file: UploadFile = File(...),
    service: FileStagingService = Depends(get_file_service),
    settings: Settings = Depends(get_app_settings),
) -> FileInfoResource:
    return await _upload(path, file, service, settings)


@router.post("/{path:path}", response_model=FileInfoResource)
async def upload(
    path: str,
    file: UploadFile = File(...),
    service: FileStagingService = Depends(get_file_service),
    settings: Settings = Depends(get_app_settings),
) -> FileInfoResource:
    return await _upload(path, file, service, settings)
