"""File upload, download and metadata endpoints."""
from typing import List, Optional
from urllib.parse import unquote

from fastapi import APIRouter, Depends, File, Path, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from ... import schemas
from ...config import Settings
from ...dependencies import CurrentUser, get_app_settings, get_current_user, get_file_service, require_admin
from ...errors import NotFoundError
from ...services import FileService, IncomingFile, UploadOptions
from ...services.files import content_disposition
from ...utils import envelope

router = APIRouter(prefix="/files", tags=["files"])


def _file(record) -> schemas.FileRead:
    return schemas.FileRead.model_validate(record)


def _options(settings: Settings) -> UploadOptions:
    return UploadOptions(max_size=settings.max_file_size, allowed_types=settings.allowed_file_types)


async def _incoming(upload: UploadFile, max_size: int) -> IncomingFile:
    # one byte past the limit is enough to reject oversized files
    data = await upload.read(max_size + 1)
    return IncomingFile(
        filename=upload.filename or "",
        content_type=upload.content_type or "application/octet-stream",
        data=data,
    )


def _object_response(service: FileService, key: str, kind: str) -> Response:
    obj = service.get(key)
    if obj is None:
        raise NotFoundError("file not found")
    headers = {}
    if obj.etag:
        headers["ETag"] = obj.etag
    original = unquote(obj.metadata.get("original-name", "")) or key.rsplit("/", 1)[-1]
    headers["Content-Disposition"] = content_disposition(kind, original)
    return Response(content=obj.body, media_type=obj.content_type, headers=headers)


@router.post("/upload", status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    current: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
    service: FileService = Depends(get_file_service),
):
    incoming = await _incoming(file, settings.max_file_size)
    record = await run_in_threadpool(service.upload, incoming, current.id, _options(settings))
    return envelope(data=_file(record), message="file uploaded")


@router.post("/upload/multiple", status_code=201)
async def upload_files(
    files: List[UploadFile] = File(...),
    current: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
    service: FileService = Depends(get_file_service),
):
    incoming = [await _incoming(f, settings.max_file_size) for f in files]
    records = await run_in_threadpool(service.upload_many, incoming, current.id, _options(settings))
    return envelope(data=[_file(r) for r in records], message=f"{len(records)} files uploaded")


@router.get("/download/{key:path}")
def download_file(key: str, service: FileService = Depends(get_file_service)):
    return _object_response(service, key, "attachment")


@router.get("/view/{key:path}")
def view_file(key: str, service: FileService = Depends(get_file_service)):
    return _object_response(service, key, "inline")


@router.get("/list")
def list_files(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current: CurrentUser = Depends(get_current_user),
    service: FileService = Depends(get_file_service),
):
    records, pagination = service.list(current.id, page, limit)
    return envelope(data=[_file(r) for r in records], pagination=pagination)


@router.get("/info/{file_id}")
def file_info(
    file_id: str = Path(..., min_length=1, max_length=64),
    current: CurrentUser = Depends(get_current_user),
    service: FileService = Depends(get_file_service),
):
    return envelope(data=_file(service.info(file_id, current.id, current.role)))


@router.get("/stats")
def storage_stats(
    current: CurrentUser = Depends(get_current_user),
    service: FileService = Depends(get_file_service),
):
    return envelope(data=schemas.StorageStats(**service.storage_stats(current.id)))


# -------------------- Admin --------------------

@router.get("/admin/list")
def admin_list_files(
    user_id: Optional[int] = Query(None, ge=1),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    _: CurrentUser = Depends(require_admin),
    service: FileService = Depends(get_file_service),
):
    records, pagination = service.list(user_id, page, limit)
    return envelope(data=[_file(r) for r in records], pagination=pagination)


@router.get("/admin/stats")
def admin_storage_stats(
    user_id: Optional[int] = Query(None, ge=1),
    _: CurrentUser = Depends(require_admin),
    service: FileService = Depends(get_file_service),
):
    return envelope(data=schemas.StorageStats(**service.storage_stats(user_id)))


@router.delete("/{file_id}")
@router.delete("/delete/{file_id}")
def delete_file(
    file_id: str = Path(..., min_length=1, max_length=64),
    current: CurrentUser = Depends(get_current_user),
    service: FileService = Depends(get_file_service),
):
    service.delete(file_id, current.id, current.role)
    return envelope(message="file deleted")
