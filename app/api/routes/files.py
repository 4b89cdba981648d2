"""Lead file endpoints backed by the dual-destination storage layer."""

from __future__ import annotations

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import RedirectResponse

from app.api.dependencies import get_current_user_id, get_database, get_file_storage
from app.api.schemas import (
    FileDeleteResponse,
    FileEntry,
    FileListing,
    FileUploadResponse,
    FileUrlResponse,
    StorageWarning,
)
from app.config import CONFIG
from app.db import DatabaseClient, FileRecord, InvalidFileRecord, MetadataStoreError
from app.services.dual_file_storage import (
    DualFileStorageService,
    MetadataPersistError,
    PrimaryStorageError,
    UnresolvableFile,
)
from app.services.file_urls import is_primary_url, resolve_download_url, resolve_view_url
from app.services.files import FileUpload, format_file_size, guess_media_type, serialize_file_records

logger = logging.getLogger(__name__)

router = APIRouter()

_CORRUPT_METADATA = "File metadata is corrupt; no storage location is recorded."


def _max_upload_bytes() -> int:
    return int(getattr(CONFIG, "max_upload_bytes", None) or 25 * 1024 * 1024)


def _entry(record: FileRecord) -> FileEntry:
    return FileEntry(**serialize_file_records([record])[0])


def _load_record(db: DatabaseClient, file_id: str) -> FileRecord:
    try:
        record = db.get_file_record(file_id)
    except InvalidFileRecord as exc:
        logger.error("File %s has a corrupt metadata row: %s", file_id, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_CORRUPT_METADATA,
        ) from exc
    except MetadataStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not load file metadata.",
        ) from exc
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return record


@router.post("/files", response_model=FileUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile = File(..., description="Binary file to upload"),
    lead_id: str = Form(..., min_length=1),
    category: Optional[str] = Form(default=None),
    custom_file_name: Optional[str] = Form(default=None),
    user_id: str = Depends(get_current_user_id),
    storage: DualFileStorageService = Depends(get_file_storage),
) -> FileUploadResponse:
    """Store a lead document in the primary store with a Drive backup copy."""

    limit = _max_upload_bytes()
    if file.size and file.size > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Uploaded file exceeds the maximum allowed size.",
        )

    data = await file.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file was empty.")

    if len(data) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Uploaded file exceeds the maximum allowed size.",
        )

    file_name = file.filename or "upload.bin"
    upload = FileUpload(
        filename=file_name,
        content=data,
        mime_type=file.content_type or guess_media_type(file_name),
    )

    try:
        result = storage.upload(
            upload,
            owner_id=lead_id,
            category=category or None,
            display_name=custom_file_name or None,
        )
    except PrimaryStorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="File storage is unavailable. The file was not uploaded; please try again.",
        ) from exc
    except MetadataPersistError as exc:
        if exc.orphaned:
            logger.error("Upload by %s left orphaned artifacts: %s", user_id, ", ".join(exc.orphaned))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="The file could not be saved. Please try again.",
        ) from exc

    return FileUploadResponse(
        file=_entry(result.record),
        degraded=result.degraded,
        warnings=[StorageWarning(backend=w.backend.value, reason=w.reason) for w in result.warnings],
    )


@router.get("/leads/{lead_id}/files", response_model=FileListing, status_code=status.HTTP_200_OK)
def list_lead_files(
    lead_id: str,
    category: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
    db: DatabaseClient = Depends(get_database),
) -> FileListing:
    """Return the files attached to a lead, newest first."""

    try:
        records = db.list_file_records(lead_id, category=category, limit=limit)
    except MetadataStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not load files for this lead.",
        ) from exc

    entries = [FileEntry(**item) for item in serialize_file_records(records)]
    total_size = sum(entry.size for entry in entries)
    return FileListing(
        files=entries,
        total_count=len(entries),
        total_size=total_size,
        total_size_display=format_file_size(total_size),
    )


@router.get("/files/{file_id}/url", response_model=FileUrlResponse, status_code=status.HTTP_200_OK)
def get_file_url(
    file_id: str,
    url_type: Literal["view", "download"] = Query(default="view", alias="type"),
    user_id: str = Depends(get_current_user_id),
    db: DatabaseClient = Depends(get_database),
) -> FileUrlResponse:
    record = _load_record(db, file_id)
    resolver = resolve_download_url if url_type == "download" else resolve_view_url
    try:
        url = resolver(record)
    except UnresolvableFile as exc:
        logger.error("File %s has no resolvable URL: %s", file_id, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_CORRUPT_METADATA,
        ) from exc
    return FileUrlResponse(file_id=file_id, type=url_type, url=url)


@router.get("/files/{file_id}/serve")
def serve_file(
    file_id: str,
    user_id: str = Depends(get_current_user_id),
    db: DatabaseClient = Depends(get_database),
) -> RedirectResponse:
    """Redirect to the best available copy of a file."""

    record = _load_record(db, file_id)
    try:
        url = resolve_view_url(record)
    except UnresolvableFile as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_CORRUPT_METADATA,
        ) from exc

    # Primary URLs are immutable objects; Drive links may change if the backup is repaired.
    if is_primary_url(record, url):
        return RedirectResponse(url, status_code=status.HTTP_301_MOVED_PERMANENTLY)
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@router.delete("/files/{file_id}", response_model=FileDeleteResponse, status_code=status.HTTP_200_OK)
def delete_file(
    file_id: str,
    user_id: str = Depends(get_current_user_id),
    storage: DualFileStorageService = Depends(get_file_storage),
) -> FileDeleteResponse:
    try:
        result = storage.delete_file(file_id)
    except MetadataPersistError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="The file could not be deleted. Please try again.",
        ) from exc

    return FileDeleteResponse(
        file_id=file_id,
        status=result.status.value,
        cleanup_warnings=[
            StorageWarning(backend=failure.backend.value, reason=failure.reason) for failure in result.failures
        ],
    )
