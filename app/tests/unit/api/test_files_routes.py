"""Tests for the lead file routes."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Dict, List, Optional

import pytest
from fastapi import HTTPException

from app.api.routes import files as files_routes
from app.db import FileRecord, MetadataStoreError
from app.db.client import SupabaseDatabaseClient
from app.db.models import StorageBackend
from app.services.dual_file_storage import (
    BackendDeletionFailure,
    DeletionResult,
    DeletionStatus,
    MetadataPersistError,
    PrimaryStorageError,
    SecondaryStorageWarning,
    UploadResult,
)


class StubUploadFile:
    def __init__(self, data: bytes, filename: str = "estimate.pdf", content_type: Optional[str] = "application/pdf"):
        self._data = data
        self.filename = filename
        self.content_type = content_type
        self.size = len(data)

    async def read(self) -> bytes:
        return self._data


def _record(**kwargs) -> FileRecord:
    defaults = dict(
        id="file-1",
        name="estimate.pdf",
        size=2400,
        mime_type="application/pdf",
        owner_id="lead-42",
        primary_url="https://store/abc.pdf",
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )
    defaults.update(kwargs)
    return FileRecord(**defaults)


class StubStorage:
    def __init__(self, *, result=None, error: Optional[Exception] = None, deletion=None):
        self.result = result
        self.error = error
        self.deletion = deletion
        self.calls: List[Dict[str, object]] = []

    def upload(self, upload, *, owner_id, category=None, display_name=None):
        self.calls.append({"upload": upload, "owner_id": owner_id, "category": category, "display_name": display_name})
        if self.error is not None:
            raise self.error
        return self.result

    def delete_file(self, file_id):
        if self.error is not None:
            raise self.error
        return self.deletion


class StubDB:
    def __init__(self, records: Optional[Dict[str, FileRecord]] = None, *, error: bool = False):
        self.records = records or {}
        self.error = error

    def get_file_record(self, file_id):
        if self.error:
            raise MetadataStoreError("timeout")
        return self.records.get(file_id)

    def list_file_records(self, owner_id, *, category=None, limit=100):
        if self.error:
            raise MetadataStoreError("timeout")
        return [record for record in self.records.values() if record.owner_id == owner_id]


def _upload(storage: StubStorage, data: bytes = b"%PDF" * 600, **form):
    return asyncio.run(
        files_routes.upload_file(
            file=StubUploadFile(data),
            lead_id=form.get("lead_id", "lead-42"),
            category=form.get("category"),
            custom_file_name=form.get("custom_file_name"),
            user_id="user-1",
            storage=storage,
        )
    )


def test_upload_returns_record_and_degradation_warnings() -> None:
    result = UploadResult(record=_record(), warnings=(SecondaryStorageWarning(reason="TimeoutError"),))
    storage = StubStorage(result=result)

    response = _upload(storage, category="contract", custom_file_name="Estimate.pdf")

    assert response.file.id == "file-1"
    assert response.file.storage_location == "primary"
    assert response.degraded is True
    assert response.warnings[0].backend == "secondary"
    assert storage.calls[0]["owner_id"] == "lead-42"
    assert storage.calls[0]["display_name"] == "Estimate.pdf"
    assert storage.calls[0]["upload"].size == 2400


def test_upload_rejects_empty_file() -> None:
    with pytest.raises(HTTPException) as exc:
        _upload(StubStorage(), data=b"")

    assert exc.value.status_code == 400


def test_upload_rejects_oversized_file(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(files_routes, "CONFIG", SimpleNamespace(max_upload_bytes=10))

    with pytest.raises(HTTPException) as exc:
        _upload(StubStorage(), data=b"x" * 11)

    assert exc.value.status_code == 413


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (PrimaryStorageError("bucket down"), 502),
        (MetadataPersistError("insert failed", orphaned=("primary:https://store/abc.pdf",)), 500),
    ],
)
def test_upload_maps_storage_errors(error: Exception, status_code: int) -> None:
    with pytest.raises(HTTPException) as exc:
        _upload(StubStorage(error=error))

    assert exc.value.status_code == status_code
    assert "bucket" not in exc.value.detail


def test_list_lead_files_summarises_sizes() -> None:
    db = StubDB({"file-1": _record(), "file-2": _record(id="file-2", size=100, owner_id="lead-7")})

    listing = files_routes.list_lead_files("lead-42", category=None, limit=100, user_id="user-1", db=db)

    assert listing.total_count == 1
    assert listing.total_size == 2400
    assert listing.files[0].lead_id == "lead-42"


def test_list_lead_files_surfaces_store_errors() -> None:
    with pytest.raises(HTTPException) as exc:
        files_routes.list_lead_files("lead-42", category=None, limit=100, user_id="user-1", db=StubDB(error=True))

    assert exc.value.status_code == 500


def test_get_file_url_resolves_download_for_drive_only_file() -> None:
    record = _record(primary_url=None, secondary_ref="drv-1", secondary_view_url="https://drive.google.com/file/d/drv-1/view")
    db = StubDB({"file-1": record})

    response = files_routes.get_file_url("file-1", url_type="download", user_id="user-1", db=db)

    assert response.url == "https://drive.google.com/uc?id=drv-1&export=download"


def test_get_file_url_unknown_id_is_404() -> None:
    with pytest.raises(HTTPException) as exc:
        files_routes.get_file_url("missing", url_type="view", user_id="user-1", db=StubDB())

    assert exc.value.status_code == 404


class StubFilesTable:
    def __init__(self, rows: List[Dict[str, object]]):
        self.rows = rows

    def select(self, *_args):
        return self

    def eq(self, column, value):
        self.rows = [row for row in self.rows if row.get(column) == value]
        return self

    def limit(self, *_args):
        return self

    def execute(self):
        return SimpleNamespace(data=list(self.rows))


def _store_with_rows(rows: List[Dict[str, object]]) -> SupabaseDatabaseClient:
    return SupabaseDatabaseClient(SimpleNamespace(table=lambda name: StubFilesTable(list(rows))))


@pytest.mark.parametrize("route", ["url", "serve"])
def test_row_without_any_location_is_500(route: str) -> None:
    db = _store_with_rows([{"id": "file-1", "name": "estimate.pdf", "lead_id": "lead-1"}])

    with pytest.raises(HTTPException) as exc:
        if route == "url":
            files_routes.get_file_url("file-1", url_type="view", user_id="user-1", db=db)
        else:
            files_routes.serve_file("file-1", user_id="user-1", db=db)

    assert exc.value.status_code == 500
    assert "corrupt" in exc.value.detail


def test_get_file_url_reads_through_metadata_store() -> None:
    db = _store_with_rows([{"id": "file-2", "name": "roof.jpg", "lead_id": "lead-1", "drive_file_id": "drv-2"}])

    response = files_routes.get_file_url("file-2", url_type="download", user_id="user-1", db=db)

    assert response.url == "https://drive.google.com/uc?id=drv-2&export=download"


def test_serve_redirects_permanently_for_primary_and_temporarily_for_drive() -> None:
    db = StubDB(
        {
            "file-1": _record(),
            "file-2": _record(id="file-2", primary_url=None, secondary_ref="drv-2"),
        }
    )

    primary = files_routes.serve_file("file-1", user_id="user-1", db=db)
    drive = files_routes.serve_file("file-2", user_id="user-1", db=db)

    assert primary.status_code == 301
    assert primary.headers["location"] == "https://store/abc.pdf"
    assert drive.status_code == 302
    assert drive.headers["location"] == "https://drive.google.com/file/d/drv-2/view"


def test_delete_reports_cleanup_warnings() -> None:
    deletion = DeletionResult(
        status=DeletionStatus.DELETED,
        file_id="file-1",
        failures=(BackendDeletionFailure(StorageBackend.SECONDARY, "DriveError: rate limited"),),
    )

    response = files_routes.delete_file("file-1", user_id="user-1", storage=StubStorage(deletion=deletion))

    assert response.status == "deleted"
    assert response.cleanup_warnings[0].backend == "secondary"


def test_delete_of_unknown_file_is_not_an_error() -> None:
    deletion = DeletionResult(status=DeletionStatus.NOT_FOUND, file_id="gone")

    response = files_routes.delete_file("gone", user_id="user-1", storage=StubStorage(deletion=deletion))

    assert response.status == "not_found"
    assert response.cleanup_warnings == []


def test_delete_metadata_failure_is_500() -> None:
    with pytest.raises(HTTPException) as exc:
        files_routes.delete_file("file-1", user_id="user-1", storage=StubStorage(error=MetadataPersistError("x")))

    assert exc.value.status_code == 500
