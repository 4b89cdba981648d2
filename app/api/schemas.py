"""Pydantic schemas for the public API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class FileEntry(BaseModel):
    id: str
    name: str
    size: int
    size_display: str
    mime_type: str
    category: Optional[str] = None
    lead_id: str
    url: Optional[str] = None
    primary_url: Optional[str] = None
    drive_file_id: Optional[str] = None
    drive_view_url: Optional[str] = None
    storage_location: Literal["primary", "secondary", "both"]
    created_at: Optional[datetime] = None
    created_display: Optional[str] = None


class FileListing(BaseModel):
    files: List[FileEntry] = Field(default_factory=list)
    total_count: int = 0
    total_size: int = 0
    total_size_display: Optional[str] = None


class StorageWarning(BaseModel):
    backend: Literal["primary", "secondary"]
    reason: str


class FileUploadResponse(BaseModel):
    success: bool = True
    file: FileEntry
    degraded: bool = False
    warnings: List[StorageWarning] = Field(default_factory=list)


class FileUrlResponse(BaseModel):
    file_id: str
    type: Literal["view", "download"]
    url: str


class FileDeleteResponse(BaseModel):
    file_id: str
    status: Literal["deleted", "not_found"]
    cleanup_warnings: List[StorageWarning] = Field(default_factory=list)


class WebhookAck(BaseModel):
    success: bool = True
    message: str
    task_id: Optional[str] = None
