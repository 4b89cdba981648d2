"""Shared helpers for describing uploaded lead files."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from app.db.models import FileRecord

DEFAULT_MIME_TYPE = "application/octet-stream"

_EXTENSION_MAP = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".heic": "image/heic",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".csv": "text/csv",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


@dataclass(frozen=True)
class FileUpload:
    """Raw bytes handed to the storage layer along with their description."""

    filename: str
    content: bytes
    mime_type: str = DEFAULT_MIME_TYPE
    size: int = field(default=-1)

    def __post_init__(self) -> None:
        if self.size < 0:
            object.__setattr__(self, "size", len(self.content))
        if not self.mime_type:
            object.__setattr__(self, "mime_type", guess_media_type(self.filename))


def format_file_size(num_bytes: int) -> str:
    """Return a human readable file size string."""
    step = 1024.0
    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    size = float(max(num_bytes, 0))

    for index, unit in enumerate(units):
        is_last_unit = index == len(units) - 1
        if size < step or is_last_unit:
            if unit == "B":
                return f"{int(size)} {unit}"
            return f"{size:.1f} {unit}" if size != int(size) else f"{int(size)} {unit}"
        size /= step

    return "0 B"


def format_file_timestamp(dt_obj: datetime) -> str:
    """Format a datetime object for display."""
    return dt_obj.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def sanitize_file_name(candidate: str, default: str = "upload.bin") -> str:
    """Return a path-safe file name."""

    name = Path(candidate or "").name
    if not name or name in {".", ".."}:
        name = default
    return name


def guess_media_type(file_name: str) -> str:
    """Return an appropriate media type for the given filename."""

    suffix = PurePosixPath(file_name or "").suffix.lower()
    if suffix in _EXTENSION_MAP:
        return _EXTENSION_MAP[suffix]
    guessed, _ = mimetypes.guess_type(file_name or "")
    return guessed or DEFAULT_MIME_TYPE


def build_object_path(
    owner_id: str,
    file_name: str,
    *,
    category: Optional[str] = None,
    prefix: str = "leads",
) -> str:
    """Return a collision-free object path such as ``leads/<owner>/<category>/<uuid>.pdf``."""

    suffix = PurePosixPath(sanitize_file_name(file_name)).suffix.lower()
    unique_name = f"{uuid4().hex}{suffix}" if suffix else uuid4().hex
    segments = [prefix.strip("/"), owner_id, (category or "file").strip("/") or "file", unique_name]
    return "/".join(segment for segment in segments if segment)


def serialize_file_records(records: Iterable[FileRecord]) -> List[Dict[str, Any]]:
    """Convert file records to dictionaries suitable for JSON responses."""
    serialized: List[Dict[str, Any]] = []
    for record in records:
        serialized.append(
            {
                "id": record.id,
                "name": record.name,
                "size": record.size,
                "size_display": format_file_size(record.size),
                "mime_type": record.mime_type,
                "category": record.category,
                "lead_id": record.owner_id,
                "url": record.canonical_url,
                "primary_url": record.primary_url,
                "drive_file_id": record.secondary_ref,
                "drive_view_url": record.secondary_view_url,
                "storage_location": record.storage_location.value,
                "created_at": record.created_at,
                "created_display": format_file_timestamp(record.created_at) if record.created_at else None,
            }
        )
    return serialized


__all__ = [
    "DEFAULT_MIME_TYPE",
    "FileUpload",
    "build_object_path",
    "format_file_size",
    "format_file_timestamp",
    "guess_media_type",
    "sanitize_file_name",
    "serialize_file_records",
]
