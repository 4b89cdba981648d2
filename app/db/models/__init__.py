"""
Database models and schema definitions for lead file storage.

This module contains the data classes that mirror rows in the ``files`` table.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class InvalidFileRecord(ValueError):
    """Raised when a file record would reference no storage backend at all."""


class StorageBackend(str, Enum):
    """The two independent places a file's bytes can live."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class StorageLocation(str, Enum):
    """Which backends hold a copy of a file."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    BOTH = "both"

    @classmethod
    def from_refs(cls, primary_url: Optional[str], secondary_ref: Optional[str]) -> "StorageLocation":
        if primary_url and secondary_ref:
            return cls.BOTH
        if primary_url:
            return cls.PRIMARY
        if secondary_ref:
            return cls.SECONDARY
        raise InvalidFileRecord("A file record needs a primary URL or a secondary reference")


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class FileRecord:
    """Canonical metadata for one logical uploaded file.

    ``storage_location`` is derived from the refs that are present, so a record
    can never disagree with itself, and constructing a record with neither a
    primary URL nor a secondary ref raises :class:`InvalidFileRecord`.
    """

    name: str
    size: int
    mime_type: str
    owner_id: str
    primary_url: Optional[str] = None
    secondary_ref: Optional[str] = None
    secondary_view_url: Optional[str] = None
    category: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    storage_location: StorageLocation = field(init=False)

    def __post_init__(self) -> None:
        if not self.owner_id:
            raise InvalidFileRecord("A file record requires an owner id")
        location = StorageLocation.from_refs(self.primary_url, self.secondary_ref)
        object.__setattr__(self, "storage_location", location)

    @property
    def canonical_url(self) -> Optional[str]:
        """URL handed to consumers that do not care where the bytes live."""
        return self.primary_url or self.secondary_view_url

    def with_identity(self, file_id: str, created_at: Optional[datetime] = None) -> "FileRecord":
        return replace(self, id=file_id, created_at=created_at or self.created_at)

    def to_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "name": self.name,
            "size": self.size,
            "mime_type": self.mime_type,
            "category": self.category,
            "lead_id": self.owner_id,
            "url": self.canonical_url,
            "primary_url": self.primary_url,
            "drive_file_id": self.secondary_ref,
            "drive_view_url": self.secondary_view_url,
            "storage_location": self.storage_location.value,
        }
        if self.id:
            row["id"] = self.id
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "FileRecord":
        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            name=str(row.get("name") or ""),
            size=int(row.get("size") or 0),
            mime_type=str(row.get("mime_type") or "application/octet-stream"),
            category=row.get("category"),
            owner_id=str(row.get("lead_id") or ""),
            primary_url=row.get("primary_url") or None,
            secondary_ref=row.get("drive_file_id") or None,
            secondary_view_url=row.get("drive_view_url") or None,
            created_at=_parse_datetime(row.get("created_at")),
        )


__all__ = [
    "FileRecord",
    "InvalidFileRecord",
    "StorageBackend",
    "StorageLocation",
]
