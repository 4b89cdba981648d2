"""Resolve viewable and downloadable URLs for stored lead files."""

from __future__ import annotations

from app.db.models import FileRecord
from app.services.dual_file_storage import UnresolvableFile
from app.services.google.drive import drive_download_url, drive_view_url


def resolve_view_url(record: FileRecord) -> str:
    """Prefer the primary copy; fall back to the Drive link."""

    if record.primary_url:
        return record.primary_url
    if record.secondary_view_url:
        return record.secondary_view_url
    if record.secondary_ref:
        return drive_view_url(record.secondary_ref)
    raise UnresolvableFile(f"File {record.id} has no primary URL or Drive reference")


def resolve_download_url(record: FileRecord) -> str:
    if record.primary_url:
        return record.primary_url
    if record.secondary_ref:
        return drive_download_url(record.secondary_ref)
    raise UnresolvableFile(f"File {record.id} has no primary URL or Drive reference")


def is_primary_url(record: FileRecord, url: str) -> bool:
    return bool(record.primary_url) and url == record.primary_url


__all__ = ["is_primary_url", "resolve_download_url", "resolve_view_url"]
