"""Shared service exports."""

from .dual_file_storage import (
    DeletionResult,
    DeletionStatus,
    DualFileStorageService,
    DualStorageSettings,
    FileStorageError,
    MetadataPersistError,
    PartialDeletionError,
    PrimaryStorageError,
    SecondaryStorageWarning,
    UnresolvableFile,
    UploadResult,
    build_dual_file_storage,
)
from .file_urls import resolve_download_url, resolve_view_url
from .files import FileUpload

__all__ = [
    "DeletionResult",
    "DeletionStatus",
    "DualFileStorageService",
    "DualStorageSettings",
    "FileStorageError",
    "FileUpload",
    "MetadataPersistError",
    "PartialDeletionError",
    "PrimaryStorageError",
    "SecondaryStorageWarning",
    "UnresolvableFile",
    "UploadResult",
    "build_dual_file_storage",
    "resolve_download_url",
    "resolve_view_url",
]
