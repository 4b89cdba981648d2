"""Dual-destination storage for lead files.

Every upload lands in the primary object store first and is then copied to the
Google shared drive as a backup. One ``files`` row records where the bytes
ended up. The coordinators here are the only code that touches both backends,
and they translate every backend failure into the errors defined below, so
callers never see raw Supabase, S3 or Drive exceptions.

Upload and delete of the same file id must not race; callers serialise them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Protocol, Tuple

from app.config import CONFIG
from app.db.models import FileRecord, InvalidFileRecord, StorageBackend
from app.logger import log
from app.services.files import FileUpload, build_object_path, sanitize_file_name
from app.services.google.drive import (
    DriveFile,
    DriveFileNotFound,
    DriveService,
    DriveServiceAccountConfig,
    build_backup_file_name,
)
from app.services.primary_storage import PrimaryObjectStore, get_primary_store

logger = logging.getLogger(__name__)


class FileStorageError(Exception):
    """Base class for dual-storage failures surfaced to callers."""


class PrimaryStorageError(FileStorageError):
    """The primary store rejected the write; nothing was persisted."""


class MetadataPersistError(FileStorageError):
    """The metadata row could not be written (or removed).

    ``orphaned`` lists backend artifacts that compensating cleanup could not
    remove, for later reconciliation.
    """

    def __init__(self, message: str, *, orphaned: Tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.orphaned = orphaned


class UnresolvableFile(FileStorageError):
    """A record references no backend at all; the metadata is corrupt."""


class PartialDeletionError(FileStorageError):
    """Summary of backend cleanup that failed during an otherwise successful delete."""

    def __init__(self, file_id: str, failures: Tuple["BackendDeletionFailure", ...]) -> None:
        backends = ", ".join(failure.backend.value for failure in failures)
        super().__init__(f"File {file_id} deleted, but cleanup failed on: {backends}")
        self.file_id = file_id
        self.failures = failures


@dataclass(frozen=True)
class SecondaryStorageWarning:
    """The backup copy could not be written; the file is primary-only."""

    reason: str
    backend: StorageBackend = StorageBackend.SECONDARY


@dataclass(frozen=True)
class BackendDeletionFailure:
    backend: StorageBackend
    reason: str


class DeletionStatus(str, Enum):
    DELETED = "deleted"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class UploadResult:
    record: FileRecord
    warnings: Tuple[SecondaryStorageWarning, ...] = ()

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)


@dataclass(frozen=True)
class DeletionResult:
    status: DeletionStatus
    file_id: str
    failures: Tuple[BackendDeletionFailure, ...] = ()

    @property
    def failed_backends(self) -> Tuple[StorageBackend, ...]:
        return tuple(failure.backend for failure in self.failures)

    @property
    def partial_error(self) -> Optional[PartialDeletionError]:
        if not self.failures:
            return None
        return PartialDeletionError(self.file_id, self.failures)


class SecondaryStore(Protocol):
    def create_file(
        self,
        name: str,
        content: bytes,
        content_type: str,
        parent_folder_id: Optional[str] = None,
    ) -> DriveFile: ...

    def delete_file(self, file_id: str) -> None: ...


class MetadataStore(Protocol):
    def create_file_record(self, record: FileRecord) -> FileRecord: ...

    def get_file_record(self, file_id: str) -> Optional[FileRecord]: ...

    def delete_file_record(self, file_id: str) -> bool: ...


@dataclass(frozen=True)
class DualStorageSettings:
    """Explicit configuration handed to the coordinator at construction time."""

    shared_folder_id: Optional[str] = None
    path_prefix: str = "leads"

    @classmethod
    def from_config(cls, config: Any = CONFIG) -> "DualStorageSettings":
        return cls(
            shared_folder_id=getattr(config, "shared_drive_id", None),
            path_prefix=getattr(config, "storage_path_prefix", None) or "leads",
        )


def _describe(exc: BaseException) -> str:
    message = str(exc).strip()
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


@dataclass
class DualFileStorageService:
    """Coordinates the primary store, the Drive backup and the metadata row."""

    primary: PrimaryObjectStore
    secondary: Optional[SecondaryStore]
    metadata: MetadataStore
    settings: DualStorageSettings = field(default_factory=DualStorageSettings)

    def upload(
        self,
        upload: FileUpload,
        *,
        owner_id: str,
        category: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> UploadResult:
        """Store ``upload`` in both backends and persist one metadata row.

        Raises:
            PrimaryStorageError: primary write failed; nothing else was attempted.
            MetadataPersistError: the row could not be written; uploaded copies were removed.
        """
        if not owner_id:
            raise ValueError("owner_id is required")

        name = (display_name or "").strip() or sanitize_file_name(upload.filename)
        path = build_object_path(
            owner_id,
            upload.filename,
            category=category,
            prefix=self.settings.path_prefix,
        )

        try:
            primary_url = self.primary.put(path, upload.content, upload.mime_type)
        except Exception as exc:  # noqa: BLE001 - translated for callers
            logger.error("Primary upload failed for %s (lead %s): %s", path, owner_id, exc)
            raise PrimaryStorageError(f"Could not store {name}: {_describe(exc)}") from exc

        warnings: List[SecondaryStorageWarning] = []
        backup: Optional[DriveFile] = None
        if self.secondary is None:
            warnings.append(SecondaryStorageWarning(reason="Drive backup is not configured"))
            logger.warning("Drive backup not configured; %s stored in primary only", path)
        else:
            backup_name = build_backup_file_name(
                name,
                owner_id=owner_id,
                category=category,
            )
            try:
                backup = self.secondary.create_file(
                    backup_name,
                    upload.content,
                    upload.mime_type,
                    self.settings.shared_folder_id,
                )
            except Exception as exc:  # noqa: BLE001 - backup is best effort
                warnings.append(SecondaryStorageWarning(reason=_describe(exc)))
                logger.warning("Drive backup failed for %s, continuing with primary only: %s", path, exc)

        pending = FileRecord(
            name=name,
            size=upload.size,
            mime_type=upload.mime_type,
            category=category,
            owner_id=owner_id,
            primary_url=primary_url,
            secondary_ref=backup.id if backup else None,
            secondary_view_url=backup.view_url if backup else None,
        )

        try:
            record = self.metadata.create_file_record(pending)
            if record is None or not record.id:
                raise RuntimeError("metadata store returned no record")
        except Exception as exc:  # noqa: BLE001 - compensate, then translate
            orphaned = self._compensate(primary_url, backup)
            raise MetadataPersistError(
                f"Could not save metadata for {name}: {_describe(exc)}",
                orphaned=orphaned,
            ) from exc

        logger.info(
            "Stored %s for lead %s as %s (%s)",
            record.name,
            owner_id,
            record.id,
            record.storage_location.value,
        )
        return UploadResult(record=record, warnings=tuple(warnings))

    def _compensate(self, primary_url: str, backup: Optional[DriveFile]) -> Tuple[str, ...]:
        orphaned: List[str] = []
        if backup is not None:
            try:
                self.secondary.delete_file(backup.id)
            except DriveFileNotFound:
                pass
            except Exception as exc:  # noqa: BLE001 - recorded as orphan
                orphaned.append(f"{StorageBackend.SECONDARY.value}:{backup.id}")
                log("Orphaned Drive file after metadata failure", level=logging.ERROR, drive_file_id=backup.id, error=str(exc))
        try:
            self.primary.delete(primary_url)
        except Exception as exc:  # noqa: BLE001 - recorded as orphan
            orphaned.append(f"{StorageBackend.PRIMARY.value}:{primary_url}")
            log("Orphaned primary object after metadata failure", level=logging.ERROR, url=primary_url, error=str(exc))
        return tuple(orphaned)

    def delete_file(self, file_id: str) -> DeletionResult:
        """Remove a file from both backends and always drop its metadata row.

        Backend failures are reported on the result instead of raised, so a
        flaky backend never leaves the UI pointing at a half-deleted file.
        """
        try:
            record = self.metadata.get_file_record(file_id)
        except InvalidFileRecord as exc:
            # No backend reference to clean up; only the row itself remains.
            logger.error("File %s has a corrupt metadata row, removing it: %s", file_id, exc)
            self._delete_row(file_id)
            return DeletionResult(status=DeletionStatus.DELETED, file_id=file_id)
        except Exception as exc:  # noqa: BLE001 - translated for callers
            raise MetadataPersistError(f"Could not load file {file_id}: {_describe(exc)}") from exc

        if record is None:
            return DeletionResult(status=DeletionStatus.NOT_FOUND, file_id=file_id)

        failures: List[BackendDeletionFailure] = []

        if record.primary_url:
            try:
                self.primary.delete(record.primary_url)
            except Exception as exc:  # noqa: BLE001 - recorded, not fatal
                failures.append(BackendDeletionFailure(StorageBackend.PRIMARY, _describe(exc)))
                logger.error("Primary delete failed for file %s: %s", file_id, exc)

        if record.secondary_ref:
            if self.secondary is None:
                failures.append(
                    BackendDeletionFailure(StorageBackend.SECONDARY, "Drive backup is not configured")
                )
            else:
                try:
                    self.secondary.delete_file(record.secondary_ref)
                except DriveFileNotFound:
                    logger.info("Drive copy %s of file %s was already gone", record.secondary_ref, file_id)
                except Exception as exc:  # noqa: BLE001 - recorded, not fatal
                    failures.append(BackendDeletionFailure(StorageBackend.SECONDARY, _describe(exc)))
                    logger.error("Drive delete failed for file %s: %s", file_id, exc)

        self._delete_row(file_id)

        result = DeletionResult(status=DeletionStatus.DELETED, file_id=file_id, failures=tuple(failures))
        if result.partial_error is not None:
            log(str(result.partial_error), level=logging.WARNING, file_id=file_id)
        return result

    def _delete_row(self, file_id: str) -> None:
        try:
            self.metadata.delete_file_record(file_id)
        except Exception as exc:  # noqa: BLE001 - translated for callers
            raise MetadataPersistError(f"Could not delete metadata for {file_id}: {_describe(exc)}") from exc


def build_dual_file_storage(config: Any = CONFIG) -> DualFileStorageService:
    """Wire the production collaborators from configuration."""
    from app.db import get_database_client

    secondary: Optional[DriveService] = None
    if getattr(config, "drive_backup_enabled", True) and getattr(config, "drive_configured", False):
        secondary = DriveService(DriveServiceAccountConfig.from_env())
    else:
        logger.warning("Google Drive backup disabled or not configured; uploads will be primary-only")

    return DualFileStorageService(
        primary=get_primary_store(),
        secondary=secondary,
        metadata=get_database_client(),
        settings=DualStorageSettings.from_config(config),
    )


__all__ = [
    "BackendDeletionFailure",
    "DeletionResult",
    "DeletionStatus",
    "DualFileStorageService",
    "DualStorageSettings",
    "FileStorageError",
    "MetadataPersistError",
    "PartialDeletionError",
    "PrimaryStorageError",
    "SecondaryStorageWarning",
    "UnresolvableFile",
    "UploadResult",
    "build_dual_file_storage",
]
