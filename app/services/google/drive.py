"""Google Drive backup copies written with a service account into a shared drive."""

from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import PurePosixPath
from typing import Any, Optional, Tuple

import google_auth_httplib2
import httplib2
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

logger = logging.getLogger(__name__)

DRIVE_SCOPES: Tuple[str, ...] = ("https://www.googleapis.com/auth/drive",)
DRIVE_VIEW_URL_TEMPLATE = "https://drive.google.com/file/d/{file_id}/view"
DRIVE_DOWNLOAD_URL_TEMPLATE = "https://drive.google.com/uc?id={file_id}&export=download"


class DriveError(RuntimeError):
    """Raised when a Google Drive call fails."""


class DriveFileNotFound(DriveError):
    """Raised when the referenced Drive file no longer exists."""


class DriveConfigurationError(DriveError):
    """Raised when the service account or shared drive is not configured."""


def drive_view_url(file_id: str) -> str:
    return DRIVE_VIEW_URL_TEMPLATE.format(file_id=file_id)


def drive_download_url(file_id: str) -> str:
    """Direct-download form of a Drive file; a string rewrite, no API call."""
    return DRIVE_DOWNLOAD_URL_TEMPLATE.format(file_id=file_id)


def build_backup_file_name(
    file_name: str,
    *,
    owner_id: str,
    category: Optional[str] = None,
    uploaded_on: Optional[date] = None,
) -> str:
    """Name backup copies so the shared drive stays browsable without per-lead folders."""

    path = PurePosixPath(file_name or "upload")
    stem = path.stem or "upload"
    suffix = path.suffix
    labels = {"photo": "Photo", "photos": "Photo", "contract": "Contract", "contracts": "Contract"}
    label = labels.get((category or "").strip().lower(), "File")
    day = (uploaded_on or date.today()).isoformat()
    return f"{label} - {owner_id} - {stem} - {day}{suffix}"


@dataclass(frozen=True, slots=True)
class DriveServiceAccountConfig:
    """Service account credentials and the shared folder receiving backups."""

    client_email: str
    private_key: str
    shared_folder_id: str
    scopes: Tuple[str, ...] = field(default=DRIVE_SCOPES)
    token_uri: str = "https://oauth2.googleapis.com/token"
    timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "DriveServiceAccountConfig":
        """Load service account configuration from environment variables."""

        client_email = os.getenv("GOOGLE_SA_EMAIL")
        private_key = os.getenv("GOOGLE_SA_PRIVATE_KEY")
        shared_folder_id = os.getenv("SHARED_DRIVE_ID")

        if not client_email or not private_key or not shared_folder_id:
            raise DriveConfigurationError(
                "Google Drive backup is not fully configured. "
                "Please set GOOGLE_SA_EMAIL, GOOGLE_SA_PRIVATE_KEY, and SHARED_DRIVE_ID.",
            )

        raw_timeout = os.getenv("STORAGE_BACKEND_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else 30.0
        except ValueError:
            timeout = 30.0

        return cls(
            client_email=client_email.strip(),
            # Keys pasted into env files usually carry literal "\n" sequences.
            private_key=private_key.replace("\\n", "\n"),
            shared_folder_id=shared_folder_id.strip(),
            timeout=timeout,
        )

    def to_service_account_info(self) -> dict[str, str]:
        return {
            "type": "service_account",
            "client_email": self.client_email,
            "private_key": self.private_key,
            "token_uri": self.token_uri,
        }


@dataclass(frozen=True, slots=True)
class DriveFile:
    """Identity of an uploaded Drive file."""

    id: str
    view_url: str


class DriveService:
    """Upload and delete shared-drive files as the service account, never as a user."""

    def __init__(self, config: DriveServiceAccountConfig, *, service: Any = None) -> None:
        self.config = config
        self._service = service

    def _build_service(self):
        credentials = service_account.Credentials.from_service_account_info(
            self.config.to_service_account_info(),
            scopes=list(self.config.scopes),
        )
        http = google_auth_httplib2.AuthorizedHttp(
            credentials,
            http=httplib2.Http(timeout=self.config.timeout),
        )
        return build("drive", "v3", http=http, cache_discovery=False)

    @property
    def service(self):
        if self._service is None:
            self._service = self._build_service()
        return self._service

    def create_file(
        self,
        name: str,
        content: bytes,
        content_type: str,
        parent_folder_id: Optional[str] = None,
    ) -> DriveFile:
        """Upload ``content`` and return the new file's id and view link."""

        metadata = {
            "name": name,
            "mimeType": content_type,
            "parents": [parent_folder_id or self.config.shared_folder_id],
        }
        media = MediaIoBaseUpload(io.BytesIO(content), mimetype=content_type, resumable=False)
        try:
            created = (
                self.service.files()
                .create(
                    body=metadata,
                    media_body=media,
                    fields="id,webViewLink",
                    supportsAllDrives=True,
                )
                .execute()
            )
        except HttpError as exc:
            raise DriveError(f"Google Drive upload failed: {exc}") from exc

        file_id = (created or {}).get("id")
        view_url = (created or {}).get("webViewLink")
        if not file_id or not view_url:
            raise DriveError("Google Drive upload returned no file id or view link")

        logger.debug("Uploaded %s to Google Drive as %s", name, file_id)
        return DriveFile(id=file_id, view_url=view_url)

    def delete_file(self, file_id: str) -> None:
        try:
            self.service.files().delete(fileId=file_id, supportsAllDrives=True).execute()
        except HttpError as exc:
            status = getattr(getattr(exc, "resp", None), "status", None)
            if status == 404:
                raise DriveFileNotFound(f"Google Drive file {file_id} not found") from exc
            raise DriveError(f"Google Drive delete failed: {exc}") from exc


__all__ = [
    "DRIVE_SCOPES",
    "DriveConfigurationError",
    "DriveError",
    "DriveFile",
    "DriveFileNotFound",
    "DriveService",
    "DriveServiceAccountConfig",
    "build_backup_file_name",
    "drive_download_url",
    "drive_view_url",
]
