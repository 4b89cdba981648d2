"""Google service helpers for the shared-drive backup copy."""

from .drive import (
    DriveConfigurationError,
    DriveError,
    DriveFile,
    DriveFileNotFound,
    DriveService,
    DriveServiceAccountConfig,
    build_backup_file_name,
    drive_download_url,
    drive_view_url,
)

__all__ = [
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
