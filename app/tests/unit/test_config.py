"""Tests for environment-driven configuration."""

from __future__ import annotations

import pytest

from app.config import CONFIG, reload_config


def test_defaults_for_storage_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SUPABASE_STORAGE_BUCKET", raising=False)
    monkeypatch.delenv("MAX_UPLOAD_BYTES", raising=False)
    reload_config()

    assert CONFIG.supabase_storage_bucket == "lead-files"
    assert CONFIG.storage_path_prefix == "leads"
    assert CONFIG.max_upload_bytes == 25 * 1024 * 1024
    assert CONFIG.storage_backend_timeout == 30.0
    assert CONFIG.drive_configured is False


def test_s3_selected_when_only_bucket_is_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PRIMARY_STORAGE_BACKEND", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
    monkeypatch.setenv("S3_BUCKET_NAME", "lead-files")
    reload_config()

    assert CONFIG.primary_storage_backend == "s3"


def test_drive_configured_requires_all_service_account_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOOGLE_SA_EMAIL", "backup@project.iam.gserviceaccount.com")
    monkeypatch.setenv("GOOGLE_SA_PRIVATE_KEY", "key")
    monkeypatch.setenv("SHARED_DRIVE_ID", "folder")
    monkeypatch.setenv("STORAGE_BACKEND_TIMEOUT", "not-a-number")
    reload_config()

    assert CONFIG.drive_configured is True
    assert CONFIG.shared_drive_id == "folder"
    assert CONFIG.storage_backend_timeout == 30.0
