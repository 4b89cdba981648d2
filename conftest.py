"""Repository-wide pytest fixtures."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from app.config import reload_config


@pytest.fixture(autouse=True)
def _set_default_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Point every backend at harmless placeholders so nothing reaches the network."""

    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-role-key")
    monkeypatch.setenv("PRIMARY_STORAGE_BACKEND", "supabase")
    monkeypatch.setenv("DOCUSEAL_URL", "https://sign.example.com")
    monkeypatch.setenv("DOCUSEAL_API_KEY", "docuseal-key")
    monkeypatch.setenv("CELERY_BROKER_URL", "memory://")
    for name in (
        "GOOGLE_SA_EMAIL",
        "GOOGLE_SA_PRIVATE_KEY",
        "SHARED_DRIVE_ID",
        "S3_BUCKET_NAME",
        "STORAGE_PATH_PREFIX",
        "STORAGE_BACKEND_TIMEOUT",
        "MAX_UPLOAD_BYTES",
    ):
        monkeypatch.delenv(name, raising=False)
    reload_config()
    yield
    monkeypatch.undo()
    reload_config()
