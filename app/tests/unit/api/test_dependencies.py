"""Tests for shared FastAPI dependency helpers."""

from __future__ import annotations

import pytest
from fastapi import HTTPException

from app.api import dependencies


def test_get_current_user_id_requires_header() -> None:
    with pytest.raises(HTTPException) as exc:
        dependencies.get_current_user_id(authorization=None)

    assert exc.value.status_code == 401


def test_get_current_user_id_returns_value(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(dependencies, "require_auth", lambda header: "user-123")

    result = dependencies.get_current_user_id("Bearer abc")
    assert result == "user-123"


def test_get_file_storage_builds_coordinator_once(monkeypatch: pytest.MonkeyPatch) -> None:
    builds = []

    def fake_build():
        builds.append(object())
        return builds[-1]

    monkeypatch.setattr(dependencies, "build_dual_file_storage", fake_build)
    dependencies.get_file_storage.cache_clear()
    try:
        first = dependencies.get_file_storage()
        second = dependencies.get_file_storage()
    finally:
        dependencies.get_file_storage.cache_clear()

    assert first is second
    assert len(builds) == 1
