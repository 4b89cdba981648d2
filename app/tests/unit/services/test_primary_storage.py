"""Tests for the primary object store clients."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
from botocore.exceptions import ClientError

from app.services import primary_storage
from app.services.primary_storage import (
    S3PrimaryStore,
    S3StoreConfig,
    StorageError,
    SupabasePrimaryStore,
    SupabaseStoreConfig,
)


class StubBucket:
    def __init__(self, base: str):
        self.base = base
        self.uploads: List[Dict[str, Any]] = []
        self.removed: List[List[str]] = []

    def upload(self, path, content, file_options=None):
        self.uploads.append({"path": path, "content": content, "file_options": file_options})

    def get_public_url(self, path):
        return f"{self.base}/{path}?"

    def remove(self, paths):
        self.removed.append(list(paths))
        return [{"name": paths[0]}]


class StubSupabase:
    def __init__(self, bucket: StubBucket):
        self.bucket = bucket
        self.storage = self
        self.requested: List[str] = []

    def from_(self, name):
        self.requested.append(name)
        return self.bucket


def _supabase_store() -> tuple[SupabasePrimaryStore, StubBucket]:
    config = SupabaseStoreConfig(url="https://project.supabase.co", service_role_key="key")
    bucket = StubBucket("https://project.supabase.co/storage/v1/object/public/lead-files")
    return SupabasePrimaryStore(config, client=StubSupabase(bucket)), bucket


def test_supabase_put_returns_public_url_with_cache_headers() -> None:
    store, bucket = _supabase_store()

    url = store.put("leads/lead-42/file/abc.pdf", b"data", "application/pdf")

    assert url == "https://project.supabase.co/storage/v1/object/public/lead-files/leads/lead-42/file/abc.pdf"
    options = bucket.uploads[0]["file_options"]
    assert options["content-type"] == "application/pdf"
    assert options["cache-control"] == "public, max-age=31536000, immutable"
    assert options["upsert"] == "false"


def test_supabase_delete_strips_public_prefix() -> None:
    store, bucket = _supabase_store()

    store.delete("https://project.supabase.co/storage/v1/object/public/lead-files/leads/lead-42/file/a%20b.pdf")

    assert bucket.removed == [["leads/lead-42/file/a b.pdf"]]


def test_supabase_rejects_foreign_urls() -> None:
    store, bucket = _supabase_store()

    with pytest.raises(StorageError):
        store.delete("https://elsewhere.example.com/leads/a.pdf")
    assert bucket.removed == []


class StubS3:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.put_calls: List[Dict[str, Any]] = []
        self.delete_calls: List[Dict[str, Any]] = []

    def put_object(self, **kwargs):
        if self.error:
            raise self.error
        self.put_calls.append(kwargs)

    def delete_object(self, **kwargs):
        if self.error:
            raise self.error
        self.delete_calls.append(kwargs)


def test_s3_put_and_delete_round_trip_paths() -> None:
    client = StubS3()
    store = S3PrimaryStore(S3StoreConfig(bucket="lead-files", region="us-west-2"), client=client)

    url = store.put("leads/lead-42/file/abc.pdf", b"data", "application/pdf")
    store.delete(url)

    assert url == "https://lead-files.s3.us-west-2.amazonaws.com/leads/lead-42/file/abc.pdf"
    assert client.put_calls[0]["CacheControl"] == "public, max-age=31536000, immutable"
    assert client.delete_calls == [{"Bucket": "lead-files", "Key": "leads/lead-42/file/abc.pdf"}]


def test_s3_public_base_url_override() -> None:
    config = S3StoreConfig(bucket="lead-files", public_base_url="https://cdn.example.com/")

    assert config.resolved_public_base_url() == "https://cdn.example.com"


def test_s3_client_errors_are_wrapped() -> None:
    error = ClientError({"Error": {"Code": "503", "Message": "Slow Down"}}, "PutObject")
    store = S3PrimaryStore(S3StoreConfig(bucket="lead-files"), client=StubS3(error))

    with pytest.raises(StorageError):
        store.put("leads/a.pdf", b"data", "application/pdf")


def test_get_primary_store_rejects_unknown_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    primary_storage.get_primary_store.cache_clear()
    monkeypatch.setattr(primary_storage, "CONFIG", SimpleNamespace(primary_storage_backend="ftp"))

    with pytest.raises(StorageError):
        primary_storage.get_primary_store()

    primary_storage.get_primary_store.cache_clear()
