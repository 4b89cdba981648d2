"""Primary object store clients: Supabase Storage (default) or an S3-compatible bucket."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Optional
from urllib.parse import unquote, urlsplit

from supabase import Client, ClientOptions, create_client
from storage3.exceptions import StorageApiError

from app.config import CONFIG

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base class for primary storage backend errors."""


class PrimaryObjectStore:
    """Interface for the fast, publicly readable object store."""

    backend_id: str = "base"

    def put(self, path: str, content: bytes, content_type: str) -> str:
        """Store ``content`` at ``path`` and return its public URL."""
        raise NotImplementedError

    def delete(self, url: str) -> None:
        """Remove the object behind a URL previously returned by :meth:`put`."""
        raise NotImplementedError

    def path_from_url(self, url: str) -> str:
        raise NotImplementedError


def _strip_prefix(url: str, prefix: str) -> str:
    """Return the object path below ``prefix`` or raise if the URL is foreign."""

    bare_url = url.split("?", 1)[0]
    normalized_prefix = prefix.rstrip("/") + "/"
    if not bare_url.startswith(normalized_prefix):
        raise StorageError(f"URL {url!r} does not belong to {normalized_prefix!r}")
    path = unquote(bare_url[len(normalized_prefix):])
    if not path:
        raise StorageError(f"Could not extract an object path from {url!r}")
    return path


@dataclass(frozen=True)
class SupabaseStoreConfig:
    url: str
    service_role_key: str
    bucket: str = "lead-files"
    cache_control: str = "public, max-age=31536000, immutable"
    timeout: float = 30.0

    @classmethod
    def from_config(cls, config: Any = CONFIG) -> "SupabaseStoreConfig":
        url = getattr(config, "supabase_url", None) or os.getenv("SUPABASE_URL")
        key = getattr(config, "supabase_service_role_key", None) or os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        if not url or not key:
            raise StorageError("Supabase storage configuration is incomplete")
        return cls(
            url=url.rstrip("/"),
            service_role_key=key,
            bucket=getattr(config, "supabase_storage_bucket", None) or "lead-files",
            cache_control=getattr(config, "storage_cache_control", None) or cls.cache_control,
            timeout=float(getattr(config, "storage_backend_timeout", None) or cls.timeout),
        )


class SupabasePrimaryStore(PrimaryObjectStore):
    """Supabase Storage bucket with public read access."""

    backend_id = "supabase"

    def __init__(self, config: SupabaseStoreConfig, client: Optional[Client] = None) -> None:
        self.config = config
        self.bucket_name = config.bucket
        if client is None:
            options = ClientOptions(storage_client_timeout=int(config.timeout))
            client = create_client(config.url, config.service_role_key, options=options)
        self.client = client

    @property
    def public_prefix(self) -> str:
        return f"{self.config.url}/storage/v1/object/public/{self.bucket_name}"

    def put(self, path: str, content: bytes, content_type: str) -> str:
        bucket = self.client.storage.from_(self.bucket_name)
        try:
            bucket.upload(
                path,
                content,
                file_options={
                    "content-type": content_type,
                    "cache-control": self.config.cache_control,
                    "upsert": "false",
                },
            )
        except StorageApiError as exc:
            raise StorageError(f"Supabase upload failed: {exc}") from exc

        public_url = bucket.get_public_url(path)
        if not public_url:
            raise StorageError(f"Supabase returned no public URL for {path}")
        # get_public_url appends a bare "?" on some client versions.
        return public_url.rstrip("?")

    def delete(self, url: str) -> None:
        path = self.path_from_url(url)
        try:
            response = self.client.storage.from_(self.bucket_name).remove([path])
        except StorageApiError as exc:
            raise StorageError(f"Supabase delete failed: {exc}") from exc
        if isinstance(response, list) and not response:
            logger.info("Supabase reported nothing removed for %s; treating as already deleted", path)

    def path_from_url(self, url: str) -> str:
        return _strip_prefix(url, self.public_prefix)


@dataclass(frozen=True)
class S3StoreConfig:
    bucket: str
    public_base_url: Optional[str] = None
    region: Optional[str] = None
    profile: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None
    endpoint_url: Optional[str] = None
    force_path_style: bool = False
    cache_control: str = "public, max-age=31536000, immutable"
    timeout: float = 30.0

    @classmethod
    def from_config(cls, config: Any = CONFIG) -> "S3StoreConfig":
        bucket = getattr(config, "s3_bucket_name", None) or os.getenv("S3_BUCKET_NAME")
        if not bucket:
            raise StorageError("S3 storage configuration is missing S3_BUCKET_NAME.")
        return cls(
            bucket=bucket,
            public_base_url=getattr(config, "s3_public_base_url", None),
            region=getattr(config, "aws_region", None),
            profile=getattr(config, "aws_profile", None),
            access_key_id=getattr(config, "aws_access_key_id", None),
            secret_access_key=getattr(config, "aws_secret_access_key", None),
            session_token=getattr(config, "aws_session_token", None),
            endpoint_url=getattr(config, "s3_endpoint_url", None),
            force_path_style=bool(getattr(config, "s3_force_path_style", False)),
            cache_control=getattr(config, "storage_cache_control", None) or cls.cache_control,
            timeout=float(getattr(config, "storage_backend_timeout", None) or cls.timeout),
        )

    def resolved_public_base_url(self) -> str:
        if self.public_base_url:
            return self.public_base_url.rstrip("/")
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}"
        if self.region and self.region != "us-east-1":
            return f"https://{self.bucket}.s3.{self.region}.amazonaws.com"
        return f"https://{self.bucket}.s3.amazonaws.com"


class S3PrimaryStore(PrimaryObjectStore):
    """AWS S3 (or compatible) bucket serving objects publicly."""

    backend_id = "s3"

    def __init__(self, config: S3StoreConfig, client: Any = None) -> None:
        import boto3
        from botocore.config import Config as BotoConfig
        from botocore.exceptions import BotoCoreError, ClientError

        self.config = config
        self.bucket_name = config.bucket
        self._errors = (BotoCoreError, ClientError)

        if client is None:
            session_kwargs: Dict[str, str] = {}
            if config.profile:
                session_kwargs["profile_name"] = config.profile
            session = boto3.session.Session(**session_kwargs)

            client_kwargs: Dict[str, object] = {
                "config": BotoConfig(
                    connect_timeout=config.timeout,
                    read_timeout=config.timeout,
                    s3={"addressing_style": "path" if config.force_path_style else "auto"},
                ),
            }
            if config.region:
                client_kwargs["region_name"] = config.region
            if config.endpoint_url:
                client_kwargs["endpoint_url"] = config.endpoint_url
            if config.access_key_id and config.secret_access_key:
                client_kwargs["aws_access_key_id"] = config.access_key_id
                client_kwargs["aws_secret_access_key"] = config.secret_access_key
            if config.session_token:
                client_kwargs["aws_session_token"] = config.session_token
            client = session.client("s3", **client_kwargs)
        self.client = client

    def put(self, path: str, content: bytes, content_type: str) -> str:
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=path,
                Body=content,
                ContentType=content_type,
                CacheControl=self.config.cache_control,
            )
        except self._errors as exc:
            raise StorageError(f"S3 upload failed: {exc}") from exc
        return f"{self.config.resolved_public_base_url()}/{path}"

    def delete(self, url: str) -> None:
        key = self.path_from_url(url)
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=key)
        except self._errors as exc:
            raise StorageError(f"S3 delete failed: {exc}") from exc

    def path_from_url(self, url: str) -> str:
        base = self.config.resolved_public_base_url()
        try:
            return _strip_prefix(url, base)
        except StorageError:
            # Objects written before a CDN base URL was configured.
            parsed = urlsplit(url)
            host_prefix = f"https://{self.bucket_name}.s3."
            if url.startswith(host_prefix) and parsed.path.strip("/"):
                return unquote(parsed.path.lstrip("/"))
            raise


@lru_cache(maxsize=1)
def get_primary_store() -> PrimaryObjectStore:
    """Return the active primary backend based on configuration."""

    backend = (getattr(CONFIG, "primary_storage_backend", None) or "supabase").strip().lower()

    if backend == "supabase":
        logger.debug("Using Supabase storage as the primary file store")
        return SupabasePrimaryStore(SupabaseStoreConfig.from_config(CONFIG))

    if backend == "s3":
        logger.debug("Using S3 as the primary file store")
        return S3PrimaryStore(S3StoreConfig.from_config(CONFIG))

    raise StorageError(f"Unsupported primary storage backend '{backend}'. Set PRIMARY_STORAGE_BACKEND to supabase or s3.")


__all__ = [
    "PrimaryObjectStore",
    "S3PrimaryStore",
    "S3StoreConfig",
    "StorageError",
    "SupabasePrimaryStore",
    "SupabaseStoreConfig",
    "get_primary_store",
]
