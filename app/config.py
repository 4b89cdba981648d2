"""Environment-driven runtime settings for the lead file storage service."""

from __future__ import annotations

import os
from types import SimpleNamespace
from typing import Optional, Sequence, Tuple


def _env_str(
    name: str,
    default: Optional[str] = None,
    *,
    alias: Optional[str] = None,
    empty_to_none: bool = True,
) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None and alias:
        raw = os.getenv(alias)
    if raw is None:
        return default
    value = raw.strip()
    if not value and empty_to_none:
        return None if default is None else default
    return value if value else default


def _env_bool(name: str, default: bool, *, alias: Optional[str] = None) -> bool:
    raw = os.getenv(name)
    if raw is None and alias:
        raw = os.getenv(alias)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float, *, alias: Optional[str] = None) -> float:
    raw = os.getenv(name)
    if raw is None and alias:
        raw = os.getenv(alias)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_tuple(name: str, default: Sequence[str]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if not raw:
        return tuple(default)
    items = tuple(part.strip() for part in raw.split(",") if part.strip())
    return items or tuple(default)


class Settings(SimpleNamespace):
    """Simple attribute container used throughout the codebase."""

CONFIG = Settings()


def _compute_values() -> dict[str, object]:
    # -----------------------------------------------------------------------
    # RUNTIME ENVIRONMENT
    # -----------------------------------------------------------------------
    environment = _env_str("ENV", "prod", empty_to_none=False).lower()
    if environment not in {"dev", "test", "prod"}:
        environment = "prod"
    is_development = environment == "dev"

    # -----------------------------------------------------------------------
    # SUPABASE (METADATA TABLES + PRIMARY STORAGE)
    # -----------------------------------------------------------------------
    supabase_url = _env_str("SUPABASE_URL", None)
    supabase_anon_key = _env_str("SUPABASE_ANON_KEY", None)
    supabase_service_role_key = _env_str("SUPABASE_SERVICE_ROLE_KEY", None)
    supabase_jwt_secret = _env_str("SUPABASE_JWT_SECRET", None)
    supabase_storage_bucket = _env_str(
        "SUPABASE_STORAGE_BUCKET",
        "lead-files",
        empty_to_none=False,
    )
    supabase_configured = bool(supabase_url) and bool(supabase_service_role_key)
    files_table = _env_str("FILES_TABLE", "files", empty_to_none=False)

    # -----------------------------------------------------------------------
    # PRIMARY OBJECT STORE SELECTION
    # -----------------------------------------------------------------------
    requested_backend = _env_str("PRIMARY_STORAGE_BACKEND", None, alias="FILE_STORAGE_BACKEND")
    s3_bucket_name = _env_str("S3_BUCKET_NAME", None)
    s3_public_base_url = _env_str("S3_PUBLIC_BASE_URL", None)
    aws_region = _env_str("AWS_REGION", None)
    aws_profile = _env_str("AWS_PROFILE", None)
    aws_access_key_id = _env_str("AWS_ACCESS_KEY_ID", None)
    aws_secret_access_key = _env_str("AWS_SECRET_ACCESS_KEY", None)
    aws_session_token = _env_str("AWS_SESSION_TOKEN", None)
    s3_endpoint_url = _env_str("S3_ENDPOINT_URL", None)
    s3_force_path_style = _env_bool("S3_FORCE_PATH_STYLE", False)

    allowed_backends = {"supabase", "s3"}
    candidate_backend = (requested_backend or "").lower()
    if candidate_backend not in allowed_backends:
        candidate_backend = "s3" if s3_bucket_name and not supabase_configured else "supabase"
    primary_storage_backend = candidate_backend

    storage_path_prefix = _env_str("STORAGE_PATH_PREFIX", "leads", empty_to_none=False).strip("/")
    storage_cache_control = _env_str(
        "STORAGE_CACHE_CONTROL",
        "public, max-age=31536000, immutable",
        empty_to_none=False,
    )
    storage_backend_timeout = _env_float("STORAGE_BACKEND_TIMEOUT", 30.0)
    max_upload_bytes = _env_int("MAX_UPLOAD_BYTES", 25 * 1024 * 1024)

    # -----------------------------------------------------------------------
    # GOOGLE DRIVE (SERVICE ACCOUNT BACKUP COPY)
    # -----------------------------------------------------------------------
    google_sa_email = _env_str("GOOGLE_SA_EMAIL", None)
    google_sa_private_key = _env_str("GOOGLE_SA_PRIVATE_KEY", None)
    shared_drive_id = _env_str("SHARED_DRIVE_ID", None)
    drive_backup_enabled = _env_bool("DRIVE_BACKUP_ENABLED", True)
    drive_configured = bool(google_sa_email) and bool(google_sa_private_key) and bool(shared_drive_id)

    # -----------------------------------------------------------------------
    # DOCUSEAL (E-SIGNATURE WEBHOOKS)
    # -----------------------------------------------------------------------
    docuseal_url = _env_str("DOCUSEAL_URL", None)
    docuseal_api_key = _env_str("DOCUSEAL_API_KEY", None)
    docuseal_slug_download_template = _env_str(
        "DOCUSEAL_SLUG_DOWNLOAD_TEMPLATE",
        "{base_url}/submissions/{slug}/download",
        empty_to_none=False,
    )
    signed_contract_retry_countdown = _env_int("SIGNED_CONTRACT_RETRY_COUNTDOWN", 300)
    signed_contract_max_retries = _env_int("SIGNED_CONTRACT_MAX_RETRIES", 6)

    # -----------------------------------------------------------------------
    # WORKER
    # -----------------------------------------------------------------------
    celery_broker_url = _env_str("CELERY_BROKER_URL", "redis://localhost:6379/0", empty_to_none=False)
    celery_result_backend = _env_str("CELERY_RESULT_BACKEND", celery_broker_url, empty_to_none=False)
    celery_default_queue = _env_str("CELERY_DEFAULT_QUEUE", "files", empty_to_none=False)

    # -----------------------------------------------------------------------
    # API
    # -----------------------------------------------------------------------
    api_cors_origins = _env_tuple("API_CORS_ORIGINS", ())

    return {
        "environment": environment,
        "is_development": is_development,
        "supabase_url": supabase_url,
        "supabase_anon_key": supabase_anon_key,
        "supabase_service_role_key": supabase_service_role_key,
        "supabase_jwt_secret": supabase_jwt_secret,
        "supabase_storage_bucket": supabase_storage_bucket,
        "supabase_configured": supabase_configured,
        "files_table": files_table,
        "primary_storage_backend": primary_storage_backend,
        "s3_bucket_name": s3_bucket_name,
        "s3_public_base_url": s3_public_base_url,
        "aws_region": aws_region,
        "aws_profile": aws_profile,
        "aws_access_key_id": aws_access_key_id,
        "aws_secret_access_key": aws_secret_access_key,
        "aws_session_token": aws_session_token,
        "s3_endpoint_url": s3_endpoint_url,
        "s3_force_path_style": s3_force_path_style,
        "storage_path_prefix": storage_path_prefix,
        "storage_cache_control": storage_cache_control,
        "storage_backend_timeout": storage_backend_timeout,
        "max_upload_bytes": max_upload_bytes,
        "google_sa_email": google_sa_email,
        "google_sa_private_key": google_sa_private_key,
        "shared_drive_id": shared_drive_id,
        "drive_backup_enabled": drive_backup_enabled,
        "drive_configured": drive_configured,
        "docuseal_url": docuseal_url,
        "docuseal_api_key": docuseal_api_key,
        "docuseal_slug_download_template": docuseal_slug_download_template,
        "signed_contract_retry_countdown": signed_contract_retry_countdown,
        "signed_contract_max_retries": signed_contract_max_retries,
        "celery_broker_url": celery_broker_url,
        "celery_result_backend": celery_result_backend,
        "celery_default_queue": celery_default_queue,
        "api_cors_origins": api_cors_origins,
    }


def reload_config() -> None:
    CONFIG.__dict__.update(_compute_values())


def load_envs(global_dir: str) -> None:
    """Load environment variables from the project .env file and refresh CONFIG."""
    from dotenv import load_dotenv

    load_dotenv(os.path.join(global_dir, ".env"))
    reload_config()


# Load once on import so downstream modules can use CONFIG immediately.
reload_config()
