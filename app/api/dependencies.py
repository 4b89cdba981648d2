"""FastAPI dependencies shared across the public API."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Header, HTTPException, status

from ..auth import require_auth
from ..db import DatabaseClient, get_database_client
from ..services.dual_file_storage import DualFileStorageService, build_dual_file_storage


def get_current_user_id(authorization: str = Header(None)) -> str:
    """Resolve the authenticated Supabase user from the Authorization header."""

    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return require_auth(authorization)


def get_database() -> DatabaseClient:
    """Return the shared database client instance."""

    return get_database_client()


@lru_cache(maxsize=1)
def get_file_storage() -> DualFileStorageService:
    """Return the process-wide dual-storage coordinator wired from configuration."""

    return build_dual_file_storage()
