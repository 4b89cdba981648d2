"""
Bearer-token authentication for the file API.

Tokens are Supabase Auth JWTs. They are verified locally when
``SUPABASE_JWT_SECRET`` is configured and through the Supabase SDK otherwise.
"""

import base64
import binascii
import logging
from typing import Any, Dict, List, Optional, Union

import jwt
from fastapi import HTTPException, status
from supabase import Client, create_client

from ..config import CONFIG


logger = logging.getLogger(__name__)


class SupabaseAuthManager:
    """Validates Supabase access tokens presented by CRM users."""

    def __init__(self, client: Optional[Client] = None, jwt_secret: Optional[str] = None):
        self.supabase_url = CONFIG.supabase_url
        self.supabase_anon_key = CONFIG.supabase_anon_key
        self.jwt_secret = jwt_secret if jwt_secret is not None else CONFIG.supabase_jwt_secret

        if client is None:
            if not self.supabase_url or not self.supabase_anon_key:
                raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY environment variables are required")
            client = create_client(self.supabase_url, CONFIG.supabase_service_role_key or self.supabase_anon_key)
        self.supabase: Client = client
        self._jwt_secret_candidates = self._prepare_jwt_secret_candidates(self.jwt_secret)

    @staticmethod
    def _prepare_jwt_secret_candidates(secret: Optional[str]) -> List[Union[str, bytes]]:
        candidates: List[Union[str, bytes]] = []
        raw = (secret or "").strip()
        if not raw:
            return candidates

        candidates.append(raw)
        try:
            decoded = base64.b64decode(raw, validate=True)
            if decoded:
                candidates.append(decoded)
        except (binascii.Error, ValueError):
            pass
        return candidates

    def _load_user_via_supabase(self, token: str) -> Optional[Dict[str, Any]]:
        try:
            user = self.supabase.auth.get_user(token)
        except Exception as exc:  # noqa: BLE001 - treated as an invalid token
            logger.warning("Supabase auth get_user raised an exception: %s", exc)
            return None
        if not user or not getattr(user, "user", None):
            return None
        return {"sub": user.user.id, "email": user.user.email}

    def verify_jwt_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Return the decoded token payload, or None when the token is invalid."""
        if not token:
            return None
        for candidate in self._jwt_secret_candidates:
            try:
                return jwt.decode(token, candidate, algorithms=["HS256"], audience="authenticated")
            except jwt.InvalidTokenError:
                logger.debug("JWT decode failed for one secret candidate; trying next")
        return self._load_user_via_supabase(token)

    def get_user_from_token(self, token: str) -> Optional[Dict[str, Any]]:
        payload = self.verify_jwt_token(token)
        if not payload:
            return None
        return {"id": payload.get("sub"), "email": payload.get("email")}

    def authenticate_request_token(self, authorization_header: str) -> Optional[str]:
        if not authorization_header or not authorization_header.startswith("Bearer "):
            return None
        user_info = self.get_user_from_token(authorization_header[7:].strip())
        return user_info.get("id") if user_info else None


AuthManager = SupabaseAuthManager

_auth_manager: Optional[AuthManager] = None


def get_auth_manager() -> AuthManager:
    """Get the global AuthManager instance."""
    global _auth_manager
    if _auth_manager is None:
        _auth_manager = AuthManager()
    return _auth_manager


def require_auth(authorization: Optional[str] = None) -> str:
    """Return the authenticated user id or raise 401."""
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = get_auth_manager().authenticate_request_token(authorization)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id
