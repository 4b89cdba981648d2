"""Tests for Supabase bearer-token validation."""

from __future__ import annotations

from types import SimpleNamespace

import jwt
import pytest
from fastapi import HTTPException

from app.auth import manager

SECRET = "super-secret-jwt-token-with-at-least-32-characters"


class StubSupabaseAuth:
    def __init__(self, user=None):
        self.user = user
        self.calls = 0
        self.auth = self

    def get_user(self, token):
        self.calls += 1
        return SimpleNamespace(user=self.user) if self.user else None


def _token(**claims) -> str:
    payload = {"sub": "user-1", "email": "crew@example.com", "aud": "authenticated"}
    payload.update(claims)
    return jwt.encode(payload, SECRET, algorithm="HS256")


def test_valid_jwt_is_decoded_locally() -> None:
    client = StubSupabaseAuth()
    auth = manager.SupabaseAuthManager(client=client, jwt_secret=SECRET)

    assert auth.authenticate_request_token(f"Bearer {_token()}") == "user-1"
    assert client.calls == 0


def test_unverifiable_jwt_falls_back_to_supabase() -> None:
    client = StubSupabaseAuth(user=SimpleNamespace(id="user-2", email="office@example.com"))
    auth = manager.SupabaseAuthManager(client=client, jwt_secret=SECRET)
    forged = jwt.encode({"sub": "user-9", "aud": "authenticated"}, "another-secret-that-is-long-enough-too", algorithm="HS256")

    assert auth.get_user_from_token(forged) == {"id": "user-2", "email": "office@example.com"}
    assert client.calls == 1


def test_missing_bearer_prefix_is_rejected() -> None:
    auth = manager.SupabaseAuthManager(client=StubSupabaseAuth(), jwt_secret=SECRET)

    assert auth.authenticate_request_token(_token()) is None


def test_require_auth_raises_401_for_invalid_token(monkeypatch: pytest.MonkeyPatch) -> None:
    auth = manager.SupabaseAuthManager(client=StubSupabaseAuth(), jwt_secret=SECRET)
    monkeypatch.setattr(manager, "get_auth_manager", lambda: auth)

    with pytest.raises(HTTPException) as exc:
        manager.require_auth("Bearer not-a-jwt")

    assert exc.value.status_code == 401
