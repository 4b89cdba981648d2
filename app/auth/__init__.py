"""
Authentication for the file API.

This module provides Supabase bearer-token validation used by the route
dependencies.
"""

from .manager import AuthManager, SupabaseAuthManager, get_auth_manager, require_auth

__all__ = [
    "AuthManager",
    "SupabaseAuthManager",
    "get_auth_manager",
    "require_auth",
]
