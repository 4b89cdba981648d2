"""
Database module for lead file storage.

This module provides:
- The Supabase metadata store for the ``files`` table
- The FileRecord data contract and its storage enums
"""

from .client import DatabaseClient, MetadataStoreError, SupabaseDatabaseClient, get_database_client
from .models import FileRecord, InvalidFileRecord, StorageBackend, StorageLocation

__all__ = [
    "DatabaseClient",
    "MetadataStoreError",
    "SupabaseDatabaseClient",
    "get_database_client",
    "FileRecord",
    "InvalidFileRecord",
    "StorageBackend",
    "StorageLocation",
]
