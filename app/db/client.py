"""
Database client for lead file metadata.
Handles the ``files`` table plus the narrow lead/contract lookups the
signed-contract webhook needs.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
from uuid import uuid4

from supabase import Client, create_client

from ..config import CONFIG
from .models import FileRecord

logger = logging.getLogger(__name__)


class MetadataStoreError(RuntimeError):
    """Raised when the metadata store cannot complete a read or write."""


def _escape_like(value: str) -> str:
    """Escape LIKE metacharacters so ``value`` matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SupabaseDatabaseClient:
    """Database client for Supabase operations."""

    def __init__(self, client: Optional[Client] = None, *, files_table: Optional[str] = None):
        self.files_table = files_table or getattr(CONFIG, "files_table", None) or "files"
        if client is not None:
            self.client = client
            return

        self.supabase_url = getattr(CONFIG, "supabase_url", None) or os.getenv("SUPABASE_URL")
        # The service role key bypasses RLS; uploads run for background jobs with no user session.
        self.supabase_key = (
            getattr(CONFIG, "supabase_service_role_key", None)
            or os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        )
        if not self.supabase_url or not self.supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables are required")

        self.client = create_client(self.supabase_url, self.supabase_key)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------
    def create_file_record(self, record: FileRecord) -> FileRecord:
        """Insert a file record and return it with its generated id."""
        row = record.to_row()
        row.setdefault("id", str(uuid4()))
        row["created_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.client.table(self.files_table).insert(row).execute()
        except Exception as exc:
            raise MetadataStoreError(f"Failed to insert file record: {exc}") from exc

        if not result.data:
            raise MetadataStoreError("File record insert returned no row")
        return FileRecord.from_row(result.data[0])

    def get_file_record(self, file_id: str) -> Optional[FileRecord]:
        """Fetch a single file record by id."""
        try:
            result = (
                self.client.table(self.files_table)
                .select("*")
                .eq("id", file_id)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise MetadataStoreError(f"Failed to load file record {file_id}: {exc}") from exc
        if not result.data:
            return None
        return FileRecord.from_row(result.data[0])

    def delete_file_record(self, file_id: str) -> bool:
        """Delete a file record. Returns False when no row matched."""
        try:
            result = self.client.table(self.files_table).delete().eq("id", file_id).execute()
        except Exception as exc:
            raise MetadataStoreError(f"Failed to delete file record {file_id}: {exc}") from exc
        data = getattr(result, "data", None)
        if data is None:
            return True
        return len(data) > 0

    def list_file_records(
        self,
        owner_id: str,
        *,
        category: Optional[str] = None,
        limit: int = 100,
    ) -> List[FileRecord]:
        """List a lead's files, newest first."""
        query = (
            self.client.table(self.files_table)
            .select("*")
            .eq("lead_id", owner_id)
            .order("created_at", desc=True)
            .limit(limit)
        )
        if category:
            query = query.eq("category", category)
        try:
            result = query.execute()
        except Exception as exc:
            raise MetadataStoreError(f"Failed to list files for lead {owner_id}: {exc}") from exc

        records: List[FileRecord] = []
        for row in result.data or []:
            try:
                records.append(FileRecord.from_row(row))
            except ValueError as exc:
                logger.error("Skipping corrupt file record %s: %s", row.get("id"), exc)
        return records

    # ------------------------------------------------------------------
    # Leads & contracts (owned elsewhere; read/insert only)
    # ------------------------------------------------------------------
    def find_lead_by_emails(self, emails: Sequence[str]) -> Optional[Dict[str, Any]]:
        """Return the first lead whose email matches any of ``emails`` (case-insensitive)."""
        for email in emails:
            normalized = (email or "").strip().lower()
            if not normalized:
                continue
            try:
                result = (
                    self.client.table("leads")
                    .select("id, first_name, last_name, email")
                    .ilike("email", _escape_like(normalized))
                    .limit(5)
                    .execute()
                )
            except Exception as exc:
                raise MetadataStoreError(f"Failed to look up lead by email: {exc}") from exc
            # ILIKE only narrows the candidates; PostgREST still treats ``*`` as a wildcard.
            for row in result.data or []:
                if str(row.get("email") or "").strip().lower() == normalized:
                    return row
        return None

    def create_signed_contract(
        self,
        *,
        lead_id: str,
        submission_id: Any,
        file_id: Optional[str],
        pdf_url: Optional[str],
        completed_at: Optional[str],
        submitter_names: Sequence[str],
        submitter_emails: Sequence[str],
        template_name: Optional[str],
    ) -> Optional[Dict[str, Any]]:
        """Record a completed e-signature contract against a lead."""
        payload: Dict[str, Any] = {
            "lead_id": lead_id,
            "contract_type": "docuseal_signed",
            "signatures": {"submission_id": submission_id},
            "dates": {"completed_at": completed_at},
            "names": {
                "submitters": ", ".join(name for name in submitter_names if name),
                "template": template_name,
            },
            "contact_info": {"submitter_emails": list(submitter_emails)},
            "file_id": file_id,
            "pdf_url": pdf_url,
        }
        try:
            result = self.client.table("contracts").insert(payload).execute()
        except Exception as exc:
            raise MetadataStoreError(f"Failed to record signed contract for lead {lead_id}: {exc}") from exc
        if not result.data:
            return None
        return result.data[0]


# Global database client instance
_database_client: Optional[SupabaseDatabaseClient] = None


def get_database_client() -> SupabaseDatabaseClient:
    """Get the global database client instance."""
    global _database_client
    if _database_client is None:
        _database_client = SupabaseDatabaseClient()
    return _database_client


# Simple alias for readability
DatabaseClient = SupabaseDatabaseClient
