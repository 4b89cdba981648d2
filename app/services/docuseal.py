"""Minimal DocuSeal API client used by the signed-contract workflow."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from app.config import CONFIG

logger = logging.getLogger(__name__)

DEFAULT_SLUG_DOWNLOAD_TEMPLATE = "{base_url}/submissions/{slug}/download"


class DocuSealError(RuntimeError):
    """Raised when the DocuSeal API cannot be reached or answers with an error."""


@dataclass(frozen=True)
class DocuSealConfig:
    base_url: str
    api_key: Optional[str] = None
    slug_download_template: str = DEFAULT_SLUG_DOWNLOAD_TEMPLATE
    timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "DocuSealConfig":
        base_url = getattr(CONFIG, "docuseal_url", None) or os.getenv("DOCUSEAL_URL")
        if not base_url:
            raise DocuSealError("DocuSeal is not configured. Please set DOCUSEAL_URL and DOCUSEAL_API_KEY.")
        return cls(
            base_url=base_url.rstrip("/"),
            api_key=getattr(CONFIG, "docuseal_api_key", None) or os.getenv("DOCUSEAL_API_KEY"),
            slug_download_template=(
                getattr(CONFIG, "docuseal_slug_download_template", None) or DEFAULT_SLUG_DOWNLOAD_TEMPLATE
            ),
            timeout=float(getattr(CONFIG, "storage_backend_timeout", None) or 30.0),
        )

    def slug_download_url(self, slug: str) -> str:
        return self.slug_download_template.format(base_url=self.base_url, slug=slug)


class DocuSealClient:
    """Thin ``requests`` wrapper authenticating with ``X-Auth-Token``."""

    def __init__(self, config: DocuSealConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["X-Auth-Token"] = self.config.api_key
        return headers

    def _get_json(self, path: str) -> Any:
        url = f"{self.config.base_url}{path}"
        try:
            response = self.session.get(url, headers=self._headers(), timeout=self.config.timeout)
        except requests.RequestException as exc:
            raise DocuSealError(f"DocuSeal request to {path} failed: {exc}") from exc

        if response.status_code >= 400:
            raise DocuSealError(f"DocuSeal {path} returned {response.status_code}: {response.text[:200]}")
        try:
            return response.json()
        except ValueError as exc:
            raise DocuSealError(f"DocuSeal {path} returned invalid JSON") from exc

    def get_submission(self, submission_id: Any) -> Dict[str, Any]:
        data = self._get_json(f"/api/submissions/{submission_id}")
        return data if isinstance(data, dict) else {}

    def list_submission_documents(self, submission_id: Any) -> List[Dict[str, Any]]:
        data = self._get_json(f"/api/submissions/{submission_id}/documents")
        if isinstance(data, dict):
            data = data.get("documents") or []
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]

    def download(self, url: str) -> bytes:
        """Fetch the signed PDF; the document URLs DocuSeal hands out are pre-signed."""
        try:
            response = self.session.get(url, timeout=self.config.timeout)
        except requests.RequestException as exc:
            raise DocuSealError(f"Failed to download signed document: {exc}") from exc
        if response.status_code >= 400:
            raise DocuSealError(f"Failed to download signed document: HTTP {response.status_code}")
        if not response.content:
            raise DocuSealError("Signed document download was empty")
        logger.debug("Downloaded %s bytes from %s", len(response.content), url)
        return response.content


__all__ = ["DocuSealClient", "DocuSealConfig", "DocuSealError"]
