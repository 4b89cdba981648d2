"""Tests for the DocuSeal API wrapper."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
import requests

from app.services.docuseal import DocuSealClient, DocuSealConfig, DocuSealError


class DummyResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, content: bytes = b""):
        self.status_code = status_code
        self._payload = payload
        self.content = content
        self.text = str(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class StubSession:
    def __init__(self, response: DummyResponse | Exception):
        self.response = response
        self.calls: List[Dict[str, Any]] = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _client(response) -> tuple[DocuSealClient, StubSession]:
    session = StubSession(response)
    config = DocuSealConfig(base_url="https://sign.example.com", api_key="secret", timeout=12.0)
    return DocuSealClient(config, session=session), session


def test_get_submission_sends_auth_token_and_timeout() -> None:
    client, session = _client(DummyResponse(payload={"id": 5, "documents": []}))

    result = client.get_submission(5)

    assert result == {"id": 5, "documents": []}
    call = session.calls[0]
    assert call["url"] == "https://sign.example.com/api/submissions/5"
    assert call["headers"]["X-Auth-Token"] == "secret"
    assert call["timeout"] == 12.0


def test_documents_endpoint_accepts_wrapped_list() -> None:
    client, _ = _client(DummyResponse(payload={"documents": [{"url": "https://x/1.pdf"}, "junk"]}))

    assert client.list_submission_documents(5) == [{"url": "https://x/1.pdf"}]


def test_error_status_raises_docuseal_error() -> None:
    client, _ = _client(DummyResponse(status_code=404, payload={"error": "Not found"}))

    with pytest.raises(DocuSealError):
        client.get_submission(5)


def test_transport_failure_raises_docuseal_error() -> None:
    client, _ = _client(requests.ConnectionError("refused"))

    with pytest.raises(DocuSealError):
        client.list_submission_documents(5)


def test_download_returns_bytes_and_rejects_empty_body() -> None:
    client, _ = _client(DummyResponse(content=b"%PDF-1.7"))
    assert client.download("https://cdn/x.pdf") == b"%PDF-1.7"

    empty_client, _ = _client(DummyResponse(content=b""))
    with pytest.raises(DocuSealError):
        empty_client.download("https://cdn/x.pdf")


def test_config_from_env_uses_slug_template(monkeypatch: pytest.MonkeyPatch) -> None:
    from app.services import docuseal

    monkeypatch.setattr(
        docuseal,
        "CONFIG",
        SimpleNamespace(
            docuseal_url="https://sign.example.com/",
            docuseal_api_key="k",
            docuseal_slug_download_template="{base_url}/s/{slug}.pdf",
            storage_backend_timeout=5.0,
        ),
    )

    config = DocuSealConfig.from_env()

    assert config.base_url == "https://sign.example.com"
    assert config.slug_download_url("xyz") == "https://sign.example.com/s/xyz.pdf"
