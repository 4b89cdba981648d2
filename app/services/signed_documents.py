"""Locate and store signed contracts delivered by the DocuSeal webhook.

DocuSeal does not always put the signed PDF in the same place. Depending on
the account and template the document URL may be on the webhook payload, on
the submission details, behind the documents endpoint, or only derivable from
the submission slug. :func:`locate_artifact` tries an ordered tuple of named
strategies and stops at the first one that produces a URL.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from app.services.docuseal import DocuSealClient, DocuSealError
from app.services.dual_file_storage import DualFileStorageService
from app.services.files import FileUpload

logger = logging.getLogger(__name__)

COMPLETED_EVENT = "submission.completed"
CONTRACT_CATEGORY = "contract"


class StrategyKind(str, Enum):
    FIELD = "field"
    LOOKUP = "lookup"
    CONSTRUCTED = "constructed"


class FailureReason(str, Enum):
    FIELD_ABSENT = "field_absent"
    LOOKUP_ERROR = "lookup_error"
    EMPTY_RESPONSE = "empty_response"


class StrategyFailed(Exception):
    """A single strategy could not produce a URL."""

    def __init__(self, reason: FailureReason, detail: str = "") -> None:
        super().__init__(f"{reason.value}: {detail}" if detail else reason.value)
        self.reason = reason
        self.detail = detail


@dataclass(frozen=True)
class ArtifactAttempt:
    strategy: str
    kind: StrategyKind
    reason: FailureReason
    detail: str = ""

    def describe(self) -> str:
        text = f"{self.strategy} ({self.kind.value}): {self.reason.value}"
        return f"{text} - {self.detail}" if self.detail else text


class ExhaustedError(Exception):
    """No strategy yielded a document URL; usually means "not ready yet"."""

    def __init__(self, attempts: Sequence[ArtifactAttempt]) -> None:
        self.attempts: Tuple[ArtifactAttempt, ...] = tuple(attempts)
        summary = "; ".join(attempt.describe() for attempt in self.attempts) or "no strategies configured"
        super().__init__(f"Signed document not available: {summary}")


@dataclass(frozen=True)
class ArtifactLocation:
    url: str
    strategy: str
    attempts: Tuple[ArtifactAttempt, ...] = ()


@dataclass(frozen=True)
class ArtifactStrategy:
    name: str
    kind: StrategyKind
    resolve: Callable[[Mapping[str, Any], DocuSealClient], str]


def _payload_data(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    data = payload.get("data")
    return data if isinstance(data, Mapping) else {}


def _submission_id(payload: Mapping[str, Any]) -> Any:
    submission_id = _payload_data(payload).get("id")
    if submission_id in (None, ""):
        raise StrategyFailed(FailureReason.FIELD_ABSENT, "payload has no submission id")
    return submission_id


def _first_document_url(documents: Any, source: str) -> str:
    if not isinstance(documents, list) or not documents:
        raise StrategyFailed(FailureReason.EMPTY_RESPONSE, f"{source} listed no documents")
    first = documents[0]
    url = first.get("url") if isinstance(first, Mapping) else None
    if not url:
        raise StrategyFailed(FailureReason.EMPTY_RESPONSE, f"{source} document has no url")
    return str(url)


def from_combined_document_url(payload: Mapping[str, Any], client: DocuSealClient) -> str:
    url = _payload_data(payload).get("combined_document_url")
    if not url:
        raise StrategyFailed(FailureReason.FIELD_ABSENT, "combined_document_url is empty")
    return str(url)


def from_submission_documents(payload: Mapping[str, Any], client: DocuSealClient) -> str:
    submission_id = _submission_id(payload)
    try:
        details = client.get_submission(submission_id)
    except DocuSealError as exc:
        raise StrategyFailed(FailureReason.LOOKUP_ERROR, str(exc)) from exc
    return _first_document_url(details.get("documents"), "submission details")


def from_documents_endpoint(payload: Mapping[str, Any], client: DocuSealClient) -> str:
    submission_id = _submission_id(payload)
    try:
        documents = client.list_submission_documents(submission_id)
    except DocuSealError as exc:
        raise StrategyFailed(FailureReason.LOOKUP_ERROR, str(exc)) from exc
    return _first_document_url(documents, "documents endpoint")


def from_slug_download_url(payload: Mapping[str, Any], client: DocuSealClient) -> str:
    slug = _payload_data(payload).get("slug")
    if not slug:
        raise StrategyFailed(FailureReason.FIELD_ABSENT, "payload has no slug")
    return client.config.slug_download_url(str(slug))


DEFAULT_STRATEGIES: Tuple[ArtifactStrategy, ...] = (
    ArtifactStrategy("combined_document_url", StrategyKind.FIELD, from_combined_document_url),
    ArtifactStrategy("submission_documents", StrategyKind.LOOKUP, from_submission_documents),
    ArtifactStrategy("documents_endpoint", StrategyKind.LOOKUP, from_documents_endpoint),
    ArtifactStrategy("slug_download_url", StrategyKind.CONSTRUCTED, from_slug_download_url),
)


def locate_artifact(
    payload: Mapping[str, Any],
    client: DocuSealClient,
    strategies: Sequence[ArtifactStrategy] = DEFAULT_STRATEGIES,
) -> ArtifactLocation:
    """Return the first document URL any strategy produces.

    Raises:
        ExhaustedError: every strategy failed; ``attempts`` explains each one.
    """
    attempts: List[ArtifactAttempt] = []
    for strategy in strategies:
        try:
            url = strategy.resolve(payload, client)
        except StrategyFailed as failure:
            attempts.append(ArtifactAttempt(strategy.name, strategy.kind, failure.reason, failure.detail))
            logger.debug("Strategy %s found no document: %s", strategy.name, failure)
            continue
        if not url:
            attempts.append(ArtifactAttempt(strategy.name, strategy.kind, FailureReason.EMPTY_RESPONSE))
            continue
        logger.info("Located signed document via %s", strategy.name)
        return ArtifactLocation(url=url, strategy=strategy.name, attempts=tuple(attempts))
    raise ExhaustedError(attempts)


# ---------------------------------------------------------------------------
# Webhook workflow
# ---------------------------------------------------------------------------


class OutcomeStatus(str, Enum):
    IGNORED = "ignored"
    NO_LEAD = "no_lead"
    SAVED = "saved"


@dataclass(frozen=True)
class SignedContractOutcome:
    status: OutcomeStatus
    submission_id: Any = None
    lead_id: Optional[str] = None
    file_id: Optional[str] = None
    url: Optional[str] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)


def is_completed_submission(payload: Mapping[str, Any]) -> bool:
    return payload.get("event_type") == COMPLETED_EVENT and _payload_data(payload).get("status") == "completed"


def _submitters(payload: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    submitters = _payload_data(payload).get("submitters") or []
    return [item for item in submitters if isinstance(item, Mapping)]


def _format_completed_on(value: Any) -> str:
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
        except ValueError:
            pass
    return datetime.now().date().isoformat()


def build_contract_file_name(lead: Mapping[str, Any], template_name: Optional[str], completed_at: Any) -> str:
    lead_name = f"{lead.get('first_name') or 'Unknown'} {lead.get('last_name') or 'Lead'}".strip()
    template = template_name or "Contract"
    return f"Signed Contract - {lead_name} - {template} - {_format_completed_on(completed_at)}.pdf"


def save_signed_contract(
    payload: Mapping[str, Any],
    *,
    db: Any,
    storage: DualFileStorageService,
    client: DocuSealClient,
) -> SignedContractOutcome:
    """Store the signed PDF of a completed submission against the matching lead.

    ``ExhaustedError`` propagates untouched so the caller can retry later.
    """
    data = _payload_data(payload)
    submission_id = data.get("id")

    if not is_completed_submission(payload):
        logger.info("Ignoring DocuSeal event %s for submission %s", payload.get("event_type"), submission_id)
        return SignedContractOutcome(status=OutcomeStatus.IGNORED, submission_id=submission_id)

    submitters = _submitters(payload)
    emails = [str(item.get("email")).strip().lower() for item in submitters if item.get("email")]
    lead = db.find_lead_by_emails(emails) if emails else None
    if not lead:
        logger.warning("No lead found for submission %s submitters %s", submission_id, emails)
        return SignedContractOutcome(status=OutcomeStatus.NO_LEAD, submission_id=submission_id)

    lead_id = str(lead["id"])
    location = locate_artifact(payload, client)
    content = client.download(location.url)

    template = data.get("template") if isinstance(data.get("template"), Mapping) else {}
    template_name = template.get("name")
    display_name = build_contract_file_name(lead, template_name, data.get("completed_at"))

    result = storage.upload(
        FileUpload(filename=display_name, content=content, mime_type="application/pdf"),
        owner_id=lead_id,
        category=CONTRACT_CATEGORY,
        display_name=display_name,
    )
    record = result.record

    db.create_signed_contract(
        lead_id=lead_id,
        submission_id=submission_id,
        file_id=record.id,
        pdf_url=record.canonical_url,
        completed_at=data.get("completed_at"),
        submitter_names=[str(item.get("name") or "") for item in submitters],
        submitter_emails=emails,
        template_name=template_name,
    )

    logger.info("Saved signed contract %s for lead %s as file %s", submission_id, lead_id, record.id)
    return SignedContractOutcome(
        status=OutcomeStatus.SAVED,
        submission_id=submission_id,
        lead_id=lead_id,
        file_id=record.id,
        url=record.canonical_url,
        warnings=tuple(warning.reason for warning in result.warnings),
    )


def build_signed_contract_dependencies() -> Tuple[Any, DualFileStorageService, DocuSealClient]:
    from app.db import get_database_client
    from app.services.docuseal import DocuSealConfig
    from app.services.dual_file_storage import build_dual_file_storage

    return get_database_client(), build_dual_file_storage(), DocuSealClient(DocuSealConfig.from_env())


__all__ = [
    "ArtifactAttempt",
    "ArtifactLocation",
    "ArtifactStrategy",
    "DEFAULT_STRATEGIES",
    "ExhaustedError",
    "FailureReason",
    "OutcomeStatus",
    "SignedContractOutcome",
    "StrategyFailed",
    "StrategyKind",
    "build_contract_file_name",
    "build_signed_contract_dependencies",
    "is_completed_submission",
    "locate_artifact",
    "save_signed_contract",
]
