"""Celery task definitions for signed-contract processing.

DocuSeal fires ``submission.completed`` before the combined PDF is always
ready, so a submission whose document cannot be located yet is retried on a
fixed countdown instead of failing the webhook.
"""

from __future__ import annotations

from typing import Any, Dict

from celery.utils.log import get_task_logger

from app.config import CONFIG
from app.services.signed_documents import (
    ExhaustedError,
    build_signed_contract_dependencies,
    save_signed_contract,
)

from .celery_app import celery_app


logger = get_task_logger(__name__)


def _retry_countdown() -> int:
    return max(1, int(getattr(CONFIG, "signed_contract_retry_countdown", 300) or 300))


def _max_retries() -> int:
    return max(0, int(getattr(CONFIG, "signed_contract_max_retries", 6) or 0))


@celery_app.task(bind=True, name="files.process_signed_submission")
def process_signed_submission(self, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Store the signed PDF for a completed DocuSeal submission."""

    submission_id = (payload.get("data") or {}).get("id")
    db, storage, client = build_signed_contract_dependencies()

    try:
        outcome = save_signed_contract(payload, db=db, storage=storage, client=client)
    except ExhaustedError as exc:
        retries = getattr(self.request, "retries", 0) or 0
        if retries >= _max_retries():
            logger.error(
                "Giving up on signed document for submission %s after %s retries. Attempts: %s",
                submission_id,
                retries,
                [attempt.describe() for attempt in exc.attempts],
            )
            return {"submission_id": submission_id, "status": "exhausted", "detail": str(exc)}

        countdown = _retry_countdown()
        logger.warning(
            "Signed document for submission %s not available yet (attempt %s), retrying in %ss: %s",
            submission_id,
            retries + 1,
            countdown,
            exc,
        )
        raise self.retry(exc=exc, countdown=countdown, max_retries=_max_retries())

    for warning in outcome.warnings:
        logger.warning("Signed contract %s stored without backup: %s", submission_id, warning)

    return {
        "submission_id": submission_id,
        "status": outcome.status.value,
        "lead_id": outcome.lead_id,
        "file_id": outcome.file_id,
        "url": outcome.url,
    }


__all__ = ["process_signed_submission"]
