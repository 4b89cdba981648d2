"""Inbound webhooks from third-party services."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException, status

from app.api.schemas import WebhookAck
from app.services.signed_documents import is_completed_submission

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhooks/docuseal", response_model=WebhookAck, status_code=status.HTTP_200_OK)
def docuseal_webhook(payload: Dict[str, Any] = Body(...)) -> WebhookAck:
    """Queue signed-contract processing for completed DocuSeal submissions."""

    if not is_completed_submission(payload):
        logger.info("Ignoring DocuSeal %s event", payload.get("event_type"))
        return WebhookAck(message="Ignored non-completion event")

    from app.worker.tasks import process_signed_submission

    try:
        task = process_signed_submission.delay(payload)
    except Exception as exc:  # noqa: BLE001 - broker outage
        logger.exception("Failed to enqueue DocuSeal submission %s", (payload.get("data") or {}).get("id"))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not queue the signed contract for processing.",
        ) from exc

    return WebhookAck(message="Signed contract queued for processing", task_id=task.id)
