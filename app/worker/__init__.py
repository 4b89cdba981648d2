"""Background worker components for lead file processing."""

from .celery_app import celery_app
from .tasks import process_signed_submission

__all__ = ["celery_app", "process_signed_submission"]
