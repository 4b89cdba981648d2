"""Route modules for the public API."""

from . import files, webhooks

__all__ = ["files", "webhooks"]
