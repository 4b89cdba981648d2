"""Lightweight operator-facing logging helper."""

from __future__ import annotations

import logging
from typing import Any

_LOGGER = logging.getLogger("leadfiles")


def _coerce(parts: tuple[object, ...]) -> str:
    rendered = " ".join(str(part) for part in parts if part is not None)
    return rendered.strip()


def log(*parts: object, level: int = logging.INFO, **metadata: Any) -> None:
    """
    Emit a log line and append structured metadata to the message.

    Storage and webhook code uses this for messages operators search for
    (orphaned artifacts, exhausted lookups), so keyword metadata such as
    ``file_id`` or ``submission_id`` is rendered inline after a ``|``.
    """

    message = _coerce(parts)
    if metadata:
        message = f"{message} | {metadata}"

    if not _LOGGER.handlers and not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO)

    _LOGGER.log(level, message)


__all__ = ["log"]
