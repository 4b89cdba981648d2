"""Tests for the shared logging shim."""

from __future__ import annotations

import logging

from app import logger


def test_log_appends_metadata(caplog) -> None:
    caplog.set_level(logging.INFO)

    logger.log("Orphaned Drive file", None, file_id="file-1")

    assert any(message == "Orphaned Drive file | {'file_id': 'file-1'}" for message in caplog.messages)


def test_log_respects_level(caplog) -> None:
    caplog.set_level(logging.WARNING)

    logger.log("quiet")
    logger.log("loud", level=logging.ERROR)

    assert "quiet" not in caplog.messages
    assert "loud" in caplog.messages
