"""Tests for logging configuration."""

import logging

from syncsphere.app_logging import ContextFormatter, configure_logging


def test_configure_logging_idempotent() -> None:
    logger = logging.getLogger("syncsphere")
    logger.handlers.clear()

    configure_logging()
    first_count = len(logger.handlers)

    configure_logging()
    second_count = len(logger.handlers)

    assert first_count == 1
    assert second_count == 1


def test_context_formatter_appends_known_fields() -> None:
    formatter = ContextFormatter("%(levelname)s: %(message)s")
    record = logging.LogRecord(
        "syncsphere.services", logging.INFO, __file__, 1, "Session paused", None, None
    )
    record.session_id = "abc"
    record.status = "paused"
    record.unrelated = "ignored"

    assert (
        formatter.format(record)
        == "INFO: Session paused [session_id=abc status=paused]"
    )


def test_context_formatter_without_context() -> None:
    formatter = ContextFormatter("%(message)s")
    record = logging.LogRecord(
        "syncsphere", logging.WARNING, __file__, 1, "plain", None, None
    )

    assert formatter.format(record) == "plain"
