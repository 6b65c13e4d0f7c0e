"""Logging configuration helpers."""

import logging

CONTEXT_FIELDS = (
    "session_id",
    "user_id",
    "device_id",
    "service_type",
    "method",
    "status",
    "phase",
    "count",
)


class ContextFormatter(logging.Formatter):
    """Appends session context passed through ``extra`` as key=value pairs."""

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        message = super().formatMessage(record)
        context = [
            f"{name}={getattr(record, name)}"
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        ]
        if not context:
            return message
        return f"{message} [{' '.join(context)}]"


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application logging with a single stream handler."""
    logger = logging.getLogger("syncsphere")
    logger.setLevel(level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
