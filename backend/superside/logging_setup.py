from __future__ import annotations

import logging
import sys
from typing import Any

DEFAULT_REQUEST_ID = "n/a"
DEFAULT_PLANE = "-"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(plane)s %(request_id)s] %(message)s"


def log_event(
    logger: logging.Logger,
    message: str,
    *,
    plane: str,
    extra: dict[str, Any] | None = None,
    request_id: str | None = None,
    level: int = logging.INFO,
) -> None:
    """Emit a structured log message ensuring request_id is always present."""
    extra_payload = dict(extra or {})
    extra_payload.setdefault("plane", plane)
    resolved_request_id = extra_payload.get("request_id") or request_id or DEFAULT_REQUEST_ID
    extra_payload["request_id"] = resolved_request_id
    logger.log(level, message, extra=extra_payload)


class ContextDefaultsFilter(logging.Filter):
    """Fill in plane/request_id for records that were not logged via log_event."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "plane"):
            record.plane = DEFAULT_PLANE
        if not hasattr(record, "request_id"):
            record.request_id = DEFAULT_REQUEST_ID
        return True


def configure_logging(level: str | int = logging.INFO) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(ContextDefaultsFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)
