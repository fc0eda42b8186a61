from __future__ import annotations

import logging
from datetime import datetime, timezone

from flask import current_app, request

from pastebin.observability import get_correlation_id


logger = logging.getLogger(__name__)

TEST_NOW_HEADER = "X-Test-Now-Ms"


def request_now() -> datetime:
    """
    Return the reference time for the current request.

    With ``TEST_MODE`` enabled, an ``X-Test-Now-Ms`` header (milliseconds since
    the epoch) replaces the wall clock. Otherwise the header is ignored.
    """
    override = request.headers.get(TEST_NOW_HEADER)
    if override is None or not current_app.config.get("TEST_MODE", False):
        return datetime.now(timezone.utc)

    try:
        return datetime.fromtimestamp(int(override) / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        logger.warning(
            "Ignoring unparseable test clock header",
            extra={
                "event": "test_clock_override",
                "error_type": "invalid_header",
                "correlation_id": get_correlation_id(),
            },
        )
        return datetime.now(timezone.utc)
