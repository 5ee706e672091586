"""Log formatting and handler setup.

Text logging is the default.  With ``CONTEXTKEEPER_STRUCTURED_LOGGING=true``
the root handlers are replaced by a ``StreamHandler`` emitting one JSON
object per line::

    {
        "timestamp": "2026-10-18T09:30:00.123456+00:00",
        "level": "INFO",
        "logger": "history_engine.compaction.engine",
        "message": "Compacted 10 snapshots into ARCHIVE_...md",
        "exc_info": "Traceback ..."  // present only on exceptions
    }
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any

from history_engine.config import Settings

TEXT_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(settings: Settings) -> None:
    """Install root log handlers according to *settings*.

    Logs go to stderr so that ``--json`` output on stdout stays parseable.
    """
    level = logging.DEBUG if settings.debug else logging.WARNING

    if settings.structured_logging:
        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        root_logger.addHandler(handler)
        root_logger.setLevel(level)
        return

    logging.basicConfig(level=level, format=TEXT_FORMAT)
