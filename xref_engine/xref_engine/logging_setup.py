"""Root logger configuration for engine hosts (CLI, notebooks, services).

Two modes:

* plain text via :func:`logging.basicConfig` (default);
* single-line JSON via :class:`JSONFormatter` when
  ``XREF_STRUCTURED_LOGGING=true``, for log aggregators that index
  fields without regex parsing.
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any

from xref_engine.config import Settings

TEXT_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Structured context passed via ``extra={"graph": {...}}``.
        graph_context = getattr(record, "graph", None)
        if graph_context is not None:
            payload["graph"] = graph_context

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(settings: Settings, level: int | None = None) -> None:
    """Install a single root handler according to *settings*.

    *level* overrides the debug-derived default (DEBUG when
    ``settings.debug`` is set, INFO otherwise).
    """
    if level is None:
        level = logging.DEBUG if settings.debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    if settings.structured_logging:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        root_logger.addHandler(handler)
        root_logger.setLevel(level)
        return

    logging.basicConfig(level=level, format=TEXT_FORMAT)
