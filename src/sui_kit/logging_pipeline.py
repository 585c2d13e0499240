"""Structured JSON logging for toolkit consumers.

Library modules only emit records through ``logging.getLogger(__name__)``
with structured ``extra`` fields (addresses, digests, package paths). Scripts
call :func:`configure_structured_logging` once to render those records as JSON
lines through a non-blocking queue.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from queue import Full, Queue
from typing import Iterable
from uuid import uuid4

__all__ = ["JsonFormatter", "configure_structured_logging", "shutdown_listeners"]

LOGGER = logging.getLogger(__name__)

# Attributes every LogRecord carries; anything else came from ``extra``.
_RECORD_ATTRIBUTES: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "session_id"}


class JsonFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def __init__(self, *, session_id: str | None = None) -> None:
        super().__init__()
        self._session_id = session_id

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "session_id": getattr(record, "session_id", None) or self._session_id,
            "context": {
                key: value
                for key, value in record.__dict__.items()
                if key not in _RECORD_ATTRIBUTES
            },
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class _DroppingQueueHandler(logging.handlers.QueueHandler):
    """Queue handler that drops records instead of blocking when full."""

    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except Full:
            return


def configure_structured_logging(
    logger: logging.Logger | None = None,
    *,
    session_id: str | None = None,
    level: int = logging.INFO,
    queue_size: int = 1024,
) -> logging.handlers.QueueListener:
    """Attach JSON output to ``logger`` (the ``sui_kit`` logger by default).

    Args:
        logger: Target logger.
        session_id: Identifier stamped on every record; random when omitted.
        level: Logging verbosity level.
        queue_size: Records buffered before new ones are dropped.

    Returns:
        The started queue listener; stop it with :func:`shutdown_listeners`.
    """

    target = logger or logging.getLogger("sui_kit")
    target.setLevel(level)

    records: Queue[logging.LogRecord] = Queue(maxsize=queue_size)
    target.addHandler(_DroppingQueueHandler(records))

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(JsonFormatter(session_id=session_id or uuid4().hex))

    listener = logging.handlers.QueueListener(records, stream_handler)
    listener.start()
    return listener


def shutdown_listeners(listeners: Iterable[logging.handlers.QueueListener]) -> None:
    """Stop queue listeners, logging rather than raising on failure."""

    for listener in listeners:
        try:
            listener.stop()
        except Exception as exc:  # pragma: no cover
            LOGGER.warning("Failed to stop logging listener", exc_info=exc)
