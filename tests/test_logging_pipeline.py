"""Tests for the JSON logging helpers."""

from __future__ import annotations

import io
import json
import logging
from logging.handlers import QueueListener
from queue import Queue
from typing import Any, cast

import pytest

from sui_kit import logging_pipeline


def _capture(listener: QueueListener) -> io.StringIO:
    stream_handler = cast(logging.StreamHandler[Any], listener.handlers[0])
    buffer = io.StringIO()
    stream_handler.setStream(buffer)
    return buffer


def test_records_render_as_json_with_context() -> None:
    logger = logging.getLogger("sui-kit-json-test")
    listener = logging_pipeline.configure_structured_logging(logger, session_id="session-1")
    buffer = _capture(listener)

    logger.info("Transaction executed", extra={"digest": "D1"})
    logging_pipeline.shutdown_listeners([listener])

    payload = json.loads(buffer.getvalue().strip())
    assert payload["message"] == "Transaction executed"
    assert payload["level"] == "INFO"
    assert payload["session_id"] == "session-1"
    assert payload["context"] == {"digest": "D1"}


def test_session_id_generated_when_omitted() -> None:
    logger = logging.getLogger("sui-kit-auto-session")
    listener = logging_pipeline.configure_structured_logging(logger)
    buffer = _capture(listener)

    logger.warning("no session given")
    logging_pipeline.shutdown_listeners([listener])

    payload = json.loads(buffer.getvalue())
    assert isinstance(payload["session_id"], str) and payload["session_id"]


def test_exceptions_are_included() -> None:
    logger = logging.getLogger("sui-kit-exc-test")
    listener = logging_pipeline.configure_structured_logging(logger, session_id="s")
    buffer = _capture(listener)

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("publish failed")
    logging_pipeline.shutdown_listeners([listener])

    contents = buffer.getvalue()
    assert json.loads(contents)["message"].startswith("publish failed")
    assert "RuntimeError: boom" in contents


def test_default_target_is_package_logger() -> None:
    listener = logging_pipeline.configure_structured_logging(level=logging.DEBUG)
    buffer = _capture(listener)
    package_logger = logging.getLogger("sui_kit")
    try:
        logging.getLogger("sui_kit.rpc.provider").debug("child record", extra={"method": "x"})
    finally:
        logging_pipeline.shutdown_listeners([listener])
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
        package_logger.setLevel(logging.NOTSET)

    payload = json.loads(buffer.getvalue())
    assert payload["logger"] == "sui_kit.rpc.provider"
    assert payload["context"]["method"] == "x"


def test_shutdown_listeners_logs_failures(caplog: pytest.LogCaptureFixture) -> None:
    class _FailingListener(QueueListener):
        def __init__(self) -> None:
            super().__init__(Queue(), logging.StreamHandler())

        def stop(self) -> None:
            raise RuntimeError("stop failure")

    with caplog.at_level(logging.WARNING):
        logging_pipeline.shutdown_listeners([_FailingListener()])

    assert "Failed to stop logging listener" in caplog.text
