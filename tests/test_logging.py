"""Tests for the structured logging system (fundflow_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from fundflow_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite's config."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


def _parse_log(stream: StringIO) -> dict:
    return _parse_all_logs(stream)[0]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "fundflow_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("request_created", extra={"status": "PENDING", "count": 2})

        record = _parse_log(stream)
        assert record["status"] == "PENDING"
        assert record["count"] == 2

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(actor_id="agent.1", request_number="REQ-1")
        get_logger("test").info("msg")

        record = _parse_log(stream)
        assert record["actor_id"] == "agent.1"
        assert record["request_number"] == "REQ-1"

    def test_domain_values_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info(
            "values",
            extra={"id": uid, "amount": Decimal("10.50"), "day": date(2024, 1, 1)},
        )

        record = _parse_log(stream)
        assert record["id"] == str(uid)
        assert record["amount"] == "10.50"
        assert record["day"] == "2024-01-01"

    def test_kernel_exception_fields_extracted(self):
        from fundflow_kernel.exceptions import TransactionAlreadyResolvedError

        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise TransactionAlreadyResolvedError("TXN-00000001", "CONFIRMED", "reject")
        except TransactionAlreadyResolvedError:
            get_logger("test").error("resolve_failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "TransactionAlreadyResolvedError"
        assert record["exc_code"] == "TRANSACTION_ALREADY_RESOLVED"
        assert record["exc_reference_number"] == "TXN-00000001"
        assert record["exc_action"] == "reject"
        assert "traceback" in record

    def test_default_level_drops_debug(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second")
        logger.debug("third")

        assert [r["message"] for r in _parse_all_logs(stream)] == ["first", "second"]


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_clear(self):
        LogContext.set(correlation_id="x", reference_number="TXN-1")
        assert LogContext.get_all() == {"correlation_id": "x", "reference_number": "TXN-1"}

        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous(self):
        LogContext.set(actor_id="outer")
        with LogContext.bind(actor_id="inner", request_number="REQ-9"):
            assert LogContext.get_all() == {"actor_id": "inner", "request_number": "REQ-9"}
        assert LogContext.get_all() == {"actor_id": "outer"}

    def test_bind_skips_none(self):
        with LogContext.bind(actor_id=None, reference_number="TXN-2"):
            assert LogContext.get_all() == {"reference_number": "TXN-2"}


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)

        # pytest may attach its own capture handler to non-propagating loggers
        handlers = logging.getLogger("fundflow_kernel").handlers
        assert h1 in handlers
        assert h2 not in handlers

    def test_get_logger_returns_child(self):
        assert get_logger("services.funds").name == "fundflow_kernel.services.funds"

    def test_level_by_name(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level="DEBUG")
        get_logger("deep.nested").debug("hierarchy_test")

        assert _parse_log(stream)["logger"] == "fundflow_kernel.deep.nested"
