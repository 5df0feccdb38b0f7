"""Testes de logging estruturado e correlation_id."""

from __future__ import annotations

import logging

import pytest

from vnova_voice.observability.logging import REDACTED, CorrelationIdFilter, get_logger, log_fallback
from vnova_voice.observability.middleware import correlation_scope, get_correlation_id
from vnova_voice.observability.timing import timed


def make_record() -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, "event", None, None)


class TestCorrelationScope:
    def test_generates_and_resets(self) -> None:
        assert get_correlation_id() == ""
        with correlation_scope() as correlation_id:
            assert correlation_id
            assert get_correlation_id() == correlation_id
        assert get_correlation_id() == ""

    def test_reuses_current_id(self) -> None:
        with correlation_scope("outer"), correlation_scope() as inner:
            assert inner == "outer"


class TestCorrelationIdFilter:
    def test_injects_service_and_id(self) -> None:
        record = make_record()
        with correlation_scope("abc123"):
            assert CorrelationIdFilter("vnova_voice").filter(record) is True
        assert record.correlation_id == "abc123"
        assert record.service == "vnova_voice"

    def test_keeps_explicit_id(self) -> None:
        record = make_record()
        record.correlation_id = "explicit"
        CorrelationIdFilter("vnova_voice").filter(record)
        assert record.correlation_id == "explicit"

    def test_masks_checkout_fields(self) -> None:
        record = make_record()
        record.card_number = "4111111111111111"
        record.cvv = "123"
        record.step = "card_number"

        CorrelationIdFilter("vnova_voice").filter(record)

        assert record.card_number == REDACTED
        assert record.cvv == REDACTED
        assert record.step == "card_number"
        assert record.name == "test"


class TestLogFallback:
    def test_structured_fields(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("vnova_voice.test")
        with caplog.at_level(logging.INFO, logger="vnova_voice.test"):
            log_fallback(logger, "checkout_name", reason="oracle_unavailable")

        record = caplog.records[-1]
        assert record.fallback_used is True
        assert record.component == "checkout_name"
        assert record.reason == "oracle_unavailable"
        assert not hasattr(record, "elapsed_ms")
        assert record.getMessage() == "fallback_applied"


class TestTimed:
    def test_logs_latency_with_collected_fields(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="vnova_voice.observability.timing"):
            with timed("intent_classification", text_length=12) as watch:
                watch.fields["intent"] = "cart"
                assert watch.elapsed_ms >= 0

        record = caplog.records[-1]
        assert record.getMessage() == "component_latency"
        assert record.component == "intent_classification"
        assert record.intent == "cart"
        assert record.text_length == 12
        assert record.slow is False
        assert record.levelno == logging.INFO

    def test_slow_component_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="vnova_voice.observability.timing"):
            with timed("oracle_call", slow_ms=-1):
                pass

        record = caplog.records[-1]
        assert record.slow is True
        assert record.levelno == logging.WARNING
