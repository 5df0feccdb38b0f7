"""Logging estruturado (JSON) do serviço de voz.

Todo record recebe correlation_id (um por fala despachada) e service. Campos
com dados do comprador coletados no checkout são mascarados antes de sair.
"""

from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

from vnova_voice.observability.middleware import get_correlation_id

REDACTED = "[redacted]"

# Chaves de `extra` que nunca podem sair em claro ("name" é do próprio LogRecord)
SENSITIVE_FIELDS: frozenset[str] = frozenset(
    {
        "transcript",
        "email",
        "phone",
        "address",
        "card_number",
        "expiry_date",
        "cvv",
        "collected_fields",
    }
)


class CorrelationIdFilter(logging.Filter):
    """Insere correlation_id e service; mascara campos de checkout."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self._service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing if existing else get_correlation_id()
        record.service = self._service_name
        for key in SENSITIVE_FIELDS.intersection(record.__dict__):
            setattr(record, key, REDACTED)
        return True


def configure_logging(level: str, service_name: str) -> None:
    formatter = JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s %(correlation_id)s %(service)s",
        rename_fields={"levelname": "level", "name": "logger"},
    )

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter(service_name))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_fallback(
    logger: logging.Logger,
    component: str,
    reason: str | None = None,
    elapsed_ms: float | None = None,
) -> None:
    """Registra `fallback_applied` quando uma regra determinística substitui o oráculo.

    Args:
        component: "intent_classification" ou "checkout_<campo>"
        reason: "rate_limited", "oracle_unavailable" ou "oracle_miss"
        elapsed_ms: tempo gasto no oráculo antes de desistir
    """
    extra: dict[str, object] = {"fallback_used": True, "component": component}
    if reason:
        extra["reason"] = reason
    if elapsed_ms is not None:
        extra["elapsed_ms"] = elapsed_ms
    logger.info("fallback_applied", extra=extra)
