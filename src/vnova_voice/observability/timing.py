"""Medição de latência por etapa do pipeline de voz."""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Generator
from dataclasses import dataclass, field
from typing import Any

from vnova_voice.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class Stopwatch:
    """Cronômetro de uma etapa; fields vão junto no log de latência."""

    component: str
    started_at: float = field(default_factory=time.perf_counter)
    fields: dict[str, Any] = field(default_factory=dict)

    @property
    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self.started_at) * 1000, 2)


@contextlib.contextmanager
def timed(component: str, *, slow_ms: float | None = None, **fields: Any) -> Generator[Stopwatch, None, None]:
    """Mede a etapa e registra `component_latency` ao sair.

    O Stopwatch cedido permite ler elapsed_ms no meio da etapa (ex.: para
    log_fallback) e anexar campos descobertos durante ela, como a intenção.
    Acima de slow_ms o registro sobe para WARNING.

        with timed("intent_classification") as watch:
            ...
            log_fallback(logger, "intent_classification", elapsed_ms=watch.elapsed_ms)
    """
    watch = Stopwatch(component, fields=dict(fields))
    try:
        yield watch
    finally:
        elapsed_ms = watch.elapsed_ms
        slow = slow_ms is not None and elapsed_ms > slow_ms
        logger.log(
            logging.WARNING if slow else logging.INFO,
            "component_latency",
            extra={**watch.fields, "component": component, "elapsed_ms": elapsed_ms, "slow": slow},
        )
