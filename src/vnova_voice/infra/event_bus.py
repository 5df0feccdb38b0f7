"""Barramento de eventos síncrono em processo."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Mapping
from typing import Any

from vnova_voice.domain.protocols.user_info import EventBusProtocol
from vnova_voice.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

Subscriber = Callable[[Mapping[str, Any]], None]


class InMemoryEventBus(EventBusProtocol):
    """Entrega síncrona; falha de um assinante não afeta os demais.

    Mantém histórico (topic, payload) para inspeção em testes e na API.
    """

    def __init__(self, history_size: int = 100) -> None:
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)
        self._history: list[tuple[str, dict[str, Any]]] = []
        self._history_size = history_size

    @property
    def history(self) -> list[tuple[str, dict[str, Any]]]:
        return list(self._history)

    def subscribe(self, topic: str, subscriber: Subscriber) -> None:
        self._subscribers[topic].append(subscriber)

    def publish(self, topic: str, payload: Mapping[str, Any]) -> None:
        event = dict(payload)
        self._history.append((topic, event))
        del self._history[: -self._history_size]
        for subscriber in list(self._subscribers.get(topic, ())):
            try:
                subscriber(event)
            except Exception as exc:
                logger.warning(
                    "event_subscriber_failed",
                    extra={"topic": topic, "error_type": type(exc).__name__},
                )
