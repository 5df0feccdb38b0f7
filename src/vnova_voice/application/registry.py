"""Handle único de sessão por processo, com contagem de referências.

- LatestHandler: célula mutável lida a cada evento, para que o callback
  registrado uma vez no transporte sempre chame a versão corrente do handler
- SessionRegistry: init-once no primeiro acquire, teardown no último release
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, Protocol, TypeVar

from vnova_voice.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class LatestHandler:
    """Indireção para o handler de transcrições corrente."""

    def __init__(self, handler: Callable[[str], Awaitable[Any]] | None = None) -> None:
        self._handler = handler

    def set(self, handler: Callable[[str], Awaitable[Any]]) -> None:
        self._handler = handler

    async def __call__(self, transcript: str) -> Any:
        handler = self._handler
        if handler is None:
            logger.warning("transcript_handler_not_set")
            return None
        return await handler(transcript)


class Closeable(Protocol):
    async def shutdown(self) -> None: ...


T = TypeVar("T", bound=Closeable)


class SessionRegistry(Generic[T]):
    """Registro chaveado (aba/processo) de instâncias compartilhadas."""

    def __init__(self) -> None:
        self._entries: dict[str, T] = {}
        self._refcounts: dict[str, int] = {}

    def acquire(self, key: str, factory: Callable[[], T]) -> T:
        """Retorna a instância da chave, criando-a no primeiro acquire."""
        instance = self._entries.get(key)
        if instance is None:
            instance = factory()
            self._entries[key] = instance
            self._refcounts[key] = 0
            logger.info("session_registry_created", extra={"key": key})
        self._refcounts[key] += 1
        return instance

    async def release(self, key: str) -> bool:
        """Decrementa a referência; no último release faz shutdown e remove.

        Returns:
            True se a instância foi destruída
        """
        if key not in self._entries:
            return False
        self._refcounts[key] -= 1
        if self._refcounts[key] > 0:
            return False

        instance = self._entries.pop(key)
        del self._refcounts[key]
        logger.info("session_registry_released", extra={"key": key})
        await instance.shutdown()
        return True

    def get(self, key: str) -> T | None:
        return self._entries.get(key)

    def refcount(self, key: str) -> int:
        return self._refcounts.get(key, 0)
