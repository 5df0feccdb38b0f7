"""Log de ações (ring buffer) usado apenas para observabilidade."""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from vnova_voice.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ActionLogEntry:
    """Entrada imutável do log de ações."""

    timestamp: float
    description: str
    success: bool = True


class ActionLog:
    """Buffer append-only limitado às N entradas mais recentes.

    Invariantes:
    - Nunca excede max_entries (descarta as mais antigas)
    - entries() retorna da mais recente para a mais antiga
    """

    def __init__(
        self,
        max_entries: int = 20,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._entries: deque[ActionLogEntry] = deque(maxlen=max_entries)
        self._clock = clock or time.time

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen or 0

    @property
    def last_action(self) -> str:
        """Descrição da última ação registrada (ou vazio)."""
        return self._entries[0].description if self._entries else ""

    def record(self, description: str, success: bool = True) -> ActionLogEntry:
        """Registra uma ação e espelha no log estruturado."""
        entry = ActionLogEntry(timestamp=self._clock(), description=description, success=success)
        self._entries.appendleft(entry)
        logger.log(
            logging.INFO if success else logging.WARNING,
            "voice_action",
            extra={"action": description, "success": success},
        )
        return entry

    def entries(self) -> list[ActionLogEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
