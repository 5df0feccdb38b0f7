"""Base comum dos handlers de intenção."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from pydantic import BaseModel

from vnova_voice.ai.openai_client import OracleClient, OracleError
from vnova_voice.ai.oracle_parser import parse_model
from vnova_voice.domain.action_log import ActionLog
from vnova_voice.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

Speak = Callable[[str], bool]


class IntentHandler:
    """Capacidades compartilhadas: oráculo, fala e log de ações.

    Contrato dos handlers:
    - Retornam bool (handled)
    - "Sem match" nunca lança; só falhas genuínas propagam
    """

    def __init__(self, oracle: OracleClient, speak: Speak, action_log: ActionLog) -> None:
        self._oracle = oracle
        self._speak = speak
        self._action_log = action_log

    async def _ask_model(self, prompt: str, model: type[ModelT]) -> ModelT | None:
        """Chama o oráculo e valida o JSON no contrato; None em qualquer falha."""
        try:
            text = await self._oracle.classify(prompt)
        except OracleError as exc:
            logger.info(
                "handler_oracle_unavailable",
                extra={"handler": type(self).__name__, "rate_limited": exc.rate_limited},
            )
            return None
        return parse_model(text, model)

    async def _ask_text(self, prompt: str) -> str | None:
        try:
            return await self._oracle.classify(prompt)
        except OracleError as exc:
            logger.info(
                "handler_oracle_unavailable",
                extra={"handler": type(self).__name__, "rate_limited": exc.rate_limited},
            )
            return None

    def _record(self, description: str, success: bool = True) -> None:
        self._action_log.record(description, success)
