"""Adaptador do oráculo de classificação/extração (OpenAI).

Fornece um contrato uniforme sobre a API de chat:
- classify(prompt) → texto livre
- extract_field(transcript, field_type) → FieldExtractionResult (nunca lança)

Retry com backoff exponencial somente em rate limit; demais falhas falham
rápido após log.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from openai import AsyncOpenAI, RateLimitError

from vnova_voice.ai import prompts
from vnova_voice.ai.contracts.field_extraction import FieldExtractionResult
from vnova_voice.ai.oracle_parser import parse_json_payload
from vnova_voice.observability.logging import get_logger
from vnova_voice.observability.timing import timed

if TYPE_CHECKING:
    from vnova_voice.config.settings import Settings

logger: logging.Logger = get_logger(__name__)

_RATE_LIMIT_MARKERS = ("429", "resource exhausted", "rate limit")

ORACLE_UNAVAILABLE_MESSAGE = "AI not available"
ORACLE_FAILED_MESSAGE = "Failed to process your response"


class OracleError(Exception):
    """Falha ao obter resposta do oráculo (sem expor o prompt)."""

    def __init__(self, message: str, rate_limited: bool = False) -> None:
        super().__init__(message)
        self.rate_limited = rate_limited


class OracleUnavailableError(OracleError):
    """Oráculo desabilitado por configuração ou sem chave."""


def _is_rate_limit(exc: BaseException) -> bool:
    """Sinais de rate limit do provedor (tipo ou mensagem)."""
    if isinstance(exc, RateLimitError):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)


def _calculate_backoff(attempt: int, base_seconds: float) -> float:
    """Backoff exponencial: attempt 1 → base, 2 → 2*base, 3 → 4*base."""
    return base_seconds * (2 ** (attempt - 1))


class OracleClient:
    """Gerenciador do oráculo com retry em rate limit e parse defensivo."""

    def __init__(
        self,
        client: Any | None = None,
        *,
        model: str = "gpt-4o-mini",
        timeout: float = 10.0,
        max_attempts: int = 3,
        backoff_base_seconds: float = 1.0,
        enabled: bool = True,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._model = model
        self._timeout = timeout
        self._max_attempts = max(1, max_attempts)
        self._backoff_base = backoff_base_seconds
        self._enabled = enabled and client is not None
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings, client: Any | None = None) -> OracleClient:
        """Cria o adaptador; sem chave/flag o oráculo fica indisponível."""
        if client is None and settings.oracle_active:
            client = AsyncOpenAI(api_key=settings.openai_api_key)
        return cls(
            client,
            model=settings.openai_model,
            timeout=settings.openai_timeout_seconds,
            max_attempts=settings.oracle_max_attempts,
            backoff_base_seconds=settings.oracle_backoff_base_seconds,
            enabled=client is not None,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def classify(self, prompt: str) -> str:
        """Envia o prompt e retorna o texto da resposta.

        Raises:
            OracleUnavailableError: oráculo desabilitado
            OracleError: falha não-rate-limit, ou rate limit após esgotar tentativas
        """
        if not self._enabled:
            raise OracleUnavailableError("oracle_disabled")

        for attempt in range(1, self._max_attempts + 1):
            try:
                with timed("oracle_call", slow_ms=self._timeout * 1000, attempt=attempt):
                    response = await self._client.chat.completions.create(
                        model=self._model,
                        messages=[{"role": "user", "content": prompt}],
                        temperature=0.1,
                        max_tokens=200,
                        timeout=self._timeout,
                    )
                return (response.choices[0].message.content or "").strip()
            except Exception as exc:
                if not _is_rate_limit(exc):
                    logger.warning(
                        "oracle_call_failed",
                        extra={"error_type": type(exc).__name__, "attempt": attempt},
                    )
                    raise OracleError(f"oracle_failed: {type(exc).__name__}") from exc

                if attempt >= self._max_attempts:
                    logger.error(
                        "oracle_rate_limit_exhausted",
                        extra={"total_attempts": attempt},
                    )
                    raise OracleError("oracle_rate_limited", rate_limited=True) from exc

                delay = _calculate_backoff(attempt, self._backoff_base)
                logger.info(
                    "oracle_rate_limited_backoff",
                    extra={"backoff_seconds": delay, "next_attempt": attempt + 1},
                )
                await self._sleep(delay)

        raise OracleError("oracle_rate_limited", rate_limited=True)

    async def extract_field(self, transcript: str, field_type: str) -> FieldExtractionResult:
        """Extrai um campo do checkout. Nunca lança exceção."""
        try:
            text = await self.classify(
                prompts.format_checkout_field_extraction(transcript, field_type)
            )
        except OracleUnavailableError:
            return FieldExtractionResult(error=ORACLE_UNAVAILABLE_MESSAGE, unavailable=True)
        except OracleError as exc:
            return FieldExtractionResult(
                error=ORACLE_FAILED_MESSAGE,
                rate_limited=exc.rate_limited,
                unavailable=True,
            )

        payload = parse_json_payload(text)
        if not isinstance(payload, dict):
            logger.info("field_extraction_unparsable", extra={"field_type": field_type})
            return FieldExtractionResult(error=f"Could not extract {field_type}")

        raw = payload.get("extracted")
        value = str(raw).strip() if raw not in (None, "") else None
        if value:
            return FieldExtractionResult(value=value)
        error = payload.get("error")
        return FieldExtractionResult(error=str(error) if error else f"Could not extract {field_type}")

