"""Extração de campos do checkout: oráculo e regras determinísticas.

Duas implementações do mesmo contrato (FieldExtractor), tentadas em ordem
fixa pelo ChainedFieldExtractor, com FieldExtractionResult compartilhado.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable

from vnova_voice.ai.contracts.field_extraction import FieldExtractionResult
from vnova_voice.ai.openai_client import OracleClient
from vnova_voice.domain.checkout import normalizers
from vnova_voice.domain.checkout.steps import FieldType
from vnova_voice.observability.logging import get_logger, log_fallback

logger = get_logger(__name__)

_NAME_PREFIX = re.compile(
    r"^(?:my name is|my name's|the name is|the name on the card is|name on the card is|"
    r"it says|i'm|i am|call me|it's|it is|this is)(?:\s+|$)",
    re.IGNORECASE,
)
_EMAIL_PREFIX = re.compile(r"^(?:my email(?: address)? is|email is|it's|it is)\s+", re.IGNORECASE)
_ADDRESS_PREFIX = re.compile(
    r"^(?:my (?:shipping )?address is|ship (?:it )?to|send it to|deliver (?:it )?to|it's|it is)\s+",
    re.IGNORECASE,
)
_LETTERS_AND_SPACES = re.compile(r"^[A-Za-z ]+$")
MIN_ADDRESS_CHARS = 5


class FieldExtractor(ABC):
    """Contrato: texto livre → FieldExtractionResult."""

    @abstractmethod
    async def extract(self, transcript: str, field_type: FieldType) -> FieldExtractionResult: ...


def extract_name(transcript: str) -> str | None:
    """Regra de nome: remove "my name is"/"call me", exige letras, capitaliza.

    "my name is john smith" → "John Smith".
    """
    cleaned = normalizers.collapse_spaces(transcript).strip(" .,!?")
    cleaned = _NAME_PREFIX.sub("", cleaned).strip(" .,!?")
    if len(cleaned) < 2 or not _LETTERS_AND_SPACES.match(cleaned):
        return None
    return normalizers.title_words(cleaned)


def extract_email(transcript: str) -> str | None:
    cleaned = _EMAIL_PREFIX.sub("", transcript.strip())
    return normalizers.normalize_email(cleaned).value


def extract_address(transcript: str) -> str | None:
    cleaned = _ADDRESS_PREFIX.sub("", normalizers.collapse_spaces(transcript)).strip(" .")
    return cleaned if len(cleaned) >= MIN_ADDRESS_CHARS else None


_RULES: dict[FieldType, Callable[[str], str | None]] = {
    FieldType.NAME: extract_name,
    FieldType.CARD_NAME: extract_name,
    FieldType.EMAIL: extract_email,
    FieldType.ADDRESS: extract_address,
    FieldType.PHONE: lambda text: normalizers.normalize_phone(text).value,
    FieldType.CARD_NUMBER: lambda text: normalizers.normalize_card_number(text).value,
    FieldType.EXPIRY_DATE: lambda text: normalizers.normalize_expiry(text).value,
    FieldType.CVV: lambda text: normalizers.normalize_cvv(text).value,
}


class RuleBasedFieldExtractor(FieldExtractor):
    """Extração determinística, sem rede."""

    async def extract(self, transcript: str, field_type: FieldType) -> FieldExtractionResult:
        rule = _RULES.get(field_type)
        value = rule(transcript) if rule else None
        if value:
            return FieldExtractionResult(value=value, source="rules")
        return FieldExtractionResult(error=f"Could not extract {field_type}", source="rules")


class OracleFieldExtractor(FieldExtractor):
    """Extração via oráculo (OracleClient.extract_field)."""

    def __init__(self, oracle: OracleClient) -> None:
        self._oracle = oracle

    async def extract(self, transcript: str, field_type: FieldType) -> FieldExtractionResult:
        return await self._oracle.extract_field(transcript, field_type.value)


class ChainedFieldExtractor(FieldExtractor):
    """Tenta o primário; recorre ao fallback conforme a política.

    - Primário indisponível (desabilitado, erro, rate limit): fallback para qualquer campo
    - Primário respondeu sem valor: fallback só para fallback_on_miss (padrão: NAME)
    """

    def __init__(
        self,
        primary: FieldExtractor,
        fallback: FieldExtractor,
        fallback_on_miss: frozenset[FieldType] = frozenset({FieldType.NAME}),
    ) -> None:
        self._primary = primary
        self._fallback = fallback
        self._fallback_on_miss = fallback_on_miss

    async def extract(self, transcript: str, field_type: FieldType) -> FieldExtractionResult:
        result = await self._primary.extract(transcript, field_type)
        if result.found:
            return result

        if not (result.unavailable or field_type in self._fallback_on_miss):
            return result

        fallback = await self._fallback.extract(transcript, field_type)
        if not fallback.found:
            return result

        log_fallback(
            logger,
            f"checkout_{field_type.value.lower()}",
            reason="oracle_unavailable" if result.unavailable else "oracle_miss",
        )
        return fallback
