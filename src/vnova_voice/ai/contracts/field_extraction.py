"""Contrato Pydantic para extração de campo do checkout."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class FieldExtractionResult(BaseModel):
    """Resultado compartilhado por todas as estratégias de extração."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    value: str | None = Field(default=None, alias="extracted")
    """Valor extraído (ainda não normalizado)."""

    error: str | None = None
    """Mensagem do extrator quando nada foi encontrado."""

    rate_limited: bool = False
    """True se o oráculo desistiu por rate limit."""

    unavailable: bool = False
    """True se o oráculo não respondeu (desabilitado, erro, rate limit)."""

    source: Literal["oracle", "rules"] = "oracle"

    @property
    def found(self) -> bool:
        return bool(self.value and self.value.strip())
