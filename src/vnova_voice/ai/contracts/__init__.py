"""Contratos Pydantic das respostas do oráculo."""

from vnova_voice.ai.contracts.commands import (
    FilterPayload,
    NavigationPayload,
    ProductActionPayload,
    RemoveFiltersPayload,
    UserInfoPayload,
)
from vnova_voice.ai.contracts.field_extraction import FieldExtractionResult

__all__ = [
    "FieldExtractionResult",
    "FilterPayload",
    "NavigationPayload",
    "ProductActionPayload",
    "RemoveFiltersPayload",
    "UserInfoPayload",
]
