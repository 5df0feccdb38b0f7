"""Enums de domínio para sessão de voz, intenções e erros de transporte."""

from __future__ import annotations

from enum import StrEnum


class SessionStatus(StrEnum):
    """Status observável da conexão com o transporte de voz."""

    IDLE = "idle"
    CONNECTING = "connecting"
    ACTIVE = "active"
    SPEAKING = "speaking"
    ERROR = "error"
    BLOCKED = "blocked"


class TranscriptRole(StrEnum):
    """Autor de um trecho transcrito."""

    USER = "user"
    ASSISTANT = "assistant"


class Intent(StrEnum):
    """Conjunto fechado de intenções aceitas do classificador."""

    NAVIGATION = "navigation"
    CART = "cart"
    CATEGORY_NAVIGATION = "category_navigation"
    PRODUCT_NAVIGATION = "product_navigation"
    PRODUCT_ACTION = "product_action"
    APPLY_FILTER = "apply_filter"
    REMOVE_FILTER = "remove_filter"
    CLEAR_FILTERS = "clear_filters"
    USER_INFO = "user_info"
    ORDER_COMPLETION = "order_completion"
    GENERAL_COMMAND = "general_command"

    @classmethod
    def parse(cls, label: str | None) -> Intent:
        """Converte o texto livre do oráculo em Intent.

        Rótulos desconhecidos caem no balde GENERAL_COMMAND.
        """
        if not label:
            return cls.GENERAL_COMMAND
        cleaned = label.strip().strip("`'\".").lower()
        try:
            return cls(cleaned)
        except ValueError:
            return cls.GENERAL_COMMAND


class TransportErrorKind(StrEnum):
    """Classificação de erros reportados pelo transporte de voz."""

    AUTH_FATAL = "auth_fatal"
    """401 / unauthorized / chave inválida: nunca reconecta."""

    BLOCKED = "blocked"
    """Microfone negado pelo usuário: nunca reconecta até start manual."""

    EJECTION = "ejection"
    """Sala encerrada/ejeção: esperado, reconecta rápido."""

    GENERIC = "generic"
    """Demais falhas: reconecta com backoff."""


class ProductAction(StrEnum):
    """Ações suportadas na página de produto."""

    SIZE = "size"
    QUANTITY = "quantity"
    ADD_TO_CART = "addToCart"
    NONE = "none"
