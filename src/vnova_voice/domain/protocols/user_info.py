"""Contratos do store de dados do comprador e do barramento de eventos."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

FIELD_UPDATED_TOPIC = "userInfoUpdated"

USER_INFO_FIELDS: tuple[str, ...] = (
    "name",
    "email",
    "address",
    "phone",
    "cardName",
    "cardNumber",
    "expiryDate",
    "cvv",
)


class UserInfoStoreProtocol(ABC):
    """Store externo; escritas são fire-and-forget (sem rollback)."""

    @abstractmethod
    def get(self) -> dict[str, str]: ...

    @abstractmethod
    def update(self, partial: Mapping[str, str]) -> None: ...


class EventBusProtocol(ABC):
    """Barramento de notificações consumido pela UI."""

    @abstractmethod
    def publish(self, topic: str, payload: Mapping[str, Any]) -> None: ...
