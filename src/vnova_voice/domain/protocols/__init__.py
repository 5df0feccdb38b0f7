"""Re-exports dos Protocolos de domínio para uso por Application."""

from __future__ import annotations

from vnova_voice.domain.protocols.storefront import CatalogProtocol, StorefrontProtocol
from vnova_voice.domain.protocols.transport import SpeechTransport
from vnova_voice.domain.protocols.user_info import (
    FIELD_UPDATED_TOPIC,
    USER_INFO_FIELDS,
    EventBusProtocol,
    UserInfoStoreProtocol,
)

__all__ = [
    "CatalogProtocol",
    "StorefrontProtocol",
    "SpeechTransport",
    "UserInfoStoreProtocol",
    "EventBusProtocol",
    "FIELD_UPDATED_TOPIC",
    "USER_INFO_FIELDS",
]
