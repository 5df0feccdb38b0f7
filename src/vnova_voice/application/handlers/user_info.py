"""Handler de dados do comprador ditos fora do checkout guiado."""

from __future__ import annotations

import logging

from vnova_voice.ai import prompts
from vnova_voice.ai.contracts import UserInfoPayload
from vnova_voice.ai.openai_client import OracleClient
from vnova_voice.application.handlers.base import IntentHandler, Speak
from vnova_voice.domain.action_log import ActionLog
from vnova_voice.domain.checkout import STEP_TABLE
from vnova_voice.domain.protocols.user_info import (
    FIELD_UPDATED_TOPIC,
    EventBusProtocol,
    UserInfoStoreProtocol,
)
from vnova_voice.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

_NORMALIZERS = {spec.user_info_field: spec.normalize for spec in STEP_TABLE.values()}


class UserInfoHandler(IntentHandler):
    """Mescla no store os campos não nulos devolvidos pelo oráculo.

    Cada campo passa pelo mesmo normalizador do passo correspondente do
    checkout; campos inválidos são descartados (nunca logados).
    """

    def __init__(
        self,
        oracle: OracleClient,
        speak: Speak,
        action_log: ActionLog,
        *,
        user_info: UserInfoStoreProtocol,
        event_bus: EventBusProtocol | None = None,
    ) -> None:
        super().__init__(oracle, speak, action_log)
        self._user_info = user_info
        self._event_bus = event_bus

    async def handle(self, transcript: str) -> bool:
        payload = await self._ask_model(prompts.format_user_info_update(transcript), UserInfoPayload)
        if payload is None or not payload.is_user_info_update:
            return False

        updates: dict[str, str] = {}
        for field_name, raw in payload.updates().items():
            check = _NORMALIZERS[field_name](raw)
            if check.ok:
                updates[field_name] = check.value or ""
            else:
                logger.info("user_info_field_rejected", extra={"field": field_name})

        if not updates:
            return False

        self._user_info.update(updates)
        if self._event_bus is not None:
            self._event_bus.publish(
                FIELD_UPDATED_TOPIC,
                {"message": "User info updated", "updatedFields": sorted(updates)},
            )
        self._record("User info updated")
        return True
