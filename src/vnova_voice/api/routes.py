"""Rotas HTTP do assistente de voz."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from vnova_voice.api.dependencies import get_assistant, get_recording_transport, get_settings
from vnova_voice.application.assistant import VoiceAssistant
from vnova_voice.config.settings import Settings
from vnova_voice.infra.transport_memory import RecordingTransport
from vnova_voice.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


class VoiceCommandRequest(BaseModel):
    transcript: str


class TransportEventRequest(BaseModel):
    event: str
    payload: dict[str, Any] = Field(default_factory=dict)


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Healthcheck simples."""
    return {"status": "ok", "service": settings.service_name, "version": settings.version}


@router.post("/api/voice-command")
async def voice_command(
    body: VoiceCommandRequest,
    assistant: VoiceAssistant = Depends(get_assistant),
    transport: RecordingTransport | None = Depends(get_recording_transport),
) -> dict[str, Any]:
    """Despacha um comando já transcrito e devolve o resultado."""
    if not body.transcript.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="missing_transcript")

    outcome = await assistant.handle_command(body.transcript)
    return {
        "transcript": outcome.transcript,
        "handled": outcome.handled,
        "dropped": outcome.dropped,
        "intent": outcome.intent.value if outcome.intent else None,
        "routedToCheckout": outcome.routed_to_checkout,
        "fastPath": outcome.fast_path,
        "response": outcome.response,
        "error": outcome.error,
        "checkoutStep": assistant.checkout.current_step.value,
        "spoken": transport.drain_spoken() if transport is not None else [],
    }


@router.get("/api/voice/actions")
def voice_actions(assistant: VoiceAssistant = Depends(get_assistant)) -> dict[str, Any]:
    """Log de ações, da mais recente para a mais antiga."""
    return {
        "lastAction": assistant.action_log.last_action,
        "entries": [
            {"timestamp": entry.timestamp, "description": entry.description, "success": entry.success}
            for entry in assistant.action_log.entries()
        ],
    }


@router.get("/api/voice/checkout")
def voice_checkout(assistant: VoiceAssistant = Depends(get_assistant)) -> dict[str, Any]:
    """Estado do checkout guiado; expõe apenas nomes de campos, nunca valores."""
    checkout = assistant.checkout
    return {
        "step": checkout.current_step.value,
        "isActive": checkout.is_active,
        "prompt": checkout.current_prompt(),
        "collectedFields": sorted(checkout.collected_fields),
    }


@router.post("/api/voice/events")
async def transport_event(
    body: TransportEventRequest,
    assistant: VoiceAssistant = Depends(get_assistant),
) -> dict[str, Any]:
    """Entrega um evento cru do transporte ao gerenciador de sessão."""
    session = assistant.session
    await session.handle_transport_event(body.event, body.payload)
    logger.info("transport_event_received", extra={"event_name": body.event})
    return {
        "status": session.status.value,
        "wasIntentionallyActive": session.was_intentionally_active,
        "reconnectAttempts": session.reconnect_attempts,
        "pendingReconnectDelay": session.pending_reconnect_delay,
    }
