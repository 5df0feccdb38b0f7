"""Fábrica da aplicação FastAPI."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from vnova_voice.ai.openai_client import OracleClient
from vnova_voice.api.routes import router
from vnova_voice.application.assistant import VoiceAssistant
from vnova_voice.application.registry import SessionRegistry
from vnova_voice.config.settings import Settings, get_settings
from vnova_voice.infra.catalog_memory import InMemoryCatalog
from vnova_voice.infra.event_bus import InMemoryEventBus
from vnova_voice.infra.storefront_memory import InMemoryStorefront
from vnova_voice.infra.transport_memory import RecordingTransport
from vnova_voice.infra.user_info_memory import InMemoryUserInfoStore
from vnova_voice.observability.logging import configure_logging, get_logger
from vnova_voice.observability.middleware import CorrelationIdMiddleware

logger = get_logger(__name__)

REGISTRY_KEY = "process"
ORDER_PLACED_TOPIC = "orderPlaced"


def _build_default_assistant(settings: Settings, app: FastAPI) -> VoiceAssistant:
    """Monta o assistente sobre os colaboradores em memória."""
    catalog = InMemoryCatalog()
    storefront = InMemoryStorefront(catalog, route=settings.home_route)
    user_info = InMemoryUserInfoStore()
    event_bus = InMemoryEventBus()
    transport = RecordingTransport()

    def place_order() -> None:
        cart = storefront.context().cart
        event_bus.publish(
            ORDER_PLACED_TOPIC,
            {"items": len(cart), "units": sum(item.quantity for item in cart)},
        )
        logger.info("order_placed", extra={"items": len(cart)})

    assistant = VoiceAssistant(
        settings,
        transport=transport,
        oracle=OracleClient.from_settings(settings),
        catalog=catalog,
        storefront=storefront,
        user_info=user_info,
        event_bus=event_bus,
        order_trigger=place_order,
    )
    storefront.subscribe(assistant.on_route_change)

    app.state.transport = transport
    app.state.storefront = storefront
    app.state.user_info = user_info
    app.state.event_bus = event_bus
    return assistant


def create_app(settings: Settings | None = None, assistant: VoiceAssistant | None = None) -> FastAPI:
    """Cria a aplicação FastAPI."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.service_name)

    validation_errors: list[str] = []
    validation_errors.extend(settings.validate_openai_config())
    validation_errors.extend(settings.validate_timings())

    if validation_errors:
        error_msg = "; ".join(validation_errors)
        raise ValueError(f"Configuração inválida: {error_msg}")

    registry: SessionRegistry[VoiceAssistant] = SessionRegistry()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        instance = registry.acquire(
            REGISTRY_KEY, lambda: assistant or _build_default_assistant(settings, app)
        )
        app.state.assistant = instance
        await instance.start()
        logger.info("voice_assistant_ready", extra={"status": instance.session.status.value})
        try:
            yield
        finally:
            await registry.release(REGISTRY_KEY)

    app = FastAPI(title=settings.service_name, version=settings.version, lifespan=lifespan)
    app.add_middleware(CorrelationIdMiddleware)
    app.include_router(router)

    app.state.settings = settings
    app.state.registry = registry
    app.state.transport = None

    return app


app = create_app()
