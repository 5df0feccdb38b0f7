"""Raiz de composição do assistente de voz.

Liga sessão, dispatcher, checkout guiado, handlers e colaboradores externos.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from vnova_voice.ai.openai_client import OracleClient
from vnova_voice.application.checkout_flow import CheckoutDialogue
from vnova_voice.application.dispatcher import CommandDispatcher, DispatchOutcome
from vnova_voice.application.extraction import (
    ChainedFieldExtractor,
    OracleFieldExtractor,
    RuleBasedFieldExtractor,
)
from vnova_voice.application.handlers import (
    FilterHandler,
    NavigationHandler,
    OrderCompletionHandler,
    ProductActionHandler,
    UserInfoHandler,
)
from vnova_voice.application.registry import LatestHandler
from vnova_voice.application.session_manager import (
    EchoGuardConfig,
    ReconnectPolicy,
    VoiceSessionManager,
)
from vnova_voice.config.settings import Settings
from vnova_voice.domain.action_log import ActionLog
from vnova_voice.domain.enums import Intent
from vnova_voice.domain.protocols.storefront import CatalogProtocol, StorefrontProtocol
from vnova_voice.domain.protocols.transport import SpeechTransport
from vnova_voice.domain.protocols.user_info import EventBusProtocol, UserInfoStoreProtocol
from vnova_voice.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class VoiceAssistant:
    """Uma sessão de voz completa sobre colaboradores injetados."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: SpeechTransport,
        oracle: OracleClient,
        catalog: CatalogProtocol,
        storefront: StorefrontProtocol,
        user_info: UserInfoStoreProtocol,
        event_bus: EventBusProtocol | None = None,
        order_trigger: Callable[[], None] | None = None,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._storefront = storefront
        self._sleep = sleep
        self._order_trigger = order_trigger or self._log_order_trigger
        self._autostart_task: asyncio.Task[None] | None = None
        self._autostarted_this_visit = False

        self.action_log = ActionLog(settings.action_log_size)
        self.transcript_handler = LatestHandler()
        self.session = VoiceSessionManager(
            transport,
            self.transcript_handler,
            session_id=settings.vapi_assistant_id,
            policy=ReconnectPolicy.from_settings(settings),
            echo=EchoGuardConfig.from_settings(settings),
            min_transcript_chars=settings.min_transcript_chars,
            speak_throttle_ms=settings.speak_throttle_ms,
            action_log=self.action_log,
            clock=clock,
            sleep=sleep,
        )
        speak = self.session.speak

        extractor = ChainedFieldExtractor(OracleFieldExtractor(oracle), RuleBasedFieldExtractor())
        self.checkout = CheckoutDialogue(extractor, user_info, event_bus)

        common = (oracle, speak, self.action_log)
        navigation = NavigationHandler(
            *common,
            storefront=storefront,
            catalog=catalog,
            home_route=settings.home_route,
            products_route=settings.products_route,
            cart_route=settings.cart_route,
        )
        product = ProductActionHandler(*common, storefront=storefront, catalog=catalog)
        filters = FilterHandler(*common, storefront=storefront, catalog=catalog)
        profile = UserInfoHandler(*common, user_info=user_info, event_bus=event_bus)
        order = OrderCompletionHandler(
            *common,
            storefront=storefront,
            order_trigger=self._order_trigger,
            payment_route=settings.payment_route,
        )

        self.dispatcher = CommandDispatcher(
            oracle,
            self.checkout,
            {
                Intent.NAVIGATION: navigation.handle_navigation,
                Intent.CART: navigation.handle_cart,
                Intent.CATEGORY_NAVIGATION: navigation.handle_category,
                Intent.PRODUCT_NAVIGATION: navigation.handle_product,
                Intent.PRODUCT_ACTION: product.handle,
                Intent.APPLY_FILTER: filters.handle_apply,
                Intent.REMOVE_FILTER: filters.handle_remove,
                Intent.CLEAR_FILTERS: filters.handle_clear,
                Intent.USER_INFO: profile.handle,
                Intent.ORDER_COMPLETION: order.handle,
            },
            speak=speak,
            order_trigger=self._order_trigger,
            action_log=self.action_log,
            fallback_handlers=(navigation.handle_navigation, navigation.handle_cart),
        )
        self.transcript_handler.set(self.dispatcher.dispatch)

    async def start(self) -> bool:
        return await self.session.start(self._settings.vapi_assistant_id)

    async def handle_command(self, transcript: str) -> DispatchOutcome:
        """Despacha texto já transcrito (sem passar pelo gate do transporte)."""
        return await self.dispatcher.dispatch(transcript)

    def on_route_change(self, route: str) -> None:
        """Inicia o checkout guiado ao entrar na página de pagamento, uma vez por visita."""
        if route != self._settings.payment_route:
            self._autostarted_this_visit = False
            self._cancel_autostart()
            return
        if self._autostarted_this_visit or self.checkout.is_active or not self.session.is_connected:
            return

        self._autostarted_this_visit = True
        self._autostart_task = asyncio.get_running_loop().create_task(self._autostart_checkout())

    async def _autostart_checkout(self) -> None:
        await self._sleep(self._settings.checkout_autostart_delay_seconds)
        if self._storefront.context().route != self._settings.payment_route or self.checkout.is_active:
            return
        logger.info("checkout_autostarted")
        self.session.speak(self.checkout.start_flow())

    def _cancel_autostart(self) -> None:
        task = self._autostart_task
        self._autostart_task = None
        if task is not None and not task.done():
            task.cancel()

    def _log_order_trigger(self) -> None:
        logger.info("order_trigger_unbound")

    async def shutdown(self) -> None:
        self._cancel_autostart()
        await self.session.shutdown()
