"""Handler de conclusão de pedido."""

from __future__ import annotations

import re
from collections.abc import Callable

from vnova_voice.ai import prompts
from vnova_voice.ai.openai_client import OracleClient
from vnova_voice.application.handlers.base import IntentHandler, Speak
from vnova_voice.domain.action_log import ActionLog
from vnova_voice.domain.protocols.storefront import StorefrontProtocol

ORDER_KEYWORDS = re.compile(r"\b(checkout|check out|place (?:my )?order|pay|buy)\b", re.IGNORECASE)


class OrderCompletionHandler(IntentHandler):
    """Na página de pagamento dispara o pedido; fora dela, navega até lá.

    A navegação para a página de pagamento inicia o checkout guiado
    (ver VoiceAssistant.on_route_change).
    """

    def __init__(
        self,
        oracle: OracleClient,
        speak: Speak,
        action_log: ActionLog,
        *,
        storefront: StorefrontProtocol,
        order_trigger: Callable[[], None],
        payment_route: str = "/payment",
    ) -> None:
        super().__init__(oracle, speak, action_log)
        self._storefront = storefront
        self._order_trigger = order_trigger
        self._payment_route = payment_route

    async def handle(self, transcript: str) -> bool:
        if not ORDER_KEYWORDS.search(transcript):
            answer = await self._ask_text(prompts.format_order_completion(transcript))
            if (answer or "").strip().strip(".\"'").lower() != "yes":
                return False

        if self._storefront.context().route == self._payment_route:
            self._order_trigger()
            self._record("Submitting order")
        else:
            self._storefront.navigate(self._payment_route)
            self._record("Proceeding to payment")
        return True
