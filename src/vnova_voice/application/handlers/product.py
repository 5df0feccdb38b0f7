"""Handler de ações na página de produto: tamanho, quantidade, adicionar ao carrinho."""

from __future__ import annotations

import logging

from vnova_voice.ai import prompts
from vnova_voice.ai.contracts import ProductActionPayload
from vnova_voice.ai.openai_client import OracleClient
from vnova_voice.application.handlers.base import IntentHandler, Speak
from vnova_voice.domain.action_log import ActionLog
from vnova_voice.domain.context import CartItem, CommandContext, Product
from vnova_voice.domain.enums import ProductAction
from vnova_voice.domain.protocols.storefront import CatalogProtocol, StorefrontProtocol
from vnova_voice.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

DEFAULT_QUANTITY = 1


def ask_size_prompt(product: Product) -> str:
    return f"Please select a size first. Available sizes: {', '.join(product.sizes)}"


class ProductActionHandler(IntentHandler):
    """Resolve o produto alvo e aplica a ação pedida.

    Prioridade de tamanho no add-to-cart:
    1. Tamanho falado nesta fala (se existir no produto)
    2. Tamanho selecionado antes na sessão
    3. Nenhum: pergunta ao usuário em vez de escolher
    """

    def __init__(
        self,
        oracle: OracleClient,
        speak: Speak,
        action_log: ActionLog,
        *,
        storefront: StorefrontProtocol,
        catalog: CatalogProtocol,
    ) -> None:
        super().__init__(oracle, speak, action_log)
        self._storefront = storefront
        self._catalog = catalog

    async def handle(self, transcript: str) -> bool:
        context = self._storefront.context()
        current = context.current_product
        prompt = prompts.format_product_action(
            transcript,
            current.name if current else "current product",
            current.sizes if current else (),
            [product.name for product in self._catalog.all()],
        )
        payload = await self._ask_model(prompt, ProductActionPayload)
        if payload is None or payload.action == ProductAction.NONE:
            return False

        product = self._resolve_target(payload, current)
        if product is None:
            logger.info("product_action_no_target", extra={"action": payload.action.value})
            return False

        if payload.action == ProductAction.SIZE:
            return self._select_size(product, payload.size)
        if payload.action == ProductAction.QUANTITY:
            return self._set_quantity(payload.quantity)
        return self._add_to_cart(product, payload, context)

    def _resolve_target(self, payload: ProductActionPayload, current: Product | None) -> Product | None:
        """Troca de contexto quando a fala nomeia outro produto."""
        if payload.product_name:
            spoken = payload.product_name.strip().lower()
            for product in self._catalog.all():
                name = product.name.lower()
                if spoken in name or name in spoken:
                    if current is None or product.id != current.id:
                        logger.info("product_context_switched", extra={"product_id": product.id})
                    return product
        return current

    def _select_size(self, product: Product, spoken: str | None) -> bool:
        size = product.match_size(spoken)
        if size is None:
            self._record(
                f"Size {spoken or 'unknown'} not available. Available sizes: {', '.join(product.sizes)}",
                success=False,
            )
            return False
        self._storefront.select_size(size)
        self._record(f"Size set to {size}")
        return True

    def _set_quantity(self, quantity: int | None) -> bool:
        if not quantity:
            return False
        self._storefront.set_quantity(quantity)
        self._record(f"Quantity set to {quantity}")
        return True

    def _add_to_cart(
        self, product: Product, payload: ProductActionPayload, context: CommandContext
    ) -> bool:
        size: str | None = None
        if product.sizes:
            size = product.match_size(payload.size)
            if size is not None:
                self._storefront.select_size(size)
            elif context.selected_size and product.match_size(context.selected_size):
                size = product.match_size(context.selected_size)
            else:
                self._speak(ask_size_prompt(product))
                return True

        quantity = payload.quantity or DEFAULT_QUANTITY
        self._storefront.add_to_cart(
            CartItem(
                product_id=product.id,
                name=product.name,
                price=product.price,
                size=size,
                quantity=quantity,
            )
        )
        suffix = f" ({size})" if size else ""
        self._record(f"Added {quantity} {product.name}{suffix} to cart")
        self._speak(f"Added {quantity} {product.name}{suffix} to your cart.")
        return True
