"""Storefront em memória: rota, carrinho, filtros e seleção do produto.

⚠️ Não usar em produção. Substitui a UI da loja em dev/testes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from vnova_voice.domain.context import CartItem, CommandContext
from vnova_voice.domain.protocols.storefront import CatalogProtocol, StorefrontProtocol
from vnova_voice.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

_PRODUCT_PREFIX = "/product/"

RouteListener = Callable[[str], None]


class InMemoryStorefront(StorefrontProtocol):
    """Estado mutável da loja com notificação de mudança de rota."""

    def __init__(self, catalog: CatalogProtocol, route: str = "/") -> None:
        self._catalog = catalog
        self._route = route
        self._cart: list[CartItem] = []
        self._filters: dict[str, Any] = {}
        self._selected_size: str | None = None
        self._quantity = 1
        self._listeners: list[RouteListener] = []

    @property
    def route(self) -> str:
        return self._route

    @property
    def cart(self) -> list[CartItem]:
        return list(self._cart)

    def subscribe(self, listener: RouteListener) -> None:
        self._listeners.append(listener)

    def context(self) -> CommandContext:
        product = None
        if self._route.startswith(_PRODUCT_PREFIX):
            product = self._catalog.get(self._route[len(_PRODUCT_PREFIX) :])
        return CommandContext(
            route=self._route,
            current_product=product,
            selected_size=self._selected_size,
            quantity=self._quantity,
            cart=tuple(self._cart),
        )

    def navigate(self, route: str) -> None:
        if route != self._route and route.startswith(_PRODUCT_PREFIX):
            # Seleção pertence ao produto exibido
            self._selected_size = None
            self._quantity = 1
        self._route = route
        logger.info("storefront_navigated", extra={"route": route})
        for listener in list(self._listeners):
            listener(route)

    def add_to_cart(self, item: CartItem) -> None:
        for index, existing in enumerate(self._cart):
            if existing.product_id == item.product_id and existing.size == item.size:
                self._cart[index] = CartItem(
                    product_id=existing.product_id,
                    name=existing.name,
                    price=existing.price,
                    size=existing.size,
                    quantity=existing.quantity + item.quantity,
                )
                return
        self._cart.append(item)

    def select_size(self, size: str) -> None:
        self._selected_size = size

    def set_quantity(self, quantity: int) -> None:
        self._quantity = max(1, quantity)

    def apply_filters(self, filters: Mapping[str, Any]) -> None:
        self._filters.update(filters)

    def remove_filters(self, keys: list[str]) -> None:
        for key in keys:
            self._filters.pop(key, None)

    def clear_filters(self) -> None:
        self._filters.clear()

    def active_filters(self) -> dict[str, Any]:
        return dict(self._filters)
