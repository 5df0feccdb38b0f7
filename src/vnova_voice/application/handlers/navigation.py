"""Handler de navegação: home, produtos, carrinho, categoria e produto."""

from __future__ import annotations

import logging
import re

from vnova_voice.ai import prompts
from vnova_voice.ai.contracts import NavigationPayload
from vnova_voice.ai.openai_client import OracleClient
from vnova_voice.application.handlers.base import IntentHandler, Speak
from vnova_voice.domain.action_log import ActionLog
from vnova_voice.domain.context import Product
from vnova_voice.domain.protocols.storefront import CatalogProtocol, StorefrontProtocol
from vnova_voice.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

_HOME_WORDS = re.compile(r"\b(home|homepage|main page|start page)\b", re.IGNORECASE)
_PRODUCTS_WORDS = re.compile(r"\b(all products|products|shop|store|catalog)\b", re.IGNORECASE)
_CART_WORDS = re.compile(r"\b(cart|basket|bag)\b", re.IGNORECASE)


def product_route(product_id: str) -> str:
    return f"/product/{product_id}"


class NavigationHandler(IntentHandler):
    """Mapeia falas para mudanças de rota.

    Regras por palavra-chave primeiro; o oráculo só desambigua nomes de
    produto/categoria falados de forma imprecisa.
    """

    def __init__(
        self,
        oracle: OracleClient,
        speak: Speak,
        action_log: ActionLog,
        *,
        storefront: StorefrontProtocol,
        catalog: CatalogProtocol,
        home_route: str = "/",
        products_route: str = "/products",
        cart_route: str = "/cart",
    ) -> None:
        super().__init__(oracle, speak, action_log)
        self._storefront = storefront
        self._catalog = catalog
        self._home_route = home_route
        self._products_route = products_route
        self._cart_route = cart_route

    def category_route(self, category: str) -> str:
        return f"{self._products_route}?category={category}"

    async def handle_navigation(self, transcript: str) -> bool:
        """Navegação genérica (home, catálogo, categoria, produto, carrinho)."""
        if _CART_WORDS.search(transcript):
            return self._go(self._cart_route, "Navigating to cart")

        product = self._match_product(transcript)
        if product is not None:
            return self._go(product_route(product.id), f"Opening {product.name}")

        category = self._match_category(transcript)
        if category is not None:
            return self._go(self.category_route(category), f"Browsing {category}")

        if _HOME_WORDS.search(transcript):
            return self._go(self._home_route, "Navigating home")
        if _PRODUCTS_WORDS.search(transcript):
            return self._go(self._products_route, "Navigating to products")

        return await self._navigate_with_oracle(transcript)

    async def handle_cart(self, transcript: str) -> bool:
        if not _CART_WORDS.search(transcript):
            return False
        return self._go(self._cart_route, "Navigating to cart")

    async def handle_category(self, transcript: str) -> bool:
        category = self._match_category(transcript)
        if category is not None:
            return self._go(self.category_route(category), f"Browsing {category}")
        payload = await self._ask_navigation(transcript)
        if payload is None or not payload.category:
            return False
        category = self._resolve_category(payload.category)
        if category is None:
            return False
        return self._go(self.category_route(category), f"Browsing {category}")

    async def handle_product(self, transcript: str) -> bool:
        product = self._match_product(transcript)
        if product is None:
            payload = await self._ask_navigation(transcript)
            if payload is None or not payload.product_id:
                return False
            product = self._catalog.get(payload.product_id)
            if product is None:
                logger.info("navigation_unknown_product")
                return False
        return self._go(product_route(product.id), f"Opening {product.name}")

    async def _navigate_with_oracle(self, transcript: str) -> bool:
        payload = await self._ask_navigation(transcript)
        if payload is None:
            return False
        if payload.product_id:
            product = self._catalog.get(payload.product_id)
            if product is not None:
                return self._go(product_route(product.id), f"Opening {product.name}")
        if payload.category:
            category = self._resolve_category(payload.category)
            if category is not None:
                return self._go(self.category_route(category), f"Browsing {category}")
        if payload.route in (self._home_route, self._products_route, self._cart_route):
            return self._go(payload.route, f"Navigating to {payload.route}")
        return False

    async def _ask_navigation(self, transcript: str) -> NavigationPayload | None:
        products = [f"{product.id}: {product.name}" for product in self._catalog.all()]
        prompt = prompts.format_navigation(transcript, self._catalog.categories(), products)
        return await self._ask_model(prompt, NavigationPayload)

    def _match_product(self, transcript: str) -> Product | None:
        lower = transcript.lower()
        for product in self._catalog.all():
            if product.name.lower() in lower:
                return product
        return None

    def _match_category(self, transcript: str) -> str | None:
        lower = transcript.lower()
        for category in self._catalog.categories():
            if re.search(rf"\b{re.escape(category.lower())}\b", lower):
                return category
        return None

    def _resolve_category(self, spoken: str) -> str | None:
        wanted = spoken.strip().lower()
        for category in self._catalog.categories():
            if category.lower() == wanted:
                return category
        return None

    def _go(self, route: str, description: str) -> bool:
        self._storefront.navigate(route)
        self._record(description)
        return True
