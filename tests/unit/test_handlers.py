"""Testes dos handlers de intenção contra o storefront em memória."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from vnova_voice.ai.openai_client import OracleError
from vnova_voice.application.handlers import (
    FilterHandler,
    NavigationHandler,
    OrderCompletionHandler,
    ProductActionHandler,
    UserInfoHandler,
)
from vnova_voice.application.handlers.product import ask_size_prompt
from vnova_voice.domain.action_log import ActionLog
from vnova_voice.infra.event_bus import InMemoryEventBus
from vnova_voice.infra.storefront_memory import InMemoryStorefront
from vnova_voice.infra.user_info_memory import InMemoryUserInfoStore


def reply(oracle: AsyncMock, payload: dict) -> None:
    oracle.classify.return_value = f"```json\n{json.dumps(payload)}\n```"


class TestNavigationHandler:
    @pytest.fixture()
    def handler(self, oracle, speak, action_log, storefront, catalog) -> NavigationHandler:
        return NavigationHandler(oracle, speak, action_log, storefront=storefront, catalog=catalog)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("transcript", "route"),
        [
            ("take me to my cart", "/cart"),
            ("show me the ProFlex Yoga Mat", "/product/y1"),
            ("show me yoga stuff", "/products?category=Yoga"),
            ("go back home", "/"),
            ("let me see all products", "/products"),
        ],
    )
    async def test_keyword_routes_skip_oracle(
        self, handler, oracle, storefront, transcript: str, route: str
    ) -> None:
        assert await handler.handle_navigation(transcript) is True
        assert storefront.route == route
        oracle.classify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_oracle_resolves_fuzzy_product(self, handler, oracle, storefront, action_log) -> None:
        reply(oracle, {"route": None, "category": None, "productId": "w1"})

        assert await handler.handle_navigation("I want the shiny watch thing") is True
        assert storefront.route == "/product/w1"
        assert action_log.last_action == "Opening Nova Watch Pro"

    @pytest.mark.asyncio
    async def test_unknown_oracle_product_is_not_handled(self, handler, oracle, storefront) -> None:
        reply(oracle, {"productId": "zz9"})

        assert await handler.handle_product("the purple gizmo") is False
        assert storefront.route == "/"

    @pytest.mark.asyncio
    async def test_oracle_unavailable_is_not_handled(self, handler, oracle, storefront) -> None:
        oracle.classify.side_effect = OracleError("oracle_disabled")

        assert await handler.handle_navigation("somewhere nice") is False
        assert storefront.route == "/"

    @pytest.mark.asyncio
    async def test_handle_cart_requires_cart_word(self, handler, oracle) -> None:
        assert await handler.handle_cart("what is the weather") is False
        oracle.classify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_category_from_oracle_must_exist(self, handler, oracle, storefront) -> None:
        reply(oracle, {"category": "Underwater Basket Weaving"})

        assert await handler.handle_category("the weird section") is False
        assert storefront.route == "/"


class TestProductActionHandler:
    @pytest.fixture()
    def handler(self, oracle, speak, action_log, storefront, catalog) -> ProductActionHandler:
        storefront.navigate("/product/g4")
        return ProductActionHandler(oracle, speak, action_log, storefront=storefront, catalog=catalog)

    @pytest.mark.asyncio
    async def test_select_existing_size(self, handler, oracle, storefront) -> None:
        reply(oracle, {"action": "size", "size": "m"})

        assert await handler.handle("medium please") is True
        assert storefront.context().selected_size == "M"

    @pytest.mark.asyncio
    async def test_missing_size_is_reported_not_selected(self, handler, oracle, storefront, action_log) -> None:
        reply(oracle, {"action": "size", "size": "XXL"})

        assert await handler.handle("double extra large") is False
        assert storefront.context().selected_size is None
        entry = action_log.entries()[0]
        assert entry.success is False
        assert entry.description == "Size XXL not available. Available sizes: S, M, L, XL"

    @pytest.mark.asyncio
    async def test_add_without_size_asks_instead_of_guessing(
        self, handler, oracle, storefront, speak, catalog
    ) -> None:
        reply(oracle, {"action": "addToCart"})

        assert await handler.handle("add it to my cart") is True
        assert storefront.cart == []
        assert speak.spoken == [ask_size_prompt(catalog.get("g4"))]

    @pytest.mark.asyncio
    async def test_add_uses_previously_selected_size(self, handler, oracle, storefront) -> None:
        storefront.select_size("M")
        reply(oracle, {"action": "addToCart"})

        assert await handler.handle("add to cart") is True
        assert [(item.product_id, item.size, item.quantity) for item in storefront.cart] == [("g4", "M", 1)]

    @pytest.mark.asyncio
    async def test_spoken_size_wins_over_selected(self, handler, oracle, storefront, action_log) -> None:
        storefront.select_size("M")
        reply(oracle, {"action": "addToCart", "size": "L", "quantity": 2})

        assert await handler.handle("add two large") is True
        assert [(item.size, item.quantity) for item in storefront.cart] == [("L", 2)]
        assert action_log.last_action == "Added 2 GripForce Workout Gloves (L) to cart"

    @pytest.mark.asyncio
    async def test_named_product_switches_context(self, handler, oracle, storefront, speak) -> None:
        reply(oracle, {"action": "addToCart", "productName": "nova buds pro"})

        assert await handler.handle("add the nova buds pro") is True
        assert [(item.product_id, item.size) for item in storefront.cart] == [("a2", None)]
        assert speak.spoken == ["Added 1 Nova Buds Pro to your cart."]

    @pytest.mark.asyncio
    async def test_quantity(self, handler, oracle, storefront) -> None:
        reply(oracle, {"action": "quantity", "quantity": 3})

        assert await handler.handle("make it three") is True
        assert storefront.context().quantity == 3

    @pytest.mark.asyncio
    async def test_no_action(self, handler, oracle, storefront) -> None:
        reply(oracle, {"action": "none"})

        assert await handler.handle("nice colours") is False
        assert storefront.cart == []

    @pytest.mark.asyncio
    async def test_no_target_off_product_page(self, oracle, speak, action_log, catalog) -> None:
        storefront = InMemoryStorefront(catalog, route="/cart")
        handler = ProductActionHandler(oracle, speak, action_log, storefront=storefront, catalog=catalog)
        reply(oracle, {"action": "addToCart"})

        assert await handler.handle("add it") is False


class TestFilterHandler:
    @pytest.fixture()
    def handler(self, oracle, speak, action_log, storefront, catalog) -> FilterHandler:
        return FilterHandler(oracle, speak, action_log, storefront=storefront, catalog=catalog)

    @pytest.mark.asyncio
    async def test_apply_drops_null_values(self, handler, oracle, storefront) -> None:
        reply(oracle, {"filters": {"category": "Gym", "maxPrice": 100, "color": None}})

        assert await handler.handle_apply("gym gear under 100") is True
        assert storefront.active_filters() == {"category": "Gym", "maxPrice": 100}

    @pytest.mark.asyncio
    async def test_apply_empty_is_not_handled(self, handler, oracle) -> None:
        reply(oracle, {"filters": {}})

        assert await handler.handle_apply("something") is False

    @pytest.mark.asyncio
    async def test_remove_without_active_filters_skips_oracle(self, handler, oracle) -> None:
        assert await handler.handle_remove("remove the price filter") is False
        oracle.classify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_remove_only_active_keys(self, handler, oracle, storefront) -> None:
        storefront.apply_filters({"category": "Gym", "maxPrice": 100})
        reply(oracle, {"keys": ["maxPrice", "brand"]})

        assert await handler.handle_remove("remove the price filter") is True
        assert storefront.active_filters() == {"category": "Gym"}

    @pytest.mark.asyncio
    async def test_clear(self, handler, storefront, action_log) -> None:
        storefront.apply_filters({"category": "Gym"})

        assert await handler.handle_clear("clear all filters") is True
        assert storefront.active_filters() == {}
        assert action_log.last_action == "Filters cleared"


class TestUserInfoHandler:
    @pytest.mark.asyncio
    async def test_valid_fields_merged_invalid_dropped(self, oracle, speak, action_log) -> None:
        store = InMemoryUserInfoStore()
        bus = InMemoryEventBus()
        handler = UserInfoHandler(oracle, speak, action_log, user_info=store, event_bus=bus)
        reply(
            oracle,
            {"isUserInfoUpdate": True, "email": "John at Example dot com", "phone": "123", "name": None},
        )

        assert await handler.handle("my email is john at example dot com and phone 123") is True
        assert store.get() == {"email": "john@example.com"}
        assert bus.history == [
            ("userInfoUpdated", {"message": "User info updated", "updatedFields": ["email"]})
        ]

    @pytest.mark.asyncio
    async def test_not_an_update(self, oracle, speak, action_log) -> None:
        store = InMemoryUserInfoStore()
        handler = UserInfoHandler(oracle, speak, action_log, user_info=store)
        reply(oracle, {"isUserInfoUpdate": False})

        assert await handler.handle("hello there") is False
        assert store.get() == {}


class TestOrderCompletionHandler:
    def make(self, oracle, speak, storefront) -> tuple[OrderCompletionHandler, MagicMock, ActionLog]:
        trigger = MagicMock()
        log = ActionLog()
        handler = OrderCompletionHandler(
            oracle, speak, log, storefront=storefront, order_trigger=trigger, payment_route="/payment"
        )
        return handler, trigger, log

    @pytest.mark.asyncio
    async def test_keyword_navigates_to_payment(self, oracle, speak, storefront) -> None:
        handler, trigger, log = self.make(oracle, speak, storefront)

        assert await handler.handle("let's checkout") is True
        assert storefront.route == "/payment"
        trigger.assert_not_called()
        oracle.classify.assert_not_awaited()
        assert log.last_action == "Proceeding to payment"

    @pytest.mark.asyncio
    async def test_on_payment_page_triggers_order(self, oracle, speak, catalog) -> None:
        storefront = InMemoryStorefront(catalog, route="/payment")
        handler, trigger, log = self.make(oracle, speak, storefront)

        assert await handler.handle("place my order") is True
        trigger.assert_called_once_with()
        assert log.last_action == "Submitting order"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("answer", "expected"), [("Yes.", True), ("no", False)])
    async def test_oracle_decides_without_keyword(
        self, oracle, speak, storefront, answer: str, expected: bool
    ) -> None:
        handler, _, _ = self.make(oracle, speak, storefront)
        oracle.classify.return_value = answer

        assert await handler.handle("I think I'm done shopping") is expected
        assert (storefront.route == "/payment") is expected
