"""Testes do dispatcher single-flight."""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from vnova_voice.ai.contracts import FieldExtractionResult
from vnova_voice.ai.openai_client import OracleError
from vnova_voice.application.checkout_flow import CheckoutDialogue
from vnova_voice.application.dispatcher import FALLBACK_RESPONSE, CommandDispatcher, fast_path_intent
from vnova_voice.application.extraction import FieldExtractor
from vnova_voice.domain.action_log import ActionLog
from vnova_voice.domain.checkout import STEP_PROMPTS, CheckoutStep
from vnova_voice.domain.enums import Intent
from vnova_voice.infra.user_info_memory import InMemoryUserInfoStore


def make_checkout(value: str | None = "John Smith") -> CheckoutDialogue:
    extractor = AsyncMock(spec=FieldExtractor)
    extractor.extract.return_value = FieldExtractionResult(value=value)
    return CheckoutDialogue(extractor, InMemoryUserInfoStore())


def make_dispatcher(
    oracle: AsyncMock,
    checkout: CheckoutDialogue | None = None,
    handlers: dict | None = None,
    fallback_handlers: tuple = (),
    action_log: ActionLog | None = None,
) -> tuple[CommandDispatcher, MagicMock, MagicMock]:
    speak = MagicMock(return_value=True)
    order_trigger = MagicMock()
    dispatcher = CommandDispatcher(
        oracle,
        checkout or make_checkout(),
        handlers or {},
        speak=speak,
        order_trigger=order_trigger,
        action_log=action_log if action_log is not None else ActionLog(),
        fallback_handlers=fallback_handlers,
    )
    return dispatcher, speak, order_trigger


class TestFastPath:
    @pytest.mark.parametrize("phrase", ["checkout", "Let's check out", "place my order", "buy now please"])
    def test_order_phrases(self, phrase: str) -> None:
        assert fast_path_intent(phrase) == Intent.ORDER_COMPLETION

    def test_other_phrases(self) -> None:
        assert fast_path_intent("show me yoga mats") is None

    @pytest.mark.asyncio
    async def test_checkout_bypasses_oracle(self, oracle: AsyncMock) -> None:
        order = AsyncMock(return_value=True)
        dispatcher, _, _ = make_dispatcher(oracle, handlers={Intent.ORDER_COMPLETION: order})

        outcome = await dispatcher.dispatch("checkout")

        assert outcome.fast_path is True
        assert outcome.intent == Intent.ORDER_COMPLETION
        assert outcome.handled is True
        order.assert_awaited_once_with("checkout")
        oracle.classify.assert_not_awaited()


class TestRouting:
    @pytest.mark.asyncio
    async def test_classified_intent_routes_to_handler(self, oracle: AsyncMock) -> None:
        oracle.classify.return_value = "cart"
        cart = AsyncMock(return_value=True)
        log = ActionLog()
        dispatcher, _, _ = make_dispatcher(oracle, handlers={Intent.CART: cart}, action_log=log)

        outcome = await dispatcher.dispatch("  open my cart ")

        assert outcome.intent == Intent.CART
        assert outcome.handled is True
        cart.assert_awaited_once_with("open my cart")
        descriptions = [entry.description for entry in log.entries()]
        assert descriptions == ["Intent: cart", 'Processing: "open my cart"']

    @pytest.mark.asyncio
    async def test_unknown_label_falls_back_to_navigation_then_cart(self, oracle: AsyncMock) -> None:
        oracle.classify.return_value = "something odd"
        navigation = AsyncMock(return_value=False)
        cart = AsyncMock(return_value=True)
        dispatcher, _, _ = make_dispatcher(oracle, fallback_handlers=(navigation, cart))

        outcome = await dispatcher.dispatch("my bag please")

        assert outcome.intent == Intent.GENERAL_COMMAND
        assert outcome.handled is True
        navigation.assert_awaited_once()
        cart.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_specific_intent_miss_does_not_fall_back(self, oracle: AsyncMock) -> None:
        oracle.classify.return_value = "product_action"
        fallback = AsyncMock(return_value=True)
        log = ActionLog()
        dispatcher, _, _ = make_dispatcher(
            oracle,
            handlers={Intent.PRODUCT_ACTION: AsyncMock(return_value=False)},
            fallback_handlers=(fallback,),
            action_log=log,
        )

        outcome = await dispatcher.dispatch("make it blue")

        assert outcome.handled is False
        fallback.assert_not_awaited()
        assert log.last_action == "Command not recognized"

    @pytest.mark.asyncio
    async def test_unrecognized_command_speaks_fallback(self, oracle: AsyncMock) -> None:
        oracle.classify.return_value = "general_command"
        dispatcher, speak, _ = make_dispatcher(oracle, fallback_handlers=(AsyncMock(return_value=False),))

        outcome = await dispatcher.dispatch("blorp the widget frobnicator")

        assert outcome.handled is False
        assert outcome.response == FALLBACK_RESPONSE
        speak.assert_called_once_with("I couldn't understand, please repeat.")

    @pytest.mark.asyncio
    async def test_handled_command_speaks_nothing_extra(self, oracle: AsyncMock) -> None:
        oracle.classify.return_value = "cart"
        dispatcher, speak, _ = make_dispatcher(oracle, handlers={Intent.CART: AsyncMock(return_value=True)})

        outcome = await dispatcher.dispatch("open my cart")

        assert outcome.response is None
        speak.assert_not_called()

    @pytest.mark.asyncio
    async def test_oracle_failure_degrades_to_general_command(self, oracle: AsyncMock) -> None:
        oracle.classify.side_effect = OracleError("oracle_rate_limited", rate_limited=True)
        navigation = AsyncMock(return_value=True)
        dispatcher, _, _ = make_dispatcher(oracle, fallback_handlers=(navigation,))

        outcome = await dispatcher.dispatch("go home")

        assert outcome.intent == Intent.GENERAL_COMMAND
        assert outcome.handled is True

    @pytest.mark.asyncio
    async def test_classification_fallback_logs_elapsed_time(
        self, oracle: AsyncMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        oracle.classify.side_effect = OracleError("oracle_failed: APIError")
        dispatcher, _, _ = make_dispatcher(oracle, fallback_handlers=(AsyncMock(return_value=True),))

        with caplog.at_level(logging.INFO, logger="vnova_voice.application.dispatcher"):
            await dispatcher.dispatch("go home")

        fallback = next(record for record in caplog.records if record.getMessage() == "fallback_applied")
        assert fallback.component == "intent_classification"
        assert fallback.reason == "oracle_unavailable"
        assert fallback.elapsed_ms >= 0


class TestErrorPolicy:
    @pytest.mark.asyncio
    async def test_handler_exception_is_captured(self, oracle: AsyncMock) -> None:
        oracle.classify.return_value = "navigation"
        log = ActionLog()
        dispatcher, speak, _ = make_dispatcher(
            oracle,
            handlers={Intent.NAVIGATION: AsyncMock(side_effect=RuntimeError("boom"))},
            action_log=log,
        )

        outcome = await dispatcher.dispatch("go somewhere")

        assert outcome.error == "RuntimeError"
        assert outcome.handled is False
        speak.assert_called_once_with(FALLBACK_RESPONSE)
        assert log.entries()[0].description == "Error processing command"
        assert log.entries()[0].success is False
        assert dispatcher.in_flight is False


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_concurrent_dispatch_is_dropped(self, oracle: AsyncMock) -> None:
        release = asyncio.Event()

        async def slow_classify(prompt: str) -> str:
            await release.wait()
            return "cart"

        oracle.classify.side_effect = slow_classify
        cart = AsyncMock(return_value=True)
        dispatcher, _, _ = make_dispatcher(oracle, handlers={Intent.CART: cart})

        first = asyncio.create_task(dispatcher.dispatch("open the cart"))
        await asyncio.sleep(0)
        second = await dispatcher.dispatch("go home")
        release.set()
        first_outcome = await first

        assert second.dropped is True
        assert first_outcome.handled is True
        cart.assert_awaited_once_with("open the cart")


class TestCheckoutLock:
    @pytest.mark.asyncio
    async def test_active_checkout_receives_everything(self, oracle: AsyncMock) -> None:
        checkout = make_checkout("John Smith")
        checkout.start_flow()
        navigation = AsyncMock(return_value=True)
        dispatcher, speak, _ = make_dispatcher(
            oracle, checkout=checkout, handlers={Intent.NAVIGATION: navigation}
        )

        outcome = await dispatcher.dispatch("my name is john smith")

        assert outcome.routed_to_checkout is True
        assert outcome.response == STEP_PROMPTS[CheckoutStep.EMAIL]
        speak.assert_called_once_with(STEP_PROMPTS[CheckoutStep.EMAIL])
        oracle.classify.assert_not_awaited()
        navigation.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_checkout_activated_during_classification_wins(self, oracle: AsyncMock) -> None:
        checkout = make_checkout("John Smith")

        async def classify_and_activate(prompt: str) -> str:
            checkout.start_flow()
            return "navigation"

        oracle.classify.side_effect = classify_and_activate
        navigation = AsyncMock(return_value=True)
        dispatcher, _, _ = make_dispatcher(
            oracle, checkout=checkout, handlers={Intent.NAVIGATION: navigation}
        )

        outcome = await dispatcher.dispatch("john smith")

        assert outcome.routed_to_checkout is True
        navigation.assert_not_awaited()
        assert checkout.current_step == CheckoutStep.EMAIL

    @pytest.mark.asyncio
    async def test_confirmation_triggers_order(self, oracle: AsyncMock) -> None:
        checkout = make_checkout()
        checkout.start_flow()
        checkout._step = CheckoutStep.CONFIRM  # noqa: SLF001
        dispatcher, speak, order_trigger = make_dispatcher(oracle, checkout=checkout)

        outcome = await dispatcher.dispatch("yes")

        assert outcome.handled is True
        order_trigger.assert_called_once_with()
        speak.assert_called_once_with(STEP_PROMPTS[CheckoutStep.COMPLETE])
        assert checkout.is_active is False
