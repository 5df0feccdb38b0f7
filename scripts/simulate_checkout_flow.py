#!/usr/bin/env python
"""Script de diagnóstico do fluxo de voz (sem áudio e sem oráculo).

Testa:
1. Fast-path "checkout" → navegação para a página de pagamento
2. Auto-start do checkout guiado
3. Coleta dos 8 campos via extração por regras
4. Confirmação e disparo do pedido

Uso:
    python scripts/simulate_checkout_flow.py
"""

import asyncio
import sys
from pathlib import Path

# Adicionar src ao path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from vnova_voice.ai.openai_client import OracleClient
from vnova_voice.application.assistant import VoiceAssistant
from vnova_voice.config.settings import Settings
from vnova_voice.infra.catalog_memory import InMemoryCatalog
from vnova_voice.infra.event_bus import InMemoryEventBus
from vnova_voice.infra.storefront_memory import InMemoryStorefront
from vnova_voice.infra.transport_memory import RecordingTransport
from vnova_voice.infra.user_info_memory import InMemoryUserInfoStore

ANSWERS = [
    "my name is jane doe",
    "jane at example dot com",
    "ship it to 42 Ocean Avenue Santa Monica",
    "310 555 0199",
    "it says jane doe",
    "4111 1111 1111 1111",
    "11 27",
    "987",
    "yes",
]


async def no_wait(delay: float) -> None:
    return None


def build_assistant() -> tuple[VoiceAssistant, InMemoryStorefront, RecordingTransport, InMemoryUserInfoStore]:
    settings = Settings(vapi_assistant_id="diagnostic", speak_throttle_ms=0)
    catalog = InMemoryCatalog()
    storefront = InMemoryStorefront(catalog)
    transport = RecordingTransport()
    user_info = InMemoryUserInfoStore()
    orders: list[int] = []

    assistant = VoiceAssistant(
        settings,
        transport=transport,
        oracle=OracleClient(None),
        catalog=catalog,
        storefront=storefront,
        user_info=user_info,
        event_bus=InMemoryEventBus(),
        order_trigger=lambda: orders.append(len(storefront.cart)),
        sleep=no_wait,
    )
    storefront.subscribe(assistant.on_route_change)
    return assistant, storefront, transport, user_info


async def run() -> int:
    assistant, storefront, transport, user_info = build_assistant()
    await assistant.start()
    print(f"✅ Sessão: {assistant.session.status.value}")

    outcome = await assistant.handle_command("I want to checkout")
    await asyncio.sleep(0)
    print(f"  - Intent: {outcome.intent} (fast path: {outcome.fast_path})")
    print(f"  - Rota: {storefront.route}")

    if not assistant.checkout.is_active:
        print("❌ ERRO: checkout guiado não iniciou na página de pagamento")
        return 1

    for spoken in transport.drain_spoken():
        print(f"🔊 {spoken}")

    for answer in ANSWERS:
        print(f"🎤 {answer}")
        await assistant.handle_command(answer)
        for spoken in transport.drain_spoken():
            print(f"🔊 {spoken}")

    print(f"\n📋 Campos coletados: {', '.join(sorted(user_info.get()))}")
    print(f"  - Última ação: {assistant.action_log.last_action}")

    await assistant.shutdown()
    if assistant.checkout.current_step.value != "complete":
        print("⚠️  ATENÇÃO: fluxo não chegou a complete")
        return 1
    print("✅ Pedido confirmado")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(run()))
