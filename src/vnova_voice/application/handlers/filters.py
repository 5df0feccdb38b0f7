"""Handler de filtros da listagem (aplicar, remover, limpar)."""

from __future__ import annotations

from vnova_voice.ai import prompts
from vnova_voice.ai.contracts import FilterPayload, RemoveFiltersPayload
from vnova_voice.ai.openai_client import OracleClient
from vnova_voice.application.handlers.base import IntentHandler, Speak
from vnova_voice.domain.action_log import ActionLog
from vnova_voice.domain.protocols.storefront import CatalogProtocol, StorefrontProtocol


class FilterHandler(IntentHandler):
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

    async def handle_apply(self, transcript: str) -> bool:
        payload = await self._ask_model(
            prompts.format_apply_filter(transcript, self._catalog.categories()), FilterPayload
        )
        filters = {key: value for key, value in (payload.filters if payload else {}).items() if value is not None}
        if not filters:
            return False
        self._storefront.apply_filters(filters)
        self._record(f"Filters applied: {', '.join(sorted(filters))}")
        return True

    async def handle_remove(self, transcript: str) -> bool:
        active = self._storefront.active_filters()
        if not active:
            return False
        payload = await self._ask_model(
            prompts.format_remove_filter(transcript, list(active)), RemoveFiltersPayload
        )
        keys = [key for key in (payload.keys if payload else []) if key in active]
        if not keys:
            return False
        self._storefront.remove_filters(keys)
        self._record(f"Filters removed: {', '.join(keys)}")
        return True

    async def handle_clear(self, transcript: str) -> bool:
        self._storefront.clear_filters()
        self._record("Filters cleared")
        return True
