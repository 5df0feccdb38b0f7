"""Contratos do storefront externo (navegação, carrinho, filtros, seleção)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from vnova_voice.domain.context import CartItem, CommandContext, Product


class CatalogProtocol(ABC):
    """Catálogo de produtos (contêiner chaveado simples)."""

    @abstractmethod
    def all(self) -> list[Product]: ...

    @abstractmethod
    def get(self, product_id: str) -> Product | None: ...

    @abstractmethod
    def categories(self) -> list[str]: ...


class StorefrontProtocol(ABC):
    """Estado mutável da loja; o núcleo lê o contexto e aplica side effects."""

    @abstractmethod
    def context(self) -> CommandContext: ...

    @abstractmethod
    def navigate(self, route: str) -> None: ...

    @abstractmethod
    def add_to_cart(self, item: CartItem) -> None: ...

    @abstractmethod
    def select_size(self, size: str) -> None: ...

    @abstractmethod
    def set_quantity(self, quantity: int) -> None: ...

    @abstractmethod
    def apply_filters(self, filters: Mapping[str, Any]) -> None: ...

    @abstractmethod
    def remove_filters(self, keys: list[str]) -> None: ...

    @abstractmethod
    def clear_filters(self) -> None: ...

    @abstractmethod
    def active_filters(self) -> dict[str, Any]: ...
