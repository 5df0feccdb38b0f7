"""Contexto de comando lido no momento do despacho (somente leitura)."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Product:
    """Produto do catálogo (o catálogo em si é externo)."""

    id: str
    name: str
    price: float
    category: str
    sizes: tuple[str, ...] = ()

    def match_size(self, spoken: str | None) -> str | None:
        """Match exato, sem diferenciar maiúsculas, contra os tamanhos declarados."""
        if not spoken:
            return None
        wanted = spoken.strip().lower()
        for size in self.sizes:
            if size.lower() == wanted:
                return size
        return None


@dataclass(frozen=True, slots=True)
class CartItem:
    """Linha do carrinho."""

    product_id: str
    name: str
    price: float
    size: str | None
    quantity: int = 1


@dataclass(frozen=True, slots=True)
class CommandContext:
    """Snapshot do estado da loja; pertence ao storefront externo."""

    route: str = "/"
    current_product: Product | None = None
    selected_size: str | None = None
    quantity: int = 1
    cart: tuple[CartItem, ...] = field(default_factory=tuple)

    @property
    def cart_count(self) -> int:
        """Quantidade total de unidades no carrinho."""
        return sum(item.quantity for item in self.cart)
