"""Catálogo de produtos em memória (dev/testes)."""

from __future__ import annotations

from collections.abc import Iterable

from vnova_voice.domain.context import Product
from vnova_voice.domain.protocols.storefront import CatalogProtocol

APPAREL_SIZES = ("S", "M", "L", "XL")

DEFAULT_PRODUCTS: tuple[Product, ...] = (
    Product("g1", "TitanGrip Adjustable Dumbbells", 349.99, "Gym"),
    Product("g2", "IronForge Kettlebell Pro", 79.99, "Gym"),
    Product("g3", "PowerRack Home Station", 699.99, "Gym"),
    Product("g4", "GripForce Workout Gloves", 29.99, "Gym", APPAREL_SIZES),
    Product("g5", "EliteForm Weight Belt", 59.99, "Gym", (*APPAREL_SIZES, "XXL")),
    Product("y1", "ProFlex Yoga Mat", 89.99, "Yoga"),
    Product("y2", "ZenBlock Cork Yoga Blocks", 34.99, "Yoga"),
    Product("y3", "FlowFit Yoga Leggings", 68.99, "Yoga", ("XS", *APPAREL_SIZES)),
    Product("y4", "MindfulMat Meditation Cushion", 49.99, "Yoga"),
    Product("r1", "AeroStride Running Shoes", 179.99, "Running", ("7", "8", "9", "10", "11", "12")),
    Product("r2", "SwiftDry Running Shorts", 44.99, "Running", ("XS", *APPAREL_SIZES)),
    Product("r3", "NightRunner Reflective Jacket", 129.99, "Running", APPAREL_SIZES),
    Product("r4", "HydroRun Belt", 34.99, "Running"),
    Product("w1", "Nova Watch Pro", 399.99, "Wearables"),
    Product("w2", "PulseBand Fitness Tracker", 129.99, "Wearables"),
    Product("w3", "RingFit Smart Ring", 249.99, "Wearables", ("6", "7", "8", "9", "10", "11")),
    Product("a1", "Nova X-1 Wireless Headphones", 299.99, "Audio"),
    Product("a2", "Nova Buds Pro", 199.99, "Audio"),
    Product("c1", "Nova Book Air", 1299.99, "Computing"),
    Product("c2", "Nova Vision Pro", 3499.00, "Computing"),
    Product("rc1", "ZenFlow Foam Roller", 39.99, "Recovery"),
    Product("rc2", "ThermaGun Massage Gun", 199.99, "Recovery"),
    Product("cd1", "PulseFit Smart Jump Rope", 69.99, "Cardio"),
    Product("cd2", "FlexPower Resistance Bands Set", 49.99, "Cardio"),
)


class InMemoryCatalog(CatalogProtocol):
    """Catálogo estático; preserva a ordem de inserção."""

    def __init__(self, products: Iterable[Product] = DEFAULT_PRODUCTS) -> None:
        self._products: dict[str, Product] = {product.id: product for product in products}

    def all(self) -> list[Product]:
        return list(self._products.values())

    def get(self, product_id: str) -> Product | None:
        return self._products.get(product_id)

    def categories(self) -> list[str]:
        return list(dict.fromkeys(product.category for product in self._products.values()))
