"""Contratos Pydantic para parâmetros extraídos pelos handlers de intenção."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vnova_voice.domain.enums import ProductAction


class _OracleModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ProductActionPayload(_OracleModel):
    """{"action": "size|quantity|addToCart|none", "size", "quantity", "productName"}."""

    action: ProductAction = ProductAction.NONE
    size: str | None = None
    quantity: int | None = Field(default=None, ge=1)
    product_name: str | None = Field(default=None, alias="productName")

    @field_validator("action", mode="before")
    @classmethod
    def _coerce_action(cls, value: Any) -> Any:
        if value is None:
            return ProductAction.NONE
        aliases = {"add_to_cart": "addToCart", "addtocart": "addToCart", "add": "addToCart"}
        text = str(value).strip()
        return aliases.get(text.lower(), text)


class NavigationPayload(_OracleModel):
    """{"route": "/cart" | null, "category": str | null, "productId": str | null}."""

    route: str | None = None
    category: str | None = None
    product_id: str | None = Field(default=None, alias="productId")


class FilterPayload(_OracleModel):
    """{"filters": {"category": "Gym", "maxPrice": 100, ...}}."""

    filters: dict[str, Any] = Field(default_factory=dict)


class RemoveFiltersPayload(_OracleModel):
    """{"keys": ["maxPrice"]}."""

    keys: list[str] = Field(default_factory=list)


class UserInfoPayload(_OracleModel):
    """{"isUserInfoUpdate": bool, "name": ..., "email": ..., ...}."""

    is_user_info_update: bool = Field(default=False, alias="isUserInfoUpdate")
    name: str | None = None
    email: str | None = None
    address: str | None = None
    phone: str | None = None
    card_name: str | None = Field(default=None, alias="cardName")
    card_number: str | None = Field(default=None, alias="cardNumber")
    expiry_date: str | None = Field(default=None, alias="expiryDate")
    cvv: str | None = None

    def updates(self) -> dict[str, str]:
        """Campos não nulos, com as chaves do store de user-info."""
        dumped = self.model_dump(by_alias=True, exclude={"is_user_info_update"})
        return {key: str(value).strip() for key, value in dumped.items() if value not in (None, "")}
