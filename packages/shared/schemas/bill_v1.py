"""Shared bill schema (v1).

These models are shared between the API and the cart clients. The cart builds them to
preview a bill locally and submits them on order creation; the API recomputes the same
shapes and refuses the order unless both sides agree exactly.

All amounts are integers in the smallest currency unit (VND has no minor unit).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from packages.shared.schemas.promotion_v1 import PromotionKindV1


class VariantV1(BaseModel):
    size: str | None = None
    price: int | None = Field(default=None, ge=0)


class ToppingV1(BaseModel):
    topping_id: str
    name: str
    price: int = Field(..., ge=0)
    quantity: int = Field(1, ge=1)


class LineItemBaseV1(BaseModel):
    """Descriptive fields plus the undiscounted unit price.

    `original_price_per_quantity` already includes the selected variant and toppings.
    """

    id: str
    dish_id: str
    name: str
    category: str | None = None
    quantity: int = Field(..., ge=1)
    original_price_per_quantity: int = Field(..., ge=0)

    note: str | None = None
    variant: VariantV1 | None = None
    toppings: list[ToppingV1] = Field(default_factory=list)


class LineItemInputV1(LineItemBaseV1):
    """A cart line before pricing, optionally naming a candidate happy hour promotion."""

    item_promotion_id: str | None = None


class ItemPromotionV1(BaseModel):
    promotion_id: str
    name: str
    discount_amount: int = Field(..., ge=0)


class LineItemV1(LineItemBaseV1):
    """A priced line as it appears on an order document."""

    original_price: int | None = Field(default=None, ge=0)
    effective_price_per_quantity: int | None = Field(default=None, ge=0)
    effective_price: int | None = Field(default=None, ge=0)
    item_promotion: ItemPromotionV1 | None = None

    @model_validator(mode="after")
    def _fill_undiscounted_defaults(self) -> LineItemV1:
        # Omitted prices mean "no item discount"; reconciliation still checks them.
        if self.original_price is None:
            self.original_price = self.original_price_per_quantity * self.quantity
        if self.effective_price_per_quantity is None:
            self.effective_price_per_quantity = self.original_price_per_quantity
        if self.effective_price is None:
            self.effective_price = self.effective_price_per_quantity * self.quantity
        return self

    def to_input(self) -> LineItemInputV1:
        base = self.model_dump(include=set(LineItemBaseV1.model_fields))
        promotion_id = self.item_promotion.promotion_id if self.item_promotion else None
        return LineItemInputV1(**base, item_promotion_id=promotion_id)


class OrderPromotionV1(BaseModel):
    promotion_id: str
    name: str
    kind: PromotionKindV1
    code: str | None = None
    parameter: float = Field(..., ge=0)
    discount_amount: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _check_kind(self) -> OrderPromotionV1:
        if self.kind == PromotionKindV1.UNIFORM_PRICE:
            raise ValueError("uniform_price is not an order-level promotion kind")
        return self


class BillV1(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: int = Field(..., ge=0)
    item_discount_total: int = Field(0, ge=0)
    order_discount_amount: int = Field(0, ge=0)
    promotion_discount: int = Field(0, ge=0)
    total: int = Field(..., ge=0)
    tax: int = Field(0, ge=0)
    total_with_tax: int = Field(..., ge=0)


BILL_FIELDS: tuple[str, ...] = tuple(BillV1.model_fields)
