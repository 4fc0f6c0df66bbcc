from __future__ import annotations

from enum import Enum
from typing import Any

from packages.shared.schemas.bill_v1 import (
    BillV1,
    LineItemInputV1,
    LineItemV1,
    OrderPromotionV1,
)
from pydantic import BaseModel, Field, model_validator


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROGRESS = "progress"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    BANKING = "Banking"
    CARD = "Card"


class ThirdPartyVendor(str, Enum):
    NONE = "None"
    SHOPEE = "Shopee"
    GRAB = "Grab"


class CustomerDetails(BaseModel):
    name: str | None = None
    phone: str | None = None
    guests: int | None = Field(default=None, ge=1)


def _require_unique_ids(items: list[LineItemInputV1] | list[LineItemV1]) -> None:
    seen: set[str] = set()
    for item in items:
        if item.id in seen:
            raise ValueError(f"Duplicate line item id: {item.id!r}")
        seen.add(item.id)


class OrderCreateRequest(BaseModel):
    """A draft order as submitted by the cart, including the cart's own bill."""

    customer_details: CustomerDetails = Field(default_factory=CustomerDetails)
    user_id: str | None = None
    items: list[LineItemV1] = Field(..., min_length=1)
    order_promotions: list[OrderPromotionV1] = Field(default_factory=list)
    bill: BillV1
    payment_method: PaymentMethod | None = None
    third_party_vendor: ThirdPartyVendor = ThirdPartyVendor.NONE
    order_status: OrderStatus = OrderStatus.PENDING

    @model_validator(mode="after")
    def _check(self) -> OrderCreateRequest:
        _require_unique_ids(self.items)
        if self.order_status not in (OrderStatus.PENDING, OrderStatus.PROGRESS):
            raise ValueError("New orders start as pending or progress")
        return self


class OrderResponse(BaseModel):
    order_id: str
    order_status: OrderStatus
    payment_method: PaymentMethod | None = None
    third_party_vendor: ThirdPartyVendor
    created_at: str
    updated_at: str
    document: dict[str, Any]


class OrderListItem(BaseModel):
    order_id: str
    order_status: OrderStatus
    payment_method: PaymentMethod | None = None
    third_party_vendor: ThirdPartyVendor
    customer_name: str | None = None
    total: int
    total_with_tax: int
    created_at: str


class OrderUpdateRequest(BaseModel):
    order_status: OrderStatus | None = None
    payment_method: PaymentMethod | None = None
    user_id: str | None = None

    @model_validator(mode="after")
    def _check(self) -> OrderUpdateRequest:
        if self.order_status is None and self.payment_method is None:
            raise ValueError("At least one of order_status or payment_method must be provided")
        return self


class BillPreviewRequest(BaseModel):
    items: list[LineItemInputV1] = Field(..., min_length=1)
    order_promotion_ids: list[str] = Field(default_factory=list)
    tax: int = Field(0, ge=0)

    @model_validator(mode="after")
    def _check(self) -> BillPreviewRequest:
        _require_unique_ids(self.items)
        return self


class BillPreviewResponse(BaseModel):
    items: list[LineItemV1]
    order_promotion: OrderPromotionV1 | None = None
    bill: BillV1
