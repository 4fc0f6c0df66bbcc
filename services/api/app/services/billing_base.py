from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from packages.shared.schemas.bill_v1 import BillV1, LineItemV1, OrderPromotionV1
from packages.shared.schemas.promotion_v1 import PromotionLayerV1


class BillingError(Exception):
    """Base class for order billing errors. All of them are terminal for the request."""

    code = "BILLING_ERROR"

    def to_detail(self) -> dict[str, Any]:
        return {"error": self.code, "message": str(self)}


class PromotionNotApplicableError(BillingError):
    code = "PROMOTION_NOT_APPLICABLE"

    def __init__(self, promotion_id: str, layer: PromotionLayerV1, reason: str) -> None:
        super().__init__(
            f"Promotion {promotion_id!r} cannot be applied at the {layer.value} level: {reason}. "
            "Remove it from the cart and resubmit."
        )
        self.promotion_id = promotion_id
        self.layer = layer
        self.reason = reason

    def to_detail(self) -> dict[str, Any]:
        return {
            **super().to_detail(),
            "promotion_id": self.promotion_id,
            "layer": self.layer.value,
            "reason": self.reason,
        }


class TooManyPromotionsError(BillingError):
    code = "TOO_MANY_PROMOTIONS"

    def __init__(self, promotion_ids: list[str]) -> None:
        super().__init__(
            f"At most one order-level promotion is allowed, got {len(promotion_ids)}: "
            + ", ".join(promotion_ids)
        )
        self.promotion_ids = promotion_ids

    def to_detail(self) -> dict[str, Any]:
        return {**super().to_detail(), "promotion_ids": self.promotion_ids}


@dataclass(frozen=True, slots=True)
class FieldMismatch:
    field: str
    submitted: Any
    expected: Any


class BillMismatchError(BillingError):
    code = "BILL_MISMATCH"

    def __init__(self, mismatches: list[FieldMismatch], expected_bill: BillV1) -> None:
        fields = ", ".join(m.field for m in mismatches)
        super().__init__(f"Submitted bill does not match the recomputed bill on: {fields}")
        self.mismatches = mismatches
        self.expected_bill = expected_bill

    def to_detail(self) -> dict[str, Any]:
        return {
            **super().to_detail(),
            "mismatches": [
                {"field": m.field, "submitted": m.submitted, "expected": m.expected}
                for m in self.mismatches
            ],
            "expected_bill": self.expected_bill.model_dump(mode="json"),
        }


@dataclass(frozen=True, slots=True)
class ItemPassResult:
    items: list[LineItemV1]
    item_discount_total: int

    @property
    def effective_subtotal(self) -> int:
        return sum(item.effective_price for item in self.items)


@dataclass(frozen=True, slots=True)
class PricedOrder:
    items: list[LineItemV1]
    order_promotion: OrderPromotionV1 | None
    bill: BillV1
