"""Order billing and promotion reconciliation.

Everything here is a pure function of the line items and a read-only snapshot of resolved
promotion definitions. The API runs it on every order submission and refuses the order
unless the caller's bill matches the recomputed one exactly.

Layering: item-level (happy hour) discounts are applied first, per unit price. The single
order-level discount is then taken from the post-item-discount subtotal.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal

from packages.shared.schemas.bill_v1 import (
    BILL_FIELDS,
    BillV1,
    ItemPromotionV1,
    LineItemInputV1,
    LineItemV1,
    OrderPromotionV1,
)
from packages.shared.schemas.promotion_v1 import (
    PromotionDefinitionV1,
    PromotionKindV1,
    PromotionLayerV1,
)
from services.api.app.services.billing_base import (
    BillMismatchError,
    FieldMismatch,
    ItemPassResult,
    PricedOrder,
    PromotionNotApplicableError,
    TooManyPromotionsError,
)

PromotionSnapshot = Mapping[str, PromotionDefinitionV1]


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def resolve_promotion(
    snapshot: PromotionSnapshot,
    promotion_id: str,
    layer: PromotionLayerV1,
) -> PromotionDefinitionV1:
    definition = snapshot.get(promotion_id)
    if definition is None:
        raise PromotionNotApplicableError(promotion_id, layer, "unknown promotion")

    if definition.layer != layer:
        raise PromotionNotApplicableError(
            promotion_id, layer, f"it is an {definition.layer.value}-level promotion"
        )

    if not definition.eligible:
        raise PromotionNotApplicableError(promotion_id, layer, "not currently eligible")

    return definition


def effective_unit_price(unit_price: int, definition: PromotionDefinitionV1) -> int:
    """Discounted price of one unit. Rounded here, once, never on the line total."""

    parameter = Decimal(str(definition.parameter))

    if definition.kind == PromotionKindV1.PERCENTAGE:
        return round_half_up(Decimal(unit_price) * (100 - parameter) / 100)

    if definition.kind == PromotionKindV1.FIXED:
        return max(0, unit_price - int(parameter))

    if definition.kind == PromotionKindV1.UNIFORM_PRICE:
        return min(unit_price, int(parameter))

    raise ValueError(f"Unhandled promotion kind: {definition.kind!r}")


def order_discount_amount(effective_subtotal: int, definition: PromotionDefinitionV1) -> int:
    parameter = Decimal(str(definition.parameter))

    if definition.kind == PromotionKindV1.PERCENTAGE:
        return round_half_up(Decimal(effective_subtotal) * parameter / 100)

    if definition.kind == PromotionKindV1.FIXED:
        return min(int(parameter), effective_subtotal)

    raise ValueError(f"Unhandled order promotion kind: {definition.kind!r}")


def _price_line(item: LineItemInputV1, snapshot: PromotionSnapshot) -> LineItemV1:
    base = item.model_dump(exclude={"item_promotion_id"})
    original_price = item.original_price_per_quantity * item.quantity

    if item.item_promotion_id is None:
        return LineItemV1(
            **base,
            original_price=original_price,
            effective_price_per_quantity=item.original_price_per_quantity,
            effective_price=original_price,
        )

    definition = resolve_promotion(snapshot, item.item_promotion_id, PromotionLayerV1.ITEM)
    unit_price = effective_unit_price(item.original_price_per_quantity, definition)
    effective_price = unit_price * item.quantity

    return LineItemV1(
        **base,
        original_price=original_price,
        effective_price_per_quantity=unit_price,
        effective_price=effective_price,
        item_promotion=ItemPromotionV1(
            promotion_id=item.item_promotion_id,
            name=definition.name,
            discount_amount=original_price - effective_price,
        ),
    )


def apply_item_promotions(
    items: Sequence[LineItemInputV1],
    snapshot: PromotionSnapshot,
) -> ItemPassResult:
    priced = [_price_line(item, snapshot) for item in items]
    item_discount_total = sum(
        line.item_promotion.discount_amount for line in priced if line.item_promotion
    )
    return ItemPassResult(items=priced, item_discount_total=item_discount_total)


def apply_order_promotion(
    item_pass: ItemPassResult,
    promotion_ids: Sequence[str],
    snapshot: PromotionSnapshot,
) -> OrderPromotionV1 | None:
    if not promotion_ids:
        return None

    if len(promotion_ids) > 1:
        raise TooManyPromotionsError(list(promotion_ids))

    promotion_id = promotion_ids[0]
    definition = resolve_promotion(snapshot, promotion_id, PromotionLayerV1.ORDER)

    return OrderPromotionV1(
        promotion_id=promotion_id,
        name=definition.name,
        kind=definition.kind,
        code=definition.code,
        parameter=definition.parameter,
        discount_amount=order_discount_amount(item_pass.effective_subtotal, definition),
    )


def compute_bill(
    items: Sequence[LineItemInputV1],
    order_promotion_ids: Sequence[str],
    snapshot: PromotionSnapshot,
    tax: int = 0,
) -> PricedOrder:
    item_pass = apply_item_promotions(items, snapshot)
    order_promotion = apply_order_promotion(item_pass, order_promotion_ids, snapshot)

    subtotal = sum(line.original_price for line in item_pass.items)
    order_discount = order_promotion.discount_amount if order_promotion else 0
    promotion_discount = item_pass.item_discount_total + order_discount
    total = subtotal - promotion_discount

    bill = BillV1(
        subtotal=subtotal,
        item_discount_total=item_pass.item_discount_total,
        order_discount_amount=order_discount,
        promotion_discount=promotion_discount,
        total=total,
        tax=tax,
        total_with_tax=total + tax,
    )
    return PricedOrder(items=item_pass.items, order_promotion=order_promotion, bill=bill)


def _diff(mismatches: list[FieldMismatch], field: str, submitted: object, expected: object) -> None:
    if submitted != expected:
        mismatches.append(FieldMismatch(field=field, submitted=submitted, expected=expected))


def reconcile_order(
    items: Sequence[LineItemV1],
    order_promotions: Sequence[OrderPromotionV1],
    submitted_bill: BillV1,
    snapshot: PromotionSnapshot,
) -> PricedOrder:
    """Recompute the bill from first principles and require an exact match.

    Returns the recomputed order when every field agrees. Otherwise raises a single
    BillMismatchError listing every disagreement alongside the authoritative bill.
    """

    priced = compute_bill(
        [item.to_input() for item in items],
        [promotion.promotion_id for promotion in order_promotions],
        snapshot,
        tax=submitted_bill.tax,
    )

    mismatches: list[FieldMismatch] = []
    for field in BILL_FIELDS:
        _diff(mismatches, field, getattr(submitted_bill, field), getattr(priced.bill, field))

    for submitted, expected in zip(items, priced.items):
        prefix = f"items[{submitted.id}]"
        _diff(mismatches, f"{prefix}.original_price", submitted.original_price, expected.original_price)
        _diff(
            mismatches,
            f"{prefix}.effective_price_per_quantity",
            submitted.effective_price_per_quantity,
            expected.effective_price_per_quantity,
        )
        _diff(mismatches, f"{prefix}.effective_price", submitted.effective_price, expected.effective_price)
        if expected.item_promotion is not None:
            # to_input() carries the submitted promotion id, so both sides have one.
            assert submitted.item_promotion is not None
            _diff(
                mismatches,
                f"{prefix}.item_promotion.name",
                submitted.item_promotion.name,
                expected.item_promotion.name,
            )
            _diff(
                mismatches,
                f"{prefix}.item_promotion.discount_amount",
                submitted.item_promotion.discount_amount,
                expected.item_promotion.discount_amount,
            )

    if priced.order_promotion is not None:
        submitted_promotion = order_promotions[0]
        expected_promotion = priced.order_promotion
        for field in ("name", "code", "kind", "parameter", "discount_amount"):
            _diff(
                mismatches,
                f"order_promotion.{field}",
                getattr(submitted_promotion, field),
                getattr(expected_promotion, field),
            )

    if mismatches:
        raise BillMismatchError(mismatches, priced.bill)

    return priced
