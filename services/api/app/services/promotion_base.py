from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol

from packages.shared.schemas.bill_v1 import LineItemInputV1
from packages.shared.schemas.promotion_v1 import PromotionDefinitionV1


@dataclass(frozen=True, slots=True)
class PromotionContext:
    """What a resolver may look at when deciding eligibility for one order."""

    items: list[LineItemInputV1]
    order_promotion_ids: list[str] = field(default_factory=list)

    @property
    def original_subtotal(self) -> int:
        return sum(item.original_price_per_quantity * item.quantity for item in self.items)

    def referenced_ids(self) -> list[str]:
        candidates = [item.item_promotion_id for item in self.items] + self.order_promotion_ids
        ids: list[str] = []
        for promotion_id in candidates:
            if promotion_id is not None and promotion_id not in ids:
                ids.append(promotion_id)
        return ids

    def items_tagged_with(self, promotion_id: str) -> list[LineItemInputV1]:
        return [item for item in self.items if item.item_promotion_id == promotion_id]


class PromotionResolver(Protocol):
    source: str

    def resolve(
        self, promotion_id: str, context: PromotionContext
    ) -> PromotionDefinitionV1 | None: ...


def build_promotion_snapshot(
    resolver: PromotionResolver,
    context: PromotionContext,
) -> Mapping[str, PromotionDefinitionV1]:
    """Resolve every promotion the order references into a read-only mapping.

    Ids the resolver does not know are left out; the billing engine reports them.
    """

    resolved: dict[str, PromotionDefinitionV1] = {}
    for promotion_id in context.referenced_ids():
        definition = resolver.resolve(promotion_id, context)
        if definition is not None:
            resolved[promotion_id] = definition
    return MappingProxyType(resolved)
