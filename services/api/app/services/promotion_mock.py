from __future__ import annotations

from packages.shared.schemas.promotion_v1 import (
    PromotionDefinitionV1,
    PromotionKindV1,
    PromotionLayerV1,
)
from services.api.app.services.promotion_base import PromotionContext


class MockPromotionResolver:
    source = "MOCK"

    def __init__(self) -> None:
        self._catalog = {
            p.id: p
            for p in (
                PromotionDefinitionV1(
                    id="promo-order-10pct",
                    name="DISCOUNT 10%",
                    code="DISCOUNT10",
                    layer=PromotionLayerV1.ORDER,
                    kind=PromotionKindV1.PERCENTAGE,
                    parameter=10,
                    eligible=True,
                ),
                PromotionDefinitionV1(
                    id="promo-order-10k",
                    name="10K OFF",
                    code="SAVE10K",
                    layer=PromotionLayerV1.ORDER,
                    kind=PromotionKindV1.FIXED,
                    parameter=10000,
                    eligible=True,
                ),
                PromotionDefinitionV1(
                    id="promo-order-expired",
                    name="Summer 15%",
                    code="SUMMER15",
                    layer=PromotionLayerV1.ORDER,
                    kind=PromotionKindV1.PERCENTAGE,
                    parameter=15,
                    eligible=False,
                ),
                PromotionDefinitionV1(
                    id="promo-hh-8k",
                    name="Happy Hour 8K",
                    code="HH8K",
                    layer=PromotionLayerV1.ITEM,
                    kind=PromotionKindV1.FIXED,
                    parameter=8000,
                    eligible=True,
                ),
                PromotionDefinitionV1(
                    id="promo-hh-20pct",
                    name="Happy Hour 20%",
                    code="HH20",
                    layer=PromotionLayerV1.ITEM,
                    kind=PromotionKindV1.PERCENTAGE,
                    parameter=20,
                    eligible=True,
                ),
                PromotionDefinitionV1(
                    id="promo-hh-30k",
                    name="Happy Hour 30K",
                    code="HH30K",
                    layer=PromotionLayerV1.ITEM,
                    kind=PromotionKindV1.UNIFORM_PRICE,
                    parameter=30000,
                    eligible=True,
                ),
            )
        }

    def resolve(self, promotion_id: str, context: PromotionContext) -> PromotionDefinitionV1 | None:
        del context
        return self._catalog.get(promotion_id)
