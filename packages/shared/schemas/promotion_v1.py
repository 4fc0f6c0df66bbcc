"""Shared promotion schema (v1).

A promotion definition as resolved by the promotion store at request time. The billing
engine only consumes these; it never creates or edits them.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PromotionLayerV1(str, Enum):
    ITEM = "item"
    ORDER = "order"


class PromotionKindV1(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    # Happy hour only: every unit of an eligible dish costs `parameter`.
    UNIFORM_PRICE = "uniform_price"


class PromotionDefinitionV1(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    code: str | None = None
    layer: PromotionLayerV1
    kind: PromotionKindV1
    parameter: float = Field(..., ge=0)
    eligible: bool

    @model_validator(mode="after")
    def _check_kind(self) -> PromotionDefinitionV1:
        if self.kind == PromotionKindV1.PERCENTAGE and self.parameter > 100:
            raise ValueError("percentage promotions take a parameter between 0 and 100")

        if self.kind in (PromotionKindV1.FIXED, PromotionKindV1.UNIFORM_PRICE):
            if self.parameter != int(self.parameter):
                raise ValueError(f"{self.kind.value} promotions take an integral amount")

        if self.kind == PromotionKindV1.UNIFORM_PRICE and self.layer != PromotionLayerV1.ITEM:
            raise ValueError("uniform_price promotions only apply to line items")

        return self
