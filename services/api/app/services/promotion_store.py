"""Promotion resolver backed by the `promotions` table.

Eligibility is decided here, at resolution time, so the billing engine only ever sees a
yes/no answer per promotion for the order at hand.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from packages.shared.schemas.promotion_v1 import (
    PromotionDefinitionV1,
    PromotionKindV1,
    PromotionLayerV1,
)
from services.api.app.config import timezone_name
from services.api.app.db.models import Promotion
from services.api.app.services.promotion_base import PromotionContext
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def in_time_slot(local_now: datetime, slot: dict) -> bool:
    start = slot.get("start")
    end = slot.get("end")
    if not start or not end:
        return False

    current = local_now.hour * 60 + local_now.minute
    start_min = _minutes(start)
    end_min = _minutes(end)

    # Slot crosses midnight, e.g. 22:00-02:00.
    if start_min > end_min:
        return current >= start_min or current <= end_min

    return start_min <= current <= end_min


def item_matches(promotion: Promotion, dish_id: str, category: str | None) -> bool:
    if promotion.applicable_items == "all_order":
        return True

    if promotion.applicable_items == "specific_dishes":
        return dish_id in (promotion.specific_dish_ids or [])

    if promotion.applicable_items == "categories":
        return category is not None and category in (promotion.category_names or [])

    return False


class SqlPromotionResolver:
    source = "DB"

    def __init__(
        self,
        db: Session,
        now: Callable[[], datetime] = datetime.utcnow,
        tz_name: str | None = None,
    ) -> None:
        self._db = db
        self._now = now
        self._tz = ZoneInfo(tz_name or timezone_name())

    def resolve(self, promotion_id: str, context: PromotionContext) -> PromotionDefinitionV1 | None:
        row = self._db.get(Promotion, promotion_id)
        if row is None:
            return None

        reason = self.ineligibility_reason(row, context)
        if reason is not None:
            logger.info("Promotion %s not eligible: %s", promotion_id, reason)

        return PromotionDefinitionV1(
            id=row.id,
            name=row.name,
            code=row.code,
            layer=PromotionLayerV1(row.layer),
            kind=PromotionKindV1(row.kind),
            parameter=row.parameter,
            eligible=reason is None,
        )

    def ineligibility_reason(self, row: Promotion, context: PromotionContext) -> str | None:
        now_utc = self._now()
        if not row.is_active:
            return "inactive"

        if not (row.start_at <= now_utc <= row.end_at):
            return "outside its active date range"

        if row.usage_limit is not None and row.usage_count >= row.usage_limit:
            return "usage limit reached"

        local_now = now_utc.replace(tzinfo=timezone.utc).astimezone(self._tz)

        if row.days_of_week and WEEKDAYS[local_now.weekday()] not in row.days_of_week:
            return "not valid today"

        if row.time_slots and not any(in_time_slot(local_now, slot) for slot in row.time_slots):
            return "outside its time slots"

        if row.layer == PromotionLayerV1.ITEM.value:
            for item in context.items_tagged_with(row.id):
                if not item_matches(row, item.dish_id, item.category):
                    return f"does not apply to {item.name!r}"
            return None

        subtotal = context.original_subtotal
        if subtotal < row.min_order_amount:
            return f"order below minimum amount {row.min_order_amount}"

        if row.max_order_amount is not None and subtotal > row.max_order_amount:
            return f"order above maximum amount {row.max_order_amount}"

        return None
