from __future__ import annotations

from services.api.app.config import promotion_source
from services.api.app.services.promotion_base import PromotionResolver
from services.api.app.services.promotion_mock import MockPromotionResolver
from sqlalchemy.orm import Session


def get_promotion_resolver(db: Session) -> PromotionResolver:
    """Select a resolver based on env vars.

    Defaults to the mock resolver so tests and local dev are deterministic unless explicitly
    configured otherwise.
    """

    mode = promotion_source()

    if mode == "mock":
        return MockPromotionResolver()

    if mode == "db":
        from services.api.app.services.promotion_store import SqlPromotionResolver

        return SqlPromotionResolver(db)

    raise ValueError(f"Unknown POS_PROMOTION_SOURCE={mode!r}. Expected mock or db.")
