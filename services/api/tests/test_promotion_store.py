from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest
from packages.shared.schemas.bill_v1 import LineItemInputV1
from services.api.app.services.promotion_base import PromotionContext, build_promotion_snapshot
from services.api.app.services.promotion_store import SqlPromotionResolver, in_time_slot
from sqlalchemy.orm import Session

# Monday 2026-10-19 08:00 UTC is 15:00 in Ho Chi Minh City.
NOW = datetime(2026, 10, 19, 8, 0)


@pytest.fixture()
def db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Session:
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{tmp_path / 'pos_promotions.db'}")
    monkeypatch.setenv("POS_DB_AUTO_CREATE", "true")

    from services.api.app.db.database import db_session
    from services.api.app.db.init_db import init_db

    init_db()
    session = db_session()
    try:
        yield session
    finally:
        session.close()


def _add(db: Session, promotion_id: str, **overrides: object) -> None:
    from services.api.app.db.models import Promotion

    fields: dict[str, object] = {
        "id": promotion_id,
        "name": promotion_id,
        "code": promotion_id.upper(),
        "layer": "order",
        "kind": "percentage",
        "parameter": 10,
        "start_at": NOW - timedelta(days=1),
        "end_at": NOW + timedelta(days=1),
    }
    fields.update(overrides)
    db.add(Promotion(**fields))
    db.commit()


def _context(
    unit_price: int = 43000,
    quantity: int = 1,
    item_promotion_id: str | None = None,
    order_promotion_ids: list[str] | None = None,
    category: str | None = "Matcha",
) -> PromotionContext:
    return PromotionContext(
        items=[
            LineItemInputV1(
                id="line-1",
                dish_id="dish-1",
                name="Matcha latte",
                category=category,
                quantity=quantity,
                original_price_per_quantity=unit_price,
                item_promotion_id=item_promotion_id,
            )
        ],
        order_promotion_ids=order_promotion_ids or [],
    )


def _resolver(db: Session) -> SqlPromotionResolver:
    return SqlPromotionResolver(db, now=lambda: NOW, tz_name="Asia/Ho_Chi_Minh")


def test_unknown_promotion_resolves_to_none(db: Session) -> None:
    assert _resolver(db).resolve("missing", _context()) is None


def test_active_promotion_is_eligible(db: Session) -> None:
    _add(db, "p")
    definition = _resolver(db).resolve("p", _context(order_promotion_ids=["p"]))

    assert definition is not None
    assert definition.eligible is True
    assert definition.layer.value == "order"
    assert definition.kind.value == "percentage"
    assert definition.parameter == 10


@pytest.mark.parametrize(
    ("overrides", "eligible"),
    [
        ({"is_active": False}, False),
        ({"start_at": NOW + timedelta(hours=1)}, False),
        ({"end_at": NOW - timedelta(hours=1)}, False),
        ({"usage_limit": 5, "usage_count": 5}, False),
        ({"usage_limit": 5, "usage_count": 4}, True),
        ({"days_of_week": ["tuesday"]}, False),
        ({"days_of_week": ["monday", "friday"]}, True),
        ({"time_slots": [{"start": "14:00", "end": "17:00"}]}, True),
        ({"time_slots": [{"start": "17:00", "end": "20:00"}]}, False),
        ({"time_slots": [{"start": "22:00", "end": "16:00"}]}, True),
        ({"min_order_amount": 50000}, False),
        ({"min_order_amount": 43000}, True),
        ({"max_order_amount": 40000}, False),
    ],
)
def test_order_promotion_eligibility_rules(
    db: Session, overrides: dict[str, object], eligible: bool
) -> None:
    _add(db, "p", **overrides)
    definition = _resolver(db).resolve("p", _context(order_promotion_ids=["p"]))

    assert definition is not None
    assert definition.eligible is eligible


@pytest.mark.parametrize(
    ("overrides", "category", "eligible"),
    [
        ({"applicable_items": "all_order"}, None, True),
        ({"applicable_items": "categories", "category_names": ["Matcha"]}, "Matcha", True),
        ({"applicable_items": "categories", "category_names": ["Coffee"]}, "Matcha", False),
        ({"applicable_items": "categories", "category_names": ["Coffee"]}, None, False),
        ({"applicable_items": "specific_dishes", "specific_dish_ids": ["dish-1"]}, None, True),
        ({"applicable_items": "specific_dishes", "specific_dish_ids": ["dish-2"]}, None, False),
    ],
)
def test_item_promotion_applicability(
    db: Session, overrides: dict[str, object], category: str | None, eligible: bool
) -> None:
    _add(db, "hh", layer="item", kind="fixed", parameter=8000, **overrides)
    definition = _resolver(db).resolve("hh", _context(item_promotion_id="hh", category=category))

    assert definition is not None
    assert definition.eligible is eligible


def test_item_promotion_ignores_order_minimum(db: Session) -> None:
    _add(db, "hh", layer="item", kind="fixed", parameter=8000, min_order_amount=1_000_000)
    definition = _resolver(db).resolve("hh", _context(item_promotion_id="hh"))

    assert definition is not None
    assert definition.eligible is True


def test_in_time_slot_edges() -> None:
    local = datetime(2026, 10, 19, 17, 0)
    assert in_time_slot(local, {"start": "14:00", "end": "17:00"})
    assert not in_time_slot(local, {"start": "17:01", "end": "18:00"})
    assert in_time_slot(datetime(2026, 10, 19, 1, 30), {"start": "22:00", "end": "02:00"})
    assert not in_time_slot(local, {"start": "", "end": "18:00"})


def test_snapshot_contains_known_promotions_only(db: Session) -> None:
    _add(db, "p")
    _add(db, "hh", layer="item", kind="fixed", parameter=8000)
    context = _context(item_promotion_id="hh", order_promotion_ids=["p", "ghost"])

    snapshot = build_promotion_snapshot(_resolver(db), context)

    assert set(snapshot) == {"hh", "p"}
    with pytest.raises(TypeError):
        snapshot["x"] = snapshot["p"]  # type: ignore[index]
