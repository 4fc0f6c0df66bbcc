from __future__ import annotations

import argparse
from datetime import datetime, timedelta

from services.api.app.db.database import db_session
from services.api.app.db.init_db import init_db
from services.api.app.db.models import Promotion


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed demo promotions for the POS billing API")
    parser.add_argument("--days", type=int, default=30, help="How long the promotions stay active")
    parser.add_argument("--happy-hour-start", default="14:00")
    parser.add_argument("--happy-hour-end", default="17:00")
    args = parser.parse_args()

    init_db()

    now = datetime.utcnow()
    end = now + timedelta(days=args.days)

    db = db_session()
    try:
        for promo in (
            Promotion(
                id="promo-order-10pct",
                name="DISCOUNT 10%",
                code="DISCOUNT10",
                layer="order",
                kind="percentage",
                parameter=10,
                start_at=now,
                end_at=end,
            ),
            Promotion(
                id="promo-order-10k",
                name="10K OFF",
                code="SAVE10K",
                layer="order",
                kind="fixed",
                parameter=10000,
                min_order_amount=50000,
                start_at=now,
                end_at=end,
            ),
            Promotion(
                id="promo-hh-matcha",
                name="Matcha Happy Hour",
                code="HHMATCHA",
                layer="item",
                kind="fixed",
                parameter=8000,
                applicable_items="categories",
                category_names=["Matcha"],
                time_slots=[{"start": args.happy_hour_start, "end": args.happy_hour_end}],
                start_at=now,
                end_at=end,
            ),
        ):
            if db.get(Promotion, promo.id) is None:
                db.add(promo)

        db.commit()
        print(f"Seeded promotions active until {end.isoformat()}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
