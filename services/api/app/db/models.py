from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    order_status: Mapped[str] = mapped_column(String, nullable=False, index=True)
    payment_method: Mapped[str | None] = mapped_column(String, nullable=True)
    third_party_vendor: Mapped[str] = mapped_column(String, nullable=False, default="None")

    customer_name: Mapped[str | None] = mapped_column(String, nullable=True)
    customer_phone: Mapped[str | None] = mapped_column(String, nullable=True)
    created_by_user_id: Mapped[str | None] = mapped_column(String, nullable=True)

    total: Mapped[int] = mapped_column(Integer, nullable=False)
    total_with_tax: Mapped[int] = mapped_column(Integer, nullable=False)

    # The caller-submitted document, stored exactly as validated.
    document_json: Mapped[dict] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class OrderEvent(Base):
    __tablename__ = "order_events"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False, index=True)
    user_id: Mapped[str | None] = mapped_column(String, nullable=True)

    event_type: Mapped[str] = mapped_column(String, nullable=False)
    event_payload_json: Mapped[dict] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class Promotion(Base):
    """Promotion definitions. Owned by the promotion admin tooling; read-only here."""

    __tablename__ = "promotions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    code: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)

    layer: Mapped[str] = mapped_column(String, nullable=False)
    kind: Mapped[str] = mapped_column(String, nullable=False)
    parameter: Mapped[float] = mapped_column(Float, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Local-time restrictions, e.g. ["monday", "friday"] and [{"start": "14:00", "end": "17:00"}].
    days_of_week: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    time_slots: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # all_order | specific_dishes | categories
    applicable_items: Mapped[str] = mapped_column(String, nullable=False, default="all_order")
    specific_dish_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    category_names: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    min_order_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_order_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
    usage_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
