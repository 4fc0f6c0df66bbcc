from __future__ import annotations

import logging
from datetime import date, datetime
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException
from packages.shared.schemas.events import EntityTypeV1, EventTypeV1, EventV1
from services.api.app.db.deps import get_db
from services.api.app.db.models import Order, OrderEvent
from services.api.app.models.order import (
    BillPreviewRequest,
    BillPreviewResponse,
    OrderCreateRequest,
    OrderListItem,
    OrderResponse,
    OrderStatus,
    OrderUpdateRequest,
    PaymentMethod,
    ThirdPartyVendor,
)
from services.api.app.services.billing import compute_bill, reconcile_order
from services.api.app.services.billing_base import (
    BillingError,
    BillMismatchError,
    PromotionNotApplicableError,
    TooManyPromotionsError,
)
from services.api.app.services.order_lifecycle import (
    InvalidStatusTransitionError,
    OrderLifecycleError,
    PaymentMethodLockedError,
    PaymentMethodRequiredError,
    plan_update,
)
from services.api.app.services.promotion_base import (
    PromotionContext,
    PromotionResolver,
    build_promotion_snapshot,
)
from services.api.app.services.promotion_factory import get_promotion_resolver
from services.api.app.utils.dates import local_day_range_utc
from sqlalchemy.orm import Session

router = APIRouter()
logger = logging.getLogger(__name__)


def _raise_billing_http_error(e: Exception) -> None:
    if isinstance(e, BillingError):
        logger.warning("Order rejected [%s]: %s", e.code, e)

    if isinstance(e, PromotionNotApplicableError):
        raise HTTPException(status_code=409, detail=e.to_detail()) from e

    if isinstance(e, TooManyPromotionsError):
        raise HTTPException(status_code=422, detail=e.to_detail()) from e

    if isinstance(e, BillMismatchError):
        raise HTTPException(status_code=409, detail=e.to_detail()) from e

    if isinstance(e, BillingError):
        raise HTTPException(status_code=400, detail=e.to_detail()) from e

    logger.exception("Unexpected error while billing order")
    raise HTTPException(status_code=500, detail="Internal Server Error") from e


def _raise_lifecycle_http_error(e: Exception) -> None:
    if isinstance(
        e, (InvalidStatusTransitionError, PaymentMethodLockedError, PaymentMethodRequiredError)
    ):
        raise HTTPException(status_code=409, detail=str(e)) from e

    if isinstance(e, OrderLifecycleError):
        raise HTTPException(status_code=400, detail=str(e)) from e

    logger.exception("Unexpected error while updating order")
    raise HTTPException(status_code=500, detail="Internal Server Error") from e


def _get_resolver(db: Session) -> PromotionResolver:
    try:
        return get_promotion_resolver(db)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


def _to_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=order.id,
        order_status=OrderStatus(order.order_status),
        payment_method=PaymentMethod(order.payment_method) if order.payment_method else None,
        third_party_vendor=ThirdPartyVendor(order.third_party_vendor),
        created_at=order.created_at.isoformat(),
        updated_at=order.updated_at.isoformat(),
        document=order.document_json,
    )


def _add_event(
    db: Session,
    order_id: str,
    user_id: str | None,
    event_type: EventTypeV1,
    payload: dict,
) -> None:
    db.add(
        OrderEvent(
            id=uuid4().hex,
            order_id=order_id,
            user_id=user_id,
            event_type=event_type.value,
            event_payload_json=payload,
        )
    )


@router.post("/v1/orders/preview", response_model=BillPreviewResponse)
def preview_bill(payload: BillPreviewRequest, db: Session = Depends(get_db)) -> BillPreviewResponse:
    resolver = _get_resolver(db)
    context = PromotionContext(items=payload.items, order_promotion_ids=payload.order_promotion_ids)

    try:
        snapshot = build_promotion_snapshot(resolver, context)
        priced = compute_bill(payload.items, payload.order_promotion_ids, snapshot, tax=payload.tax)
    except Exception as e:
        _raise_billing_http_error(e)

    return BillPreviewResponse(
        items=priced.items,
        order_promotion=priced.order_promotion,
        bill=priced.bill,
    )


@router.post("/v1/orders", response_model=OrderResponse, status_code=201)
def create_order(payload: OrderCreateRequest, db: Session = Depends(get_db)) -> OrderResponse:
    resolver = _get_resolver(db)
    context = PromotionContext(
        items=[item.to_input() for item in payload.items],
        order_promotion_ids=[p.promotion_id for p in payload.order_promotions],
    )

    try:
        snapshot = build_promotion_snapshot(resolver, context)
        priced = reconcile_order(payload.items, payload.order_promotions, payload.bill, snapshot)
    except Exception as e:
        _raise_billing_http_error(e)

    # Persist what the caller sent; it has just been proven equal to the recomputation.
    document = payload.model_dump(mode="json")
    now = datetime.utcnow()
    order = Order(
        id=uuid4().hex,
        order_status=payload.order_status.value,
        payment_method=payload.payment_method.value if payload.payment_method else None,
        third_party_vendor=payload.third_party_vendor.value,
        customer_name=payload.customer_details.name,
        customer_phone=payload.customer_details.phone,
        created_by_user_id=payload.user_id,
        total=payload.bill.total,
        total_with_tax=payload.bill.total_with_tax,
        document_json=document,
        created_at=now,
        updated_at=now,
    )
    db.add(order)
    db.flush()
    _add_event(
        db,
        order.id,
        payload.user_id,
        EventTypeV1.ORDER_CREATED,
        {
            "total": priced.bill.total,
            "promotion_discount": priced.bill.promotion_discount,
            "order_promotion_id": (
                priced.order_promotion.promotion_id if priced.order_promotion else None
            ),
        },
    )
    db.commit()

    logger.info(
        "Order %s accepted: subtotal=%s discount=%s total=%s via %s promotions",
        order.id,
        priced.bill.subtotal,
        priced.bill.promotion_discount,
        priced.bill.total,
        resolver.source,
    )
    return _to_response(order)


@router.get("/v1/orders", response_model=list[OrderListItem])
def list_orders(
    status: OrderStatus | None = None,
    payment_method: PaymentMethod | None = None,
    third_party_vendor: ThirdPartyVendor | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    created_by: str | None = None,
    db: Session = Depends(get_db),
) -> list[OrderListItem]:
    # Dates are whole days in the restaurant timezone.
    try:
        created_from, created_before = local_day_range_utc(start_date, end_date)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    query = db.query(Order)
    if status is not None:
        query = query.filter(Order.order_status == status.value)
    if payment_method is not None:
        query = query.filter(Order.payment_method == payment_method.value)
    if third_party_vendor is not None:
        query = query.filter(Order.third_party_vendor == third_party_vendor.value)
    if created_by is not None:
        query = query.filter(Order.created_by_user_id == created_by)
    if created_from is not None:
        query = query.filter(Order.created_at >= created_from)
    if created_before is not None:
        query = query.filter(Order.created_at < created_before)

    rows = query.order_by(Order.created_at.desc()).limit(200).all()

    return [
        OrderListItem(
            order_id=o.id,
            order_status=OrderStatus(o.order_status),
            payment_method=PaymentMethod(o.payment_method) if o.payment_method else None,
            third_party_vendor=ThirdPartyVendor(o.third_party_vendor),
            customer_name=o.customer_name,
            total=o.total,
            total_with_tax=o.total_with_tax,
            created_at=o.created_at.isoformat(),
        )
        for o in rows
    ]


@router.get("/v1/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, db: Session = Depends(get_db)) -> OrderResponse:
    order = db.get(Order, order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return _to_response(order)


@router.patch("/v1/orders/{order_id}", response_model=OrderResponse)
def update_order(
    order_id: str, payload: OrderUpdateRequest, db: Session = Depends(get_db)
) -> OrderResponse:
    order = db.get(Order, order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")

    current_status = OrderStatus(order.order_status)
    current_payment = PaymentMethod(order.payment_method) if order.payment_method else None

    try:
        new_status, new_payment = plan_update(
            current_status, current_payment, payload.order_status, payload.payment_method
        )
    except Exception as e:
        _raise_lifecycle_http_error(e)

    # Only metadata changes here; the bill and line items are never touched.
    if new_status != current_status:
        order.order_status = new_status.value
        _add_event(
            db,
            order.id,
            payload.user_id,
            EventTypeV1.ORDER_STATUS_CHANGED,
            {"from": current_status.value, "to": new_status.value},
        )

    if new_payment != current_payment:
        order.payment_method = new_payment.value if new_payment else None
        _add_event(
            db,
            order.id,
            payload.user_id,
            EventTypeV1.ORDER_PAYMENT_UPDATED,
            {"payment_method": order.payment_method},
        )

    order.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(order)
    return _to_response(order)


@router.get("/v1/orders/{order_id}/events", response_model=list[EventV1])
def list_order_events(order_id: str, db: Session = Depends(get_db)) -> list[EventV1]:
    if db.get(Order, order_id) is None:
        raise HTTPException(status_code=404, detail="Order not found")

    events = (
        db.query(OrderEvent)
        .filter(OrderEvent.order_id == order_id)
        .order_by(OrderEvent.created_at.asc())
        .all()
    )

    return [
        EventV1(
            id=e.id,
            user_id=e.user_id,
            entity_type=EntityTypeV1.ORDER,
            entity_id=e.order_id,
            event_type=EventTypeV1(e.event_type),
            payload=e.event_payload_json,
            created_at=e.created_at.isoformat(),
        )
        for e in events
    ]
