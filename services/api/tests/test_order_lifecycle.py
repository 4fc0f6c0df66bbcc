from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from services.api.app.models.order import OrderStatus, PaymentMethod
from services.api.app.services.order_lifecycle import (
    InvalidStatusTransitionError,
    PaymentMethodLockedError,
    PaymentMethodRequiredError,
    plan_update,
)


@pytest.fixture()
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    db_path = tmp_path / "pos_lifecycle.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("POS_DB_AUTO_CREATE", "true")
    monkeypatch.setenv("POS_PROMOTION_SOURCE", "mock")

    from services.api.app.main import app

    with TestClient(app) as c:
        yield c


def _create_order(client: TestClient, payment_method: str | None = None) -> dict:
    payload = {
        "user_id": "u-1",
        "items": [
            {
                "id": "a",
                "dish_id": "d-1",
                "name": "Matcha latte",
                "quantity": 1,
                "original_price_per_quantity": 43000,
            }
        ],
        "bill": {"subtotal": 43000, "total": 43000, "total_with_tax": 43000},
    }
    if payment_method:
        payload["payment_method"] = payment_method

    response = client.post("/v1/orders", json=payload)
    assert response.status_code == 201
    return response.json()


@pytest.mark.parametrize(
    ("current", "requested"),
    [
        (OrderStatus.PENDING, OrderStatus.PROGRESS),
        (OrderStatus.PENDING, OrderStatus.CANCELLED),
        (OrderStatus.PROGRESS, OrderStatus.READY),
        (OrderStatus.PROGRESS, OrderStatus.CANCELLED),
        (OrderStatus.READY, OrderStatus.CANCELLED),
    ],
)
def test_allowed_transitions(current: OrderStatus, requested: OrderStatus) -> None:
    status, payment = plan_update(current, None, requested, None)
    assert status == requested
    assert payment is None


@pytest.mark.parametrize(
    ("current", "requested"),
    [
        (OrderStatus.PENDING, OrderStatus.READY),
        (OrderStatus.READY, OrderStatus.PROGRESS),
        (OrderStatus.COMPLETED, OrderStatus.PENDING),
        (OrderStatus.CANCELLED, OrderStatus.PROGRESS),
    ],
)
def test_rejected_transitions(current: OrderStatus, requested: OrderStatus) -> None:
    with pytest.raises(InvalidStatusTransitionError):
        plan_update(current, PaymentMethod.CASH, requested, None)


def test_completing_requires_payment_method() -> None:
    with pytest.raises(PaymentMethodRequiredError):
        plan_update(OrderStatus.PROGRESS, None, OrderStatus.COMPLETED, None)

    status, payment = plan_update(OrderStatus.PROGRESS, None, OrderStatus.COMPLETED, PaymentMethod.CARD)
    assert (status, payment) == (OrderStatus.COMPLETED, PaymentMethod.CARD)


def test_payment_method_locked_once_ready() -> None:
    with pytest.raises(PaymentMethodLockedError):
        plan_update(OrderStatus.READY, PaymentMethod.CASH, None, PaymentMethod.BANKING)
    with pytest.raises(PaymentMethodLockedError):
        plan_update(OrderStatus.READY, PaymentMethod.CASH, OrderStatus.READY, PaymentMethod.BANKING)


def test_payment_method_accompanies_status_change_from_ready() -> None:
    status, payment = plan_update(OrderStatus.READY, None, OrderStatus.COMPLETED, PaymentMethod.CASH)
    assert (status, payment) == (OrderStatus.COMPLETED, PaymentMethod.CASH)


def test_same_status_is_a_no_op() -> None:
    assert plan_update(OrderStatus.READY, None, OrderStatus.READY, None) == (OrderStatus.READY, None)


def test_status_flow_over_api_leaves_bill_untouched(client: TestClient) -> None:
    created = _create_order(client)
    order_id = created["order_id"]

    progress = client.patch(f"/v1/orders/{order_id}", json={"order_status": "progress", "user_id": "u-2"})
    assert progress.status_code == 200
    assert progress.json()["order_status"] == "progress"

    no_payment = client.patch(f"/v1/orders/{order_id}", json={"order_status": "completed"})
    assert no_payment.status_code == 409

    done = client.patch(
        f"/v1/orders/{order_id}", json={"order_status": "completed", "payment_method": "Banking"}
    )
    assert done.status_code == 200
    data = done.json()
    assert data["order_status"] == "completed"
    assert data["payment_method"] == "Banking"
    assert data["document"] == created["document"]

    reopened = client.patch(f"/v1/orders/{order_id}", json={"order_status": "pending"})
    assert reopened.status_code == 409

    events = client.get(f"/v1/orders/{order_id}/events").json()
    types = [e["event_type"] for e in events]
    assert types[0] == "ORDER_CREATED"
    assert types.count("ORDER_STATUS_CHANGED") == 2
    assert types.count("ORDER_PAYMENT_UPDATED") == 1
    assert all(e["entity_id"] == order_id for e in events)


def test_update_requires_a_field(client: TestClient) -> None:
    order_id = _create_order(client)["order_id"]
    assert client.patch(f"/v1/orders/{order_id}", json={}).status_code == 422


def test_update_missing_order(client: TestClient) -> None:
    response = client.patch("/v1/orders/missing", json={"order_status": "progress"})
    assert response.status_code == 404
    assert client.get("/v1/orders/missing/events").status_code == 404


def test_payment_method_update_on_pending_order(client: TestClient) -> None:
    order_id = _create_order(client, payment_method="Cash")["order_id"]

    response = client.patch(f"/v1/orders/{order_id}", json={"payment_method": "Card"})
    assert response.status_code == 200
    assert response.json()["payment_method"] == "Card"
    assert response.json()["order_status"] == "pending"


def test_ready_order_completes_with_payment_method(client: TestClient) -> None:
    order_id = _create_order(client)["order_id"]
    for status in ("progress", "ready"):
        assert client.patch(f"/v1/orders/{order_id}", json={"order_status": status}).status_code == 200

    locked = client.patch(f"/v1/orders/{order_id}", json={"payment_method": "Cash"})
    assert locked.status_code == 409

    done = client.patch(f"/v1/orders/{order_id}", json={"order_status": "completed", "payment_method": "Cash"})
    assert done.status_code == 200
    assert done.json()["order_status"] == "completed"
    assert done.json()["payment_method"] == "Cash"
