from decimal import Decimal

import pytest
from sqlalchemy import select

from menumagic.core.errors import ValidationFailed
from menumagic.models.audit_log import AuditLog
from menumagic.models.order import Payment
from menumagic.services.order_service import compute_totals, ensure_transition_allowed


def _register(client, *, email: str, name: str = "Owner"):
    res = client.post(
        "/auth/register",
        json={
            "name": name,
            "email": email,
            "password": "password123",
            "restaurant_name": f"{name} Bistro",
        },
    )
    assert res.status_code == 201, res.text
    return res.json()


def _create_dish(client, name: str, price: float, **fields) -> dict:
    payload = {"name": name, "price": price}
    payload.update(fields)
    res = client.post("/dishes", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def _create_order(client, items: list[dict], **fields):
    payload = {"items": items}
    payload.update(fields)
    return client.post("/pos/orders", json=payload)


def test_compute_totals_example():
    totals = compute_totals([(2, Decimal("10")), (1, Decimal("5"))], tax_rate=0.16)
    assert totals.subtotal == Decimal("25.00")
    assert totals.tax == Decimal("4.00")
    assert totals.total == Decimal("29.00")


@pytest.mark.parametrize(
    "lines,discount",
    [
        ([(1, Decimal("0.99"))], Decimal("0")),
        ([(3, Decimal("3.33")), (2, Decimal("1.05"))], Decimal("1.50")),
        ([(7, Decimal("12.49"))], Decimal("10")),
    ],
)
def test_total_is_subtotal_plus_rounded_tax_minus_discount(lines, discount):
    totals = compute_totals(lines, discount=discount, tax_rate=0.16)
    subtotal = sum((price * qty for qty, price in lines), Decimal("0"))
    expected_tax = (subtotal * Decimal("0.16")).quantize(Decimal("0.01"))
    assert totals.tax == expected_tax
    assert totals.total == subtotal + expected_tax - discount


def test_discount_cannot_exceed_order_total():
    with pytest.raises(ValidationFailed):
        compute_totals([(1, Decimal("10"))], discount=Decimal("11.61"), tax_rate=0.16)
    assert compute_totals([(1, Decimal("10"))], discount=Decimal("11.60"), tax_rate=0.16).total == Decimal("0.00")


def test_transition_rules():
    ensure_transition_allowed("pending", "cancelled")
    ensure_transition_allowed("pending", "completed")
    with pytest.raises(ValidationFailed):
        ensure_transition_allowed("completed", "pending")
    with pytest.raises(ValidationFailed):
        ensure_transition_allowed("cancelled", "completed")


def test_create_order_computes_totals(test_context):
    client, _ = test_context
    _register(client, email="pos@example.com")
    burger = _create_dish(client, "Burger", 10)
    fries = _create_dish(client, "Fries", 5)

    res = _create_order(
        client,
        [{"dish_id": burger["id"], "quantity": 2}, {"dish_id": fries["id"], "quantity": 1}],
        customer_name="Walk-in",
        table_number="T4",
    )
    assert res.status_code == 201, res.text
    order = res.json()
    assert order["status"] == "pending"
    assert order["subtotal"] == 25.0
    assert order["tax"] == 4.0
    assert order["total"] == 29.0
    assert order["amount_paid"] == 0.0
    assert order["balance_due"] == 29.0
    assert [(item["dish_name"], item["line_total"]) for item in order["items"]] == [
        ("Burger", 20.0),
        ("Fries", 5.0),
    ]


def test_item_price_override_and_discount(test_context):
    client, _ = test_context
    _register(client, email="override@example.com")
    soup = _create_dish(client, "Soup", 8)

    res = _create_order(client, [{"dish_id": soup["id"], "quantity": 1, "price": 6.5}], discount=1.04)
    assert res.status_code == 201, res.text
    order = res.json()
    assert order["subtotal"] == 6.5
    assert order["tax"] == 1.04
    assert order["discount"] == 1.04
    assert order["total"] == 6.5


def test_order_with_foreign_dish_is_404(test_context):
    client, _ = test_context
    _register(client, email="mine@example.com")
    dish = _create_dish(client, "Secret", 9)
    client.cookies.clear()

    _register(client, email="theirs@example.com", name="Other")
    res = _create_order(client, [{"dish_id": dish["id"], "quantity": 1}])
    assert res.status_code == 404
    assert client.get("/pos/orders").json()["pagination"]["total"] == 0


def test_any_positive_payment_completes_order(test_context):
    client, session_local = test_context
    _register(client, email="pay@example.com")
    dish = _create_dish(client, "Pasta", 20)
    order = _create_order(client, [{"dish_id": dish["id"], "quantity": 1}]).json()

    res = client.post(f"/pos/orders/{order['id']}/payments", json={"amount": 5, "method": "card"})
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["order"]["status"] == "completed"
    assert body["order"]["payment_method"] == "card"
    assert body["order"]["amount_paid"] == 5.0
    assert body["order"]["balance_due"] == 18.2
    assert body["payment"]["status"] == "accepted"
    assert body["payment"]["reference_number"].startswith("PAY-")

    db = session_local()
    try:
        payments = db.execute(select(Payment).where(Payment.order_id == order["id"])).scalars().all()
        assert len(payments) == 1
        actions = db.execute(select(AuditLog.action).order_by(AuditLog.id)).scalars().all()
        assert "order.create" in actions
        assert "order.payment" in actions
    finally:
        db.close()


def test_payment_validation(test_context):
    client, _ = test_context
    _register(client, email="payval@example.com")
    dish = _create_dish(client, "Tea", 2)
    order = _create_order(client, [{"dish_id": dish["id"], "quantity": 1}]).json()

    assert client.post(
        f"/pos/orders/{order['id']}/payments", json={"amount": 0, "method": "cash"}
    ).status_code == 422
    assert client.post(
        f"/pos/orders/{order['id']}/payments", json={"amount": 1, "method": "barter"}
    ).status_code == 422
    assert client.post(
        "/pos/orders/9999/payments", json={"amount": 1, "method": "cash"}
    ).status_code == 404


def test_cancelled_order_rejects_payment(test_context):
    client, _ = test_context
    _register(client, email="cancel@example.com")
    dish = _create_dish(client, "Cake", 4)
    order = _create_order(client, [{"dish_id": dish["id"], "quantity": 1}]).json()

    cancelled = client.patch(f"/pos/orders/{order['id']}/status", json={"status": "cancelled"})
    assert cancelled.status_code == 200, cancelled.text
    assert cancelled.json()["status"] == "cancelled"

    res = client.post(f"/pos/orders/{order['id']}/payments", json={"amount": 4.64, "method": "cash"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "bad_request"

    reopen = client.patch(f"/pos/orders/{order['id']}/status", json={"status": "pending"})
    assert reopen.status_code == 400


def test_completed_order_cannot_be_cancelled(test_context):
    client, _ = test_context
    _register(client, email="done@example.com")
    dish = _create_dish(client, "Wine", 10)
    order = _create_order(client, [{"dish_id": dish["id"], "quantity": 1}]).json()
    client.post(f"/pos/orders/{order['id']}/payments", json={"amount": 11.6, "method": "cash"})

    res = client.patch(f"/pos/orders/{order['id']}/status", json={"status": "cancelled"})
    assert res.status_code == 400
    assert client.patch(
        f"/pos/orders/{order['id']}/status", json={"status": "shipped"}
    ).status_code == 400


def test_list_orders_filters_and_paginates(test_context):
    client, _ = test_context
    _register(client, email="list@example.com")
    dish = _create_dish(client, "Taco", 3)
    ids = [
        _create_order(client, [{"dish_id": dish["id"], "quantity": qty}]).json()["id"]
        for qty in (1, 2, 3)
    ]
    client.patch(f"/pos/orders/{ids[0]}/status", json={"status": "cancelled"})

    page = client.get("/pos/orders", params={"limit": 2})
    assert page.status_code == 200, page.text
    body = page.json()
    assert [item["id"] for item in body["items"]] == [ids[2], ids[1]]
    assert body["items"][0]["item_count"] == 3
    assert body["pagination"] == {"total": 3, "limit": 2, "offset": 0, "count": 2, "has_next": True}

    pending = client.get("/pos/orders", params={"status": "pending"}).json()
    assert {item["id"] for item in pending["items"]} == {ids[1], ids[2]}

    assert client.get("/pos/orders", params={"status": "lost"}).status_code == 400

    recent = client.get("/pos/orders/recent", params={"limit": 1}).json()
    assert [item["id"] for item in recent] == [ids[2]]

    detail = client.get(f"/pos/orders/{ids[1]}")
    assert detail.status_code == 200
    assert detail.json()["items"][0]["quantity"] == 2


def test_pos_dish_list_only_sellable(test_context):
    client, _ = test_context
    _register(client, email="sellable@example.com")
    _create_dish(client, "Soda", 2)
    _create_dish(client, "Staff Meal", 0)
    _create_dish(client, "Seasonal", 7, is_available=False)

    res = client.get("/pos/dishes")
    assert res.status_code == 200, res.text
    assert [dish["name"] for dish in res.json()] == ["Soda"]


def test_empty_order_is_rejected(test_context):
    client, _ = test_context
    _register(client, email="empty@example.com")
    assert _create_order(client, []).status_code == 422
