from decimal import Decimal

import pytest
from sqlalchemy import func, select, text

from menumagic.core.config import settings
from menumagic.core.errors import PersistenceFailed, ValidationFailed
from menumagic.db.transaction import transaction
from menumagic.models.inventory import InventoryAdjustment, InventoryStockLevel
from menumagic.services import inventory_service


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


def _create_ingredient(client, name: str = "Tomato", **fields) -> dict:
    payload = {"name": name, "storage_unit": "kg", "cost_per_unit": 2.0}
    payload.update(fields)
    res = client.post("/ingredients", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def _adjust(client, ingredient_id: int, quantity, reason_code: str = "restock", notes: str | None = None):
    return client.post(
        "/inventory/adjustments",
        json={
            "ingredient_id": ingredient_id,
            "quantity": quantity,
            "reason_code": reason_code,
            "notes": notes,
        },
    )


def test_restock_then_waste_leaves_seventy(test_context):
    client, _ = test_context
    _register(client, email="inv@example.com")
    ingredient = _create_ingredient(client)

    first = _adjust(client, ingredient["id"], 100, "restock")
    assert first.status_code == 201, first.text
    assert first.json()["current_quantity"] == 100.0

    second = _adjust(client, ingredient["id"], -30, "waste")
    assert second.status_code == 201, second.text
    assert second.json()["current_quantity"] == 70.0

    history = client.get(f"/inventory/ingredients/{ingredient['id']}/history")
    assert history.status_code == 200, history.text
    body = history.json()
    assert body["current_quantity"] == 70.0
    assert [item["quantity_adjusted"] for item in body["items"]] == [-30.0, 100.0]
    assert [item["reason_code"] for item in body["items"]] == ["waste", "restock"]


def test_stock_level_equals_sum_of_adjustments(test_context):
    client, session_local = test_context
    _register(client, email="sum@example.com")
    ingredient = _create_ingredient(client)

    deltas = [12.5, -2.25, 40, -10.125, 3, -0.5]
    for delta in deltas:
        res = _adjust(client, ingredient["id"], delta, "count_correction")
        assert res.status_code == 201, res.text

    db = session_local()
    try:
        logged = db.execute(
            select(func.sum(InventoryAdjustment.quantity_adjusted)).where(
                InventoryAdjustment.ingredient_id == ingredient["id"]
            )
        ).scalar_one()
        level = db.execute(
            select(InventoryStockLevel.current_quantity_in_storage_units).where(
                InventoryStockLevel.ingredient_id == ingredient["id"]
            )
        ).scalar_one()
        assert Decimal(str(level)).quantize(Decimal("0.001")) == Decimal("42.625")
        assert Decimal(str(logged)).quantize(Decimal("0.001")) == Decimal("42.625")
        assert db.execute(select(func.count(InventoryStockLevel.id))).scalar_one() == 1
    finally:
        db.close()


def test_zero_quantity_is_rejected(test_context):
    client, _ = test_context
    _register(client, email="zero@example.com")
    ingredient = _create_ingredient(client)

    res = _adjust(client, ingredient["id"], 0)
    assert res.status_code == 422
    assert res.json()["error"]["code"] == "validation_error"


def test_reason_code_is_trimmed_and_lowercased(test_context):
    client, _ = test_context
    _register(client, email="reason@example.com")
    ingredient = _create_ingredient(client)

    res = _adjust(client, ingredient["id"], 5, "  ReStock ", notes="Morning delivery")
    assert res.status_code == 201, res.text
    adjustment = res.json()["adjustment"]
    assert adjustment["reason_code"] == "restock"
    assert adjustment["notes"] == "Morning delivery"
    assert adjustment["user_id"] is not None


def test_negative_stock_rejected_unless_enabled(test_context):
    client, session_local = test_context
    _register(client, email="neg@example.com")
    ingredient = _create_ingredient(client)
    assert _adjust(client, ingredient["id"], 5).status_code == 201

    res = _adjust(client, ingredient["id"], -8, "waste")
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Insufficient stock"

    db = session_local()
    try:
        count = db.execute(
            select(func.count(InventoryAdjustment.id)).where(
                InventoryAdjustment.ingredient_id == ingredient["id"]
            )
        ).scalar_one()
        assert count == 1
    finally:
        db.close()

    settings.inventory_allow_negative_stock = True
    allowed = _adjust(client, ingredient["id"], -8, "waste")
    assert allowed.status_code == 201, allowed.text
    assert allowed.json()["current_quantity"] == -3.0


def test_adjusting_another_restaurants_ingredient_is_404(test_context):
    client, _ = test_context
    _register(client, email="first@example.com")
    ingredient = _create_ingredient(client)
    client.cookies.clear()

    _register(client, email="second@example.com", name="Rival")
    res = _adjust(client, ingredient["id"], 10)
    assert res.status_code == 404
    assert client.get(f"/inventory/ingredients/{ingredient['id']}/history").status_code == 404


def test_history_limit_bounds(test_context):
    client, _ = test_context
    _register(client, email="limit@example.com")
    ingredient = _create_ingredient(client)
    for _ in range(3):
        assert _adjust(client, ingredient["id"], 1).status_code == 201

    res = client.get(f"/inventory/ingredients/{ingredient['id']}/history", params={"limit": 2})
    assert res.status_code == 200
    assert len(res.json()["items"]) == 2

    assert client.get(
        f"/inventory/ingredients/{ingredient['id']}/history", params={"limit": 0}
    ).status_code == 422
    assert client.get(
        f"/inventory/ingredients/{ingredient['id']}/history", params={"limit": 201}
    ).status_code == 422


def test_levels_flag_low_stock_and_value(test_context):
    client, _ = test_context
    _register(client, email="levels@example.com")
    flour = _create_ingredient(
        client,
        "Flour",
        purchase_unit="bag",
        conversion_factor=25,
        purchase_unit_cost=50,
        cost_per_unit=None,
        low_stock_threshold=10,
    )
    _create_ingredient(client, "Salt", cost_per_unit=0.5)
    assert _adjust(client, flour["id"], 8).status_code == 201

    res = client.get("/inventory/levels")
    assert res.status_code == 200, res.text
    levels = {row["ingredient_name"]: row for row in res.json()}
    assert levels["Flour"]["current_quantity"] == 8.0
    assert levels["Flour"]["storage_unit_cost"] == 2.0
    assert levels["Flour"]["stock_value"] == 16.0
    assert levels["Flour"]["is_low_stock"] is True
    assert levels["Salt"]["current_quantity"] == 0.0
    assert levels["Salt"]["is_low_stock"] is False

    low = client.get("/inventory/levels/low")
    assert [row["ingredient_name"] for row in low.json()] == ["Flour"]


def test_recent_history_includes_names(test_context):
    client, _ = test_context
    _register(client, email="recent@example.com", name="Chef")
    tomato = _create_ingredient(client, "Tomato")
    basil = _create_ingredient(client, "Basil")
    assert _adjust(client, tomato["id"], 4).status_code == 201
    assert _adjust(client, basil["id"], 1).status_code == 201

    res = client.get("/inventory/history", params={"limit": 10})
    assert res.status_code == 200, res.text
    rows = res.json()
    assert [row["ingredient_name"] for row in rows] == ["Basil", "Tomato"]
    assert all(row["user_name"] == "Chef" for row in rows)


def test_failed_transaction_leaves_stock_untouched(test_context):
    client, session_local = test_context
    registered = _register(client, email="rollback@example.com")
    ingredient = _create_ingredient(client)
    assert _adjust(client, ingredient["id"], 10).status_code == 201

    db = session_local()
    try:
        with pytest.raises(RuntimeError):
            with transaction(db, action="record inventory adjustment"):
                inventory_service.adjust(
                    db,
                    restaurant_id=registered["restaurant_id"],
                    ingredient_id=ingredient["id"],
                    quantity=Decimal("5"),
                    reason_code="restock",
                )
                raise RuntimeError("crash after adjust")

        assert inventory_service.get_current_quantity(db, ingredient_id=ingredient["id"]) == Decimal("10.000")
        count = db.execute(
            select(func.count(InventoryAdjustment.id)).where(
                InventoryAdjustment.ingredient_id == ingredient["id"]
            )
        ).scalar_one()
        assert count == 1
    finally:
        db.close()


def test_database_errors_surface_as_persistence_failed(test_context):
    _, session_local = test_context
    db = session_local()
    try:
        with pytest.raises(PersistenceFailed) as exc_info:
            with transaction(db, action="record inventory adjustment"):
                db.execute(text("INSERT INTO no_such_table VALUES (1)"))
        assert exc_info.value.code == "persistence_error"
        assert exc_info.value.message == "Failed to record inventory adjustment"
    finally:
        db.close()


def test_service_rejects_zero_quantity(test_context):
    client, session_local = test_context
    registered = _register(client, email="svc@example.com")
    ingredient = _create_ingredient(client)

    db = session_local()
    try:
        with pytest.raises(ValidationFailed):
            inventory_service.adjust(
                db,
                restaurant_id=registered["restaurant_id"],
                ingredient_id=ingredient["id"],
                quantity=Decimal("0"),
                reason_code="restock",
            )
    finally:
        db.close()
