from sqlalchemy import select

from menumagic.models.audit_log import AuditLog


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


def _create_ingredient(client, name: str, **fields) -> dict:
    payload = {"name": name, "storage_unit": "kg", "cost_per_unit": 1}
    payload.update(fields)
    res = client.post("/ingredients", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def test_restaurant_profile_read_and_update(test_context):
    client, _ = test_context
    registered = _register(client, email="profile@example.com", name="Mario")

    res = client.get("/restaurant")
    assert res.status_code == 200, res.text
    assert res.json()["id"] == registered["restaurant_id"]
    assert res.json()["name"] == "Mario Bistro"
    assert res.json()["owner_user_id"] == registered["user"]["id"]

    updated = client.patch(
        "/restaurant",
        json={"name": "Mario's", "currency_code": "usd", "cuisine_type": "  Italian  "},
    )
    assert updated.status_code == 200, updated.text
    body = updated.json()
    assert body["name"] == "Mario's"
    assert body["currency_code"] == "USD"
    assert body["cuisine_type"] == "Italian"


def test_categories_are_ordered_and_reorderable(test_context):
    client, _ = test_context
    _register(client, email="categories@example.com")
    ids = []
    for name in ("Produce", "Dairy", "Dry goods"):
        res = client.post("/categories", json={"name": name, "type": "ingredient"})
        assert res.status_code == 201, res.text
        ids.append(res.json()["id"])
    assert [c["order_index"] for c in client.get("/categories?type=ingredient").json()] == [0, 1, 2]

    dish_category = client.post("/categories", json={"name": "Mains", "type": "dish"}).json()
    assert dish_category["order_index"] == 0

    reordered = client.post(
        "/categories/reorder",
        json={"type": "ingredient", "category_ids": [ids[2], ids[0], ids[1]]},
    )
    assert reordered.status_code == 200, reordered.text
    listed = client.get("/categories", params={"type": "ingredient"}).json()
    assert [c["name"] for c in listed] == ["Dry goods", "Produce", "Dairy"]

    partial = client.post("/categories/reorder", json={"type": "ingredient", "category_ids": ids[:2]})
    assert partial.status_code == 409
    duplicated = client.post(
        "/categories/reorder",
        json={"type": "ingredient", "category_ids": [ids[0], ids[0], ids[1]]},
    )
    assert duplicated.status_code == 400
    assert client.post("/categories", json={"name": "Bad", "type": "drinks"}).status_code == 422


def test_deleting_category_uncategorizes_ingredients(test_context):
    client, _ = test_context
    _register(client, email="uncategorize@example.com")
    category = client.post("/categories", json={"name": "Herbs", "type": "ingredient"}).json()
    basil = _create_ingredient(client, "Basil", category_id=category["id"])
    assert basil["category_name"] == "Herbs"

    renamed = client.patch(f"/categories/{category['id']}", json={"name": "Fresh herbs"})
    assert renamed.status_code == 200
    assert client.get(f"/ingredients/{basil['id']}").json()["category_name"] == "Fresh herbs"

    assert client.delete(f"/categories/{category['id']}").status_code == 200
    detail = client.get(f"/ingredients/{basil['id']}").json()
    assert detail["category_id"] is None
    assert detail["category_name"] is None


def test_supplier_lifecycle_unlinks_ingredients(test_context):
    client, _ = test_context
    _register(client, email="suppliers@example.com")
    created = client.post("/suppliers", json={"name": "Fresh Farms", "email": "orders@farm.example"})
    assert created.status_code == 201, created.text
    supplier = created.json()
    assert supplier["status"] == "active"
    assert supplier["ingredient_count"] == 0

    _create_ingredient(
        client,
        "Tomato",
        supplier_id=supplier["id"],
        cost_per_unit=None,
        purchase_unit="case",
        purchase_unit_cost=25,
        conversion_factor=10,
    )
    listed = client.get("/suppliers").json()
    assert listed[0]["ingredient_count"] == 1

    detail = client.get(f"/suppliers/{supplier['id']}").json()
    assert detail["ingredients"][0]["name"] == "Tomato"
    assert detail["ingredients"][0]["storage_unit_cost"] == 2.5

    patched = client.patch(f"/suppliers/{supplier['id']}", json={"status": "inactive"})
    assert patched.status_code == 200, patched.text
    assert patched.json()["status"] == "inactive"

    assert client.delete(f"/suppliers/{supplier['id']}").status_code == 200
    assert client.get(f"/suppliers/{supplier['id']}").status_code == 404
    tomato = client.get("/ingredients").json()[0]
    assert tomato["supplier_id"] is None


def test_ingredient_requires_a_cost_source(test_context):
    client, _ = test_context
    _register(client, email="cost-source@example.com")

    missing = client.post("/ingredients", json={"name": "Salt", "storage_unit": "kg"})
    assert missing.status_code == 422
    assert missing.json()["error"]["code"] == "validation_error"

    half = client.post(
        "/ingredients",
        json={"name": "Salt", "storage_unit": "kg", "purchase_unit_cost": 3},
    )
    assert half.status_code == 422

    converted = _create_ingredient(
        client,
        "Flour",
        cost_per_unit=None,
        purchase_unit="bag",
        purchase_unit_cost=30,
        conversion_factor=25,
    )
    assert converted["storage_unit_cost"] == 1.2
    assert converted["purchase_unit_cost"] == 30.0


def test_cost_update_cannot_leave_ingredient_without_cost(test_context):
    client, session_local = test_context
    _register(client, email="cost-keep@example.com")
    converted = _create_ingredient(
        client,
        "Rice",
        cost_per_unit=None,
        purchase_unit="sack",
        purchase_unit_cost=10,
        conversion_factor=5,
    )
    direct = _create_ingredient(client, "Pepper", cost_per_unit=1)

    dropped_factor = client.put(
        f"/ingredients/{converted['id']}/cost",
        json={"purchase_unit_cost": 8, "conversion_factor": None},
    )
    assert dropped_factor.status_code == 400, dropped_factor.text
    assert dropped_factor.json()["error"]["code"] == "bad_request"

    dropped_unit_cost = client.put(
        f"/ingredients/{direct['id']}/cost",
        json={"purchase_unit_cost": 3, "cost_per_unit": None},
    )
    assert dropped_unit_cost.status_code == 400, dropped_unit_cost.text

    # Nothing from the rejected updates was written.
    rice = client.get(f"/ingredients/{converted['id']}").json()
    assert rice["purchase_unit_cost"] == 10.0
    assert rice["conversion_factor"] == 5.0
    assert rice["storage_unit_cost"] == 2.0
    pepper = client.get(f"/ingredients/{direct['id']}").json()
    assert pepper["cost_per_unit"] == 1.0
    assert pepper["purchase_unit_cost"] is None

    db = session_local()
    try:
        actions = db.execute(select(AuditLog.action)).scalars().all()
    finally:
        db.close()
    assert "ingredient.cost_update" not in actions

    switched = client.put(
        f"/ingredients/{direct['id']}/cost",
        json={"purchase_unit_cost": 3, "conversion_factor": 2, "cost_per_unit": None},
    )
    assert switched.status_code == 200, switched.text
    assert switched.json()["storage_unit_cost"] == 1.5
    assert switched.json()["cost_per_unit"] is None


def test_ingredient_names_are_unique_per_restaurant(test_context):
    client, _ = test_context
    _register(client, email="unique-a@example.com")
    _create_ingredient(client, "Olive Oil")
    duplicate = client.post("/ingredients", json={"name": "olive oil", "storage_unit": "l", "cost_per_unit": 9})
    assert duplicate.status_code == 409
    client.cookies.clear()

    _register(client, email="unique-b@example.com", name="Other")
    _create_ingredient(client, "Olive Oil")


def test_ingredient_delete_guards_history(test_context):
    client, _ = test_context
    _register(client, email="delete-guard@example.com")
    used = _create_ingredient(client, "Butter")
    unused = _create_ingredient(client, "Cream")

    res = client.post(
        "/inventory/adjustments",
        json={"ingredient_id": used["id"], "quantity": 5, "reason_code": "purchase"},
    )
    assert res.status_code == 201, res.text

    blocked = client.delete(f"/ingredients/{used['id']}")
    assert blocked.status_code == 409
    assert blocked.json()["error"]["code"] == "conflict"

    assert client.delete(f"/ingredients/{unused['id']}").status_code == 200
    assert client.get(f"/ingredients/{unused['id']}").status_code == 404
    assert client.get(f"/ingredients/{used['id']}").json()["current_quantity"] == 5.0


def test_dish_reports_recipe_cost_and_margin(test_context):
    client, _ = test_context
    _register(client, email="dishes@example.com")
    cheese = _create_ingredient(client, "Mozzarella", cost_per_unit=8)
    recipe = client.post(
        "/recipes",
        json={"name": "Pizza base", "ingredients": [{"ingredient_id": cheese["id"], "quantity": 0.375}]},
    ).json()

    created = client.post("/dishes", json={"name": "Margherita", "price": 12, "recipe_id": recipe["id"]})
    assert created.status_code == 201, created.text
    dish = created.json()
    assert dish["cost_per_serving"] == 3.0
    assert dish["margin_percentage"] == 75.0

    plain = client.post("/dishes", json={"name": "Water", "price": 2}).json()
    assert plain["cost_per_serving"] is None
    assert plain["margin_percentage"] is None

    patched = client.patch(f"/dishes/{dish['id']}", json={"price": 15})
    assert patched.status_code == 200, patched.text
    assert patched.json()["margin_percentage"] == 80.0

    assert [d["name"] for d in client.get("/dishes").json()] == ["Margherita", "Water"]
    assert client.post("/dishes", json={"name": "Ghost", "price": 1, "recipe_id": 9999}).status_code == 404


def test_dish_on_an_order_cannot_be_deleted(test_context):
    client, _ = test_context
    _register(client, email="dish-delete@example.com")
    sold = client.post("/dishes", json={"name": "Soup", "price": 6}).json()
    unsold = client.post("/dishes", json={"name": "Salad", "price": 7}).json()
    res = client.post("/pos/orders", json={"items": [{"dish_id": sold["id"], "quantity": 1}]})
    assert res.status_code == 201, res.text

    assert client.delete(f"/dishes/{sold['id']}").status_code == 409
    assert client.delete(f"/dishes/{unsold['id']}").status_code == 200
    assert client.get(f"/dishes/{unsold['id']}").status_code == 404
