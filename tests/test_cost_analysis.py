from decimal import Decimal

from menumagic.services.costing_service import cost_analysis


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
    payload = {"name": name, "storage_unit": "kg"}
    payload.update(fields)
    res = client.post("/ingredients", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def _create_recipe(client, name: str, selling_price, lines) -> dict:
    payload = {
        "name": name,
        "ingredients": [{"ingredient_id": ingredient_id, "quantity": quantity} for ingredient_id, quantity in lines],
    }
    if selling_price is not None:
        payload["selling_price"] = selling_price
    res = client.post("/recipes", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def _seed(client) -> None:
    tomato = _create_ingredient(
        client, "Tomato", purchase_unit="case", purchase_unit_cost=25, conversion_factor=10
    )
    basil = _create_ingredient(client, "Basil", cost_per_unit=40)
    _create_ingredient(client, "Unused", cost_per_unit=1)
    _create_recipe(client, "Salad", 10, [(tomato["id"], 0.4), (basil["id"], 0.05)])
    _create_recipe(client, "Soup", 5, [(tomato["id"], 1)])
    _create_recipe(client, "Test batch", None, [(tomato["id"], 0.2)])


def test_cost_analysis_ranks_recipes_by_margin(test_context):
    client, _ = test_context
    _register(client, email="analysis@example.com")
    _seed(client)

    res = client.get("/costs/analysis")
    assert res.status_code == 200, res.text
    body = res.json()

    assert [
        (row["recipe_name"], row["total_cost"], row["margin_percentage"]) for row in body["recipes"]
    ] == [
        ("Salad", 3.0, 70.0),
        ("Soup", 2.5, 50.0),
        ("Test batch", 0.5, None),
    ]
    salad = body["recipes"][0]
    assert salad["profit"] == 7.0
    assert salad["ingredient_count"] == 2
    assert salad["is_cost_complete"] is True
    assert body["recipes"][2]["selling_price"] is None
    assert body["recipes"][2]["profit"] is None


def test_cost_analysis_ingredient_usage_and_summary(test_context):
    client, _ = test_context
    _register(client, email="analysis-summary@example.com")
    _seed(client)

    body = client.get("/costs/analysis").json()
    assert [
        (row["ingredient_name"], row["storage_unit_cost"], row["recipe_count"]) for row in body["ingredients"]
    ] == [
        ("Basil", 40.0, 1),
        ("Tomato", 2.5, 3),
        ("Unused", 1.0, 0),
    ]
    assert body["summary"] == {
        "total_recipes": 3,
        "total_ingredients": 3,
        "average_recipe_cost": 2.0,
        "average_margin_percentage": 60.0,
        "total_recipe_cost": 6.0,
    }


def test_cost_analysis_for_empty_restaurant(test_context):
    client, session_local = test_context
    registered = _register(client, email="analysis-empty@example.com")

    body = client.get("/costs/analysis").json()
    assert body["recipes"] == []
    assert body["ingredients"] == []
    assert body["summary"]["average_recipe_cost"] == 0.0
    assert body["summary"]["average_margin_percentage"] is None

    db = session_local()
    try:
        report = cost_analysis(db, restaurant_id=registered["restaurant_id"])
    finally:
        db.close()
    assert report["summary"]["total_recipe_cost"] == Decimal("0.00")


def test_cost_analysis_is_scoped_to_restaurant(test_context):
    client, _ = test_context
    _register(client, email="analysis-a@example.com")
    _seed(client)
    client.cookies.clear()

    _register(client, email="analysis-b@example.com", name="Other")
    body = client.get("/costs/analysis").json()
    assert body["recipes"] == []
    assert body["summary"]["total_ingredients"] == 0

    client.cookies.clear()
    assert client.get("/costs/analysis").status_code == 401
