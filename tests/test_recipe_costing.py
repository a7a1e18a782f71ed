import random
from decimal import Decimal

from menumagic.services.costing_service import CostLine, margin_percentage, roll_up


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


def _line(ingredient_id: int, quantity: str, unit_cost: str | None) -> CostLine:
    return CostLine(
        ingredient_id=ingredient_id,
        ingredient_name=f"ingredient-{ingredient_id}",
        quantity=Decimal(quantity),
        unit=None,
        unit_cost=Decimal(unit_cost) if unit_cost is not None else None,
    )


def test_roll_up_sums_unit_cost_times_quantity():
    cost = roll_up([_line(1, "3", "2.00"), _line(2, "2", "1.50")])
    assert cost.total == Decimal("9.00")
    assert cost.is_complete is True


def test_roll_up_is_invariant_under_reordering():
    lines = [
        _line(1, "0.333", "1.2345"),
        _line(2, "1.125", "0.0199"),
        _line(3, "2", "3.3333"),
        _line(4, "0.005", "12.75"),
        _line(5, "7", None),
    ]
    expected = roll_up(lines).total
    rng = random.Random(1234)
    for _ in range(20):
        shuffled = lines[:]
        rng.shuffle(shuffled)
        assert roll_up(shuffled).total == expected


def test_missing_or_zero_cost_counts_as_zero_and_is_flagged():
    cost = roll_up([_line(1, "2", "4.00"), _line(2, "5", None), _line(3, "1", "0")])
    assert cost.total == Decimal("8.00")
    assert cost.missing_cost_ingredient_ids == [2, 3]
    assert cost.is_complete is False


def test_margin_percentage():
    assert margin_percentage(Decimal("12.00"), Decimal("9.00")) == Decimal("25.00")
    assert margin_percentage(Decimal("0"), Decimal("9.00")) is None
    assert margin_percentage(None, Decimal("9.00")) is None
    assert margin_percentage(Decimal("5.00"), Decimal("7.50")) == Decimal("-50.00")


def test_recipe_cost_via_api(test_context):
    client, _ = test_context
    _register(client, email="recipes@example.com")
    tomato = _create_ingredient(client, "Tomato", cost_per_unit=2.0)
    cheese = _create_ingredient(client, "Cheese", cost_per_unit=1.5)

    res = client.post(
        "/recipes",
        json={
            "name": "Caprese",
            "category": "Salads",
            "selling_price": 12.0,
            "allergens": ["dairy"],
            "ingredients": [
                {"ingredient_id": tomato["id"], "quantity": 3, "unit": "kg"},
                {"ingredient_id": cheese["id"], "quantity": 2, "unit": "kg"},
            ],
        },
    )
    assert res.status_code == 201, res.text
    recipe = res.json()
    assert recipe["total_cost"] == 9.0
    assert recipe["margin_percentage"] == 25.0
    assert recipe["is_cost_complete"] is True
    assert recipe["category_name"] == "Salads"
    assert recipe["ingredient_count"] == 2
    assert [line["line_cost"] for line in recipe["ingredients"]] == [6.0, 3.0]

    categories = client.get("/categories", params={"type": "recipe"}).json()
    assert [category["name"] for category in categories] == ["Salads"]

    listed = client.get("/recipes")
    assert listed.status_code == 200
    assert listed.json()[0]["total_cost"] == 9.0


def test_recipe_cost_follows_ingredient_cost_changes(test_context):
    client, _ = test_context
    _register(client, email="recost@example.com")
    flour = _create_ingredient(
        client, "Flour", purchase_unit="bag", conversion_factor=10, purchase_unit_cost=20
    )
    res = client.post(
        "/recipes",
        json={"name": "Bread", "selling_price": 5, "ingredients": [{"ingredient_id": flour["id"], "quantity": 0.5}]},
    )
    assert res.status_code == 201, res.text
    recipe_id = res.json()["id"]
    assert res.json()["total_cost"] == 1.0

    updated = client.put(f"/ingredients/{flour['id']}/cost", json={"purchase_unit_cost": 30})
    assert updated.status_code == 200, updated.text
    assert updated.json()["storage_unit_cost"] == 3.0

    assert client.get(f"/recipes/{recipe_id}").json()["total_cost"] == 1.5


def test_recipe_with_uncosted_ingredient_reports_it(test_context):
    client, _ = test_context
    _register(client, email="uncosted@example.com")
    saffron = _create_ingredient(client, "Saffron", cost_per_unit=0)
    rice = _create_ingredient(client, "Rice", cost_per_unit=1.2)

    res = client.post(
        "/recipes",
        json={
            "name": "Paella",
            "selling_price": 0,
            "ingredients": [
                {"ingredient_id": saffron["id"], "quantity": 0.01},
                {"ingredient_id": rice["id"], "quantity": 0.5},
            ],
        },
    )
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["total_cost"] == 0.6
    assert body["missing_cost_ingredient_ids"] == [saffron["id"]]
    assert body["is_cost_complete"] is False
    assert body["margin_percentage"] is None


def test_recipe_update_replaces_ingredient_links(test_context):
    client, _ = test_context
    _register(client, email="relink@example.com")
    a = _create_ingredient(client, "A", cost_per_unit=1)
    b = _create_ingredient(client, "B", cost_per_unit=4)

    created = client.post(
        "/recipes",
        json={"name": "Mix", "ingredients": [{"ingredient_id": a["id"], "quantity": 2}]},
    ).json()
    assert created["total_cost"] == 2.0

    updated = client.patch(
        f"/recipes/{created['id']}",
        json={"selling_price": 10, "ingredients": [{"ingredient_id": b["id"], "quantity": 1}]},
    )
    assert updated.status_code == 200, updated.text
    body = updated.json()
    assert [line["ingredient_id"] for line in body["ingredients"]] == [b["id"]]
    assert body["total_cost"] == 4.0
    assert body["margin_percentage"] == 60.0


def test_recipe_with_unknown_ingredient_is_404_and_not_created(test_context):
    client, _ = test_context
    _register(client, email="unknown@example.com")

    res = client.post(
        "/recipes",
        json={"name": "Ghost", "ingredients": [{"ingredient_id": 999, "quantity": 1}]},
    )
    assert res.status_code == 404
    assert client.get("/recipes").json() == []


def test_delete_recipe_removes_links(test_context):
    client, _ = test_context
    _register(client, email="delrecipe@example.com")
    a = _create_ingredient(client, "A", cost_per_unit=1)
    created = client.post(
        "/recipes",
        json={"name": "Temp", "ingredients": [{"ingredient_id": a["id"], "quantity": 1}]},
    ).json()

    assert client.delete(f"/recipes/{created['id']}").status_code == 200
    assert client.get(f"/recipes/{created['id']}").status_code == 404
    # Ingredient is free to delete once no recipe uses it.
    assert client.delete(f"/ingredients/{a['id']}").status_code == 200
