from sqlalchemy import select

from menumagic.models.brand_kit import BrandKit
from menumagic.models.digital_menu import DigitalMenu


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


def _create_template(client, name: str, **style) -> dict:
    res = client.post("/menu-templates", json={"name": name, "template_data_json": style})
    assert res.status_code == 201, res.text
    return res.json()


def test_template_crud_and_name_conflicts(test_context):
    client, _ = test_context
    _register(client, email="templates@example.com")

    created = _create_template(client, "Patio", primary_color="#0EA5E9", layout_style="grid")
    assert created["is_default"] is False
    assert created["template_data_json"] == {"primary_color": "#0EA5E9", "layout_style": "grid"}

    duplicate = client.post("/menu-templates", json={"name": "patio"})
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "conflict"

    bad_color = client.post("/menu-templates", json={"name": "Neon", "template_data_json": {"primary_color": "red"}})
    assert bad_color.status_code == 422
    unknown_key = client.post("/menu-templates", json={"name": "Neon", "template_data_json": {"glow": True}})
    assert unknown_key.status_code == 422

    other = _create_template(client, "Winter")
    renamed_onto_existing = client.patch(f"/menu-templates/{other['id']}", json={"name": "Patio"})
    assert renamed_onto_existing.status_code == 409

    patched = client.patch(
        f"/menu-templates/{created['id']}",
        json={"description": "  Outdoor seating  ", "template_data_json": {"spacing": "compact"}},
    )
    assert patched.status_code == 200, patched.text
    body = patched.json()
    assert body["name"] == "Patio"
    assert body["description"] == "Outdoor seating"
    assert body["template_data_json"] == {"spacing": "compact"}

    listed = client.get("/menu-templates").json()
    assert [t["name"] for t in listed] == ["Patio", "Winter"]
    assert "template_data_json" not in listed[0]

    assert client.get(f"/menu-templates/{created['id']}").json()["template_data_json"] == {"spacing": "compact"}
    assert client.get("/menu-templates/9999").status_code == 404


def test_seed_defaults_runs_once(test_context):
    client, _ = test_context
    _register(client, email="seed@example.com")
    _create_template(client, "Classic Elegant", primary_color="#000000")

    first = client.post("/menu-templates/seed-defaults")
    assert first.status_code == 200, first.text
    seeded = first.json()
    # The custom template keeps its name; only the missing default is added.
    assert [t["name"] for t in seeded] == ["Modern Vibrant"]
    assert seeded[0]["is_default"] is True
    assert seeded[0]["template_data_json"]["primary_color"] == "#7C3AED"
    assert seeded[0]["template_data_json"]["font_family_secondary"] == "Poppins"

    again = client.post("/menu-templates/seed-defaults")
    assert again.status_code == 200
    assert again.json() == []

    listed = client.get("/menu-templates").json()
    assert [(t["name"], t["is_default"]) for t in listed] == [
        ("Modern Vibrant", True),
        ("Classic Elegant", False),
    ]


def test_apply_template_to_menu_and_delete_unlinks(test_context):
    client, session_local = test_context
    _register(client, email="apply@example.com")
    seeded = client.post("/menu-templates/seed-defaults").json()
    classic = next(t for t in seeded if t["name"] == "Classic Elegant")

    menu = client.post("/digital-menus", json={"name": "Dinner", "template_id": classic["id"]})
    assert menu.status_code == 201, menu.text
    menu_id = menu.json()["id"]
    assert menu.json()["template_id"] == classic["id"]

    custom = _create_template(client, "Brunch", accent_color="#F97316")
    applied = client.put(f"/digital-menus/{menu_id}/template", json={"template_id": custom["id"]})
    assert applied.status_code == 200, applied.text
    assert applied.json()["template_id"] == custom["id"]

    assert client.put(f"/digital-menus/{menu_id}/template", json={"template_id": 9999}).status_code == 404

    assert client.delete(f"/menu-templates/{custom['id']}").status_code == 200
    assert client.get(f"/menu-templates/{custom['id']}").status_code == 404
    assert client.get(f"/digital-menus/{menu_id}").json()["template_id"] is None

    db = session_local()
    try:
        stored = db.execute(select(DigitalMenu).where(DigitalMenu.id == menu_id)).scalar_one()
        assert stored.template_id is None
    finally:
        db.close()

    reapplied = client.put(f"/digital-menus/{menu_id}/template", json={"template_id": classic["id"]})
    assert reapplied.json()["template_id"] == classic["id"]
    cleared = client.put(f"/digital-menus/{menu_id}/template", json={"template_id": None})
    assert cleared.status_code == 200
    assert cleared.json()["template_id"] is None


def test_templates_are_scoped_to_their_restaurant(test_context):
    client, _ = test_context
    _register(client, email="tenant-a@example.com", name="Alpha")
    template = _create_template(client, "Alpha Look")
    client.cookies.clear()

    _register(client, email="tenant-b@example.com", name="Beta")
    assert client.get("/menu-templates").json() == []
    assert client.get(f"/menu-templates/{template['id']}").status_code == 404
    assert client.patch(f"/menu-templates/{template['id']}", json={"name": "Stolen"}).status_code == 404
    assert client.delete(f"/menu-templates/{template['id']}").status_code == 404

    menu = client.post("/digital-menus", json={"name": "Beta menu"}).json()
    foreign = client.put(f"/digital-menus/{menu['id']}/template", json={"template_id": template["id"]})
    assert foreign.status_code == 404
    assert client.post("/digital-menus", json={"name": "Other", "template_id": template["id"]}).status_code == 404

    # Same name is free in another restaurant.
    _create_template(client, "Alpha Look")


def test_brand_kit_defaults_and_update(test_context):
    client, session_local = test_context
    registered = _register(client, email="brand@example.com")

    first = client.get("/brand-kit")
    assert first.status_code == 200, first.text
    body = first.json()
    assert body["primary_color_hex"] == "#F59E0B"
    assert body["secondary_colors"] == []
    assert body["font_family_main"] == "Inter"
    assert body["font_family_secondary"] == "Lora"
    assert body["logo_url"] is None

    # Reading twice keeps a single row.
    assert client.get("/brand-kit").status_code == 200

    patched = client.patch(
        "/brand-kit",
        json={
            "primary_color_hex": "#1f2937",
            "secondary_colors": ["#ffffff", "#D97706"],
            "logo_url": "https://cdn.example.com/logo.png",
        },
    )
    assert patched.status_code == 200, patched.text
    kit = patched.json()
    assert kit["primary_color_hex"] == "#1F2937"
    assert kit["secondary_colors"] == ["#FFFFFF", "#D97706"]
    assert kit["logo_url"] == "https://cdn.example.com/logo.png"
    assert kit["font_family_main"] == "Inter"

    assert client.patch("/brand-kit", json={"primary_color_hex": "orange"}).status_code == 422
    assert client.patch("/brand-kit", json={"secondary_colors": ["#12345"]}).status_code == 422

    cleared = client.patch("/brand-kit", json={"logo_url": None, "primary_color_hex": None})
    assert cleared.status_code == 200
    assert cleared.json()["logo_url"] is None
    assert cleared.json()["primary_color_hex"] == "#1F2937"

    db = session_local()
    try:
        rows = db.execute(
            select(BrandKit).where(BrandKit.restaurant_id == registered["restaurant_id"])
        ).scalars().all()
    finally:
        db.close()
    assert len(rows) == 1


def test_public_menu_carries_template_and_brand(test_context):
    client, session_local = test_context
    registered = _register(client, email="public-style@example.com")
    dish = client.post("/dishes", json={"name": "Tart", "price": 6}).json()
    menu = client.post("/digital-menus", json={"name": "Desserts", "is_active": True, "dish_ids": [dish["id"]]}).json()

    # No kit yet: the guest view is unbranded and does not create one.
    plain = client.get(f"/menu/{menu['id']}").json()
    assert plain["template"] is None
    assert plain["brand"] is None
    db = session_local()
    try:
        assert db.execute(
            select(BrandKit.id).where(BrandKit.restaurant_id == registered["restaurant_id"])
        ).first() is None
    finally:
        db.close()

    template = _create_template(client, "Pastel", background_color="#FDF2F8", show_prices=False)
    client.put(f"/digital-menus/{menu['id']}/template", json={"template_id": template["id"]})
    client.patch("/brand-kit", json={"logo_url": "https://cdn.example.com/tart.png"})

    client.cookies.clear()
    styled = client.get(f"/menu/{menu['id']}")
    assert styled.status_code == 200, styled.text
    body = styled.json()
    assert body["template"] == {"background_color": "#FDF2F8", "show_prices": False}
    assert body["brand"]["logo_url"] == "https://cdn.example.com/tart.png"
    assert body["brand"]["primary_color_hex"] == "#F59E0B"
    assert body["categories"][0]["dishes"][0]["name"] == "Tart"
