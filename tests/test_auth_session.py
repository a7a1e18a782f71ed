from datetime import datetime, timedelta, timezone

from jose import jwt
from sqlalchemy import select

from menumagic.core.config import settings
from menumagic.core.security import ALGORITHM, create_session_token, decode_session_token
from menumagic.models.restaurant import Restaurant
from menumagic.models.user import User


def _register(client, *, email: str, name: str = "Owner"):
    return client.post(
        "/auth/register",
        json={
            "name": name,
            "email": email,
            "password": "password123",
            "restaurant_name": f"{name} Bistro",
        },
    )


def test_register_sets_session_cookie_and_creates_restaurant(test_context):
    client, session_local = test_context

    res = _register(client, email="Owner@Example.com")
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["user"]["email"] == "owner@example.com"
    assert settings.session_cookie_name in res.cookies

    set_cookie = res.headers["set-cookie"].lower()
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie

    db = session_local()
    try:
        restaurant = db.execute(
            select(Restaurant).where(Restaurant.id == body["restaurant_id"])
        ).scalar_one()
        assert restaurant.name == "Owner Bistro"
        assert restaurant.owner_user_id == body["user"]["id"]
    finally:
        db.close()

    me = client.get("/auth/me")
    assert me.status_code == 200, me.text
    assert me.json()["id"] == body["user"]["id"]


def test_register_rejects_duplicate_email_case_insensitively(test_context):
    client, _ = test_context
    assert _register(client, email="dup@example.com").status_code == 201
    client.cookies.clear()

    res = _register(client, email="DUP@example.com")
    assert res.status_code == 409, res.text
    assert res.json()["error"]["code"] == "conflict"


def test_register_race_on_same_email_returns_conflict(test_context, monkeypatch):
    client, session_local = test_context
    # Both requests pass the pre-check, as two concurrent registrations would.
    monkeypatch.setattr("menumagic.routers.auth._email_taken", lambda db, email: False)

    assert _register(client, email="race@example.com").status_code == 201
    client.cookies.clear()

    res = _register(client, email="race@example.com", name="Second")
    assert res.status_code == 409, res.text
    assert res.json()["error"] == {
        "code": "conflict",
        "message": "Email already registered",
        "request_id": res.headers["X-Request-ID"],
        "path": "/auth/register",
        "details": None,
    }
    assert settings.session_cookie_name not in res.cookies

    db = session_local()
    try:
        restaurant_names = db.execute(select(Restaurant.name)).scalars().all()
    finally:
        db.close()
    # The losing registration's restaurant was rolled back with it.
    assert restaurant_names == ["Owner Bistro"]


def test_protected_route_without_session_returns_401_envelope(test_context):
    client, _ = test_context
    res = client.get("/ingredients")
    assert res.status_code == 401
    body = res.json()
    assert body["success"] is False
    assert body["error"]["code"] == "unauthorized"
    assert body["error"]["path"] == "/ingredients"
    assert res.headers["X-Request-ID"] == body["error"]["request_id"]


def test_session_probe_never_401(test_context):
    client, _ = test_context
    anonymous = client.get("/auth/session")
    assert anonymous.status_code == 200
    assert anonymous.json() == {"session": None}

    registered = _register(client, email="probe@example.com").json()
    probe = client.get("/auth/session")
    assert probe.status_code == 200
    session = probe.json()["session"]
    assert session["user_id"] == registered["user"]["id"]
    assert session["restaurant_id"] == registered["restaurant_id"]


def test_logout_clears_cookie(test_context):
    client, _ = test_context
    _register(client, email="bye@example.com")
    assert client.get("/auth/me").status_code == 200

    res = client.post("/auth/logout")
    assert res.status_code == 200
    assert res.json() == {"ok": True}
    assert client.get("/auth/me").status_code == 401


def test_login_with_wrong_password_then_rate_limited(test_context):
    client, _ = test_context
    _register(client, email="locked@example.com")
    client.cookies.clear()

    for _ in range(settings.auth_rate_limit_max_attempts):
        res = client.post("/auth/login", json={"email": "locked@example.com", "password": "wrong-pass"})
        assert res.status_code == 401

    blocked = client.post("/auth/login", json={"email": "locked@example.com", "password": "password123"})
    assert blocked.status_code == 429
    assert int(blocked.headers["Retry-After"]) > 0


def test_login_sets_cookie(test_context):
    client, _ = test_context
    registered = _register(client, email="chef@example.com").json()
    client.cookies.clear()

    res = client.post("/auth/login", json={"email": "CHEF@example.com", "password": "password123"})
    assert res.status_code == 200, res.text
    assert res.json()["restaurant_id"] == registered["restaurant_id"]
    assert client.get("/auth/me").status_code == 200


def test_tampered_or_expired_token_is_rejected(test_context):
    client, _ = test_context
    registered = _register(client, email="tamper@example.com").json()
    client.cookies.clear()

    client.cookies.set(settings.session_cookie_name, "not-a-token")
    assert client.get("/auth/me").status_code == 401

    expired = jwt.encode(
        {
            "userId": registered["user"]["id"],
            "restaurantId": registered["restaurant_id"],
            "type": "session",
            "exp": int((datetime.now(timezone.utc) - timedelta(minutes=1)).timestamp()),
        },
        settings.secret_key,
        algorithm=ALGORITHM,
    )
    client.cookies.set(settings.session_cookie_name, expired)
    assert client.get("/auth/me").status_code == 401

    # A session pointing at another restaurant is refused.
    client.cookies.set(
        settings.session_cookie_name,
        create_session_token(registered["user"]["id"], registered["restaurant_id"] + 1),
    )
    assert client.get("/auth/me").status_code == 401


def test_session_token_round_trip_carries_integer_ids(test_context):
    token = create_session_token(7, 3)
    claims = decode_session_token(token)
    assert claims.user_id == 7
    assert claims.restaurant_id == 3
    assert claims.expires_at > datetime.now(timezone.utc) + timedelta(days=settings.session_max_age_days - 1)


def test_password_is_stored_hashed(test_context):
    client, session_local = test_context
    _register(client, email="hash@example.com")

    db = session_local()
    try:
        user = db.execute(select(User).where(User.email == "hash@example.com")).scalar_one()
        assert user.password_hash != "password123"
        assert user.password_hash.startswith("$2")
    finally:
        db.close()
