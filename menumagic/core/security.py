from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from jose import JWTError, jwt

from menumagic.core.config import settings

import bcrypt

ALGORITHM = "HS256"
SESSION_TOKEN_TYPE = "session"


class TokenValidationError(ValueError):
    pass


@dataclass(frozen=True)
class SessionClaims:
    user_id: int
    restaurant_id: int
    expires_at: datetime


def hash_password(password: str) -> str:
    # bcrypt hard limit is 72 bytes. We encode as utf-8.
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def session_max_age_seconds() -> int:
    return settings.session_max_age_days * 24 * 60 * 60


def create_session_token(user_id: int, restaurant_id: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "restaurantId": restaurant_id,
        "type": SESSION_TOKEN_TYPE,
        "jti": str(uuid4()),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=session_max_age_seconds())).timestamp()),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_session_token(token: str) -> SessionClaims:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise TokenValidationError("Invalid session") from exc

    if payload.get("type") != SESSION_TOKEN_TYPE:
        raise TokenValidationError("Invalid session type")

    user_id = payload.get("userId")
    restaurant_id = payload.get("restaurantId")
    # bool is an int subclass; reject it explicitly.
    for value in (user_id, restaurant_id):
        if not isinstance(value, int) or isinstance(value, bool):
            raise TokenValidationError("Invalid session payload")

    exp = payload.get("exp")
    if not exp:
        raise TokenValidationError("Invalid session expiration")

    return SessionClaims(
        user_id=user_id,
        restaurant_id=restaurant_id,
        expires_at=datetime.fromtimestamp(int(exp), tz=timezone.utc),
    )
