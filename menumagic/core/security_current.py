from dataclasses import dataclass

from fastapi import Depends, Request, Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from menumagic.core.config import settings
from menumagic.core.deps import get_db
from menumagic.core.errors import AuthenticationRequired
from menumagic.core.security import (
    SessionClaims,
    TokenValidationError,
    create_session_token,
    decode_session_token,
    session_max_age_seconds,
)
from menumagic.models.restaurant import Restaurant
from menumagic.models.user import User


@dataclass(frozen=True)
class RequestContext:
    """Who is acting, and for which restaurant. Passed to every handler."""

    user_id: int
    restaurant_id: int


def set_session_cookie(response: Response, *, user_id: int, restaurant_id: int) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=create_session_token(user_id, restaurant_id),
        max_age=session_max_age_seconds(),
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.session_cookie_name, path="/")


def read_session(request: Request) -> SessionClaims | None:
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None
    try:
        return decode_session_token(token)
    except TokenValidationError:
        return None


def get_request_context(request: Request, db: Session = Depends(get_db)) -> RequestContext:
    claims = read_session(request)
    if claims is None:
        raise AuthenticationRequired()

    row = db.execute(
        select(User.id, User.restaurant_id).where(User.id == claims.user_id)
    ).first()
    if not row or row.restaurant_id != claims.restaurant_id:
        raise AuthenticationRequired("Session no longer valid")

    return RequestContext(user_id=claims.user_id, restaurant_id=claims.restaurant_id)


def get_current_user(
    ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)
) -> User:
    user = db.execute(select(User).where(User.id == ctx.user_id)).scalar_one_or_none()
    if not user:
        raise AuthenticationRequired("User not found")
    return user


def get_current_restaurant(
    ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)
) -> Restaurant:
    restaurant = db.execute(
        select(Restaurant).where(Restaurant.id == ctx.restaurant_id)
    ).scalar_one_or_none()
    if not restaurant:
        raise AuthenticationRequired("Restaurant not found")
    return restaurant
