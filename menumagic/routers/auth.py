from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from menumagic.core.api_docs import error_responses
from menumagic.core.config import settings
from menumagic.core.deps import get_db
from menumagic.core.errors import AuthenticationRequired, Conflict
from menumagic.core.rate_limit import LoginRateLimiter
from menumagic.core.security import hash_password, verify_password
from menumagic.core.security_current import (
    clear_session_cookie,
    get_current_user,
    read_session,
    set_session_cookie,
)
from menumagic.db.transaction import transaction
from menumagic.models.restaurant import Restaurant
from menumagic.models.user import User
from menumagic.schemas.auth import AuthOut, LoginIn, RegisterIn, SessionOut, SessionProbeOut, UserOut
from menumagic.schemas.common import OkOut

router = APIRouter(prefix="/auth", tags=["auth"])

login_rate_limiter = LoginRateLimiter(
    max_attempts=settings.auth_rate_limit_max_attempts,
    window_seconds=settings.auth_rate_limit_window_seconds,
    lock_seconds=settings.auth_rate_limit_lock_seconds,
)


def _client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for", "").strip()
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _rate_key(identifier: str, client_ip: str) -> str:
    return f"{identifier.strip().lower()}:{client_ip}"


def _enforce_rate_limit(identifier: str, client_ip: str) -> str:
    key = _rate_key(identifier, client_ip)
    retry_after = login_rate_limiter.check(key)
    if retry_after > 0:
        raise HTTPException(
            status_code=429,
            detail="Too many failed login attempts. Try again later.",
            headers={"Retry-After": str(retry_after)},
        )
    return key


def _user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        name=user.name,
        email=user.email,
        restaurant_id=user.restaurant_id,
        created_at=user.created_at,
    )


def _email_taken(db: Session, email: str) -> bool:
    return db.execute(select(User.id).where(func.lower(User.email) == email)).first() is not None


@router.post(
    "/register",
    response_model=AuthOut,
    status_code=201,
    summary="Create an account and its restaurant",
    responses=error_responses(409, 422, 500),
)
def register(payload: RegisterIn, response: Response, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    if _email_taken(db, email):
        raise Conflict("Email already registered")

    with transaction(db, action="register account"):
        restaurant = Restaurant(name=payload.restaurant_name)
        db.add(restaurant)
        db.flush()

        user = User(
            name=payload.name,
            email=email,
            password_hash=hash_password(payload.password),
            restaurant_id=restaurant.id,
        )
        db.add(user)
        try:
            db.flush()
        except IntegrityError as exc:
            # A concurrent registration claimed the email after the check above.
            raise Conflict("Email already registered") from exc
        restaurant.owner_user_id = user.id

    db.refresh(user)
    set_session_cookie(response, user_id=user.id, restaurant_id=restaurant.id)
    return AuthOut(user=_user_out(user), restaurant_id=restaurant.id)


@router.post(
    "/login",
    response_model=AuthOut,
    summary="Sign in and receive the session cookie",
    responses=error_responses(401, 422, 429, 500),
)
def login(payload: LoginIn, request: Request, response: Response, db: Session = Depends(get_db)):
    key = _enforce_rate_limit(payload.email, _client_ip(request))
    user = db.execute(
        select(User).where(func.lower(User.email) == payload.email.strip().lower())
    ).scalar_one_or_none()
    if not user or not verify_password(payload.password, user.password_hash):
        login_rate_limiter.register_failure(key)
        raise AuthenticationRequired("Invalid credentials")
    if user.restaurant_id is None:
        raise AuthenticationRequired("Account has no restaurant")

    login_rate_limiter.register_success(key)
    set_session_cookie(response, user_id=user.id, restaurant_id=user.restaurant_id)
    return AuthOut(user=_user_out(user), restaurant_id=user.restaurant_id)


@router.post(
    "/logout",
    response_model=OkOut,
    summary="Clear the session cookie",
)
def logout(response: Response):
    clear_session_cookie(response)
    return OkOut()


@router.get(
    "/session",
    response_model=SessionProbeOut,
    summary="Report the current session, or null when signed out",
)
def get_session(request: Request):
    claims = read_session(request)
    if claims is None:
        return SessionProbeOut(session=None)
    return SessionProbeOut(
        session=SessionOut(
            user_id=claims.user_id,
            restaurant_id=claims.restaurant_id,
            expires_at=claims.expires_at,
        )
    )


@router.get(
    "/me",
    response_model=UserOut,
    summary="Get the signed-in user",
    responses=error_responses(401, 500),
)
def me(user: User = Depends(get_current_user)):
    return _user_out(user)
