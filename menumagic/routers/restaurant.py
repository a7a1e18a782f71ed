from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from menumagic.core.api_docs import error_responses
from menumagic.core.deps import get_db
from menumagic.core.security_current import RequestContext, get_current_restaurant, get_request_context
from menumagic.db.transaction import transaction
from menumagic.models.restaurant import Restaurant
from menumagic.schemas.restaurant import RestaurantOut, RestaurantUpdateIn
from menumagic.services.audit_service import log_audit_event

router = APIRouter(prefix="/restaurant", tags=["restaurant"])


def _restaurant_out(restaurant: Restaurant) -> RestaurantOut:
    return RestaurantOut(
        id=restaurant.id,
        name=restaurant.name,
        owner_user_id=restaurant.owner_user_id,
        phone=restaurant.phone,
        email=restaurant.email,
        cuisine_type=restaurant.cuisine_type,
        currency_code=restaurant.currency_code,
        timezone=restaurant.timezone,
        created_at=restaurant.created_at,
    )


@router.get(
    "",
    response_model=RestaurantOut,
    summary="Get restaurant profile",
    responses=error_responses(401, 500),
)
def get_restaurant(restaurant: Restaurant = Depends(get_current_restaurant)):
    return _restaurant_out(restaurant)


@router.patch(
    "",
    response_model=RestaurantOut,
    summary="Update restaurant profile",
    responses=error_responses(401, 422, 500),
)
def update_restaurant(
    payload: RestaurantUpdateIn,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    changes = payload.model_dump(exclude_unset=True)
    with transaction(db, action="update restaurant"):
        for field, value in changes.items():
            if field in {"name", "currency_code", "timezone"} and value is None:
                continue
            setattr(restaurant, field, value)
        log_audit_event(
            db,
            ctx=ctx,
            action="restaurant.update",
            target_type="restaurant",
            target_id=restaurant.id,
            metadata_json={"fields": sorted(changes)},
        )
    db.refresh(restaurant)
    return _restaurant_out(restaurant)
