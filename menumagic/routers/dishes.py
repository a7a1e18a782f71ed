from decimal import Decimal

from fastapi import APIRouter, Depends
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from menumagic.core.api_docs import error_responses
from menumagic.core.deps import get_db
from menumagic.core.errors import Conflict
from menumagic.core.money import money_or_none
from menumagic.core.security_current import RequestContext, get_request_context
from menumagic.db.transaction import transaction
from menumagic.models.category import Category
from menumagic.models.digital_menu import DigitalMenuItem
from menumagic.models.dish import Dish
from menumagic.models.order import OrderItem
from menumagic.models.recipe import Recipe
from menumagic.schemas.common import OkOut
from menumagic.schemas.dish import DishCreate, DishOut, DishUpdate
from menumagic.services.catalog_service import category_names, get_owned
from menumagic.services.costing_service import RecipeCost, margin_percentage, recipe_costs

router = APIRouter(prefix="/dishes", tags=["dishes"])


def _dish_out(dish: Dish, *, category_name: str | None, cost: RecipeCost | None) -> DishOut:
    price = Decimal(dish.price)
    return DishOut(
        id=dish.id,
        name=dish.name,
        description=dish.description,
        price=float(price),
        category_id=dish.category_id,
        category_name=category_name,
        recipe_id=dish.recipe_id,
        image_url=dish.image_url,
        is_available=dish.is_available,
        cost_per_serving=money_or_none(cost.total) if cost else None,
        margin_percentage=money_or_none(margin_percentage(price, cost.total)) if cost else None,
    )


def _single_dish_out(db: Session, dish: Dish, restaurant_id: int) -> DishOut:
    costs = recipe_costs(db, recipe_ids=[dish.recipe_id]) if dish.recipe_id else {}
    names = category_names(db, restaurant_id=restaurant_id)
    return _dish_out(dish, category_name=names.get(dish.category_id), cost=costs.get(dish.recipe_id))


def _check_links(db: Session, *, restaurant_id: int, category_id: int | None, recipe_id: int | None) -> None:
    if category_id is not None:
        get_owned(db, Category, restaurant_id=restaurant_id, object_id=category_id, label="Category")
    if recipe_id is not None:
        get_owned(db, Recipe, restaurant_id=restaurant_id, object_id=recipe_id, label="Recipe")


@router.get(
    "",
    response_model=list[DishOut],
    summary="List dishes with recipe-derived cost",
    responses=error_responses(401, 500),
)
def list_dishes(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    dishes = db.execute(
        select(Dish).where(Dish.restaurant_id == ctx.restaurant_id).order_by(Dish.name.asc())
    ).scalars().all()
    costs = recipe_costs(db, recipe_ids=sorted({dish.recipe_id for dish in dishes if dish.recipe_id}))
    names = category_names(db, restaurant_id=ctx.restaurant_id)
    return [
        _dish_out(dish, category_name=names.get(dish.category_id), cost=costs.get(dish.recipe_id))
        for dish in dishes
    ]


@router.get(
    "/{dish_id}",
    response_model=DishOut,
    summary="Get dish",
    responses=error_responses(401, 404, 500),
)
def get_dish(
    dish_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    dish = get_owned(db, Dish, restaurant_id=ctx.restaurant_id, object_id=dish_id, label="Dish")
    return _single_dish_out(db, dish, ctx.restaurant_id)


@router.post(
    "",
    response_model=DishOut,
    status_code=201,
    summary="Create dish",
    responses=error_responses(401, 404, 422, 500),
)
def create_dish(
    payload: DishCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    _check_links(db, restaurant_id=ctx.restaurant_id, category_id=payload.category_id, recipe_id=payload.recipe_id)
    with transaction(db, action="create dish"):
        dish = Dish(restaurant_id=ctx.restaurant_id, **payload.model_dump())
        db.add(dish)
    db.refresh(dish)
    return _single_dish_out(db, dish, ctx.restaurant_id)


@router.patch(
    "/{dish_id}",
    response_model=DishOut,
    summary="Update dish",
    responses=error_responses(401, 404, 422, 500),
)
def update_dish(
    dish_id: int,
    payload: DishUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    dish = get_owned(db, Dish, restaurant_id=ctx.restaurant_id, object_id=dish_id, label="Dish")
    changes = payload.model_dump(exclude_unset=True)
    _check_links(
        db,
        restaurant_id=ctx.restaurant_id,
        category_id=changes.get("category_id"),
        recipe_id=changes.get("recipe_id"),
    )
    with transaction(db, action="update dish"):
        for field, value in changes.items():
            if field in {"name", "price", "is_available"} and value is None:
                continue
            setattr(dish, field, value.strip() if isinstance(value, str) else value)
    db.refresh(dish)
    return _single_dish_out(db, dish, ctx.restaurant_id)


@router.delete(
    "/{dish_id}",
    response_model=OkOut,
    summary="Delete dish",
    responses=error_responses(401, 404, 409, 500),
)
def delete_dish(
    dish_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    dish = get_owned(db, Dish, restaurant_id=ctx.restaurant_id, object_id=dish_id, label="Dish")
    ordered = db.execute(select(OrderItem.id).where(OrderItem.dish_id == dish.id).limit(1)).first()
    if ordered:
        raise Conflict("Dish appears on orders; mark it unavailable instead")
    with transaction(db, action="delete dish"):
        db.execute(delete(DigitalMenuItem).where(DigitalMenuItem.dish_id == dish.id))
        db.delete(dish)
    return OkOut()
