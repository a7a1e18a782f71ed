from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from menumagic.core.api_docs import error_responses
from menumagic.core.deps import get_db
from menumagic.core.errors import Conflict, ValidationFailed
from menumagic.core.security_current import RequestContext, get_request_context
from menumagic.db.transaction import transaction
from menumagic.models.category import Category
from menumagic.models.dish import Dish
from menumagic.models.ingredient import Ingredient
from menumagic.models.recipe import Recipe
from menumagic.schemas.category import (
    CategoryCreate,
    CategoryOut,
    CategoryRenameIn,
    CategoryReorderIn,
    CategoryType,
)
from menumagic.schemas.common import OkOut
from menumagic.services.catalog_service import get_owned, next_category_index

router = APIRouter(prefix="/categories", tags=["categories"])


def _category_out(category: Category) -> CategoryOut:
    return CategoryOut(
        id=category.id,
        name=category.name,
        type=category.type,
        order_index=category.order_index,
    )


@router.get(
    "",
    response_model=list[CategoryOut],
    summary="List categories",
    responses=error_responses(401, 422, 500),
)
def list_categories(
    type: CategoryType | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    stmt = select(Category).where(Category.restaurant_id == ctx.restaurant_id)
    if type is not None:
        stmt = stmt.where(Category.type == type)
    rows = db.execute(stmt.order_by(Category.type.asc(), Category.order_index.asc(), Category.id.asc())).scalars()
    return [_category_out(category) for category in rows]


@router.post(
    "",
    response_model=CategoryOut,
    status_code=201,
    summary="Create category",
    responses=error_responses(401, 422, 500),
)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    with transaction(db, action="create category"):
        category = Category(
            restaurant_id=ctx.restaurant_id,
            name=payload.name,
            type=payload.type,
            order_index=next_category_index(
                db, restaurant_id=ctx.restaurant_id, category_type=payload.type
            ),
        )
        db.add(category)
    db.refresh(category)
    return _category_out(category)


@router.patch(
    "/{category_id}",
    response_model=CategoryOut,
    summary="Rename category",
    responses=error_responses(401, 404, 422, 500),
)
def rename_category(
    category_id: int,
    payload: CategoryRenameIn,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    category = get_owned(db, Category, restaurant_id=ctx.restaurant_id, object_id=category_id, label="Category")
    with transaction(db, action="rename category"):
        category.name = payload.name
    db.refresh(category)
    return _category_out(category)


@router.delete(
    "/{category_id}",
    response_model=OkOut,
    summary="Delete category",
    responses=error_responses(401, 404, 409, 500),
)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    category = get_owned(db, Category, restaurant_id=ctx.restaurant_id, object_id=category_id, label="Category")
    with transaction(db, action="delete category"):
        # Catalog rows fall back to uncategorized.
        for model in (Ingredient, Recipe, Dish):
            db.execute(
                update(model)
                .where(model.restaurant_id == ctx.restaurant_id, model.category_id == category.id)
                .values(category_id=None)
            )
        db.delete(category)
    return OkOut()


@router.post(
    "/reorder",
    response_model=list[CategoryOut],
    summary="Reorder categories of one type",
    responses=error_responses(400, 401, 409, 422, 500),
)
def reorder_categories(
    payload: CategoryReorderIn,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    if len(set(payload.category_ids)) != len(payload.category_ids):
        raise ValidationFailed("category_ids must not contain duplicates")

    categories = {
        category.id: category
        for category in db.execute(
            select(Category).where(
                Category.restaurant_id == ctx.restaurant_id,
                Category.type == payload.type,
            )
        ).scalars()
    }
    if set(payload.category_ids) != set(categories):
        raise Conflict("category_ids must list every category of this type exactly once")

    with transaction(db, action="reorder categories"):
        for index, category_id in enumerate(payload.category_ids):
            categories[category_id].order_index = index

    return [_category_out(categories[category_id]) for category_id in payload.category_ids]
