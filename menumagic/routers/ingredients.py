from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from menumagic.core.api_docs import error_responses
from menumagic.core.deps import get_db
from menumagic.core.errors import Conflict, ValidationFailed
from menumagic.core.money import money_or_none
from menumagic.core.security_current import RequestContext, get_request_context
from menumagic.db.transaction import transaction
from menumagic.models.category import Category
from menumagic.models.ingredient import Ingredient
from menumagic.models.inventory import InventoryAdjustment, InventoryStockLevel
from menumagic.models.recipe import RecipeIngredient
from menumagic.models.supplier import Supplier
from menumagic.schemas.common import OkOut
from menumagic.schemas.ingredient import (
    IngredientCostUpdate,
    IngredientCreate,
    IngredientDetailOut,
    IngredientOut,
    IngredientUpdate,
)
from menumagic.services.audit_service import log_audit_event
from menumagic.services.catalog_service import get_owned
from menumagic.services.costing_service import storage_unit_cost

router = APIRouter(prefix="/ingredients", tags=["ingredients"])


def _float_or_none(value) -> float | None:
    return float(value) if value is not None else None


def _ingredient_out(
    ingredient: Ingredient,
    *,
    category_name: str | None = None,
    supplier_name: str | None = None,
) -> IngredientOut:
    unit_cost = storage_unit_cost(ingredient)
    return IngredientOut(
        id=ingredient.id,
        name=ingredient.name,
        sku=ingredient.sku,
        description=ingredient.description,
        category_id=ingredient.category_id,
        category_name=category_name,
        supplier_id=ingredient.supplier_id,
        supplier_name=supplier_name,
        purchase_unit=ingredient.purchase_unit,
        storage_unit=ingredient.storage_unit,
        conversion_factor=_float_or_none(ingredient.conversion_factor),
        purchase_unit_cost=money_or_none(ingredient.purchase_unit_cost),
        cost_per_unit=_float_or_none(ingredient.cost_per_unit),
        storage_unit_cost=float(round(unit_cost, 4)) if unit_cost is not None else None,
        low_stock_threshold=_float_or_none(ingredient.low_stock_threshold),
        created_at=ingredient.created_at,
    )


def _ensure_name_available(db: Session, *, restaurant_id: int, name: str, exclude_id: int | None = None) -> None:
    stmt = select(Ingredient.id).where(
        Ingredient.restaurant_id == restaurant_id,
        func.lower(Ingredient.name) == name.lower(),
    )
    if exclude_id is not None:
        stmt = stmt.where(Ingredient.id != exclude_id)
    if db.execute(stmt).first():
        raise Conflict("An ingredient with this name already exists")


def _check_links(db: Session, *, restaurant_id: int, category_id: int | None, supplier_id: int | None) -> None:
    if category_id is not None:
        get_owned(db, Category, restaurant_id=restaurant_id, object_id=category_id, label="Category")
    if supplier_id is not None:
        get_owned(db, Supplier, restaurant_id=restaurant_id, object_id=supplier_id, label="Supplier")


def _names(db: Session, ingredient: Ingredient) -> dict[str, str | None]:
    category_name = None
    supplier_name = None
    if ingredient.category_id is not None:
        category_name = db.execute(
            select(Category.name).where(Category.id == ingredient.category_id)
        ).scalar_one_or_none()
    if ingredient.supplier_id is not None:
        supplier_name = db.execute(
            select(Supplier.name).where(Supplier.id == ingredient.supplier_id)
        ).scalar_one_or_none()
    return {"category_name": category_name, "supplier_name": supplier_name}


@router.get(
    "",
    response_model=list[IngredientOut],
    summary="List ingredients",
    responses=error_responses(401, 500),
)
def list_ingredients(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    rows = db.execute(
        select(Ingredient, Category.name, Supplier.name)
        .outerjoin(Category, Category.id == Ingredient.category_id)
        .outerjoin(Supplier, Supplier.id == Ingredient.supplier_id)
        .where(Ingredient.restaurant_id == ctx.restaurant_id)
        .order_by(Ingredient.name.asc())
    ).all()
    return [
        _ingredient_out(ingredient, category_name=category_name, supplier_name=supplier_name)
        for ingredient, category_name, supplier_name in rows
    ]


@router.get(
    "/{ingredient_id}",
    response_model=IngredientDetailOut,
    summary="Get ingredient with current stock",
    responses=error_responses(401, 404, 500),
)
def get_ingredient(
    ingredient_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    ingredient = get_owned(
        db, Ingredient, restaurant_id=ctx.restaurant_id, object_id=ingredient_id, label="Ingredient"
    )
    stock = db.execute(
        select(InventoryStockLevel).where(InventoryStockLevel.ingredient_id == ingredient.id)
    ).scalar_one_or_none()
    base = _ingredient_out(ingredient, **_names(db, ingredient))
    return IngredientDetailOut(
        **base.model_dump(),
        current_quantity=float(stock.current_quantity_in_storage_units) if stock else 0.0,
        last_updated_at=stock.last_updated_at if stock else None,
    )


@router.post(
    "",
    response_model=IngredientOut,
    status_code=201,
    summary="Create ingredient",
    responses=error_responses(401, 404, 409, 422, 500),
)
def create_ingredient(
    payload: IngredientCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    _ensure_name_available(db, restaurant_id=ctx.restaurant_id, name=payload.name)
    _check_links(
        db,
        restaurant_id=ctx.restaurant_id,
        category_id=payload.category_id,
        supplier_id=payload.supplier_id,
    )

    with transaction(db, action="create ingredient"):
        ingredient = Ingredient(restaurant_id=ctx.restaurant_id, **payload.model_dump())
        db.add(ingredient)
        db.flush()
        log_audit_event(
            db,
            ctx=ctx,
            action="ingredient.create",
            target_type="ingredient",
            target_id=ingredient.id,
            metadata_json={"name": ingredient.name},
        )
    db.refresh(ingredient)
    return _ingredient_out(ingredient, **_names(db, ingredient))


@router.patch(
    "/{ingredient_id}",
    response_model=IngredientOut,
    summary="Update ingredient details",
    responses=error_responses(401, 404, 409, 422, 500),
)
def update_ingredient(
    ingredient_id: int,
    payload: IngredientUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    ingredient = get_owned(
        db, Ingredient, restaurant_id=ctx.restaurant_id, object_id=ingredient_id, label="Ingredient"
    )
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name"):
        changes["name"] = changes["name"].strip()
        _ensure_name_available(
            db, restaurant_id=ctx.restaurant_id, name=changes["name"], exclude_id=ingredient.id
        )
    _check_links(
        db,
        restaurant_id=ctx.restaurant_id,
        category_id=changes.get("category_id"),
        supplier_id=changes.get("supplier_id"),
    )

    with transaction(db, action="update ingredient"):
        for field, value in changes.items():
            if field in {"name", "storage_unit"} and not value:
                continue
            setattr(ingredient, field, value)
    db.refresh(ingredient)
    return _ingredient_out(ingredient, **_names(db, ingredient))


@router.put(
    "/{ingredient_id}/cost",
    response_model=IngredientOut,
    summary="Update ingredient purchase or unit cost",
    responses=error_responses(400, 401, 404, 422, 500),
)
def update_ingredient_cost(
    ingredient_id: int,
    payload: IngredientCostUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    ingredient = get_owned(
        db, Ingredient, restaurant_id=ctx.restaurant_id, object_id=ingredient_id, label="Ingredient"
    )
    before = storage_unit_cost(ingredient)
    with transaction(db, action="update ingredient cost"):
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(ingredient, field, value)
        after = storage_unit_cost(ingredient)
        if after is None:
            # An ingredient always keeps a usable cost; the block rolls back.
            raise ValidationFailed(
                "Ingredient needs cost_per_unit, or purchase_unit_cost with a conversion_factor"
            )
        log_audit_event(
            db,
            ctx=ctx,
            action="ingredient.cost_update",
            target_type="ingredient",
            target_id=ingredient.id,
            metadata_json={
                "storage_unit_cost_before": str(before) if before is not None else None,
                "storage_unit_cost_after": str(after),
            },
        )
    db.refresh(ingredient)
    return _ingredient_out(ingredient, **_names(db, ingredient))


@router.delete(
    "/{ingredient_id}",
    response_model=OkOut,
    summary="Delete ingredient without stock history or recipe usage",
    responses=error_responses(401, 404, 409, 500),
)
def delete_ingredient(
    ingredient_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    ingredient = get_owned(
        db, Ingredient, restaurant_id=ctx.restaurant_id, object_id=ingredient_id, label="Ingredient"
    )
    has_history = db.execute(
        select(InventoryAdjustment.id).where(InventoryAdjustment.ingredient_id == ingredient.id).limit(1)
    ).first()
    if has_history:
        raise Conflict("Ingredient has inventory history and cannot be deleted")
    used_in_recipe = db.execute(
        select(RecipeIngredient.id).where(RecipeIngredient.ingredient_id == ingredient.id).limit(1)
    ).first()
    if used_in_recipe:
        raise Conflict("Ingredient is used in a recipe and cannot be deleted")

    with transaction(db, action="delete ingredient"):
        db.execute(
            InventoryStockLevel.__table__.delete().where(InventoryStockLevel.ingredient_id == ingredient.id)
        )
        log_audit_event(
            db,
            ctx=ctx,
            action="ingredient.delete",
            target_type="ingredient",
            target_id=ingredient.id,
            metadata_json={"name": ingredient.name},
        )
        db.delete(ingredient)
    return OkOut()
