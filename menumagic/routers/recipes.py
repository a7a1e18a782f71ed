from decimal import Decimal

from fastapi import APIRouter, Depends
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from menumagic.core.api_docs import error_responses
from menumagic.core.deps import get_db
from menumagic.core.errors import NotFound, ValidationFailed
from menumagic.core.money import money_or_none
from menumagic.core.security_current import RequestContext, get_request_context
from menumagic.db.transaction import transaction
from menumagic.models.category import Category
from menumagic.models.dish import Dish
from menumagic.models.ingredient import Ingredient
from menumagic.models.recipe import Recipe, RecipeIngredient
from menumagic.schemas.common import OkOut
from menumagic.schemas.recipe import (
    RecipeCostLineOut,
    RecipeCreate,
    RecipeIngredientIn,
    RecipeOut,
    RecipeSummaryOut,
    RecipeUpdate,
)
from menumagic.services.audit_service import log_audit_event
from menumagic.services.catalog_service import category_names, get_owned, resolve_category
from menumagic.services.costing_service import RecipeCost, margin_percentage, recipe_cost, recipe_costs

router = APIRouter(prefix="/recipes", tags=["recipes"])


def _summary_fields(recipe: Recipe, cost: RecipeCost, category_name: str | None) -> dict:
    price = Decimal(recipe.selling_price) if recipe.selling_price is not None else None
    return {
        "id": recipe.id,
        "name": recipe.name,
        "sku": recipe.sku,
        "category_name": category_name,
        "status": recipe.status,
        "selling_price": money_or_none(price),
        "ingredient_count": len(cost.lines),
        "total_cost": float(cost.total),
        "margin_percentage": money_or_none(margin_percentage(price, cost.total)),
        "is_cost_complete": cost.is_complete,
    }


def _recipe_out(db: Session, recipe: Recipe) -> RecipeOut:
    cost = recipe_cost(db, recipe_id=recipe.id)
    category_name = None
    if recipe.category_id is not None:
        category_name = db.execute(
            select(Category.name).where(Category.id == recipe.category_id)
        ).scalar_one_or_none()
    return RecipeOut(
        **_summary_fields(recipe, cost, category_name),
        category_id=recipe.category_id,
        yield_amount=float(recipe.yield_amount) if recipe.yield_amount is not None else None,
        yield_unit=recipe.yield_unit,
        allergens=list(recipe.allergens or []),
        preparation_instructions=recipe.preparation_instructions,
        ingredients=[
            RecipeCostLineOut(
                ingredient_id=line.ingredient_id,
                ingredient_name=line.ingredient_name,
                quantity=float(line.quantity),
                unit=line.unit,
                storage_unit_cost=float(round(line.unit_cost, 4)) if line.unit_cost is not None else None,
                line_cost=money_or_none(line.line_cost),
            )
            for line in cost.lines
        ],
        missing_cost_ingredient_ids=cost.missing_cost_ingredient_ids,
        created_at=recipe.created_at,
        updated_at=recipe.updated_at,
    )


def _replace_links(
    db: Session,
    *,
    restaurant_id: int,
    recipe_id: int,
    links: list[RecipeIngredientIn],
) -> None:
    ingredient_ids = {link.ingredient_id for link in links}
    if len(ingredient_ids) != len(links):
        raise ValidationFailed("Each ingredient can appear only once per recipe")
    if ingredient_ids:
        found = set(
            db.execute(
                select(Ingredient.id).where(
                    Ingredient.restaurant_id == restaurant_id,
                    Ingredient.id.in_(ingredient_ids),
                )
            ).scalars()
        )
        missing = sorted(ingredient_ids - found)
        if missing:
            raise NotFound(f"Ingredient not found: {missing[0]}")

    db.execute(delete(RecipeIngredient).where(RecipeIngredient.recipe_id == recipe_id))
    for link in links:
        db.add(
            RecipeIngredient(
                recipe_id=recipe_id,
                ingredient_id=link.ingredient_id,
                quantity=link.quantity,
                unit=link.unit,
            )
        )


@router.get(
    "",
    response_model=list[RecipeSummaryOut],
    summary="List recipes with derived cost and margin",
    responses=error_responses(401, 500),
)
def list_recipes(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    recipes = db.execute(
        select(Recipe).where(Recipe.restaurant_id == ctx.restaurant_id).order_by(Recipe.name.asc())
    ).scalars().all()
    costs = recipe_costs(db, recipe_ids=[recipe.id for recipe in recipes])
    names = category_names(db, restaurant_id=ctx.restaurant_id)
    return [
        RecipeSummaryOut(**_summary_fields(recipe, costs[recipe.id], names.get(recipe.category_id)))
        for recipe in recipes
    ]


@router.get(
    "/{recipe_id}",
    response_model=RecipeOut,
    summary="Get recipe with its cost breakdown",
    responses=error_responses(401, 404, 500),
)
def get_recipe(
    recipe_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    recipe = get_owned(db, Recipe, restaurant_id=ctx.restaurant_id, object_id=recipe_id, label="Recipe")
    return _recipe_out(db, recipe)


@router.post(
    "",
    response_model=RecipeOut,
    status_code=201,
    summary="Create recipe with ingredient links",
    responses=error_responses(400, 401, 404, 422, 500),
)
def create_recipe(
    payload: RecipeCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    with transaction(db, action="create recipe"):
        category = resolve_category(
            db, restaurant_id=ctx.restaurant_id, name=payload.category, category_type="recipe"
        )
        recipe = Recipe(
            restaurant_id=ctx.restaurant_id,
            sku=payload.sku,
            name=payload.name,
            category_id=category.id if category else None,
            status=payload.status,
            selling_price=payload.selling_price,
            yield_amount=payload.yield_amount,
            yield_unit=payload.yield_unit,
            allergens=payload.allergens,
            preparation_instructions=payload.preparation_instructions,
        )
        db.add(recipe)
        db.flush()
        _replace_links(db, restaurant_id=ctx.restaurant_id, recipe_id=recipe.id, links=payload.ingredients)
        log_audit_event(
            db,
            ctx=ctx,
            action="recipe.create",
            target_type="recipe",
            target_id=recipe.id,
            metadata_json={"name": recipe.name, "ingredient_count": len(payload.ingredients)},
        )
    db.refresh(recipe)
    return _recipe_out(db, recipe)


@router.patch(
    "/{recipe_id}",
    response_model=RecipeOut,
    summary="Update recipe",
    responses=error_responses(400, 401, 404, 422, 500),
)
def update_recipe(
    recipe_id: int,
    payload: RecipeUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    recipe = get_owned(db, Recipe, restaurant_id=ctx.restaurant_id, object_id=recipe_id, label="Recipe")
    changes = payload.model_dump(exclude_unset=True, exclude={"ingredients", "category"})

    with transaction(db, action="update recipe"):
        if "category" in payload.model_fields_set:
            category = resolve_category(
                db,
                restaurant_id=ctx.restaurant_id,
                name=(payload.category or "").strip() or None,
                category_type="recipe",
            )
            recipe.category_id = category.id if category else None
        for field, value in changes.items():
            if field in {"name", "status"} and not value:
                continue
            setattr(recipe, field, value.strip() if isinstance(value, str) else value)
        if payload.ingredients is not None:
            _replace_links(db, restaurant_id=ctx.restaurant_id, recipe_id=recipe.id, links=payload.ingredients)
    db.refresh(recipe)
    return _recipe_out(db, recipe)


@router.delete(
    "/{recipe_id}",
    response_model=OkOut,
    summary="Delete recipe and its ingredient links",
    responses=error_responses(401, 404, 500),
)
def delete_recipe(
    recipe_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    recipe = get_owned(db, Recipe, restaurant_id=ctx.restaurant_id, object_id=recipe_id, label="Recipe")
    with transaction(db, action="delete recipe"):
        db.execute(delete(RecipeIngredient).where(RecipeIngredient.recipe_id == recipe.id))
        # Dishes keep existing without a cost source.
        for dish in db.execute(select(Dish).where(Dish.recipe_id == recipe.id)).scalars():
            dish.recipe_id = None
        log_audit_event(
            db,
            ctx=ctx,
            action="recipe.delete",
            target_type="recipe",
            target_id=recipe.id,
            metadata_json={"name": recipe.name},
        )
        db.delete(recipe)
    return OkOut()
