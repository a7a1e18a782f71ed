from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from menumagic.core.money import ZERO_MONEY, to_money
from menumagic.models.ingredient import Ingredient
from menumagic.models.recipe import Recipe, RecipeIngredient

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CostLine:
    ingredient_id: int
    ingredient_name: str
    quantity: Decimal
    unit: str | None
    unit_cost: Decimal | None

    @property
    def has_cost(self) -> bool:
        return self.unit_cost is not None and self.unit_cost > 0

    @property
    def line_cost(self) -> Decimal:
        if not self.has_cost:
            return ZERO_MONEY
        return self.unit_cost * self.quantity


@dataclass
class RecipeCost:
    lines: list[CostLine] = field(default_factory=list)
    total: Decimal = ZERO_MONEY
    missing_cost_ingredient_ids: list[int] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing_cost_ingredient_ids


def storage_unit_cost(ingredient: Ingredient) -> Decimal | None:
    """Cost of one storage unit, derived from the purchase price when possible."""
    if (
        ingredient.purchase_unit_cost is not None
        and ingredient.conversion_factor is not None
        and ingredient.conversion_factor > 0
    ):
        return Decimal(ingredient.purchase_unit_cost) / Decimal(ingredient.conversion_factor)
    if ingredient.cost_per_unit is not None:
        return Decimal(ingredient.cost_per_unit)
    return None


def roll_up(lines: Iterable[CostLine]) -> RecipeCost:
    """Sum line costs; lines without a usable cost count as zero and are flagged."""
    result = RecipeCost()
    running = Decimal("0")
    for line in lines:
        result.lines.append(line)
        if not line.has_cost:
            result.missing_cost_ingredient_ids.append(line.ingredient_id)
            continue
        running += line.line_cost
    # Quantize once, after summation, so ordering never changes the result.
    result.total = to_money(running)
    return result


def margin_percentage(selling_price: Decimal | None, cost: Decimal) -> Decimal | None:
    if selling_price is None or selling_price == 0:
        return None
    return to_money((Decimal(selling_price) - cost) / Decimal(selling_price) * HUNDRED)


def _lines_by_recipe(db: Session, recipe_ids: list[int]) -> dict[int, list[CostLine]]:
    if not recipe_ids:
        return {}
    rows = db.execute(
        select(RecipeIngredient, Ingredient)
        .join(Ingredient, Ingredient.id == RecipeIngredient.ingredient_id)
        .where(RecipeIngredient.recipe_id.in_(recipe_ids))
        .order_by(RecipeIngredient.id.asc())
    ).all()

    grouped: dict[int, list[CostLine]] = defaultdict(list)
    for link, ingredient in rows:
        grouped[link.recipe_id].append(
            CostLine(
                ingredient_id=ingredient.id,
                ingredient_name=ingredient.name,
                quantity=Decimal(link.quantity),
                unit=link.unit,
                unit_cost=storage_unit_cost(ingredient),
            )
        )
    return grouped


def recipe_cost(db: Session, *, recipe_id: int) -> RecipeCost:
    return roll_up(_lines_by_recipe(db, [recipe_id]).get(recipe_id, []))


def recipe_costs(db: Session, *, recipe_ids: list[int]) -> dict[int, RecipeCost]:
    grouped = _lines_by_recipe(db, recipe_ids)
    return {recipe_id: roll_up(grouped.get(recipe_id, [])) for recipe_id in recipe_ids}


def cost_analysis(db: Session, *, restaurant_id: int) -> dict:
    recipes = db.execute(
        select(Recipe).where(Recipe.restaurant_id == restaurant_id).order_by(Recipe.name.asc())
    ).scalars().all()
    costs = recipe_costs(db, recipe_ids=[recipe.id for recipe in recipes])

    recipe_rows = []
    for recipe in recipes:
        cost = costs[recipe.id]
        price = Decimal(recipe.selling_price) if recipe.selling_price is not None else None
        margin = margin_percentage(price, cost.total)
        recipe_rows.append(
            {
                "recipe_id": recipe.id,
                "recipe_name": recipe.name,
                "total_cost": cost.total,
                "selling_price": price,
                "profit": to_money(price - cost.total) if price else None,
                "margin_percentage": margin,
                "ingredient_count": len(cost.lines),
                "is_cost_complete": cost.is_complete,
            }
        )
    # Recipes without a margin sort last.
    recipe_rows.sort(
        key=lambda row: (row["margin_percentage"] is None, -(row["margin_percentage"] or 0))
    )

    usage_counts = dict(
        db.execute(
            select(RecipeIngredient.ingredient_id, func.count(func.distinct(RecipeIngredient.recipe_id)))
            .join(Recipe, Recipe.id == RecipeIngredient.recipe_id)
            .where(Recipe.restaurant_id == restaurant_id)
            .group_by(RecipeIngredient.ingredient_id)
        ).all()
    )
    ingredients = db.execute(
        select(Ingredient).where(Ingredient.restaurant_id == restaurant_id).order_by(Ingredient.name.asc())
    ).scalars().all()
    ingredient_rows = [
        {
            "ingredient_id": ingredient.id,
            "ingredient_name": ingredient.name,
            "storage_unit": ingredient.storage_unit,
            "storage_unit_cost": storage_unit_cost(ingredient),
            "recipe_count": int(usage_counts.get(ingredient.id, 0)),
        }
        for ingredient in ingredients
    ]

    total_cost = sum((row["total_cost"] for row in recipe_rows), Decimal("0"))
    margins = [row["margin_percentage"] for row in recipe_rows if row["margin_percentage"] is not None]
    summary = {
        "total_recipes": len(recipe_rows),
        "total_ingredients": len(ingredient_rows),
        "average_recipe_cost": to_money(total_cost / len(recipe_rows)) if recipe_rows else ZERO_MONEY,
        "average_margin_percentage": to_money(sum(margins, Decimal("0")) / len(margins)) if margins else None,
        "total_recipe_cost": to_money(total_cost),
    }
    return {"recipes": recipe_rows, "ingredients": ingredient_rows, "summary": summary}
