from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from menumagic.core.api_docs import error_responses
from menumagic.core.deps import get_db
from menumagic.core.money import money_or_none
from menumagic.core.security_current import RequestContext, get_request_context
from menumagic.schemas.costs import (
    CostAnalysisOut,
    CostSummaryOut,
    IngredientCostAnalysisOut,
    RecipeCostAnalysisOut,
)
from menumagic.services.costing_service import cost_analysis

router = APIRouter(prefix="/costs", tags=["costs"])


@router.get(
    "/analysis",
    response_model=CostAnalysisOut,
    summary="Recipe cost, margin and ingredient usage report",
    responses=error_responses(401, 500),
)
def get_cost_analysis(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    report = cost_analysis(db, restaurant_id=ctx.restaurant_id)
    summary = report["summary"]
    return CostAnalysisOut(
        recipes=[
            RecipeCostAnalysisOut(
                recipe_id=row["recipe_id"],
                recipe_name=row["recipe_name"],
                total_cost=float(row["total_cost"]),
                selling_price=money_or_none(row["selling_price"]),
                profit=money_or_none(row["profit"]),
                margin_percentage=money_or_none(row["margin_percentage"]),
                ingredient_count=row["ingredient_count"],
                is_cost_complete=row["is_cost_complete"],
            )
            for row in report["recipes"]
        ],
        ingredients=[
            IngredientCostAnalysisOut(
                ingredient_id=row["ingredient_id"],
                ingredient_name=row["ingredient_name"],
                storage_unit=row["storage_unit"],
                storage_unit_cost=(
                    float(round(row["storage_unit_cost"], 4)) if row["storage_unit_cost"] is not None else None
                ),
                recipe_count=row["recipe_count"],
            )
            for row in report["ingredients"]
        ],
        summary=CostSummaryOut(
            total_recipes=summary["total_recipes"],
            total_ingredients=summary["total_ingredients"],
            average_recipe_cost=float(summary["average_recipe_cost"]),
            average_margin_percentage=money_or_none(summary["average_margin_percentage"]),
            total_recipe_cost=float(summary["total_recipe_cost"]),
        ),
    )
