from pydantic import BaseModel


class RecipeCostAnalysisOut(BaseModel):
    recipe_id: int
    recipe_name: str
    total_cost: float
    selling_price: float | None = None
    profit: float | None = None
    margin_percentage: float | None = None
    ingredient_count: int
    is_cost_complete: bool


class IngredientCostAnalysisOut(BaseModel):
    ingredient_id: int
    ingredient_name: str
    storage_unit: str
    storage_unit_cost: float | None = None
    recipe_count: int


class CostSummaryOut(BaseModel):
    total_recipes: int
    total_ingredients: int
    average_recipe_cost: float
    average_margin_percentage: float | None = None
    total_recipe_cost: float


class CostAnalysisOut(BaseModel):
    recipes: list[RecipeCostAnalysisOut]
    ingredients: list[IngredientCostAnalysisOut]
    summary: CostSummaryOut
