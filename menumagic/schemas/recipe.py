from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from menumagic.schemas.common import clean_optional_text, clean_required_text


class RecipeIngredientIn(BaseModel):
    ingredient_id: int
    quantity: Decimal = Field(gt=0)
    unit: Optional[str] = Field(default=None, max_length=30)


class RecipeCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    sku: Optional[str] = Field(default=None, max_length=64)
    category: Optional[str] = Field(default=None, max_length=100)
    status: str = Field(default="active", max_length=20)
    selling_price: Optional[Decimal] = Field(default=None, ge=0)
    yield_amount: Optional[Decimal] = Field(default=None, gt=0)
    yield_unit: Optional[str] = Field(default=None, max_length=30)
    allergens: list[str] = Field(default_factory=list)
    preparation_instructions: Optional[str] = None
    ingredients: list[RecipeIngredientIn] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return clean_required_text(value, "name")

    @field_validator("sku", "category", "yield_unit", "preparation_instructions")
    @classmethod
    def normalize_text(cls, value: Optional[str]) -> Optional[str]:
        return clean_optional_text(value)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Margherita Pizza",
                "category": "Pizza",
                "selling_price": 12.5,
                "yield_amount": 1,
                "yield_unit": "pizza",
                "allergens": ["gluten", "dairy"],
                "ingredients": [
                    {"ingredient_id": 1, "quantity": 0.25, "unit": "kg"},
                    {"ingredient_id": 2, "quantity": 0.15, "unit": "kg"},
                ],
            }
        }
    )


class RecipeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    sku: Optional[str] = Field(default=None, max_length=64)
    category: Optional[str] = Field(default=None, max_length=100)
    status: Optional[str] = Field(default=None, max_length=20)
    selling_price: Optional[Decimal] = Field(default=None, ge=0)
    yield_amount: Optional[Decimal] = Field(default=None, gt=0)
    yield_unit: Optional[str] = Field(default=None, max_length=30)
    allergens: Optional[list[str]] = None
    preparation_instructions: Optional[str] = None
    # When supplied, replaces the whole link set.
    ingredients: Optional[list[RecipeIngredientIn]] = None


class RecipeCostLineOut(BaseModel):
    ingredient_id: int
    ingredient_name: str
    quantity: float
    unit: str | None = None
    storage_unit_cost: float | None = None
    line_cost: float


class RecipeSummaryOut(BaseModel):
    id: int
    name: str
    sku: str | None = None
    category_name: str | None = None
    status: str
    selling_price: float | None = None
    ingredient_count: int
    total_cost: float
    margin_percentage: float | None = None
    is_cost_complete: bool


class RecipeOut(RecipeSummaryOut):
    category_id: int | None = None
    yield_amount: float | None = None
    yield_unit: str | None = None
    allergens: list[str]
    preparation_instructions: str | None = None
    ingredients: list[RecipeCostLineOut]
    missing_cost_ingredient_ids: list[int]
    created_at: datetime
    updated_at: datetime
