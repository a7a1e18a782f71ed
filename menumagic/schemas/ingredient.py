from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from menumagic.schemas.common import clean_optional_text, clean_required_text


class IngredientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    sku: Optional[str] = Field(default=None, max_length=64)
    description: Optional[str] = None
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    purchase_unit: Optional[str] = Field(default=None, max_length=30)
    storage_unit: str = Field(min_length=1, max_length=30)
    conversion_factor: Optional[Decimal] = Field(default=None, gt=0)
    purchase_unit_cost: Optional[Decimal] = Field(default=None, ge=0)
    cost_per_unit: Optional[Decimal] = Field(default=None, ge=0)
    low_stock_threshold: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator("name", "storage_unit")
    @classmethod
    def validate_required_text(cls, value: str, info) -> str:
        return clean_required_text(value, info.field_name)

    @field_validator("sku", "description", "purchase_unit")
    @classmethod
    def normalize_text(cls, value: Optional[str]) -> Optional[str]:
        return clean_optional_text(value)

    @model_validator(mode="after")
    def validate_cost_source(self) -> "IngredientCreate":
        has_conversion = self.purchase_unit_cost is not None and self.conversion_factor is not None
        if not has_conversion and self.cost_per_unit is None:
            raise ValueError(
                "cost_per_unit is required when purchase_unit_cost and conversion_factor are not both supplied"
            )
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Tomato",
                "purchase_unit": "case",
                "storage_unit": "kg",
                "conversion_factor": 10,
                "purchase_unit_cost": 25.0,
                "low_stock_threshold": 5,
            }
        }
    )


class IngredientUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    sku: Optional[str] = Field(default=None, max_length=64)
    description: Optional[str] = None
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    purchase_unit: Optional[str] = Field(default=None, max_length=30)
    storage_unit: Optional[str] = Field(default=None, min_length=1, max_length=30)
    low_stock_threshold: Optional[Decimal] = Field(default=None, ge=0)


class IngredientCostUpdate(BaseModel):
    conversion_factor: Optional[Decimal] = Field(default=None, gt=0)
    purchase_unit_cost: Optional[Decimal] = Field(default=None, ge=0)
    cost_per_unit: Optional[Decimal] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_cost_source(self) -> "IngredientCostUpdate":
        if self.purchase_unit_cost is None and self.cost_per_unit is None:
            raise ValueError("purchase_unit_cost or cost_per_unit is required")
        return self


class IngredientOut(BaseModel):
    id: int
    name: str
    sku: str | None = None
    description: str | None = None
    category_id: int | None = None
    category_name: str | None = None
    supplier_id: int | None = None
    supplier_name: str | None = None
    purchase_unit: str | None = None
    storage_unit: str
    conversion_factor: float | None = None
    purchase_unit_cost: float | None = None
    cost_per_unit: float | None = None
    storage_unit_cost: float | None = None
    low_stock_threshold: float | None = None
    created_at: datetime


class IngredientDetailOut(IngredientOut):
    current_quantity: float
    last_updated_at: datetime | None = None
