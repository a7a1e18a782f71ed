from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from menumagic.schemas.common import clean_optional_text, clean_required_text


class DishCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    description: Optional[str] = None
    price: Decimal = Field(ge=0)
    category_id: Optional[int] = None
    recipe_id: Optional[int] = None
    image_url: Optional[str] = Field(default=None, max_length=500)
    is_available: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return clean_required_text(value, "name")

    @field_validator("description", "image_url")
    @classmethod
    def normalize_text(cls, value: Optional[str]) -> Optional[str]:
        return clean_optional_text(value)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Margherita Pizza",
                "price": 12.5,
                "category_id": 3,
                "recipe_id": 1,
                "is_available": True,
            }
        }
    )


class DishUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    category_id: Optional[int] = None
    recipe_id: Optional[int] = None
    image_url: Optional[str] = Field(default=None, max_length=500)
    is_available: Optional[bool] = None


class DishOut(BaseModel):
    id: int
    name: str
    description: str | None = None
    price: float
    category_id: int | None = None
    category_name: str | None = None
    recipe_id: int | None = None
    image_url: str | None = None
    is_available: bool
    cost_per_serving: float | None = None
    margin_percentage: float | None = None
