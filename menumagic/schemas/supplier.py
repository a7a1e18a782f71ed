from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from menumagic.schemas.common import clean_optional_text, clean_required_text

SupplierStatus = Literal["active", "inactive"]


class SupplierCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    category: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=40)
    address: Optional[str] = Field(default=None, max_length=255)
    tax_id: Optional[str] = Field(default=None, max_length=60)
    status: SupplierStatus = "active"

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return clean_required_text(value, "name")

    @field_validator("category", "email", "phone", "address", "tax_id")
    @classmethod
    def normalize_text(cls, value: Optional[str]) -> Optional[str]:
        return clean_optional_text(value)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Fresh Farms",
                "category": "Produce",
                "email": "orders@freshfarms.example",
                "phone": "+1 555 0100",
                "status": "active",
            }
        }
    )


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    category: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=40)
    address: Optional[str] = Field(default=None, max_length=255)
    tax_id: Optional[str] = Field(default=None, max_length=60)
    status: Optional[SupplierStatus] = None


class SupplierOut(BaseModel):
    id: int
    name: str
    category: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    tax_id: str | None = None
    status: str
    ingredient_count: int = 0
    created_at: datetime


class SuppliedIngredientOut(BaseModel):
    id: int
    name: str
    storage_unit: str
    storage_unit_cost: float | None = None


class SupplierDetailOut(SupplierOut):
    ingredients: list[SuppliedIngredientOut]
