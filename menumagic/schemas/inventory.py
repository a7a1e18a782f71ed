from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InventoryAdjustIn(BaseModel):
    ingredient_id: int
    quantity: Decimal = Field(
        ..., description="Positive adds stock, negative removes stock. Cannot be zero."
    )
    reason_code: str = Field(..., min_length=1, max_length=50)
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("quantity")
    @classmethod
    def validate_non_zero_quantity(cls, value: Decimal) -> Decimal:
        if value == 0:
            raise ValueError("quantity cannot be zero")
        return value

    @field_validator("reason_code")
    @classmethod
    def normalize_reason_code(cls, value: str) -> str:
        cleaned = value.strip().lower()
        if not cleaned:
            raise ValueError("reason_code is required")
        return cleaned

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "ingredient_id": 1,
                "quantity": -2.5,
                "reason_code": "waste",
                "notes": "Spoiled in walk-in",
            }
        }
    )


class InventoryAdjustmentOut(BaseModel):
    id: int
    ingredient_id: int
    quantity_adjusted: float
    reason_code: str
    notes: str | None = None
    user_id: int | None = None
    adjustment_date: datetime


class InventoryAdjustOut(BaseModel):
    adjustment: InventoryAdjustmentOut
    current_quantity: float


class InventoryHistoryEntryOut(InventoryAdjustmentOut):
    ingredient_name: str
    user_name: str | None = None


class InventoryHistoryOut(BaseModel):
    ingredient_id: int
    current_quantity: float
    items: list[InventoryAdjustmentOut]


class StockLevelOut(BaseModel):
    ingredient_id: int
    ingredient_name: str
    storage_unit: str
    current_quantity: float
    storage_unit_cost: float | None = None
    stock_value: float
    low_stock_threshold: float | None = None
    is_low_stock: bool
    last_updated_at: datetime | None = None
