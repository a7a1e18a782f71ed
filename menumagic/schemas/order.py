from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from menumagic.schemas.common import PaginationMeta, clean_optional_text

ALLOWED_ORDER_STATUSES = {"pending", "completed", "cancelled"}
PaymentMethod = Literal["cash", "card", "mobile", "transfer", "other"]


class OrderItemIn(BaseModel):
    dish_id: int
    quantity: int = Field(gt=0)
    # Defaults to the dish's menu price.
    price: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = Field(default=None, max_length=255)


class OrderCreate(BaseModel):
    items: list[OrderItemIn] = Field(min_length=1)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    customer_name: Optional[str] = Field(default=None, max_length=150)
    table_number: Optional[str] = Field(default=None, max_length=20)
    notes: Optional[str] = None

    @field_validator("customer_name", "table_number", "notes")
    @classmethod
    def normalize_text(cls, value: Optional[str]) -> Optional[str]:
        return clean_optional_text(value)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [
                    {"dish_id": 1, "quantity": 2},
                    {"dish_id": 2, "quantity": 1, "price": 5.0},
                ],
                "discount": 0,
                "customer_name": "Walk-in",
                "table_number": "T4",
            }
        }
    )


class OrderStatusUpdateIn(BaseModel):
    status: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "cancelled",
            }
        }
    )


class PaymentCreate(BaseModel):
    amount: Decimal = Field(gt=0)
    method: PaymentMethod
    reference_number: Optional[str] = Field(default=None, max_length=64)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "amount": 29.0,
                "method": "cash",
            }
        }
    )


class OrderItemOut(BaseModel):
    id: int
    dish_id: int
    dish_name: str
    quantity: int
    price: float
    line_total: float
    notes: str | None = None


class PaymentOut(BaseModel):
    id: int
    order_id: int
    amount: float
    method: str
    status: str
    reference_number: str
    created_at: datetime


class OrderOut(BaseModel):
    id: int
    status: str
    subtotal: float
    tax: float
    discount: float
    total: float
    amount_paid: float
    balance_due: float
    payment_method: str | None = None
    customer_name: str | None = None
    table_number: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemOut]
    payments: list[PaymentOut]


class OrderSummaryOut(BaseModel):
    id: int
    status: str
    total: float
    item_count: int
    customer_name: str | None = None
    table_number: str | None = None
    created_at: datetime


class OrderListOut(BaseModel):
    items: list[OrderSummaryOut]
    pagination: PaginationMeta


class PaymentRecordOut(BaseModel):
    payment: PaymentOut
    order: OrderOut


class PosDishOut(BaseModel):
    id: int
    name: str
    price: float
    category_name: str | None = None
    image_url: str | None = None
