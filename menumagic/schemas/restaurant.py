from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from menumagic.schemas.common import clean_optional_text


class RestaurantOut(BaseModel):
    id: int
    name: str
    owner_user_id: int | None = None
    phone: str | None = None
    email: str | None = None
    cuisine_type: str | None = None
    currency_code: str
    timezone: str
    created_at: datetime


class RestaurantUpdateIn(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    phone: Optional[str] = Field(default=None, max_length=40)
    email: Optional[str] = Field(default=None, max_length=255)
    cuisine_type: Optional[str] = Field(default=None, max_length=80)
    currency_code: Optional[str] = Field(default=None, min_length=3, max_length=3)
    timezone: Optional[str] = Field(default=None, max_length=64)

    @field_validator("phone", "email", "cuisine_type")
    @classmethod
    def normalize_text(cls, value: Optional[str]) -> Optional[str]:
        return clean_optional_text(value)

    @field_validator("currency_code")
    @classmethod
    def normalize_currency(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip().upper()
