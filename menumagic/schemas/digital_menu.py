from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from menumagic.schemas.common import clean_required_text


class DigitalMenuCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    is_active: bool = False
    dish_ids: list[int] = Field(default_factory=list)
    template_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return clean_required_text(value, "name")


class DigitalMenuUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    is_active: Optional[bool] = None


class DigitalMenuItemIn(BaseModel):
    dish_id: int


class DigitalMenuReorderIn(BaseModel):
    dish_ids: list[int] = Field(min_length=1)


class DigitalMenuItemOut(BaseModel):
    dish_id: int
    dish_name: str
    price: float
    is_available: bool
    order_index: int


class DigitalMenuOut(BaseModel):
    id: int
    name: str
    is_active: bool
    template_id: int | None = None
    qr_code_url: str | None = None
    public_url: str
    item_count: int
    created_at: datetime
    updated_at: datetime


class DigitalMenuDetailOut(DigitalMenuOut):
    items: list[DigitalMenuItemOut]


class PublicMenuDishOut(BaseModel):
    id: int
    name: str
    description: str | None = None
    price: float
    image_url: str | None = None


class PublicMenuCategoryOut(BaseModel):
    name: str
    dishes: list[PublicMenuDishOut]


class PublicBrandOut(BaseModel):
    logo_url: str | None = None
    primary_color_hex: str
    secondary_colors: list[str]
    font_family_main: str
    font_family_secondary: str


class PublicMenuOut(BaseModel):
    id: int
    name: str
    restaurant_name: str
    categories: list[PublicMenuCategoryOut]
    template: dict | None = None
    brand: PublicBrandOut | None = None


class QrGenerateIn(BaseModel):
    url: str = Field(min_length=1, max_length=2048)

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        return clean_required_text(value, "url")


class QrOut(BaseModel):
    qr_code_base64: str
