from typing import Literal

from pydantic import BaseModel, Field, field_validator

from menumagic.schemas.common import clean_required_text

CategoryType = Literal["ingredient", "recipe", "dish", "supplier"]


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    type: CategoryType

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return clean_required_text(value, "name")


class CategoryRenameIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return clean_required_text(value, "name")


class CategoryReorderIn(BaseModel):
    type: CategoryType
    category_ids: list[int] = Field(min_length=1)


class CategoryOut(BaseModel):
    id: int
    name: str
    type: str
    order_index: int
