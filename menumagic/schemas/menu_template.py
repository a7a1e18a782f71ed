import re
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from menumagic.schemas.common import clean_optional_text, clean_required_text

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class TemplateStyle(BaseModel):
    """Presentation settings rendered by the public menu page."""

    primary_color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    secondary_color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    accent_color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    background_color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    background_image_url: Optional[str] = Field(default=None, max_length=500)
    border_radius: Optional[str] = Field(default=None, max_length=20)
    font_family_primary: Optional[str] = Field(default=None, max_length=80)
    font_family_secondary: Optional[str] = Field(default=None, max_length=80)
    layout_style: Optional[Literal["list", "grid"]] = None
    card_style: Optional[Literal["flat", "bordered", "elevated"]] = None
    spacing: Optional[Literal["compact", "comfortable", "spacious"]] = None
    show_images: Optional[bool] = None
    show_descriptions: Optional[bool] = None
    show_prices: Optional[bool] = None
    header_style: Optional[Literal["centered", "left", "banner"]] = None
    footer_style: Optional[Literal["none", "simple", "detailed"]] = None

    model_config = ConfigDict(extra="forbid")


class MenuTemplateCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    description: Optional[str] = None
    preview_image_url: Optional[str] = Field(default=None, max_length=500)
    template_data_json: TemplateStyle = Field(default_factory=TemplateStyle)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return clean_required_text(value, "name")

    @field_validator("description", "preview_image_url")
    @classmethod
    def normalize_text(cls, value: Optional[str]) -> Optional[str]:
        return clean_optional_text(value)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Summer Terrace",
                "description": "Bright colors for the patio menu",
                "template_data_json": {
                    "primary_color": "#0EA5E9",
                    "accent_color": "#F59E0B",
                    "layout_style": "grid",
                    "show_images": True,
                },
            }
        }
    )


class MenuTemplateUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    description: Optional[str] = None
    preview_image_url: Optional[str] = Field(default=None, max_length=500)
    template_data_json: Optional[TemplateStyle] = None

    @field_validator("description", "preview_image_url")
    @classmethod
    def normalize_text(cls, value: Optional[str]) -> Optional[str]:
        return clean_optional_text(value)


class MenuTemplateSummaryOut(BaseModel):
    id: int
    name: str
    description: str | None = None
    preview_image_url: str | None = None
    is_default: bool


class MenuTemplateOut(MenuTemplateSummaryOut):
    template_data_json: dict
    created_at: datetime
    updated_at: datetime


class MenuTemplateApplyIn(BaseModel):
    # null detaches the menu from its template.
    template_id: Optional[int] = None


class BrandKitOut(BaseModel):
    logo_url: str | None = None
    primary_color_hex: str
    secondary_colors: list[str]
    font_family_main: str
    font_family_secondary: str
    updated_at: datetime


class BrandKitUpdate(BaseModel):
    logo_url: Optional[str] = Field(default=None, max_length=500)
    primary_color_hex: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    secondary_colors: Optional[list[str]] = Field(default=None, max_length=8)
    font_family_main: Optional[str] = Field(default=None, min_length=1, max_length=80)
    font_family_secondary: Optional[str] = Field(default=None, min_length=1, max_length=80)

    @field_validator("secondary_colors")
    @classmethod
    def validate_secondary_colors(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return None
        for color in value:
            if not re.fullmatch(HEX_COLOR_PATTERN, color):
                raise ValueError(f"secondary color must be a #RRGGBB hex value: {color}")
        return [color.upper() for color in value]

    @field_validator("primary_color_hex")
    @classmethod
    def normalize_primary(cls, value: Optional[str]) -> Optional[str]:
        return value.upper() if value else value
