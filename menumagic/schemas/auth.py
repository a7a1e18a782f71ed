from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from menumagic.schemas.common import clean_required_text


class RegisterIn(BaseModel):
    name: str
    email: EmailStr
    password: str
    restaurant_name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return clean_required_text(value, "name")

    @field_validator("restaurant_name")
    @classmethod
    def validate_restaurant_name(cls, value: str) -> str:
        return clean_required_text(value, "restaurant_name")

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < 8:
            raise ValueError("password must be at least 8 characters")
        return value

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Jane Owner",
                "email": "owner@example.com",
                "password": "password123",
                "restaurant_name": "Jane's Bistro",
            }
        }
    )


class LoginIn(BaseModel):
    email: EmailStr
    password: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "owner@example.com",
                "password": "password123",
            }
        }
    )


class SessionOut(BaseModel):
    user_id: int
    restaurant_id: int
    expires_at: datetime


class SessionProbeOut(BaseModel):
    session: Optional[SessionOut] = None


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    restaurant_id: int | None = None
    created_at: datetime


class AuthOut(BaseModel):
    user: UserOut
    restaurant_id: int
