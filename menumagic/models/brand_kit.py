from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from menumagic.db.base import Base


class BrandKit(Base):
    __tablename__ = "brand_kits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # One kit per restaurant, created with defaults on first use.
    restaurant_id: Mapped[int] = mapped_column(Integer, ForeignKey("restaurants.id"), unique=True, index=True)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    primary_color_hex: Mapped[str] = mapped_column(String(7), nullable=False, default="#F59E0B")
    secondary_colors_json: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    font_family_main: Mapped[str] = mapped_column(String(80), nullable=False, default="Inter")
    font_family_secondary: Mapped[str] = mapped_column(String(80), nullable=False, default="Lora")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
