from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, false, func
from sqlalchemy.orm import Mapped, mapped_column

from menumagic.db.base import Base


class DigitalMenu(Base):
    __tablename__ = "digital_menus"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(Integer, ForeignKey("restaurants.id"), index=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    template_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("menu_templates.id"), nullable=True, index=True
    )
    qr_code_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # data URI
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )


class DigitalMenuItem(Base):
    __tablename__ = "digital_menu_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    digital_menu_id: Mapped[int] = mapped_column(Integer, ForeignKey("digital_menus.id"), index=True)
    dish_id: Mapped[int] = mapped_column(Integer, ForeignKey("dishes.id"), index=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    __table_args__ = (
        UniqueConstraint("digital_menu_id", "dish_id", name="uq_digital_menu_items_menu_dish"),
    )
