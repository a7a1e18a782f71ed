from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from menumagic.db.base import Base


class InventoryStockLevel(Base):
    """
    Current on-hand quantity per ingredient. Only ever changed by adding an
    adjustment's signed quantity, so it equals the sum of the adjustment log.
    """
    __tablename__ = "inventory_stock_levels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(Integer, ForeignKey("restaurants.id"), index=True)
    ingredient_id: Mapped[int] = mapped_column(Integer, ForeignKey("ingredients.id"), unique=True, nullable=False)
    current_quantity_in_storage_units: Mapped[Decimal] = mapped_column(
        Numeric(12, 3), nullable=False, default=Decimal("0"), server_default="0"
    )
    last_updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )


class InventoryAdjustment(Base):
    """
    One row per stock movement. Positive = stock in. Negative = stock out (waste/usage).
    Rows are never updated or deleted.
    """
    __tablename__ = "inventory_adjustments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(Integer, ForeignKey("restaurants.id"), index=True)
    ingredient_id: Mapped[int] = mapped_column(Integer, ForeignKey("ingredients.id"), index=True)
    quantity_adjusted: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    reason_code: Mapped[str] = mapped_column(String(50), nullable=False)  # "restock", "waste", "count_correction"
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    adjustment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_inventory_adjustments_restaurant_date", "restaurant_id", "adjustment_date"),
        Index(
            "ix_inventory_adjustments_ingredient_date",
            "ingredient_id",
            "adjustment_date",
        ),
    )
