from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from menumagic.db.base import Base


class Ingredient(Base):
    __tablename__ = "ingredients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(Integer, ForeignKey("restaurants.id"), index=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    sku: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    supplier_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("suppliers.id"), nullable=True, index=True)

    purchase_unit: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    storage_unit: Mapped[str] = mapped_column(String(30), nullable=False)
    # How many storage units one purchase unit holds, e.g. 1 case = 24 bottles.
    conversion_factor: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3), nullable=True)
    purchase_unit_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    cost_per_unit: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 4), nullable=True)
    low_stock_threshold: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("restaurant_id", "name", name="uq_ingredients_restaurant_name"),
    )
