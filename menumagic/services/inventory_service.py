import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from menumagic.core.config import settings
from menumagic.core.errors import ValidationFailed
from menumagic.core.money import ZERO_QTY, to_money, to_qty
from menumagic.db.upsert import insert_for_dialect
from menumagic.models.ingredient import Ingredient
from menumagic.models.inventory import InventoryAdjustment, InventoryStockLevel
from menumagic.models.user import User
from menumagic.services.costing_service import storage_unit_cost

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 200


@dataclass(frozen=True)
class StockLevelRow:
    ingredient_id: int
    ingredient_name: str
    storage_unit: str
    current_quantity: Decimal
    storage_unit_cost: Decimal | None
    stock_value: Decimal
    low_stock_threshold: Decimal | None
    is_low_stock: bool
    last_updated_at: datetime | None


def get_current_quantity(db: Session, *, ingredient_id: int) -> Decimal:
    current = db.execute(
        select(InventoryStockLevel.current_quantity_in_storage_units).where(
            InventoryStockLevel.ingredient_id == ingredient_id
        )
    ).scalar_one_or_none()
    return to_qty(current) if current is not None else ZERO_QTY


def _accumulate_stock_level(
    db: Session,
    *,
    restaurant_id: int,
    ingredient_id: int,
    quantity: Decimal,
) -> None:
    # Single statement: create the row at `quantity`, or add `quantity` to it.
    insert = insert_for_dialect(db)
    stmt = insert(InventoryStockLevel).values(
        restaurant_id=restaurant_id,
        ingredient_id=ingredient_id,
        current_quantity_in_storage_units=quantity,
        last_updated_at=func.now(),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[InventoryStockLevel.ingredient_id],
        set_={
            "current_quantity_in_storage_units": (
                InventoryStockLevel.current_quantity_in_storage_units
                + stmt.excluded.current_quantity_in_storage_units
            ),
            "last_updated_at": func.now(),
        },
    )
    db.execute(stmt)


def adjust(
    db: Session,
    *,
    restaurant_id: int,
    ingredient_id: int,
    quantity: Decimal,
    reason_code: str,
    notes: str | None = None,
    user_id: int | None = None,
) -> tuple[InventoryAdjustment, Decimal]:
    """
    Record one signed stock movement and fold it into the stock level.

    Does not commit; callers wrap this in ``transaction()`` so the log row and
    the aggregate change land together or not at all.
    """
    quantity = to_qty(quantity)
    if quantity == 0:
        raise ValidationFailed("Adjustment quantity cannot be zero")
    reason_code = reason_code.strip().lower()
    if not reason_code:
        raise ValidationFailed("Reason code is required")

    current = get_current_quantity(db, ingredient_id=ingredient_id)
    if current + quantity < 0 and not settings.inventory_allow_negative_stock:
        raise ValidationFailed(
            "Insufficient stock",
            details=[
                {
                    "field": "quantity",
                    "message": f"Only {current} available",
                    "type": "insufficient_stock",
                }
            ],
        )

    adjustment = InventoryAdjustment(
        restaurant_id=restaurant_id,
        ingredient_id=ingredient_id,
        quantity_adjusted=quantity,
        reason_code=reason_code,
        notes=notes,
        user_id=user_id,
    )
    db.add(adjustment)
    db.flush()

    _accumulate_stock_level(
        db,
        restaurant_id=restaurant_id,
        ingredient_id=ingredient_id,
        quantity=quantity,
    )
    new_quantity = get_current_quantity(db, ingredient_id=ingredient_id)
    logger.info(
        "inventory adjusted restaurant=%s ingredient=%s delta=%s reason=%s stock=%s",
        restaurant_id,
        ingredient_id,
        quantity,
        reason_code,
        new_quantity,
    )
    return adjustment, new_quantity


def history(
    db: Session,
    *,
    restaurant_id: int,
    ingredient_id: int,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> list[InventoryAdjustment]:
    limit = max(1, min(limit, MAX_HISTORY_LIMIT))
    return db.execute(
        select(InventoryAdjustment)
        .where(
            InventoryAdjustment.restaurant_id == restaurant_id,
            InventoryAdjustment.ingredient_id == ingredient_id,
        )
        .order_by(InventoryAdjustment.adjustment_date.desc(), InventoryAdjustment.id.desc())
        .limit(limit)
    ).scalars().all()


def recent_history(db: Session, *, restaurant_id: int, limit: int = DEFAULT_HISTORY_LIMIT):
    limit = max(1, min(limit, MAX_HISTORY_LIMIT))
    return db.execute(
        select(
            InventoryAdjustment,
            Ingredient.name.label("ingredient_name"),
            User.name.label("user_name"),
        )
        .join(Ingredient, Ingredient.id == InventoryAdjustment.ingredient_id)
        .outerjoin(User, User.id == InventoryAdjustment.user_id)
        .where(InventoryAdjustment.restaurant_id == restaurant_id)
        .order_by(InventoryAdjustment.adjustment_date.desc(), InventoryAdjustment.id.desc())
        .limit(limit)
    ).all()


def levels(db: Session, *, restaurant_id: int) -> list[StockLevelRow]:
    rows = db.execute(
        select(
            Ingredient,
            InventoryStockLevel.current_quantity_in_storage_units,
            InventoryStockLevel.last_updated_at,
        )
        .outerjoin(InventoryStockLevel, InventoryStockLevel.ingredient_id == Ingredient.id)
        .where(Ingredient.restaurant_id == restaurant_id)
        .order_by(Ingredient.name.asc())
    ).all()

    out: list[StockLevelRow] = []
    for ingredient, quantity, last_updated_at in rows:
        current = to_qty(quantity) if quantity is not None else ZERO_QTY
        unit_cost = storage_unit_cost(ingredient)
        threshold = ingredient.low_stock_threshold
        out.append(
            StockLevelRow(
                ingredient_id=ingredient.id,
                ingredient_name=ingredient.name,
                storage_unit=ingredient.storage_unit,
                current_quantity=current,
                storage_unit_cost=unit_cost,
                stock_value=to_money(current * unit_cost) if unit_cost is not None else to_money(0),
                low_stock_threshold=threshold,
                is_low_stock=bool(threshold is not None and threshold > 0 and current <= threshold),
                last_updated_at=last_updated_at,
            )
        )
    return out
