from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from menumagic.core.api_docs import error_responses
from menumagic.core.deps import get_db
from menumagic.core.security_current import RequestContext, get_request_context
from menumagic.db.transaction import transaction
from menumagic.models.ingredient import Ingredient
from menumagic.models.inventory import InventoryAdjustment
from menumagic.schemas.inventory import (
    InventoryAdjustIn,
    InventoryAdjustmentOut,
    InventoryAdjustOut,
    InventoryHistoryEntryOut,
    InventoryHistoryOut,
    StockLevelOut,
)
from menumagic.services import inventory_service
from menumagic.services.catalog_service import get_owned

router = APIRouter(prefix="/inventory", tags=["inventory"])


def _adjustment_out(adjustment: InventoryAdjustment) -> InventoryAdjustmentOut:
    return InventoryAdjustmentOut(
        id=adjustment.id,
        ingredient_id=adjustment.ingredient_id,
        quantity_adjusted=float(adjustment.quantity_adjusted),
        reason_code=adjustment.reason_code,
        notes=adjustment.notes,
        user_id=adjustment.user_id,
        adjustment_date=adjustment.adjustment_date,
    )


@router.post(
    "/adjustments",
    response_model=InventoryAdjustOut,
    status_code=201,
    summary="Record a signed stock adjustment",
    responses=error_responses(400, 401, 404, 422, 500),
)
def adjust_stock(
    payload: InventoryAdjustIn,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    get_owned(db, Ingredient, restaurant_id=ctx.restaurant_id, object_id=payload.ingredient_id, label="Ingredient")

    with transaction(db, action="record inventory adjustment"):
        adjustment, current = inventory_service.adjust(
            db,
            restaurant_id=ctx.restaurant_id,
            ingredient_id=payload.ingredient_id,
            quantity=payload.quantity,
            reason_code=payload.reason_code,
            notes=payload.notes,
            user_id=ctx.user_id,
        )
    db.refresh(adjustment)
    return InventoryAdjustOut(adjustment=_adjustment_out(adjustment), current_quantity=float(current))


@router.get(
    "/levels",
    response_model=list[StockLevelOut],
    summary="Current stock for every ingredient",
    responses=error_responses(401, 500),
)
def list_stock_levels(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return [
        StockLevelOut(
            ingredient_id=row.ingredient_id,
            ingredient_name=row.ingredient_name,
            storage_unit=row.storage_unit,
            current_quantity=float(row.current_quantity),
            storage_unit_cost=float(round(row.storage_unit_cost, 4)) if row.storage_unit_cost is not None else None,
            stock_value=float(row.stock_value),
            low_stock_threshold=float(row.low_stock_threshold) if row.low_stock_threshold is not None else None,
            is_low_stock=row.is_low_stock,
            last_updated_at=row.last_updated_at,
        )
        for row in inventory_service.levels(db, restaurant_id=ctx.restaurant_id)
    ]


@router.get(
    "/levels/low",
    response_model=list[StockLevelOut],
    summary="Ingredients at or below their low-stock threshold",
    responses=error_responses(401, 500),
)
def list_low_stock(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return [level for level in list_stock_levels(db=db, ctx=ctx) if level.is_low_stock]


@router.get(
    "/history",
    response_model=list[InventoryHistoryEntryOut],
    summary="Latest adjustments across all ingredients",
    responses=error_responses(401, 422, 500),
)
def recent_history(
    limit: int = Query(default=inventory_service.DEFAULT_HISTORY_LIMIT, ge=1, le=inventory_service.MAX_HISTORY_LIMIT),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    rows = inventory_service.recent_history(db, restaurant_id=ctx.restaurant_id, limit=limit)
    return [
        InventoryHistoryEntryOut(
            **_adjustment_out(adjustment).model_dump(),
            ingredient_name=ingredient_name,
            user_name=user_name,
        )
        for adjustment, ingredient_name, user_name in rows
    ]


@router.get(
    "/ingredients/{ingredient_id}/history",
    response_model=InventoryHistoryOut,
    summary="Adjustment history for one ingredient, newest first",
    responses=error_responses(401, 404, 422, 500),
)
def ingredient_history(
    ingredient_id: int,
    limit: int = Query(default=inventory_service.DEFAULT_HISTORY_LIMIT, ge=1, le=inventory_service.MAX_HISTORY_LIMIT),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    get_owned(db, Ingredient, restaurant_id=ctx.restaurant_id, object_id=ingredient_id, label="Ingredient")
    items = inventory_service.history(
        db, restaurant_id=ctx.restaurant_id, ingredient_id=ingredient_id, limit=limit
    )
    current = inventory_service.get_current_quantity(db, ingredient_id=ingredient_id)
    return InventoryHistoryOut(
        ingredient_id=ingredient_id,
        current_quantity=float(current),
        items=[_adjustment_out(item) for item in items],
    )
