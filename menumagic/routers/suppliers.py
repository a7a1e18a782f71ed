from fastapi import APIRouter, Depends
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from menumagic.core.api_docs import error_responses
from menumagic.core.deps import get_db
from menumagic.core.money import money_or_none
from menumagic.core.security_current import RequestContext, get_request_context
from menumagic.db.transaction import transaction
from menumagic.models.ingredient import Ingredient
from menumagic.models.supplier import Supplier
from menumagic.schemas.common import OkOut
from menumagic.schemas.supplier import (
    SuppliedIngredientOut,
    SupplierCreate,
    SupplierDetailOut,
    SupplierOut,
    SupplierUpdate,
)
from menumagic.services.audit_service import log_audit_event
from menumagic.services.catalog_service import get_owned
from menumagic.services.costing_service import storage_unit_cost

router = APIRouter(prefix="/suppliers", tags=["suppliers"])


def _supplier_out(supplier: Supplier, ingredient_count: int) -> SupplierOut:
    return SupplierOut(
        id=supplier.id,
        name=supplier.name,
        category=supplier.category,
        email=supplier.email,
        phone=supplier.phone,
        address=supplier.address,
        tax_id=supplier.tax_id,
        status=supplier.status,
        ingredient_count=ingredient_count,
        created_at=supplier.created_at,
    )


@router.get(
    "",
    response_model=list[SupplierOut],
    summary="List suppliers",
    responses=error_responses(401, 500),
)
def list_suppliers(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    counts = (
        select(Ingredient.supplier_id, func.count(Ingredient.id).label("ingredient_count"))
        .where(Ingredient.restaurant_id == ctx.restaurant_id)
        .group_by(Ingredient.supplier_id)
        .subquery()
    )
    rows = db.execute(
        select(Supplier, func.coalesce(counts.c.ingredient_count, 0))
        .outerjoin(counts, counts.c.supplier_id == Supplier.id)
        .where(Supplier.restaurant_id == ctx.restaurant_id)
        .order_by(Supplier.name.asc())
    ).all()
    return [_supplier_out(supplier, int(count)) for supplier, count in rows]


@router.get(
    "/{supplier_id}",
    response_model=SupplierDetailOut,
    summary="Get supplier with the ingredients it supplies",
    responses=error_responses(401, 404, 500),
)
def get_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    supplier = get_owned(db, Supplier, restaurant_id=ctx.restaurant_id, object_id=supplier_id, label="Supplier")
    ingredients = db.execute(
        select(Ingredient)
        .where(Ingredient.restaurant_id == ctx.restaurant_id, Ingredient.supplier_id == supplier.id)
        .order_by(Ingredient.name.asc())
    ).scalars().all()
    base = _supplier_out(supplier, len(ingredients))
    return SupplierDetailOut(
        **base.model_dump(),
        ingredients=[
            SuppliedIngredientOut(
                id=ingredient.id,
                name=ingredient.name,
                storage_unit=ingredient.storage_unit,
                storage_unit_cost=money_or_none(storage_unit_cost(ingredient)),
            )
            for ingredient in ingredients
        ],
    )


@router.post(
    "",
    response_model=SupplierOut,
    status_code=201,
    summary="Create supplier",
    responses=error_responses(401, 422, 500),
)
def create_supplier(
    payload: SupplierCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    with transaction(db, action="create supplier"):
        supplier = Supplier(restaurant_id=ctx.restaurant_id, **payload.model_dump())
        db.add(supplier)
        db.flush()
        log_audit_event(
            db,
            ctx=ctx,
            action="supplier.create",
            target_type="supplier",
            target_id=supplier.id,
            metadata_json={"name": supplier.name},
        )
    db.refresh(supplier)
    return _supplier_out(supplier, 0)


@router.patch(
    "/{supplier_id}",
    response_model=SupplierOut,
    summary="Update supplier",
    responses=error_responses(401, 404, 422, 500),
)
def update_supplier(
    supplier_id: int,
    payload: SupplierUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    supplier = get_owned(db, Supplier, restaurant_id=ctx.restaurant_id, object_id=supplier_id, label="Supplier")
    changes = payload.model_dump(exclude_unset=True)
    with transaction(db, action="update supplier"):
        for field, value in changes.items():
            if field in {"name", "status"} and value is None:
                continue
            setattr(supplier, field, value.strip() if isinstance(value, str) else value)
    db.refresh(supplier)
    count = db.execute(
        select(func.count(Ingredient.id)).where(
            Ingredient.restaurant_id == ctx.restaurant_id,
            Ingredient.supplier_id == supplier.id,
        )
    ).scalar_one()
    return _supplier_out(supplier, int(count))


@router.delete(
    "/{supplier_id}",
    response_model=OkOut,
    summary="Delete supplier and unlink its ingredients",
    responses=error_responses(401, 404, 500),
)
def delete_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    supplier = get_owned(db, Supplier, restaurant_id=ctx.restaurant_id, object_id=supplier_id, label="Supplier")
    with transaction(db, action="delete supplier"):
        db.execute(
            update(Ingredient)
            .where(Ingredient.restaurant_id == ctx.restaurant_id, Ingredient.supplier_id == supplier.id)
            .values(supplier_id=None)
        )
        log_audit_event(
            db,
            ctx=ctx,
            action="supplier.delete",
            target_type="supplier",
            target_id=supplier.id,
            metadata_json={"name": supplier.name},
        )
        db.delete(supplier)
    return OkOut()
