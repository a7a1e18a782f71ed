from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from menumagic.core.api_docs import error_responses
from menumagic.core.deps import get_db
from menumagic.core.errors import ValidationFailed
from menumagic.core.money import to_money
from menumagic.core.security_current import RequestContext, get_request_context
from menumagic.db.transaction import transaction
from menumagic.models.category import Category
from menumagic.models.dish import Dish
from menumagic.models.order import Order, OrderItem, Payment
from menumagic.schemas.common import PaginationMeta
from menumagic.schemas.order import (
    ALLOWED_ORDER_STATUSES,
    OrderCreate,
    OrderItemOut,
    OrderListOut,
    OrderOut,
    OrderStatusUpdateIn,
    OrderSummaryOut,
    PaymentCreate,
    PaymentOut,
    PaymentRecordOut,
    PosDishOut,
)
from menumagic.services import order_service
from menumagic.services.audit_service import log_audit_event

router = APIRouter(prefix="/pos", tags=["pos"])


def _payment_out(payment: Payment) -> PaymentOut:
    return PaymentOut(
        id=payment.id,
        order_id=payment.order_id,
        amount=float(payment.amount),
        method=payment.method,
        status=payment.status,
        reference_number=payment.reference_number,
        created_at=payment.created_at,
    )


def _order_out(db: Session, order: Order) -> OrderOut:
    rows = db.execute(
        select(OrderItem, Dish.name)
        .join(Dish, Dish.id == OrderItem.dish_id)
        .where(OrderItem.order_id == order.id)
        .order_by(OrderItem.id.asc())
    ).all()
    payments = db.execute(
        select(Payment).where(Payment.order_id == order.id).order_by(Payment.id.asc())
    ).scalars().all()
    paid = order_service.amount_paid(db, order_id=order.id)
    balance = max(to_money(order.total) - paid, to_money(0))
    return OrderOut(
        id=order.id,
        status=order.status,
        subtotal=float(order.subtotal),
        tax=float(order.tax),
        discount=float(order.discount),
        total=float(order.total),
        amount_paid=float(paid),
        balance_due=float(balance),
        payment_method=order.payment_method,
        customer_name=order.customer_name,
        table_number=order.table_number,
        notes=order.notes,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=[
            OrderItemOut(
                id=item.id,
                dish_id=item.dish_id,
                dish_name=dish_name,
                quantity=item.quantity,
                price=float(item.price),
                line_total=float(to_money(item.price * item.quantity)),
                notes=item.notes,
            )
            for item, dish_name in rows
        ],
        payments=[_payment_out(payment) for payment in payments],
    )


@router.get(
    "/dishes",
    response_model=list[PosDishOut],
    summary="Dishes that can be rung up",
    responses=error_responses(401, 500),
)
def list_pos_dishes(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    rows = db.execute(
        select(Dish, Category.name)
        .outerjoin(Category, Category.id == Dish.category_id)
        .where(
            Dish.restaurant_id == ctx.restaurant_id,
            Dish.is_available.is_(True),
            Dish.price > 0,
        )
        .order_by(Dish.name.asc())
    ).all()
    return [
        PosDishOut(
            id=dish.id,
            name=dish.name,
            price=float(dish.price),
            category_name=category_name,
            image_url=dish.image_url,
        )
        for dish, category_name in rows
    ]


@router.post(
    "/orders",
    response_model=OrderOut,
    status_code=201,
    summary="Create a pending order",
    responses=error_responses(400, 401, 404, 422, 500),
)
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    with transaction(db, action="create order"):
        order, items = order_service.create_order(db, restaurant_id=ctx.restaurant_id, payload=payload)
        log_audit_event(
            db,
            ctx=ctx,
            action="order.create",
            target_type="order",
            target_id=order.id,
            metadata_json={"total": str(order.total), "items_count": len(items)},
        )
    db.refresh(order)
    return _order_out(db, order)


@router.get(
    "/orders",
    response_model=OrderListOut,
    summary="List orders, newest first",
    responses=error_responses(400, 401, 422, 500),
)
def list_orders(
    status: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    if status is not None and status not in ALLOWED_ORDER_STATUSES:
        raise ValidationFailed("Invalid order status filter")

    filters = [Order.restaurant_id == ctx.restaurant_id]
    if status is not None:
        filters.append(Order.status == status)

    total = int(db.execute(select(func.count(Order.id)).where(*filters)).scalar_one())
    item_counts = (
        select(OrderItem.order_id, func.coalesce(func.sum(OrderItem.quantity), 0).label("item_count"))
        .group_by(OrderItem.order_id)
        .subquery()
    )
    rows = db.execute(
        select(Order, func.coalesce(item_counts.c.item_count, 0))
        .outerjoin(item_counts, item_counts.c.order_id == Order.id)
        .where(*filters)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .offset(offset)
        .limit(limit)
    ).all()

    items = [
        OrderSummaryOut(
            id=order.id,
            status=order.status,
            total=float(order.total),
            item_count=int(item_count),
            customer_name=order.customer_name,
            table_number=order.table_number,
            created_at=order.created_at,
        )
        for order, item_count in rows
    ]
    count = len(items)
    return OrderListOut(
        items=items,
        pagination=PaginationMeta(
            total=total,
            limit=limit,
            offset=offset,
            count=count,
            has_next=(offset + count) < total,
        ),
    )


@router.get(
    "/orders/recent",
    response_model=list[OrderSummaryOut],
    summary="Most recent orders",
    responses=error_responses(401, 422, 500),
)
def recent_orders(
    limit: int = Query(default=10, ge=1, le=50),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return list_orders(status=None, limit=limit, offset=0, db=db, ctx=ctx).items


@router.get(
    "/orders/{order_id}",
    response_model=OrderOut,
    summary="Get order with items and payments",
    responses=error_responses(401, 404, 500),
)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    order = order_service.get_order(db, restaurant_id=ctx.restaurant_id, order_id=order_id)
    return _order_out(db, order)


@router.patch(
    "/orders/{order_id}/status",
    response_model=OrderOut,
    summary="Move an order through its status flow",
    responses=error_responses(400, 401, 404, 422, 500),
)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdateIn,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    next_status = payload.status.strip().lower()
    if next_status not in ALLOWED_ORDER_STATUSES:
        raise ValidationFailed("Invalid order status")

    order = order_service.get_order(db, restaurant_id=ctx.restaurant_id, order_id=order_id)
    previous_status = order.status
    if next_status == previous_status:
        return _order_out(db, order)
    order_service.ensure_transition_allowed(previous_status, next_status)

    with transaction(db, action="update order status"):
        order.status = next_status
        log_audit_event(
            db,
            ctx=ctx,
            action="order.status_update",
            target_type="order",
            target_id=order.id,
            metadata_json={"from": previous_status, "to": next_status},
        )
    db.refresh(order)
    return _order_out(db, order)


@router.post(
    "/orders/{order_id}/payments",
    response_model=PaymentRecordOut,
    status_code=201,
    summary="Record a payment, completing the order",
    responses=error_responses(400, 401, 404, 422, 500),
)
def record_payment(
    order_id: int,
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    order = order_service.get_order(db, restaurant_id=ctx.restaurant_id, order_id=order_id)
    with transaction(db, action="record payment"):
        payment = order_service.record_payment(
            db,
            order=order,
            amount=payload.amount,
            method=payload.method,
            reference_number=payload.reference_number,
        )
        log_audit_event(
            db,
            ctx=ctx,
            action="order.payment",
            target_type="order",
            target_id=order.id,
            metadata_json={"amount": str(payment.amount), "method": payment.method},
        )
    db.refresh(payment)
    db.refresh(order)
    return PaymentRecordOut(payment=_payment_out(payment), order=_order_out(db, order))
