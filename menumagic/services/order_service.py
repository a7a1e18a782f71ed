import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from menumagic.core.config import settings
from menumagic.core.errors import NotFound, ValidationFailed
from menumagic.core.id_utils import generate_payment_reference
from menumagic.core.money import ZERO_MONEY, to_money
from menumagic.models.dish import Dish
from menumagic.models.order import Order, OrderItem, Payment
from menumagic.schemas.order import OrderCreate

logger = logging.getLogger(__name__)

ALLOWED_ORDER_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal


def compute_totals(
    lines: list[tuple[int, Decimal]],
    *,
    discount: Decimal = ZERO_MONEY,
    tax_rate: float | Decimal | None = None,
) -> OrderTotals:
    """Totals for ``(quantity, unit_price)`` lines: total = subtotal + tax - discount."""
    rate = Decimal(str(settings.tax_rate if tax_rate is None else tax_rate))
    subtotal = to_money(sum((Decimal(price) * quantity for quantity, price in lines), Decimal("0")))
    tax = to_money(subtotal * rate)
    discount = to_money(discount)
    if discount < 0:
        raise ValidationFailed("Discount cannot be negative")
    if discount > subtotal + tax:
        raise ValidationFailed("Discount cannot exceed order total")
    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        discount=discount,
        total=to_money(subtotal + tax - discount),
    )


def ensure_transition_allowed(current_status: str, next_status: str) -> None:
    allowed = ALLOWED_ORDER_TRANSITIONS.get(current_status, set())
    if next_status not in allowed:
        raise ValidationFailed(f"Invalid status transition: {current_status} -> {next_status}")


def get_order(db: Session, *, restaurant_id: int, order_id: int) -> Order:
    order = db.execute(
        select(Order).where(Order.id == order_id, Order.restaurant_id == restaurant_id)
    ).scalar_one_or_none()
    if not order:
        raise NotFound("Order not found")
    return order


def amount_paid(db: Session, *, order_id: int) -> Decimal:
    paid = db.execute(
        select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.order_id == order_id,
            Payment.status == "accepted",
        )
    ).scalar_one()
    return to_money(paid)


def create_order(db: Session, *, restaurant_id: int, payload: OrderCreate) -> tuple[Order, list[OrderItem]]:
    dish_ids = {item.dish_id for item in payload.items}
    dishes = {
        dish.id: dish
        for dish in db.execute(
            select(Dish).where(Dish.restaurant_id == restaurant_id, Dish.id.in_(dish_ids))
        ).scalars()
    }
    missing = sorted(dish_ids - dishes.keys())
    if missing:
        raise NotFound(f"Dish not found: {missing[0]}")

    priced: list[tuple[int, Decimal]] = []
    for item in payload.items:
        unit_price = item.price if item.price is not None else dishes[item.dish_id].price
        priced.append((item.quantity, to_money(unit_price)))

    totals = compute_totals(priced, discount=payload.discount)

    order = Order(
        restaurant_id=restaurant_id,
        status="pending",
        subtotal=totals.subtotal,
        tax=totals.tax,
        discount=totals.discount,
        total=totals.total,
        customer_name=payload.customer_name,
        table_number=payload.table_number,
        notes=payload.notes,
    )
    db.add(order)
    db.flush()

    items: list[OrderItem] = []
    for item, (quantity, unit_price) in zip(payload.items, priced):
        order_item = OrderItem(
            order_id=order.id,
            dish_id=item.dish_id,
            quantity=quantity,
            price=unit_price,
            notes=item.notes,
        )
        db.add(order_item)
        items.append(order_item)
    db.flush()

    logger.info(
        "order created restaurant=%s order=%s items=%s total=%s",
        restaurant_id,
        order.id,
        len(items),
        totals.total,
    )
    return order, items


def record_payment(
    db: Session,
    *,
    order: Order,
    amount: Decimal,
    method: str,
    reference_number: str | None = None,
) -> Payment:
    """
    Any accepted payment completes a pending order, whatever its amount.
    Callers read ``amount_paid`` to surface a remaining balance.
    """
    amount = to_money(amount)
    if amount <= 0:
        raise ValidationFailed("Payment amount must be greater than zero")
    if order.status == "cancelled":
        raise ValidationFailed("Cannot record a payment for a cancelled order")

    payment = Payment(
        order_id=order.id,
        amount=amount,
        method=method,
        status="accepted",
        reference_number=reference_number or generate_payment_reference(),
    )
    db.add(payment)

    order.status = "completed"
    order.payment_method = method
    db.flush()

    logger.info(
        "payment recorded order=%s amount=%s method=%s",
        order.id,
        amount,
        method,
    )
    return payment
