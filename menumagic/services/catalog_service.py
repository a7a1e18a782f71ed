from typing import TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from menumagic.core.errors import NotFound
from menumagic.models.category import Category

T = TypeVar("T")


def get_owned(db: Session, model: type[T], *, restaurant_id: int, object_id: int, label: str) -> T:
    """Load a tenant row by id. Rows of other restaurants are reported as missing."""
    row = db.execute(
        select(model).where(
            model.id == object_id,
            model.restaurant_id == restaurant_id,
        )
    ).scalar_one_or_none()
    if not row:
        raise NotFound(f"{label} not found")
    return row


def next_category_index(db: Session, *, restaurant_id: int, category_type: str) -> int:
    current_max = db.execute(
        select(func.max(Category.order_index)).where(
            Category.restaurant_id == restaurant_id,
            Category.type == category_type,
        )
    ).scalar_one_or_none()
    return 0 if current_max is None else int(current_max) + 1


def resolve_category(
    db: Session,
    *,
    restaurant_id: int,
    name: str | None,
    category_type: str,
) -> Category | None:
    """Find a category by case-insensitive name, creating it at the end of its type."""
    if not name:
        return None
    existing = db.execute(
        select(Category).where(
            Category.restaurant_id == restaurant_id,
            Category.type == category_type,
            func.lower(Category.name) == name.lower(),
        )
    ).scalars().first()
    if existing:
        return existing

    category = Category(
        restaurant_id=restaurant_id,
        name=name,
        type=category_type,
        order_index=next_category_index(db, restaurant_id=restaurant_id, category_type=category_type),
    )
    db.add(category)
    db.flush()
    return category


def category_names(db: Session, *, restaurant_id: int) -> dict[int, str]:
    rows = db.execute(
        select(Category.id, Category.name).where(Category.restaurant_id == restaurant_id)
    ).all()
    return {row.id: row.name for row in rows}
