from collections import OrderedDict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from menumagic.core.config import settings
from menumagic.core.errors import NotFound
from menumagic.models.brand_kit import BrandKit
from menumagic.models.category import Category
from menumagic.models.digital_menu import DigitalMenu, DigitalMenuItem
from menumagic.models.dish import Dish
from menumagic.models.menu_template import MenuTemplate
from menumagic.models.restaurant import Restaurant

UNCATEGORIZED = "Uncategorized"


def public_menu_url(menu_id: int) -> str:
    return f"{settings.public_base_url}/menu/{menu_id}"


def menu_item_counts(db: Session, menu_ids: list[int]) -> dict[int, int]:
    if not menu_ids:
        return {}
    rows = db.execute(
        select(DigitalMenuItem.digital_menu_id, func.count(DigitalMenuItem.id))
        .where(DigitalMenuItem.digital_menu_id.in_(menu_ids))
        .group_by(DigitalMenuItem.digital_menu_id)
    ).all()
    return {menu_id: int(count) for menu_id, count in rows}


def menu_items(db: Session, *, menu_id: int):
    return db.execute(
        select(DigitalMenuItem, Dish)
        .join(Dish, Dish.id == DigitalMenuItem.dish_id)
        .where(DigitalMenuItem.digital_menu_id == menu_id)
        .order_by(DigitalMenuItem.order_index.asc(), DigitalMenuItem.id.asc())
    ).all()


def next_item_index(db: Session, *, menu_id: int) -> int:
    current_max = db.execute(
        select(func.max(DigitalMenuItem.order_index)).where(DigitalMenuItem.digital_menu_id == menu_id)
    ).scalar_one_or_none()
    return 0 if current_max is None else int(current_max) + 1


def _template_style(db: Session, menu: DigitalMenu) -> dict | None:
    if menu.template_id is None:
        return None
    return db.execute(
        select(MenuTemplate.template_data_json).where(
            MenuTemplate.id == menu.template_id,
            MenuTemplate.restaurant_id == menu.restaurant_id,
        )
    ).scalar_one_or_none()


def _public_brand(db: Session, *, restaurant_id: int) -> dict | None:
    # Guests never create a kit; restaurants without one render unbranded.
    kit = db.execute(select(BrandKit).where(BrandKit.restaurant_id == restaurant_id)).scalar_one_or_none()
    if not kit:
        return None
    return {
        "logo_url": kit.logo_url,
        "primary_color_hex": kit.primary_color_hex,
        "secondary_colors": list(kit.secondary_colors_json or []),
        "font_family_main": kit.font_family_main,
        "font_family_secondary": kit.font_family_secondary,
    }


def build_public_menu(db: Session, *, menu_id: int) -> dict:
    """Published menu for anonymous guests, dishes grouped by category name."""
    menu = db.execute(select(DigitalMenu).where(DigitalMenu.id == menu_id)).scalar_one_or_none()
    if not menu or not menu.is_active:
        raise NotFound("Menu not found")

    restaurant_name = db.execute(
        select(Restaurant.name).where(Restaurant.id == menu.restaurant_id)
    ).scalar_one()

    rows = db.execute(
        select(Dish, Category.name)
        .join(DigitalMenuItem, DigitalMenuItem.dish_id == Dish.id)
        .outerjoin(Category, Category.id == Dish.category_id)
        .where(
            DigitalMenuItem.digital_menu_id == menu.id,
            Dish.is_available.is_(True),
        )
        .order_by(DigitalMenuItem.order_index.asc(), DigitalMenuItem.id.asc())
    ).all()

    grouped: OrderedDict[str, list[dict]] = OrderedDict()
    for dish, category_name in rows:
        grouped.setdefault(category_name or UNCATEGORIZED, []).append(
            {
                "id": dish.id,
                "name": dish.name,
                "description": dish.description,
                "price": float(dish.price),
                "image_url": dish.image_url,
            }
        )

    return {
        "id": menu.id,
        "name": menu.name,
        "restaurant_name": restaurant_name,
        "categories": [{"name": name, "dishes": dishes} for name, dishes in grouped.items()],
        "template": _template_style(db, menu),
        "brand": _public_brand(db, restaurant_id=menu.restaurant_id),
    }
