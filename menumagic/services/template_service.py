import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from menumagic.db.upsert import insert_for_dialect
from menumagic.models.brand_kit import BrandKit
from menumagic.models.digital_menu import DigitalMenu
from menumagic.models.menu_template import MenuTemplate

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES: list[dict[str, Any]] = [
    {
        "name": "Classic Elegant",
        "description": "A timeless and sophisticated design perfect for fine dining establishments.",
        "template_data_json": {
            "primary_color": "#1F2937",
            "secondary_color": "#F9FAFB",
            "accent_color": "#D97706",
            "background_color": "#FFFFFF",
            "border_radius": "8px",
            "font_family_primary": "Inter",
            "font_family_secondary": "Lora",
            "layout_style": "list",
            "card_style": "elevated",
            "spacing": "comfortable",
            "show_images": True,
            "show_descriptions": True,
            "show_prices": True,
            "header_style": "centered",
            "footer_style": "simple",
        },
    },
    {
        "name": "Modern Vibrant",
        "description": "A contemporary and colorful design ideal for casual dining and trendy cafes.",
        "template_data_json": {
            "primary_color": "#7C3AED",
            "secondary_color": "#F3E8FF",
            "accent_color": "#F59E0B",
            "background_color": "#FEFEFE",
            "background_image_url": "/placeholder.svg?height=800&width=1200",
            "border_radius": "16px",
            "font_family_primary": "Inter",
            "font_family_secondary": "Poppins",
            "layout_style": "grid",
            "card_style": "bordered",
            "spacing": "spacious",
            "show_images": True,
            "show_descriptions": True,
            "show_prices": True,
            "header_style": "banner",
            "footer_style": "detailed",
        },
    },
]

DEFAULT_BRAND_KIT: dict[str, Any] = {
    "primary_color_hex": "#F59E0B",
    "secondary_colors_json": [],
    "font_family_main": "Inter",
    "font_family_secondary": "Lora",
}


def seed_default_templates(db: Session, *, restaurant_id: int) -> list[MenuTemplate]:
    """Create the built-in templates once. Returns the rows created by this call."""
    has_defaults = db.execute(
        select(MenuTemplate.id).where(
            MenuTemplate.restaurant_id == restaurant_id,
            MenuTemplate.is_default.is_(True),
        )
    ).first()
    if has_defaults:
        return []

    taken = set(
        db.execute(select(MenuTemplate.name).where(MenuTemplate.restaurant_id == restaurant_id)).scalars()
    )
    created: list[MenuTemplate] = []
    for spec in DEFAULT_TEMPLATES:
        # A custom template already using the name keeps it.
        if spec["name"] in taken:
            continue
        template = MenuTemplate(
            restaurant_id=restaurant_id,
            name=spec["name"],
            description=spec["description"],
            template_data_json=dict(spec["template_data_json"]),
            is_default=True,
        )
        db.add(template)
        created.append(template)
    db.flush()
    logger.info("default templates seeded restaurant=%s created=%s", restaurant_id, len(created))
    return created


def detach_template(db: Session, *, restaurant_id: int, template_id: int) -> None:
    db.execute(
        update(DigitalMenu)
        .where(
            DigitalMenu.restaurant_id == restaurant_id,
            DigitalMenu.template_id == template_id,
        )
        .values(template_id=None)
    )


def get_brand_kit(db: Session, *, restaurant_id: int) -> BrandKit | None:
    return db.execute(select(BrandKit).where(BrandKit.restaurant_id == restaurant_id)).scalar_one_or_none()


def ensure_brand_kit(db: Session, *, restaurant_id: int) -> BrandKit:
    """Return the restaurant's brand kit, creating the default one on first use."""
    insert = insert_for_dialect(db)
    stmt = insert(BrandKit).values(restaurant_id=restaurant_id, **DEFAULT_BRAND_KIT)
    db.execute(stmt.on_conflict_do_nothing(index_elements=[BrandKit.restaurant_id]))
    return db.execute(select(BrandKit).where(BrandKit.restaurant_id == restaurant_id)).scalar_one()
