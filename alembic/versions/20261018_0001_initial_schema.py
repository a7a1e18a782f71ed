"""initial restaurant back-office schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261018_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(inspector: sa.Inspector, table_name: str) -> bool:
    return table_name in inspector.get_table_names()


def _index_exists(inspector: sa.Inspector, table_name: str, index_name: str) -> bool:
    return index_name in {index["name"] for index in inspector.get_indexes(table_name)}


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _create_indexes(table_name: str, indexes: list[tuple[str, list[str], bool]]) -> None:
    inspector = sa.inspect(op.get_bind())
    if not _table_exists(inspector, table_name):
        return
    for index_name, columns, unique in indexes:
        if not _index_exists(inspector, table_name, index_name):
            op.create_index(index_name, table_name, columns, unique=unique)


_INDEXES: dict[str, list[tuple[str, list[str], bool]]] = {
    "users": [("ix_users_email", ["email"], True), ("ix_users_restaurant_id", ["restaurant_id"], False)],
    "categories": [
        ("ix_categories_restaurant_id", ["restaurant_id"], False),
        ("ix_categories_restaurant_type_order", ["restaurant_id", "type", "order_index"], False),
    ],
    "suppliers": [
        ("ix_suppliers_restaurant_id", ["restaurant_id"], False),
        ("ix_suppliers_restaurant_name", ["restaurant_id", "name"], False),
    ],
    "ingredients": [
        ("ix_ingredients_restaurant_id", ["restaurant_id"], False),
        ("ix_ingredients_category_id", ["category_id"], False),
        ("ix_ingredients_supplier_id", ["supplier_id"], False),
    ],
    "inventory_stock_levels": [
        ("ix_inventory_stock_levels_restaurant_id", ["restaurant_id"], False),
    ],
    "inventory_adjustments": [
        ("ix_inventory_adjustments_restaurant_id", ["restaurant_id"], False),
        ("ix_inventory_adjustments_ingredient_id", ["ingredient_id"], False),
        ("ix_inventory_adjustments_restaurant_date", ["restaurant_id", "adjustment_date"], False),
        ("ix_inventory_adjustments_ingredient_date", ["ingredient_id", "adjustment_date"], False),
    ],
    "recipes": [
        ("ix_recipes_restaurant_id", ["restaurant_id"], False),
        ("ix_recipes_category_id", ["category_id"], False),
    ],
    "recipe_ingredients": [
        ("ix_recipe_ingredients_recipe_id", ["recipe_id"], False),
        ("ix_recipe_ingredients_ingredient_id", ["ingredient_id"], False),
    ],
    "dishes": [
        ("ix_dishes_restaurant_id", ["restaurant_id"], False),
        ("ix_dishes_category_id", ["category_id"], False),
        ("ix_dishes_recipe_id", ["recipe_id"], False),
        ("ix_dishes_restaurant_available", ["restaurant_id", "is_available"], False),
    ],
    "orders": [
        ("ix_orders_restaurant_id", ["restaurant_id"], False),
        ("ix_orders_restaurant_created_at", ["restaurant_id", "created_at"], False),
        ("ix_orders_restaurant_status_created_at", ["restaurant_id", "status", "created_at"], False),
    ],
    "order_items": [
        ("ix_order_items_order_id", ["order_id"], False),
        ("ix_order_items_dish_id", ["dish_id"], False),
    ],
    "payments": [
        ("ix_payments_order_id", ["order_id"], False),
        ("ix_payments_reference_number", ["reference_number"], False),
    ],
    "digital_menus": [("ix_digital_menus_restaurant_id", ["restaurant_id"], False)],
    "digital_menu_items": [
        ("ix_digital_menu_items_digital_menu_id", ["digital_menu_id"], False),
        ("ix_digital_menu_items_dish_id", ["dish_id"], False),
    ],
    "audit_logs": [
        ("ix_audit_logs_restaurant_id", ["restaurant_id"], False),
        ("ix_audit_logs_actor_user_id", ["actor_user_id"], False),
        ("ix_audit_logs_target_id", ["target_id"], False),
        ("ix_audit_logs_restaurant_created_at", ["restaurant_id", "created_at"], False),
        ("ix_audit_logs_restaurant_action_created_at", ["restaurant_id", "action", "created_at"], False),
    ],
}


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not _table_exists(inspector, "restaurants"):
        op.create_table(
            "restaurants",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("name", sa.String(length=150), nullable=False),
            sa.Column("owner_user_id", sa.Integer(), nullable=True),
            sa.Column("phone", sa.String(length=40), nullable=True),
            sa.Column("email", sa.String(length=255), nullable=True),
            sa.Column("cuisine_type", sa.String(length=80), nullable=True),
            sa.Column("currency_code", sa.String(length=3), nullable=False, server_default="USD"),
            sa.Column("timezone", sa.String(length=64), nullable=False, server_default="UTC"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("restaurant_id", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        # Restaurants and users reference each other; SQLite cannot add the constraint afterwards.
        if bind.dialect.name != "sqlite":
            op.create_foreign_key(
                "fk_restaurants_owner_user_id",
                "restaurants",
                "users",
                ["owner_user_id"],
                ["id"],
            )

    if not _table_exists(inspector, "categories"):
        op.create_table(
            "categories",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("restaurant_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("type", sa.String(length=20), nullable=False),
            sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "suppliers"):
        op.create_table(
            "suppliers",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("restaurant_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=150), nullable=False),
            sa.Column("category", sa.String(length=100), nullable=True),
            sa.Column("email", sa.String(length=255), nullable=True),
            sa.Column("phone", sa.String(length=40), nullable=True),
            sa.Column("address", sa.String(length=255), nullable=True),
            sa.Column("tax_id", sa.String(length=60), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
            *_timestamps(),
            sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "ingredients"):
        op.create_table(
            "ingredients",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("restaurant_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=150), nullable=False),
            sa.Column("sku", sa.String(length=64), nullable=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("category_id", sa.Integer(), nullable=True),
            sa.Column("supplier_id", sa.Integer(), nullable=True),
            sa.Column("purchase_unit", sa.String(length=30), nullable=True),
            sa.Column("storage_unit", sa.String(length=30), nullable=False),
            sa.Column("conversion_factor", sa.Numeric(12, 3), nullable=True),
            sa.Column("purchase_unit_cost", sa.Numeric(12, 2), nullable=True),
            sa.Column("cost_per_unit", sa.Numeric(12, 4), nullable=True),
            sa.Column("low_stock_threshold", sa.Numeric(12, 3), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"]),
            sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
            sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("restaurant_id", "name", name="uq_ingredients_restaurant_name"),
        )

    if not _table_exists(inspector, "inventory_stock_levels"):
        op.create_table(
            "inventory_stock_levels",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("restaurant_id", sa.Integer(), nullable=False),
            sa.Column("ingredient_id", sa.Integer(), nullable=False),
            sa.Column("current_quantity_in_storage_units", sa.Numeric(12, 3), nullable=False, server_default="0"),
            sa.Column("last_updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"]),
            sa.ForeignKeyConstraint(["ingredient_id"], ["ingredients.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("ingredient_id"),
        )

    if not _table_exists(inspector, "inventory_adjustments"):
        op.create_table(
            "inventory_adjustments",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("restaurant_id", sa.Integer(), nullable=False),
            sa.Column("ingredient_id", sa.Integer(), nullable=False),
            sa.Column("quantity_adjusted", sa.Numeric(12, 3), nullable=False),
            sa.Column("reason_code", sa.String(length=50), nullable=False),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("user_id", sa.Integer(), nullable=True),
            sa.Column("adjustment_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"]),
            sa.ForeignKeyConstraint(["ingredient_id"], ["ingredients.id"]),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "recipes"):
        op.create_table(
            "recipes",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("restaurant_id", sa.Integer(), nullable=False),
            sa.Column("sku", sa.String(length=64), nullable=True),
            sa.Column("name", sa.String(length=150), nullable=False),
            sa.Column("category_id", sa.Integer(), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
            sa.Column("selling_price", sa.Numeric(12, 2), nullable=True),
            sa.Column("yield_amount", sa.Numeric(12, 3), nullable=True),
            sa.Column("yield_unit", sa.String(length=30), nullable=True),
            sa.Column("allergens", sa.JSON(), nullable=True),
            sa.Column("preparation_instructions", sa.Text(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"]),
            sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "recipe_ingredients"):
        op.create_table(
            "recipe_ingredients",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("recipe_id", sa.Integer(), nullable=False),
            sa.Column("ingredient_id", sa.Integer(), nullable=False),
            sa.Column("quantity", sa.Numeric(12, 3), nullable=False),
            sa.Column("unit", sa.String(length=30), nullable=True),
            sa.ForeignKeyConstraint(["recipe_id"], ["recipes.id"]),
            sa.ForeignKeyConstraint(["ingredient_id"], ["ingredients.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "dishes"):
        op.create_table(
            "dishes",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("restaurant_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=150), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("price", sa.Numeric(12, 2), nullable=False, server_default="0"),
            sa.Column("category_id", sa.Integer(), nullable=True),
            sa.Column("recipe_id", sa.Integer(), nullable=True),
            sa.Column("image_url", sa.String(length=500), nullable=True),
            sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
            sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"]),
            sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
            sa.ForeignKeyConstraint(["recipe_id"], ["recipes.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "orders"):
        op.create_table(
            "orders",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("restaurant_id", sa.Integer(), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
            sa.Column("tax", sa.Numeric(12, 2), nullable=False),
            sa.Column("discount", sa.Numeric(12, 2), nullable=False, server_default="0"),
            sa.Column("total", sa.Numeric(12, 2), nullable=False),
            sa.Column("payment_method", sa.String(length=30), nullable=True),
            sa.Column("customer_name", sa.String(length=150), nullable=True),
            sa.Column("table_number", sa.String(length=20), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "order_items"):
        op.create_table(
            "order_items",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("order_id", sa.Integer(), nullable=False),
            sa.Column("dish_id", sa.Integer(), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("price", sa.Numeric(12, 2), nullable=False),
            sa.Column("notes", sa.String(length=255), nullable=True),
            sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
            sa.ForeignKeyConstraint(["dish_id"], ["dishes.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "payments"):
        op.create_table(
            "payments",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("order_id", sa.Integer(), nullable=False),
            sa.Column("amount", sa.Numeric(12, 2), nullable=False),
            sa.Column("method", sa.String(length=30), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="accepted"),
            sa.Column("reference_number", sa.String(length=64), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "digital_menus"):
        op.create_table(
            "digital_menus",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("restaurant_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=150), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("qr_code_url", sa.Text(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "digital_menu_items"):
        op.create_table(
            "digital_menu_items",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("digital_menu_id", sa.Integer(), nullable=False),
            sa.Column("dish_id", sa.Integer(), nullable=False),
            sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
            sa.ForeignKeyConstraint(["digital_menu_id"], ["digital_menus.id"]),
            sa.ForeignKeyConstraint(["dish_id"], ["dishes.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("digital_menu_id", "dish_id", name="uq_digital_menu_items_menu_dish"),
        )

    if not _table_exists(inspector, "audit_logs"):
        op.create_table(
            "audit_logs",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("restaurant_id", sa.Integer(), nullable=False),
            sa.Column("actor_user_id", sa.Integer(), nullable=True),
            sa.Column("action", sa.String(length=100), nullable=False),
            sa.Column("target_type", sa.String(length=100), nullable=False),
            sa.Column("target_id", sa.String(length=36), nullable=True),
            sa.Column("metadata_json", sa.JSON(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"]),
            sa.ForeignKeyConstraint(["actor_user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    for table_name, indexes in _INDEXES.items():
        _create_indexes(table_name, indexes)


def downgrade() -> None:
    bind = op.get_bind()

    for table_name in reversed(
        [
            "restaurants",
            "users",
            "categories",
            "suppliers",
            "ingredients",
            "inventory_stock_levels",
            "inventory_adjustments",
            "recipes",
            "recipe_ingredients",
            "dishes",
            "orders",
            "order_items",
            "payments",
            "digital_menus",
            "digital_menu_items",
            "audit_logs",
        ]
    ):
        inspector = sa.inspect(bind)
        if not _table_exists(inspector, table_name):
            continue
        if table_name == "users" and bind.dialect.name != "sqlite":
            op.drop_constraint("fk_restaurants_owner_user_id", "restaurants", type_="foreignkey")
        for index_name, _, _ in _INDEXES.get(table_name, []):
            if _index_exists(inspector, table_name, index_name):
                op.drop_index(index_name, table_name=table_name)
        op.drop_table(table_name)
