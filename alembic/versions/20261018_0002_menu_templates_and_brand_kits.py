"""menu templates, brand kits and digital_menus.template_id

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18 15:30:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261018_0002"
down_revision: Union[str, None] = "20261018_0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _index_names(inspector: sa.Inspector, table_name: str) -> set[str]:
    return {index["name"] for index in inspector.get_indexes(table_name)}


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = set(inspector.get_table_names())

    if "menu_templates" not in tables:
        op.create_table(
            "menu_templates",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("restaurant_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=150), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("preview_image_url", sa.String(length=500), nullable=True),
            sa.Column("template_data_json", sa.JSON(), nullable=False),
            sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("restaurant_id", "name", name="uq_menu_templates_restaurant_name"),
        )
        op.create_index("ix_menu_templates_restaurant_id", "menu_templates", ["restaurant_id"], unique=False)

    if "brand_kits" not in tables:
        op.create_table(
            "brand_kits",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("restaurant_id", sa.Integer(), nullable=False),
            sa.Column("logo_url", sa.String(length=500), nullable=True),
            sa.Column("primary_color_hex", sa.String(length=7), nullable=False),
            sa.Column("secondary_colors_json", sa.JSON(), nullable=False),
            sa.Column("font_family_main", sa.String(length=80), nullable=False),
            sa.Column("font_family_secondary", sa.String(length=80), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_brand_kits_restaurant_id", "brand_kits", ["restaurant_id"], unique=True)

    if "digital_menus" not in tables:
        return

    existing_columns = {col["name"] for col in inspector.get_columns("digital_menus")}
    if "template_id" not in existing_columns:
        op.add_column("digital_menus", sa.Column("template_id", sa.Integer(), nullable=True))
        if bind.dialect.name != "sqlite":
            op.create_foreign_key(
                "fk_digital_menus_template_id",
                "digital_menus",
                "menu_templates",
                ["template_id"],
                ["id"],
            )

    if "ix_digital_menus_template_id" not in _index_names(sa.inspect(bind), "digital_menus"):
        op.create_index("ix_digital_menus_template_id", "digital_menus", ["template_id"], unique=False)


def downgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = set(inspector.get_table_names())

    if "digital_menus" in tables:
        if "ix_digital_menus_template_id" in _index_names(inspector, "digital_menus"):
            op.drop_index("ix_digital_menus_template_id", table_name="digital_menus")
        existing_columns = {col["name"] for col in inspector.get_columns("digital_menus")}
        if "template_id" in existing_columns:
            if bind.dialect.name != "sqlite":
                op.drop_constraint("fk_digital_menus_template_id", "digital_menus", type_="foreignkey")
            op.drop_column("digital_menus", "template_id")

    if "brand_kits" in tables:
        if "ix_brand_kits_restaurant_id" in _index_names(inspector, "brand_kits"):
            op.drop_index("ix_brand_kits_restaurant_id", table_name="brand_kits")
        op.drop_table("brand_kits")

    if "menu_templates" in tables:
        if "ix_menu_templates_restaurant_id" in _index_names(inspector, "menu_templates"):
            op.drop_index("ix_menu_templates_restaurant_id", table_name="menu_templates")
        op.drop_table("menu_templates")
