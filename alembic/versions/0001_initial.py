"""carts and orders

Revision ID: 0001
Revises:
Create Date: 2026-10-18 12:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

order_status = sa.Enum(
    "PENDING", "CONFIRMED", "PREPARING", "READY", "DELIVERED", "CANCELLED",
    name="orderstatus"
)


def upgrade() -> None:
    op.create_table(
        "carts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.String(), nullable=False),
        sa.Column("restaurant_id", sa.String(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_carts_id", "carts", ["id"])
    op.create_index("ix_carts_customer_id", "carts", ["customer_id"], unique=True)

    op.create_table(
        "cart_lines",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("cart_id", sa.Integer(), sa.ForeignKey("carts.id"), nullable=False),
        sa.Column("menu_item_id", sa.String(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="ck_cart_lines_quantity_positive"),
        sa.UniqueConstraint("cart_id", "menu_item_id", name="uq_cart_lines_cart_item"),
    )
    op.create_index("ix_cart_lines_id", "cart_lines", ["id"])
    op.create_index("ix_cart_lines_cart_id", "cart_lines", ["cart_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("customer_id", sa.String(), nullable=False),
        sa.Column("restaurant_id", sa.String(), nullable=False),
        sa.Column("status", order_status, nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("delivery_street", sa.String(255), nullable=False),
        sa.Column("delivery_city", sa.String(100), nullable=False),
        sa.Column("delivery_state", sa.String(100), nullable=False),
        sa.Column("delivery_zip_code", sa.String(20), nullable=False),
        sa.Column("delivery_instructions", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("estimated_delivery_time", sa.DateTime(), nullable=False),
        sa.Column("actual_delivery_time", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_orders_id", "orders", ["id"])
    op.create_index("ix_orders_customer_status_created", "orders", ["customer_id", "status", "created_at"])
    op.create_index("ix_orders_restaurant_status_created", "orders", ["restaurant_id", "status", "created_at"])

    op.create_table(
        "order_lines",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.String(), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("menu_item_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("line_total", sa.Numeric(10, 2), nullable=False),
    )
    op.create_index("ix_order_lines_id", "order_lines", ["id"])
    op.create_index("ix_order_lines_order_id", "order_lines", ["order_id"])


def downgrade() -> None:
    op.drop_table("order_lines")
    op.drop_table("orders")
    op.drop_table("cart_lines")
    op.drop_table("carts")
    order_status.drop(op.get_bind(), checkfirst=True)
