"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_role = sa.Enum("USER", "ADMIN", "SUPER_ADMIN", name="user_role")
sticker_status = sa.Enum(
    "ORDERED", "PAID", "PRINTING", "SHIPPED", "ACTIVE", "LOST", "REJECTED", "CANCELLED",
    name="sticker_status"
)
promotion_discount_type = sa.Enum("PERCENTAGE", "FIXED", name="promotion_discount_type")
discount_code_type = sa.Enum("PERCENT", "FIXED", name="discount_code_type")
payment_status = sa.Enum(
    "PENDING", "VERIFIED", "PAID", "REJECTED", "CANCELLED", "TRANSFERRED",
    name="payment_status"
)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("role", user_role, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "stickers",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("serial", sa.String(), nullable=False, unique=True),
        sa.Column("owner_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("group_id", sa.String(), nullable=True),
        sa.Column("name_on_sticker", sa.String(), nullable=False),
        sa.Column("flag_code", sa.String(2), nullable=False),
        sa.Column("color_preset_id", sa.String(), nullable=False),
        sa.Column("sticker_color", sa.String(), nullable=False),
        sa.Column("text_color", sa.String(), nullable=False),
        sa.Column("status", sticker_status, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_stickers_slug", "stickers", ["slug"], unique=True)
    op.create_index("ix_stickers_owner_id", "stickers", ["owner_id"])
    op.create_index("ix_stickers_group_id", "stickers", ["group_id"])

    op.create_table(
        "promotions",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("min_quantity", sa.Integer(), nullable=False),
        sa.Column("discount_type", promotion_discount_type, nullable=False),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "discount_codes",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("type", discount_code_type, nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("max_redemptions", sa.Integer(), nullable=True),
        sa.Column("usage_count", sa.Integer(), nullable=False),
        sa.Column("min_order_amount", sa.Integer(), nullable=True),
        sa.Column("created_by_id", sa.String(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_discount_codes_code", "discount_codes", ["code"], unique=True)

    op.create_table(
        "discount_redemptions",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "discount_code_id", sa.String(),
            sa.ForeignKey("discount_codes.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("sticker_id", sa.String(), sa.ForeignKey("stickers.id"), nullable=False),
        sa.Column("group_id", sa.String(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("original_amount", sa.Integer(), nullable=True),
        sa.Column("discount_amount", sa.Integer(), nullable=True),
        sa.Column(
            "discount_code_id", sa.String(),
            sa.ForeignKey("discount_codes.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column(
            "promotion_id", sa.String(),
            sa.ForeignKey("promotions.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("reference", sa.String(), nullable=False, unique=True),
        sa.Column("status", payment_status, nullable=False),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_payments_sticker_id", "payments", ["sticker_id"])
    op.create_index("ix_payments_group_id", "payments", ["group_id"])

    op.create_table(
        "outbox_events",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("event_data", sa.JSON(), nullable=False),
        sa.Column("aggregate_id", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("outbox_events")
    op.drop_index("ix_payments_group_id", table_name="payments")
    op.drop_index("ix_payments_sticker_id", table_name="payments")
    op.drop_table("payments")
    op.drop_table("discount_redemptions")
    op.drop_index("ix_discount_codes_code", table_name="discount_codes")
    op.drop_table("discount_codes")
    op.drop_table("promotions")
    op.drop_index("ix_stickers_group_id", table_name="stickers")
    op.drop_index("ix_stickers_owner_id", table_name="stickers")
    op.drop_index("ix_stickers_slug", table_name="stickers")
    op.drop_table("stickers")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (payment_status, discount_code_type, promotion_discount_type, sticker_status, user_role):
        enum_type.drop(bind, checkfirst=True)
