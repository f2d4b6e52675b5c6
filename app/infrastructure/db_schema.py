from sqlalchemy import (
    Table, Column, String, Integer, Boolean, Numeric, Enum, DateTime, JSON, MetaData, ForeignKey
)
from sqlalchemy.sql import func

from app.domain.models import (
    StickerStatus, PaymentStatus, Role, PromotionDiscountType, DiscountCodeType
)

metadata = MetaData()


users_tbl = Table(
    "users",
    metadata,
    Column("id", String, primary_key=True),
    Column("email", String, unique=True, index=True, nullable=False),
    Column("name", String, nullable=True),
    Column("role", Enum(Role, name="user_role"), nullable=False, default=Role.USER),
    Column("created_at", DateTime(timezone=True), server_default=func.now())
)


stickers_tbl = Table(
    "stickers",
    metadata,
    Column("id", String, primary_key=True),
    Column("slug", String, unique=True, index=True, nullable=False),
    Column("serial", String, unique=True, nullable=False),
    Column("owner_id", String, ForeignKey("users.id"), nullable=False, index=True),
    Column("group_id", String, nullable=True, index=True),
    Column("name_on_sticker", String, nullable=False),
    Column("flag_code", String(2), nullable=False),
    Column("color_preset_id", String, nullable=False, default="light-gray"),
    Column("sticker_color", String, nullable=False, default="#f1f5f9"),
    Column("text_color", String, nullable=False, default="#000000"),
    Column("status", Enum(StickerStatus, name="sticker_status"), nullable=False, default=StickerStatus.ORDERED),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
)


promotions_tbl = Table(
    "promotions",
    metadata,
    Column("id", String, primary_key=True),
    Column("name", String(100), nullable=False),
    Column("description", String(255), nullable=True),
    Column("min_quantity", Integer, nullable=False),
    Column("discount_type", Enum(PromotionDiscountType, name="promotion_discount_type"), nullable=False),
    Column("discount_value", Numeric(10, 2), nullable=False),
    Column("active", Boolean, nullable=False, default=True),
    Column("priority", Integer, nullable=False, default=0),
    Column("start_date", DateTime(timezone=True), nullable=True),
    Column("end_date", DateTime(timezone=True), nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now())
)


discount_codes_tbl = Table(
    "discount_codes",
    metadata,
    Column("id", String, primary_key=True),
    Column("code", String(50), unique=True, index=True, nullable=False),
    Column("type", Enum(DiscountCodeType, name="discount_code_type"), nullable=False),
    Column("amount", Numeric(10, 2), nullable=False),
    Column("active", Boolean, nullable=False, default=True),
    Column("expires_at", DateTime(timezone=True), nullable=True),
    Column("max_redemptions", Integer, nullable=True),
    Column("usage_count", Integer, nullable=False, default=0),
    Column("min_order_amount", Integer, nullable=True),
    Column("created_by_id", String, ForeignKey("users.id"), nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now())
)


discount_redemptions_tbl = Table(
    "discount_redemptions",
    metadata,
    Column("id", String, primary_key=True),
    Column("discount_code_id", String, ForeignKey("discount_codes.id", ondelete="CASCADE"), nullable=False),
    Column("user_id", String, ForeignKey("users.id"), nullable=False),
    Column("redeemed_at", DateTime(timezone=True), server_default=func.now())
)


payments_tbl = Table(
    "payments",
    metadata,
    Column("id", String, primary_key=True),
    Column("user_id", String, ForeignKey("users.id"), nullable=False),
    Column("sticker_id", String, ForeignKey("stickers.id"), nullable=False, index=True),
    Column("group_id", String, nullable=True, index=True),
    Column("quantity", Integer, nullable=False, default=1),
    Column("amount", Integer, nullable=False),
    Column("original_amount", Integer, nullable=True),
    Column("discount_amount", Integer, nullable=True),
    Column("discount_code_id", String, ForeignKey("discount_codes.id", ondelete="SET NULL"), nullable=True),
    Column("promotion_id", String, ForeignKey("promotions.id", ondelete="SET NULL"), nullable=True),
    Column("currency", String(3), nullable=False),
    Column("reference", String, unique=True, nullable=False),
    Column("status", Enum(PaymentStatus, name="payment_status"), nullable=False, default=PaymentStatus.PENDING),
    Column("received_at", DateTime(timezone=True), nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
)


outbox_events_tbl = Table(
    "outbox_events",
    metadata,
    Column("id", String, primary_key=True),
    Column("event_type", String, nullable=False),
    Column("event_data", JSON, nullable=False),
    Column("aggregate_id", String, nullable=False),
    Column("status", String, default="pending"),
    Column("created_at", DateTime(timezone=True), server_default=func.now())
)
