from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class StickerStatus(str, Enum):
    ORDERED = "ORDERED"
    PAID = "PAID"
    PRINTING = "PRINTING"
    SHIPPED = "SHIPPED"
    ACTIVE = "ACTIVE"
    LOST = "LOST"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    PAID = "PAID"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    TRANSFERRED = "TRANSFERRED"


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class PromotionDiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


class DiscountCodeType(str, Enum):
    PERCENT = "PERCENT"
    FIXED = "FIXED"


class User(BaseModel):
    """Domain Entity: пользователь"""
    id: str
    email: str
    name: Optional[str] = None
    role: Role = Role.USER
    created_at: datetime


class Sticker(BaseModel):
    """Domain Entity: стикер (агрегат заказа)"""
    id: str
    slug: str
    serial: str
    owner_id: str
    group_id: Optional[str] = None
    name_on_sticker: str
    flag_code: str
    color_preset_id: str = "light-gray"
    sticker_color: str = "#f1f5f9"
    text_color: str = "#000000"
    status: StickerStatus
    created_at: datetime
    updated_at: datetime

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner_id == user_id


class Payment(BaseModel):
    """Domain Entity: платеж"""
    id: str
    user_id: str
    sticker_id: str
    group_id: Optional[str] = None
    quantity: int = 1
    amount: int
    original_amount: Optional[int] = None
    discount_amount: Optional[int] = None
    discount_code_id: Optional[str] = None
    promotion_id: Optional[str] = None
    currency: str
    reference: str
    status: PaymentStatus
    received_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class Promotion(BaseModel):
    """Domain Entity: промо-акция по количеству"""
    id: str
    name: str
    description: Optional[str] = None
    min_quantity: int
    discount_type: PromotionDiscountType
    discount_value: Decimal
    active: bool = True
    priority: int = 0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: datetime

    def is_current(self, now: datetime) -> bool:
        """Бизнес-правило: открытая граница окна считается неограниченной"""
        now = as_utc(now)
        if self.start_date and as_utc(self.start_date) > now:
            return False
        if self.end_date and as_utc(self.end_date) < now:
            return False
        return True

    def overlaps(self, start_date: Optional[datetime], end_date: Optional[datetime]) -> bool:
        if self.start_date and end_date and as_utc(self.start_date) > as_utc(end_date):
            return False
        if self.end_date and start_date and as_utc(self.end_date) < as_utc(start_date):
            return False
        return True


class DiscountCode(BaseModel):
    """Domain Entity: код скидки"""
    id: str
    code: str
    type: DiscountCodeType
    amount: Decimal
    active: bool = True
    expires_at: Optional[datetime] = None
    max_redemptions: Optional[int] = None
    usage_count: int = 0
    min_order_amount: Optional[int] = None
    created_by_id: Optional[str] = None
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and as_utc(now) > as_utc(self.expires_at)

    def is_exhausted(self) -> bool:
        return self.max_redemptions is not None and self.usage_count >= self.max_redemptions


class CartLineItem(BaseModel):
    """Value Object: позиция корзины, цена в минимальных единицах валюты"""
    id: str
    name: str = ""
    unit_price: int
    quantity: int


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Наивные даты из БД считаются UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
