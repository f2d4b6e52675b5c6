"""Скидки по количеству стикеров в корзине.

Чистые функции без состояния: промо-акции загружает вызывающий код,
здесь только выбор акции и расчет суммы.
"""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence
from pydantic import BaseModel

from app.domain.models import CartLineItem, Promotion, PromotionDiscountType, utcnow


class AppliedPromotion(BaseModel):
    id: str
    description: str
    discount_amount: int
    discount_type: PromotionDiscountType
    discount_value: Decimal
    applied_to_quantity: int


class DiscountResult(BaseModel):
    original_total: int
    total_discount: int
    final_total: int
    applied_promotions: List[AppliedPromotion] = []


class QuantityPreview(BaseModel):
    original_total: int
    discount_amount: int
    final_total: int
    applied_promotion: Optional[Promotion] = None


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cart_quantity(cart: Iterable[CartLineItem]) -> int:
    return sum(item.quantity for item in cart)


def cart_subtotal(cart: Iterable[CartLineItem]) -> int:
    return sum(item.unit_price * item.quantity for item in cart)


def select_promotion(
    promotions: Iterable[Promotion],
    total_quantity: int,
    now: Optional[datetime] = None
) -> Optional[Promotion]:
    """Выбирает одну акцию: максимальный priority, при равенстве наименьший id"""
    now = now or utcnow()
    eligible = [
        promo for promo in promotions
        if promo.active and promo.is_current(now) and total_quantity >= promo.min_quantity
    ]
    if not eligible:
        return None
    return min(eligible, key=lambda promo: (-promo.priority, promo.id))


def discount_amount_for(subtotal: int, discount_type, discount_value: Decimal) -> int:
    """Сумма скидки никогда не превышает subtotal"""
    if subtotal <= 0:
        return 0
    value = Decimal(discount_value)
    if discount_type in (PromotionDiscountType.PERCENTAGE, "PERCENT", "PERCENTAGE"):
        amount = round_half_up(Decimal(subtotal) * value / Decimal(100))
    else:
        amount = round_half_up(value)
    return max(0, min(amount, subtotal))


def calculate_discount(
    cart: Sequence[CartLineItem],
    promotions: Iterable[Promotion],
    now: Optional[datetime] = None
) -> DiscountResult:
    original_total = cart_subtotal(cart) if cart else 0
    if original_total <= 0:
        return DiscountResult(original_total=max(original_total, 0), total_discount=0, final_total=0)

    total_quantity = cart_quantity(cart)
    promotion = select_promotion(promotions, total_quantity, now)
    if not promotion:
        return DiscountResult(original_total=original_total, total_discount=0, final_total=original_total)

    total_discount = discount_amount_for(original_total, promotion.discount_type, promotion.discount_value)
    applied = AppliedPromotion(
        id=promotion.id,
        description=promotion.description or promotion.name,
        discount_amount=total_discount,
        discount_type=promotion.discount_type,
        discount_value=promotion.discount_value,
        applied_to_quantity=total_quantity
    )
    return DiscountResult(
        original_total=original_total,
        total_discount=total_discount,
        final_total=original_total - total_discount,
        applied_promotions=[applied]
    )


def get_promotion_tiers(promotions: Iterable[Promotion], now: Optional[datetime] = None) -> List[Promotion]:
    """Действующие акции по возрастанию минимального количества (для витрины)"""
    now = now or utcnow()
    tiers = [promo for promo in promotions if promo.active and promo.is_current(now)]
    return sorted(tiers, key=lambda promo: (promo.min_quantity, promo.id))


def preview_discount_for_quantity(
    unit_price: int,
    quantity: int,
    promotions: Sequence[Promotion],
    now: Optional[datetime] = None
) -> QuantityPreview:
    cart = [CartLineItem(id="preview", name="Sticker", unit_price=unit_price, quantity=quantity)]
    result = calculate_discount(cart, promotions, now)
    applied = None
    if result.applied_promotions:
        applied_id = result.applied_promotions[0].id
        applied = next((promo for promo in promotions if promo.id == applied_id), None)
    return QuantityPreview(
        original_total=result.original_total,
        discount_amount=result.total_discount,
        final_total=result.final_total,
        applied_promotion=applied
    )
