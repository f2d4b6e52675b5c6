"""Единая точка выбора скидки для оформления заказа.

Акции по количеству и коды скидок: две независимые стратегии,
которые не суммируются. Если покупатель ввел код, применяется только код.
"""
from abc import ABC, abstractmethod
from typing import Optional, Sequence
from pydantic import BaseModel

from app.application.apply_discount import apply_discount
from app.domain.models import CartLineItem
from app.domain.promotions import calculate_discount, cart_subtotal


class ResolvedDiscount(BaseModel):
    source: Optional[str] = None  # "promotion" | "discount_code"
    valid: bool = True
    original_total: int
    discount_amount: int = 0
    final_total: int
    promotion_id: Optional[str] = None
    discount_code_id: Optional[str] = None
    message: Optional[str] = None


class DiscountStrategy(ABC):
    @abstractmethod
    async def resolve(self, uow, cart: Sequence[CartLineItem]) -> ResolvedDiscount:
        pass


class PromotionDiscountStrategy(DiscountStrategy):
    async def resolve(self, uow, cart: Sequence[CartLineItem]) -> ResolvedDiscount:
        promotions = await uow.promotions.list_active()
        result = calculate_discount(cart, promotions)
        applied = result.applied_promotions[0] if result.applied_promotions else None
        return ResolvedDiscount(
            source="promotion" if applied else None,
            original_total=result.original_total,
            discount_amount=result.total_discount,
            final_total=result.final_total,
            promotion_id=applied.id if applied else None,
            message=applied.description if applied else None
        )


class DiscountCodeStrategy(DiscountStrategy):
    def __init__(self, code: str, user_id: Optional[str] = None, preview: bool = False):
        self._code = code
        self._user_id = user_id
        self._preview = preview

    async def resolve(self, uow, cart: Sequence[CartLineItem]) -> ResolvedDiscount:
        original_total = cart_subtotal(cart)
        result = await apply_discount(
            uow,
            code=self._code,
            cart_total=original_total,
            preview=self._preview,
            user_id=self._user_id
        )
        if not result.valid:
            return ResolvedDiscount(
                source="discount_code",
                valid=False,
                original_total=original_total,
                final_total=original_total,
                message=result.message
            )
        return ResolvedDiscount(
            source="discount_code",
            original_total=original_total,
            discount_amount=result.discount_amount,
            final_total=result.final_total,
            discount_code_id=result.discount_code_id,
            message=result.message
        )


class DiscountResolver:
    def strategy_for(
        self,
        code: Optional[str],
        user_id: Optional[str] = None,
        preview: bool = False
    ) -> DiscountStrategy:
        if code and code.strip():
            return DiscountCodeStrategy(code, user_id=user_id, preview=preview)
        return PromotionDiscountStrategy()

    async def __call__(
        self,
        uow,
        cart: Sequence[CartLineItem],
        code: Optional[str] = None,
        user_id: Optional[str] = None,
        preview: bool = False
    ) -> ResolvedDiscount:
        strategy = self.strategy_for(code, user_id=user_id, preview=preview)
        return await strategy.resolve(uow, cart)
