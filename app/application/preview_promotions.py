import logging
from typing import List

from app.domain.models import CartLineItem, Promotion
from app.domain.promotions import DiscountResult, calculate_discount, get_promotion_tiers

logger = logging.getLogger(__name__)


class PreviewPromotionsUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, cart: List[CartLineItem]) -> DiscountResult:
        async with self._uow() as uow:
            promotions = await uow.promotions.list_active()

        result = calculate_discount(cart, promotions)
        if result.applied_promotions:
            logger.info(
                f"Применена акция {result.applied_promotions[0].id}: "
                f"{result.original_total} -> {result.final_total}"
            )
        return result


class ListPromotionTiersUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self) -> List[Promotion]:
        async with self._uow() as uow:
            promotions = await uow.promotions.list_active()
        return get_promotion_tiers(promotions)
