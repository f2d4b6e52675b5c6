import logging
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.domain.discount_codes import DiscountValidationResult, evaluate_discount_code, normalize_code

logger = logging.getLogger(__name__)


class ApplyDiscountDTO(BaseModel):
    code: str
    cart_total: int
    preview: bool = True
    user_id: Optional[str] = None


async def apply_discount(
    uow,
    code: str,
    cart_total: int,
    preview: bool = True,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None
) -> DiscountValidationResult:
    """Проверка кода в открытой транзакции. В режиме preview ничего не пишет; commit за вызывающим."""
    normalized = normalize_code(code)
    discount_code = await uow.discount_codes.get_by_code(normalized) if normalized else None
    result = evaluate_discount_code(discount_code, cart_total, now)

    if not result.valid:
        logger.info(f"Код {normalized} отклонен: {result.message}")
        return result

    if not preview and user_id:
        await uow.discount_codes.record_redemption(discount_code.id, user_id)
        logger.info(f"Код {normalized} погашен пользователем {user_id}")

    return result


class ApplyDiscountUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, dto: ApplyDiscountDTO) -> DiscountValidationResult:
        async with self._uow() as uow:
            result = await apply_discount(
                uow,
                code=dto.code,
                cart_total=dto.cart_total,
                preview=dto.preview,
                user_id=dto.user_id
            )
            if result.valid and not dto.preview:
                await uow.commit()
            return result
