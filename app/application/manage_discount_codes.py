import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ValidationError

from app.domain.discount_codes import normalize_code
from app.domain.exceptions import (
    DiscountCodeConflictError, DiscountCodeNotFoundError, InvalidDiscountCodeError
)
from app.domain.models import DiscountCode, DiscountCodeType, utcnow

logger = logging.getLogger(__name__)


class DiscountCodeDTO(BaseModel):
    code: str
    type: DiscountCodeType
    amount: Decimal
    active: bool = True
    expires_at: Optional[datetime] = None
    max_redemptions: Optional[int] = None
    min_order_amount: Optional[int] = None
    created_by_id: Optional[str] = None


class DiscountCodeUpdateDTO(BaseModel):
    type: Optional[DiscountCodeType] = None
    amount: Optional[Decimal] = None
    active: Optional[bool] = None
    expires_at: Optional[datetime] = None
    max_redemptions: Optional[int] = None
    min_order_amount: Optional[int] = None


class DiscountCodePage(BaseModel):
    items: List[DiscountCode]
    total: int
    page: int
    limit: int
    pages: int


def _first_error(error: ValidationError) -> str:
    field = ".".join(str(part) for part in error.errors()[0]["loc"])
    return f"Valor inválido para {field}"


def validate_discount_code(discount_code: DiscountCode) -> None:
    if not discount_code.code:
        raise InvalidDiscountCodeError("El código es obligatorio")
    if discount_code.amount <= 0:
        raise InvalidDiscountCodeError("El monto del descuento debe ser mayor que 0")
    if discount_code.type == DiscountCodeType.PERCENT and discount_code.amount > 100:
        raise InvalidDiscountCodeError("El porcentaje de descuento no puede ser mayor a 100")
    if discount_code.max_redemptions is not None and discount_code.max_redemptions < 1:
        raise InvalidDiscountCodeError("El máximo de usos debe ser al menos 1")
    if discount_code.min_order_amount is not None and discount_code.min_order_amount < 0:
        raise InvalidDiscountCodeError("El monto mínimo no puede ser negativo")


class ListDiscountCodesUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, page: int = 1, limit: int = 20) -> DiscountCodePage:
        page = max(page, 1)
        limit = max(limit, 1)
        async with self._uow() as uow:
            items = await uow.discount_codes.list_page(offset=(page - 1) * limit, limit=limit)
            total = await uow.discount_codes.count()
        return DiscountCodePage(items=items, total=total, page=page, limit=limit, pages=-(-total // limit))


class CreateDiscountCodeUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, dto: DiscountCodeDTO) -> DiscountCode:
        discount_code = DiscountCode(
            id=str(uuid.uuid4()),
            created_at=utcnow(),
            **{**dto.model_dump(), "code": normalize_code(dto.code)}
        )
        validate_discount_code(discount_code)

        async with self._uow() as uow:
            if await uow.discount_codes.get_by_code(discount_code.code):
                raise DiscountCodeConflictError(f"El código {discount_code.code} ya existe")
            await uow.discount_codes.create(discount_code)
            await uow.commit()

        logger.info(f"Создан код скидки {discount_code.code}")
        return discount_code


class UpdateDiscountCodeUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, discount_code_id: str, dto: DiscountCodeUpdateDTO) -> DiscountCode:
        async with self._uow() as uow:
            existing = await uow.discount_codes.get_by_id(discount_code_id)
            if not existing:
                raise DiscountCodeNotFoundError(f"Код скидки {discount_code_id} не найден")

            try:
                discount_code = DiscountCode.model_validate(
                    {**existing.model_dump(), **dto.model_dump(exclude_unset=True)}
                )
            except ValidationError as e:
                raise InvalidDiscountCodeError(_first_error(e))
            validate_discount_code(discount_code)
            await uow.discount_codes.update(discount_code)
            await uow.commit()

        logger.info(f"Обновлен код скидки {discount_code.code}")
        return discount_code


class DeleteDiscountCodeUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, discount_code_id: str) -> None:
        async with self._uow() as uow:
            if not await uow.discount_codes.get_by_id(discount_code_id):
                raise DiscountCodeNotFoundError(f"Код скидки {discount_code_id} не найден")
            await uow.discount_codes.delete(discount_code_id)
            await uow.commit()

        logger.info(f"Удален код скидки {discount_code_id}")
