import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ValidationError

from app.domain.exceptions import (
    InvalidPromotionError, PromotionConflictError, PromotionNotFoundError
)
from app.domain.models import Promotion, PromotionDiscountType, utcnow, as_utc

logger = logging.getLogger(__name__)


class PromotionDTO(BaseModel):
    name: str
    description: Optional[str] = None
    min_quantity: int
    discount_type: PromotionDiscountType
    discount_value: Decimal
    active: bool = True
    priority: int = 0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class PromotionUpdateDTO(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    min_quantity: Optional[int] = None
    discount_type: Optional[PromotionDiscountType] = None
    discount_value: Optional[Decimal] = None
    active: Optional[bool] = None
    priority: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class PromotionPage(BaseModel):
    items: List[Promotion]
    total: int
    page: int
    limit: int
    pages: int


def _first_error(error: ValidationError) -> str:
    field = ".".join(str(part) for part in error.errors()[0]["loc"])
    return f"Valor inválido para {field}"


def validate_promotion(promotion: Promotion) -> None:
    if not promotion.name or not promotion.name.strip():
        raise InvalidPromotionError("El nombre es obligatorio")
    if promotion.min_quantity < 1:
        raise InvalidPromotionError("La cantidad mínima debe ser al menos 1")
    if promotion.discount_value <= 0:
        raise InvalidPromotionError("El valor del descuento debe ser mayor que 0")
    if promotion.discount_type == PromotionDiscountType.PERCENTAGE and promotion.discount_value > 100:
        raise InvalidPromotionError("El porcentaje de descuento no puede ser mayor a 100")
    if promotion.start_date and promotion.end_date and as_utc(promotion.start_date) >= as_utc(promotion.end_date):
        raise InvalidPromotionError("La fecha de inicio debe ser anterior a la fecha de fin")


async def _ensure_no_conflict(uow, promotion: Promotion) -> None:
    """Две активные акции с одинаковым порогом не должны пересекаться по датам"""
    if not promotion.active:
        return
    for other in await uow.promotions.list_active_with_min_quantity(promotion.min_quantity):
        if other.id == promotion.id:
            continue
        if other.overlaps(promotion.start_date, promotion.end_date):
            raise PromotionConflictError(
                f"Ya existe una promoción activa para {promotion.min_quantity} unidades en ese periodo"
            )


class ListPromotionsUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, page: int = 1, limit: int = 10) -> PromotionPage:
        page = max(page, 1)
        limit = max(limit, 1)
        async with self._uow() as uow:
            items = await uow.promotions.list_page(offset=(page - 1) * limit, limit=limit)
            total = await uow.promotions.count()
        return PromotionPage(items=items, total=total, page=page, limit=limit, pages=-(-total // limit))


class GetPromotionUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, promotion_id: str) -> Promotion:
        async with self._uow() as uow:
            promotion = await uow.promotions.get_by_id(promotion_id)
        if not promotion:
            raise PromotionNotFoundError(f"Акция {promotion_id} не найдена")
        return promotion


class CreatePromotionUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, dto: PromotionDTO) -> Promotion:
        promotion = Promotion(id=str(uuid.uuid4()), created_at=utcnow(), **dto.model_dump())
        validate_promotion(promotion)

        async with self._uow() as uow:
            await _ensure_no_conflict(uow, promotion)
            await uow.promotions.create(promotion)
            await uow.commit()

        logger.info(f"Создана акция {promotion.id}: {promotion.name}")
        return promotion


class UpdatePromotionUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, promotion_id: str, dto: PromotionUpdateDTO) -> Promotion:
        async with self._uow() as uow:
            existing = await uow.promotions.get_by_id(promotion_id)
            if not existing:
                raise PromotionNotFoundError(f"Акция {promotion_id} не найдена")

            try:
                promotion = Promotion.model_validate({**existing.model_dump(), **dto.model_dump(exclude_unset=True)})
            except ValidationError as e:
                raise InvalidPromotionError(_first_error(e))
            validate_promotion(promotion)
            await _ensure_no_conflict(uow, promotion)
            await uow.promotions.update(promotion)
            await uow.commit()

        logger.info(f"Обновлена акция {promotion.id}")
        return promotion


class DeletePromotionUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, promotion_id: str) -> None:
        async with self._uow() as uow:
            if not await uow.promotions.get_by_id(promotion_id):
                raise PromotionNotFoundError(f"Акция {promotion_id} не найдена")
            await uow.promotions.delete(promotion_id)
            await uow.commit()

        logger.info(f"Удалена акция {promotion_id}")
