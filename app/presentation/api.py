import logging
import time
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.presentation.auth import get_current_user, get_role_policy
from app.presentation.schemas import (
    PreviewPromotionsRequest, DiscountPreviewResponse, PromotionResponse,
    ValidateDiscountRequest, ValidateDiscountResponse,
    CheckoutRequest, CheckoutResponse, StickerResponse, ErrorResponse
)
from app.application.preview_promotions import PreviewPromotionsUseCase, ListPromotionTiersUseCase
from app.application.apply_discount import ApplyDiscountUseCase, ApplyDiscountDTO
from app.application.checkout import CheckoutStickersUseCase, CheckoutDTO, StickerDraftDTO
from app.application.get_sticker import GetStickerUseCase
from app.domain.discount_codes import INTERNAL_ERROR
from app.domain.exceptions import (
    InvalidDiscountCodeError, InvalidQrRequestError, StickerNotFoundError, PermissionDeniedError
)
from app.domain.models import CartLineItem, User
from app.domain.permissions import RolePolicy
from app.domain.qr import render_qr
from app.infrastructure.unit_of_work import UnitOfWork
from app.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


# Фабрики для создания use cases
def get_preview_promotions_use_case(db: AsyncSession = Depends(get_db)):
    uow = UnitOfWork(lambda: db)
    return PreviewPromotionsUseCase(uow)


def get_list_tiers_use_case(db: AsyncSession = Depends(get_db)):
    uow = UnitOfWork(lambda: db)
    return ListPromotionTiersUseCase(uow)


def get_apply_discount_use_case(db: AsyncSession = Depends(get_db)):
    uow = UnitOfWork(lambda: db)
    return ApplyDiscountUseCase(uow)


def get_checkout_use_case(db: AsyncSession = Depends(get_db)):
    uow = UnitOfWork(lambda: db)
    return CheckoutStickersUseCase(uow, settings.PRICE_PER_STICKER, settings.DEFAULT_CURRENCY)


def get_get_sticker_use_case(
    db: AsyncSession = Depends(get_db),
    policy: RolePolicy = Depends(get_role_policy)
):
    uow = UnitOfWork(lambda: db)
    return GetStickerUseCase(uow, policy)


@router.get("/promotions", response_model=List[PromotionResponse])
async def list_promotions(
    use_case: ListPromotionTiersUseCase = Depends(get_list_tiers_use_case)
):
    """Действующие акции по количеству"""
    tiers = await use_case()
    return [PromotionResponse.from_domain(p) for p in tiers]


@router.post("/promotions/preview", response_model=DiscountPreviewResponse)
async def preview_promotions(
    request: PreviewPromotionsRequest,
    use_case: PreviewPromotionsUseCase = Depends(get_preview_promotions_use_case)
):
    """Расчет скидки по корзине"""
    cart = [CartLineItem(**item.model_dump()) for item in request.cart]
    result = await use_case(cart)
    return DiscountPreviewResponse.from_domain(result)


@router.post("/discounts/validate", response_model=ValidateDiscountResponse)
async def validate_discount(
    request: ValidateDiscountRequest,
    use_case: ApplyDiscountUseCase = Depends(get_apply_discount_use_case)
):
    """Проверка кода скидки без погашения"""
    try:
        result = await use_case(ApplyDiscountDTO(code=request.code, cart_total=request.cart_total))
    except SQLAlchemyError as e:
        logger.error(f"Ошибка проверки кода скидки: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"valid": False, "message": INTERNAL_ERROR}
        )
    return ValidateDiscountResponse(**result.model_dump(exclude={"discount_code_id"}))


@router.post(
    "/checkout/stickers",
    response_model=CheckoutResponse,
    responses={400: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED
)
async def checkout_stickers(
    request: CheckoutRequest,
    use_case: CheckoutStickersUseCase = Depends(get_checkout_use_case)
):
    """Оформить заказ стикеров"""
    try:
        dto = CheckoutDTO(
            email=request.email,
            stickers=[StickerDraftDTO(**s.model_dump()) for s in request.stickers],
            discount_code=request.discount_code
        )
        result = await use_case(dto)
        return CheckoutResponse.from_domain(result)
    except InvalidDiscountCodeError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get(
    "/stickers/{sticker_id}",
    response_model=StickerResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_sticker(
    sticker_id: str,
    user: User = Depends(get_current_user),
    use_case: GetStickerUseCase = Depends(get_get_sticker_use_case)
):
    """Получить стикер: владельцу или менеджеру заказов"""
    try:
        sticker, payments = await use_case(sticker_id, viewer=user)
        return StickerResponse.from_domain(sticker, payments)
    except StickerNotFoundError:
        raise HTTPException(status_code=404, detail="Стикер не найден")
    except PermissionDeniedError:
        # чужой стикер неотличим от несуществующего
        raise HTTPException(status_code=404, detail="Стикер не найден")


@router.get("/qr/generate", responses={400: {"model": ErrorResponse}})
def generate_qr(
    url: Optional[str] = None,
    format: str = "png",
    size: int = 512,
    dpi: int = 300
):
    """QR-код для печати наклейки"""
    try:
        image = render_qr(url, format, size, dpi)
    except InvalidQrRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))

    filename = f"SafeTap-qr-{int(time.time() * 1000)}.{image.extension}"
    return Response(
        content=image.content,
        media_type=image.media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
