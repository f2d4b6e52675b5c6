from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.presentation.auth import require_permission
from app.presentation.schemas import (
    PromotionRequest, PromotionUpdateRequest, PromotionResponse, PromotionListResponse,
    DiscountCodeRequest, DiscountCodeUpdateRequest, DiscountCodeResponse, DiscountCodeListResponse,
    TransitionRequest, StatusChangeResponse, AvailableTransitionsResponse,
    BulkUpdateRequest, BulkUpdateResponse,
    InconsistencyReportResponse, InconsistencyResponse, FixReportResponse, ErrorResponse
)
from app.application.manage_promotions import (
    ListPromotionsUseCase, GetPromotionUseCase, CreatePromotionUseCase,
    UpdatePromotionUseCase, DeletePromotionUseCase, PromotionDTO, PromotionUpdateDTO
)
from app.application.manage_discount_codes import (
    ListDiscountCodesUseCase, CreateDiscountCodeUseCase, UpdateDiscountCodeUseCase,
    DeleteDiscountCodeUseCase, DiscountCodeDTO, DiscountCodeUpdateDTO
)
from app.application.transition_sticker import (
    TransitionStickerUseCase, ListAvailableTransitionsUseCase, BulkTransitionUseCase,
    TransitionStickerDTO, BulkTransitionDTO
)
from app.application.fix_inconsistencies import CheckInconsistenciesUseCase, FixInconsistenciesUseCase
from app.domain.exceptions import (
    PromotionNotFoundError, InvalidPromotionError, PromotionConflictError,
    DiscountCodeNotFoundError, DiscountCodeConflictError, InvalidDiscountCodeError,
    StickerNotFoundError, InvalidStatusTransitionError
)
from app.domain.models import User
from app.infrastructure.unit_of_work import UnitOfWork
from app.config import settings

router = APIRouter(prefix="/admin")

backoffice_user = require_permission("can_access_backoffice")
orders_manager = require_permission("can_manage_orders")


def _uow(db: AsyncSession = Depends(get_db)) -> UnitOfWork:
    return UnitOfWork(lambda: db)


# Акции

@router.get("/promotions", response_model=PromotionListResponse)
async def list_promotions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(backoffice_user),
    uow: UnitOfWork = Depends(_uow)
):
    result = await ListPromotionsUseCase(uow)(page=page, limit=limit)
    return PromotionListResponse(
        promotions=[PromotionResponse.from_domain(p) for p in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages
    )


@router.post(
    "/promotions",
    response_model=PromotionResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED
)
async def create_promotion(
    request: PromotionRequest,
    user: User = Depends(backoffice_user),
    uow: UnitOfWork = Depends(_uow)
):
    try:
        promotion = await CreatePromotionUseCase(uow)(PromotionDTO(**request.model_dump()))
        return PromotionResponse.from_domain(promotion)
    except InvalidPromotionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PromotionConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get(
    "/promotions/{promotion_id}",
    response_model=PromotionResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_promotion(
    promotion_id: str,
    user: User = Depends(backoffice_user),
    uow: UnitOfWork = Depends(_uow)
):
    try:
        promotion = await GetPromotionUseCase(uow)(promotion_id)
        return PromotionResponse.from_domain(promotion)
    except PromotionNotFoundError:
        raise HTTPException(status_code=404, detail="Promoción no encontrada")


@router.put(
    "/promotions/{promotion_id}",
    response_model=PromotionResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}
)
async def update_promotion(
    promotion_id: str,
    request: PromotionUpdateRequest,
    user: User = Depends(backoffice_user),
    uow: UnitOfWork = Depends(_uow)
):
    try:
        dto = PromotionUpdateDTO(**request.model_dump(exclude_unset=True))
        promotion = await UpdatePromotionUseCase(uow)(promotion_id, dto)
        return PromotionResponse.from_domain(promotion)
    except PromotionNotFoundError:
        raise HTTPException(status_code=404, detail="Promoción no encontrada")
    except InvalidPromotionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PromotionConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/promotions/{promotion_id}", responses={404: {"model": ErrorResponse}})
async def delete_promotion(
    promotion_id: str,
    user: User = Depends(backoffice_user),
    uow: UnitOfWork = Depends(_uow)
):
    try:
        await DeletePromotionUseCase(uow)(promotion_id)
        return {"success": True}
    except PromotionNotFoundError:
        raise HTTPException(status_code=404, detail="Promoción no encontrada")


# Коды скидок

@router.get("/discounts", response_model=DiscountCodeListResponse)
async def list_discount_codes(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(backoffice_user),
    uow: UnitOfWork = Depends(_uow)
):
    result = await ListDiscountCodesUseCase(uow)(page=page, limit=limit)
    return DiscountCodeListResponse(
        discounts=[DiscountCodeResponse.from_domain(d) for d in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages
    )


@router.post(
    "/discounts",
    response_model=DiscountCodeResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED
)
async def create_discount_code(
    request: DiscountCodeRequest,
    user: User = Depends(backoffice_user),
    uow: UnitOfWork = Depends(_uow)
):
    try:
        dto = DiscountCodeDTO(**request.model_dump(), created_by_id=user.id)
        discount_code = await CreateDiscountCodeUseCase(uow)(dto)
        return DiscountCodeResponse.from_domain(discount_code)
    except InvalidDiscountCodeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DiscountCodeConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put(
    "/discounts/{discount_code_id}",
    response_model=DiscountCodeResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def update_discount_code(
    discount_code_id: str,
    request: DiscountCodeUpdateRequest,
    user: User = Depends(backoffice_user),
    uow: UnitOfWork = Depends(_uow)
):
    try:
        dto = DiscountCodeUpdateDTO(**request.model_dump(exclude_unset=True))
        discount_code = await UpdateDiscountCodeUseCase(uow)(discount_code_id, dto)
        return DiscountCodeResponse.from_domain(discount_code)
    except DiscountCodeNotFoundError:
        raise HTTPException(status_code=404, detail="Código de descuento no encontrado")
    except InvalidDiscountCodeError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/discounts/{discount_code_id}", responses={404: {"model": ErrorResponse}})
async def delete_discount_code(
    discount_code_id: str,
    user: User = Depends(backoffice_user),
    uow: UnitOfWork = Depends(_uow)
):
    try:
        await DeleteDiscountCodeUseCase(uow)(discount_code_id)
        return {"success": True}
    except DiscountCodeNotFoundError:
        raise HTTPException(status_code=404, detail="Código de descuento no encontrado")


# Заказы. Статические пути объявлены раньше /orders/{sticker_id}/...

@router.put("/orders/bulk-update", response_model=BulkUpdateResponse, responses={404: {"model": ErrorResponse}})
async def bulk_update_orders(
    request: BulkUpdateRequest,
    user: User = Depends(orders_manager),
    uow: UnitOfWork = Depends(_uow)
):
    """Массовая смена статуса; стикеры одной группы меняются вместе"""
    use_case = BulkTransitionUseCase(uow, settings.PRICE_PER_STICKER, settings.DEFAULT_CURRENCY)
    try:
        dto = BulkTransitionDTO(sticker_ids=request.order_ids, new_status=request.status, actor=user.email)
        result = await use_case(dto)
        return BulkUpdateResponse.from_domain(result)
    except StickerNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/orders/fix-inconsistencies", response_model=InconsistencyReportResponse)
async def check_inconsistencies(
    user: User = Depends(orders_manager),
    uow: UnitOfWork = Depends(_uow)
):
    """Стикеры, статус которых расходится с платежами"""
    report = await CheckInconsistenciesUseCase(uow)()
    return InconsistencyReportResponse(
        total=report.total,
        inconsistencies=[InconsistencyResponse(**i.model_dump()) for i in report.inconsistencies]
    )


@router.post("/orders/fix-inconsistencies", response_model=FixReportResponse)
async def fix_inconsistencies(
    user: User = Depends(orders_manager),
    uow: UnitOfWork = Depends(_uow)
):
    report = await FixInconsistenciesUseCase(uow, actor=user.email)()
    return FixReportResponse(
        fixed=report.fixed,
        changes=[StatusChangeResponse(**c.model_dump()) for c in report.changes]
    )


@router.put(
    "/orders/{sticker_id}/transition",
    response_model=StatusChangeResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def transition_order(
    sticker_id: str,
    request: TransitionRequest,
    user: User = Depends(orders_manager),
    uow: UnitOfWork = Depends(_uow)
):
    use_case = TransitionStickerUseCase(uow, settings.PRICE_PER_STICKER, settings.DEFAULT_CURRENCY)
    try:
        dto = TransitionStickerDTO(sticker_id=sticker_id, new_status=request.new_status, actor=user.email)
        change = await use_case(dto)
        return StatusChangeResponse(**change.model_dump())
    except StickerNotFoundError:
        raise HTTPException(status_code=404, detail="Orden no encontrada")
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get(
    "/orders/{sticker_id}/transitions",
    response_model=AvailableTransitionsResponse,
    responses={404: {"model": ErrorResponse}}
)
async def list_order_transitions(
    sticker_id: str,
    user: User = Depends(orders_manager),
    uow: UnitOfWork = Depends(_uow)
):
    try:
        available = await ListAvailableTransitionsUseCase(uow)(sticker_id)
        return AvailableTransitionsResponse.from_domain(available)
    except StickerNotFoundError:
        raise HTTPException(status_code=404, detail="Orden no encontrada")
