from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from app.domain.models import (
    StickerStatus, PaymentStatus, PromotionDiscountType, DiscountCodeType
)


class ErrorResponse(BaseModel):
    detail: str


# Промо-акции

class CartItemRequest(BaseModel):
    id: str
    name: str = ""
    unit_price: int = Field(gt=0)
    quantity: int = Field(gt=0)


class PreviewPromotionsRequest(BaseModel):
    cart: List[CartItemRequest] = Field(min_length=1)


class AppliedPromotionResponse(BaseModel):
    id: str
    description: str
    discount_amount: int
    discount_type: PromotionDiscountType
    discount_value: Decimal
    applied_to_quantity: int


class DiscountPreviewResponse(BaseModel):
    original_total: int
    total_discount: int
    final_total: int
    applied_promotions: List[AppliedPromotionResponse] = []

    @classmethod
    def from_domain(cls, result):
        return cls(
            original_total=result.original_total,
            total_discount=result.total_discount,
            final_total=result.final_total,
            applied_promotions=[
                AppliedPromotionResponse(**p.model_dump())
                for p in result.applied_promotions
            ]
        )


class PromotionRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=255)
    min_quantity: int = Field(ge=1)
    discount_type: PromotionDiscountType
    discount_value: Decimal
    active: bool = True
    priority: int = 0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class PromotionUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=255)
    min_quantity: Optional[int] = Field(default=None, ge=1)
    discount_type: Optional[PromotionDiscountType] = None
    discount_value: Optional[Decimal] = None
    active: Optional[bool] = None
    priority: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class PromotionResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    min_quantity: int
    discount_type: PromotionDiscountType
    discount_value: Decimal
    active: bool
    priority: int
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, promotion):
        return cls(**promotion.model_dump())


class PromotionListResponse(BaseModel):
    promotions: List[PromotionResponse]
    total: int
    page: int
    limit: int
    pages: int


# Коды скидок

class ValidateDiscountRequest(BaseModel):
    code: str = Field(min_length=1)
    cart_total: int = Field(ge=0)


class ValidateDiscountResponse(BaseModel):
    valid: bool
    message: Optional[str] = None
    discount_amount: Optional[int] = None
    final_total: Optional[int] = None
    type: Optional[DiscountCodeType] = None
    amount: Optional[Decimal] = None


class DiscountCodeRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    type: DiscountCodeType
    amount: Decimal
    active: bool = True
    expires_at: Optional[datetime] = None
    max_redemptions: Optional[int] = None
    min_order_amount: Optional[int] = None


class DiscountCodeUpdateRequest(BaseModel):
    type: Optional[DiscountCodeType] = None
    amount: Optional[Decimal] = None
    active: Optional[bool] = None
    expires_at: Optional[datetime] = None
    max_redemptions: Optional[int] = None
    min_order_amount: Optional[int] = None


class DiscountCodeResponse(BaseModel):
    id: str
    code: str
    type: DiscountCodeType
    amount: Decimal
    active: bool
    expires_at: Optional[datetime] = None
    max_redemptions: Optional[int] = None
    usage_count: int
    min_order_amount: Optional[int] = None
    created_by_id: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, discount_code):
        return cls(**discount_code.model_dump())


class DiscountCodeListResponse(BaseModel):
    discounts: List[DiscountCodeResponse]
    total: int
    page: int
    limit: int
    pages: int


# Стикеры и заказы

class StickerDraftRequest(BaseModel):
    name_on_sticker: str = Field(min_length=1, max_length=50)
    flag_code: str = Field(min_length=2, max_length=2)
    color_preset_id: str = "light-gray"
    sticker_color: str = "#f1f5f9"
    text_color: str = "#000000"


class CheckoutRequest(BaseModel):
    email: str = Field(min_length=3)
    stickers: List[StickerDraftRequest] = Field(min_length=1)
    discount_code: Optional[str] = None


class PaymentResponse(BaseModel):
    id: str
    amount: int
    original_amount: Optional[int] = None
    discount_amount: Optional[int] = None
    currency: str
    reference: str
    status: PaymentStatus
    created_at: datetime

    @classmethod
    def from_domain(cls, payment):
        return cls(
            id=payment.id,
            amount=payment.amount,
            original_amount=payment.original_amount,
            discount_amount=payment.discount_amount,
            currency=payment.currency,
            reference=payment.reference,
            status=payment.status,
            created_at=payment.created_at
        )


class StickerResponse(BaseModel):
    id: str
    slug: str
    serial: str
    owner_id: str
    group_id: Optional[str] = None
    name_on_sticker: str
    flag_code: str
    color_preset_id: str
    sticker_color: str
    text_color: str
    status: StickerStatus
    created_at: datetime
    updated_at: datetime
    payments: List[PaymentResponse] = []

    @classmethod
    def from_domain(cls, sticker, payments=()):
        return cls(
            **sticker.model_dump(),
            payments=[PaymentResponse.from_domain(p) for p in payments]
        )


class CheckoutResponse(BaseModel):
    reference: str
    payment_id: str
    amount: int
    original_amount: Optional[int] = None
    discount_amount: Optional[int] = None
    currency: str
    stickers: List[StickerResponse]

    @classmethod
    def from_domain(cls, result):
        return cls(
            reference=result.reference,
            payment_id=result.payment.id,
            amount=result.payment.amount,
            original_amount=result.payment.original_amount,
            discount_amount=result.payment.discount_amount,
            currency=result.payment.currency,
            stickers=[StickerResponse.from_domain(s) for s in result.stickers]
        )


class TransitionRequest(BaseModel):
    new_status: str


class BulkUpdateRequest(BaseModel):
    order_ids: List[str] = Field(min_length=1)
    status: str


class StatusChangeResponse(BaseModel):
    sticker_id: str
    from_status: StickerStatus
    to_status: StickerStatus
    payment_status: Optional[PaymentStatus] = None
    direction: Optional[str] = None
    override: bool = False


class RejectedTransitionResponse(BaseModel):
    sticker_id: str
    current_status: StickerStatus
    reason: str


class BulkUpdateResponse(BaseModel):
    status: StickerStatus
    updated_count: int
    updated: List[StatusChangeResponse]
    rejected: List[RejectedTransitionResponse]

    @classmethod
    def from_domain(cls, result):
        return cls(
            status=result.status,
            updated_count=len(result.updated),
            updated=[StatusChangeResponse(**c.model_dump()) for c in result.updated],
            rejected=[RejectedTransitionResponse(**r.model_dump()) for r in result.rejected]
        )


class TransitionOptionResponse(BaseModel):
    status: StickerStatus
    direction: str
    description: str


class AvailableTransitionsResponse(BaseModel):
    sticker_id: str
    current_status: StickerStatus
    suggested_status: Optional[StickerStatus] = None
    transitions: List[TransitionOptionResponse]

    @classmethod
    def from_domain(cls, available):
        return cls(
            sticker_id=available.sticker_id,
            current_status=available.current_status,
            suggested_status=available.suggested_status,
            transitions=[
                TransitionOptionResponse(
                    status=t.status,
                    direction=t.direction.value,
                    description=t.description
                )
                for t in available.transitions
            ]
        )


class InconsistencyResponse(BaseModel):
    sticker_id: str
    current_status: StickerStatus
    suggested_status: StickerStatus
    description: str = ""
    issues: List[str] = []


class InconsistencyReportResponse(BaseModel):
    total: int
    inconsistencies: List[InconsistencyResponse]


class FixReportResponse(BaseModel):
    fixed: int
    changes: List[StatusChangeResponse]
