import logging
import uuid
from typing import List, Optional
from pydantic import BaseModel

from app.application.discount_resolver import DiscountResolver, ResolvedDiscount
from app.domain.exceptions import InvalidDiscountCodeError
from app.domain.models import (
    User, Sticker, Payment, CartLineItem, StickerStatus, Role, utcnow
)
from app.domain.slug import generate_slug, generate_serial, generate_payment_reference
from app.domain.status_flow import get_payment_status_for_order_status

logger = logging.getLogger(__name__)


class StickerDraftDTO(BaseModel):
    name_on_sticker: str
    flag_code: str
    color_preset_id: str = "light-gray"
    sticker_color: str = "#f1f5f9"
    text_color: str = "#000000"


class CheckoutDTO(BaseModel):
    email: str
    stickers: List[StickerDraftDTO]
    discount_code: Optional[str] = None


class CheckoutResult(BaseModel):
    reference: str
    payment: Payment
    stickers: List[Sticker]
    discount: ResolvedDiscount


class CheckoutStickersUseCase:
    def __init__(
        self,
        unit_of_work,
        price_per_sticker: int,
        currency: str,
        discount_resolver: Optional[DiscountResolver] = None
    ):
        self._uow = unit_of_work
        self._price = price_per_sticker
        self._currency = currency
        self._resolver = discount_resolver or DiscountResolver()

    async def __call__(self, dto: CheckoutDTO) -> CheckoutResult:
        quantity = len(dto.stickers)
        email = dto.email.strip().lower()
        logger.info(f"Оформление {quantity} стикеров для {email}")

        async with self._uow() as uow:
            # 1. Пользователь по email
            user = await uow.users.get_by_email(email)
            if not user:
                user = User(
                    id=str(uuid.uuid4()),
                    email=email,
                    name=dto.stickers[0].name_on_sticker,
                    role=Role.USER,
                    created_at=utcnow()
                )
                await uow.users.create(user)
                logger.info(f"Создан пользователь {user.id}")

            # 2. Расчет суммы: либо код, либо акция по количеству
            cart = [CartLineItem(id="sticker", name="Sticker", unit_price=self._price, quantity=quantity)]
            discount = await self._resolver(uow, cart, code=dto.discount_code, user_id=user.id)
            if not discount.valid:
                raise InvalidDiscountCodeError(discount.message or "Código de descuento inválido")

            # 3. Стикеры
            now = utcnow()
            group_id = str(uuid.uuid4()) if quantity > 1 else None
            stickers = []
            for draft in dto.stickers:
                sticker = Sticker(
                    id=str(uuid.uuid4()),
                    slug=generate_slug(7),
                    serial=generate_serial(),
                    owner_id=user.id,
                    group_id=group_id,
                    name_on_sticker=draft.name_on_sticker,
                    flag_code=draft.flag_code,
                    color_preset_id=draft.color_preset_id,
                    sticker_color=draft.sticker_color,
                    text_color=draft.text_color,
                    status=StickerStatus.ORDERED,
                    created_at=now,
                    updated_at=now
                )
                await uow.stickers.create(sticker)
                stickers.append(sticker)

            # 4. Один платеж на всю группу
            has_discount = discount.discount_amount > 0
            payment = Payment(
                id=str(uuid.uuid4()),
                user_id=user.id,
                sticker_id=stickers[0].id,
                group_id=group_id,
                quantity=quantity,
                amount=discount.final_total,
                original_amount=discount.original_total if has_discount else None,
                discount_amount=discount.discount_amount if has_discount else None,
                discount_code_id=discount.discount_code_id,
                promotion_id=discount.promotion_id,
                currency=self._currency,
                reference=generate_payment_reference(),
                status=get_payment_status_for_order_status(StickerStatus.ORDERED),
                created_at=now,
                updated_at=now
            )
            await uow.payments.create(payment)
            await uow.commit()

        logger.info(f"Заказ оформлен: платеж {payment.id}, сумма {payment.amount} {payment.currency}")
        return CheckoutResult(
            reference=payment.reference,
            payment=payment,
            stickers=stickers,
            discount=discount
        )
