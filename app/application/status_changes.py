"""Запись смены статуса стикера.

Общая процедура для одиночного перехода, массового обновления и исправления
несогласованностей. Работает внутри открытой транзакции, commit делает
вызывающий use case.
"""
import logging
import uuid
from typing import List, Optional
from pydantic import BaseModel

from app.domain.models import Sticker, Payment, StickerStatus, PaymentStatus, utcnow
from app.domain.slug import generate_payment_reference
from app.domain.status_flow import TransitionDecision, get_payment_status_for_order_status

logger = logging.getLogger(__name__)

STATUS_CHANGED_EVENT = "sticker.status_changed"


class StatusChange(BaseModel):
    sticker_id: str
    from_status: StickerStatus
    to_status: StickerStatus
    payment_status: Optional[PaymentStatus] = None
    direction: Optional[str] = None
    override: bool = False


async def apply_status_change(
    uow,
    sticker: Sticker,
    payments: List[Payment],
    new_status: StickerStatus,
    decision: TransitionDecision,
    actor: Optional[str] = None,
    price_per_sticker: int = 0,
    currency: str = "CLP"
) -> StatusChange:
    previous = sticker.status
    direction = decision.direction.value if decision.direction else None

    if decision.override:
        logger.warning(
            f"Ручная коррекция статуса {sticker.id}: {previous.value} -> {new_status.value} (actor={actor})"
        )

    await uow.stickers.update_status(sticker.id, new_status)

    payment_status = decision.payment_status or get_payment_status_for_order_status(new_status)
    if payment_status is not None:
        if payments:
            latest = payments[0]
            if latest.status != payment_status:
                await uow.payments.update_status(latest.id, payment_status)
                logger.info(f"Платеж {latest.id}: {latest.status.value} -> {payment_status.value}")
        elif new_status == StickerStatus.PAID:
            await _create_manual_payment(uow, sticker, payment_status, price_per_sticker, currency)

    change = StatusChange(
        sticker_id=sticker.id,
        from_status=previous,
        to_status=new_status,
        payment_status=payment_status,
        direction=direction,
        override=decision.override
    )
    await uow.outbox.create(
        event_type=STATUS_CHANGED_EVENT,
        event_data={**change.model_dump(mode="json"), "actor": actor},
        aggregate_id=sticker.id
    )
    logger.info(f"Статус стикера {sticker.id}: {previous.value} -> {new_status.value}")
    return change


async def _create_manual_payment(uow, sticker: Sticker, status: PaymentStatus, amount: int, currency: str) -> None:
    now = utcnow()
    payment = Payment(
        id=str(uuid.uuid4()),
        user_id=sticker.owner_id,
        sticker_id=sticker.id,
        group_id=sticker.group_id,
        quantity=1,
        amount=amount,
        currency=currency,
        reference=generate_payment_reference(),
        status=status,
        received_at=now,
        created_at=now,
        updated_at=now
    )
    await uow.payments.create(payment)
    logger.info(f"Создан ручной платеж {payment.id} для стикера {sticker.id}")
