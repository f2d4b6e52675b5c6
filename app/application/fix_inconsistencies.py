import logging
from typing import List, Optional
from pydantic import BaseModel

from app.application.status_changes import StatusChange, apply_status_change
from app.domain.models import StickerStatus
from app.domain.status_flow import (
    TransitionDecision, TransitionDirection, analyze_payments, check_order_consistency,
    correction_direction, get_display_status, get_payment_status_for_order_status
)

logger = logging.getLogger(__name__)


class Inconsistency(BaseModel):
    sticker_id: str
    current_status: StickerStatus
    suggested_status: StickerStatus
    description: str = ""
    issues: List[str] = []


class InconsistencyReport(BaseModel):
    total: int
    inconsistencies: List[Inconsistency] = []


class FixReport(BaseModel):
    fixed: int
    changes: List[StatusChange] = []


async def _find_inconsistencies(uow) -> List[tuple]:
    """(стикер, платежи, несогласованность) для каждого стикера, чей статус расходится с платежами"""
    found = []
    for sticker in await uow.stickers.list_all():
        payments = await uow.payments.list_for_sticker(sticker)
        info = analyze_payments(payments)
        display = get_display_status(sticker.status, info)
        if display.primary_status == sticker.status:
            continue
        found.append((
            sticker,
            payments,
            Inconsistency(
                sticker_id=sticker.id,
                current_status=sticker.status,
                suggested_status=display.primary_status,
                description=display.description,
                issues=check_order_consistency(sticker.status, info).issues
            )
        ))
    return found


class CheckInconsistenciesUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self) -> InconsistencyReport:
        async with self._uow() as uow:
            found = await _find_inconsistencies(uow)

        if found:
            logger.warning(f"Найдено {len(found)} несогласованных стикеров")
        return InconsistencyReport(total=len(found), inconsistencies=[item for _, _, item in found])


class FixInconsistenciesUseCase:
    def __init__(self, unit_of_work, actor: Optional[str] = None):
        self._uow = unit_of_work
        self._actor = actor

    async def __call__(self) -> FixReport:
        async with self._uow() as uow:
            found = await _find_inconsistencies(uow)
            changes = []
            for sticker, payments, item in found:
                direction = correction_direction(sticker.status, item.suggested_status)
                decision = TransitionDecision(
                    allowed=True,
                    direction=direction,
                    override=direction == TransitionDirection.BACKWARD,
                    payment_status=get_payment_status_for_order_status(item.suggested_status)
                )
                change = await apply_status_change(
                    uow, sticker, payments, item.suggested_status, decision, actor=self._actor
                )
                changes.append(change)
            await uow.commit()

        logger.info(f"Исправлено {len(changes)} несогласованных стикеров")
        return FixReport(fixed=len(changes), changes=changes)
