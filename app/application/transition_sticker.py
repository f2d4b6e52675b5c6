import logging
from typing import List, Optional
from pydantic import BaseModel

from app.application.status_changes import StatusChange, apply_status_change
from app.domain.exceptions import StickerNotFoundError, InvalidStatusTransitionError
from app.domain.models import StickerStatus
from app.domain.status_flow import (
    Transition, analyze_payments, evaluate_transition, get_available_transitions,
    parse_sticker_status, suggest_next_status
)

logger = logging.getLogger(__name__)


class TransitionStickerDTO(BaseModel):
    sticker_id: str
    new_status: str
    actor: Optional[str] = None


class BulkTransitionDTO(BaseModel):
    sticker_ids: List[str]
    new_status: str
    actor: Optional[str] = None


class RejectedTransition(BaseModel):
    sticker_id: str
    current_status: StickerStatus
    reason: str


class BulkTransitionResult(BaseModel):
    status: StickerStatus
    updated: List[StatusChange] = []
    rejected: List[RejectedTransition] = []


class AvailableTransitions(BaseModel):
    sticker_id: str
    current_status: StickerStatus
    suggested_status: Optional[StickerStatus] = None
    transitions: List[Transition] = []


def _parse_requested(current: StickerStatus, requested: str) -> StickerStatus:
    status = parse_sticker_status(requested)
    if status is None:
        raise InvalidStatusTransitionError(current.value, requested, "Estado no válido")
    return status


class TransitionStickerUseCase:
    def __init__(self, unit_of_work, price_per_sticker: int, currency: str):
        self._uow = unit_of_work
        self._price = price_per_sticker
        self._currency = currency

    async def __call__(self, dto: TransitionStickerDTO) -> StatusChange:
        async with self._uow() as uow:
            sticker = await uow.stickers.get_by_id(dto.sticker_id)
            if not sticker:
                raise StickerNotFoundError(f"Стикер {dto.sticker_id} не найден")

            new_status = _parse_requested(sticker.status, dto.new_status)
            payments = await uow.payments.list_for_sticker(sticker)
            decision = evaluate_transition(sticker.status, new_status, analyze_payments(payments))
            if not decision.allowed:
                logger.warning(
                    f"Переход {sticker.status.value} -> {new_status.value} для {sticker.id} отклонен: {decision.reason}"
                )
                raise InvalidStatusTransitionError(sticker.status.value, new_status.value, decision.reason)

            change = await apply_status_change(
                uow, sticker, payments, new_status, decision,
                actor=dto.actor, price_per_sticker=self._price, currency=self._currency
            )
            await uow.commit()
            return change


class ListAvailableTransitionsUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, sticker_id: str) -> AvailableTransitions:
        async with self._uow() as uow:
            sticker = await uow.stickers.get_by_id(sticker_id)
            if not sticker:
                raise StickerNotFoundError(f"Стикер {sticker_id} не найден")
            payments = await uow.payments.list_for_sticker(sticker)

        info = analyze_payments(payments)
        return AvailableTransitions(
            sticker_id=sticker.id,
            current_status=sticker.status,
            suggested_status=suggest_next_status(sticker.status, info),
            transitions=get_available_transitions(sticker.status, info)
        )


class BulkTransitionUseCase:
    """Массовая смена статуса. Стикеры одной группы меняются вместе."""

    def __init__(self, unit_of_work, price_per_sticker: int, currency: str):
        self._uow = unit_of_work
        self._price = price_per_sticker
        self._currency = currency

    async def __call__(self, dto: BulkTransitionDTO) -> BulkTransitionResult:
        requested_ids = list(dict.fromkeys(dto.sticker_ids))

        async with self._uow() as uow:
            stickers = await uow.stickers.get_many(requested_ids)
            found = {s.id for s in stickers}
            missing = [sticker_id for sticker_id in requested_ids if sticker_id not in found]
            if missing:
                raise StickerNotFoundError(f"Стикеры не найдены: {', '.join(missing)}")

            group_ids = list({s.group_id for s in stickers if s.group_id})
            for member in await uow.stickers.get_by_group_ids(group_ids):
                if member.id not in found:
                    stickers.append(member)
                    found.add(member.id)

            new_status = parse_sticker_status(dto.new_status)
            if new_status is None:
                raise InvalidStatusTransitionError("*", dto.new_status, "Estado no válido")

            result = BulkTransitionResult(status=new_status)
            for sticker in stickers:
                # платежи группы могли измениться на предыдущей итерации
                payments = await uow.payments.list_for_sticker(sticker)
                decision = evaluate_transition(sticker.status, new_status, analyze_payments(payments))
                if not decision.allowed:
                    logger.warning(
                        f"Переход {sticker.status.value} -> {new_status.value} для {sticker.id} отклонен: {decision.reason}"
                    )
                    result.rejected.append(RejectedTransition(
                        sticker_id=sticker.id,
                        current_status=sticker.status,
                        reason=decision.reason
                    ))
                    continue

                change = await apply_status_change(
                    uow, sticker, payments, new_status, decision,
                    actor=dto.actor, price_per_sticker=self._price, currency=self._currency
                )
                result.updated.append(change)

            await uow.commit()

        logger.info(
            f"Массовое обновление до {new_status.value}: "
            f"{len(result.updated)} обновлено, {len(result.rejected)} отклонено"
        )
        return result
