"""Жизненный цикл стикера и согласованность со статусом платежа.

ORDERED -> PAID -> PRINTING -> SHIPPED -> ACTIVE, плюс REJECTED, CANCELLED, LOST.
Все переходы описаны в TRANSITIONS; единственная точка проверки
evaluate_transition. Запись нового статуса делает вызывающий код
в одной транзакции.
"""
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple, Union
from pydantic import BaseModel

from app.domain.models import Payment, PaymentStatus, StickerStatus


class TransitionDirection(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"
    SPECIAL = "special"


class PaymentRequirement(str, Enum):
    NONE = "none"
    CONFIRMED = "confirmed"  # есть VERIFIED или PAID
    SETTLED = "settled"  # подтвержден и нет PENDING


class Transition(BaseModel):
    model_config = {"frozen": True}

    status: StickerStatus
    direction: TransitionDirection
    payment_requirement: PaymentRequirement = PaymentRequirement.NONE
    description: str


class PaymentInfo(BaseModel):
    total_amount: int = 0
    currency: str = "CLP"
    has_confirmed_payment: bool = False
    has_pending_payment: bool = False
    has_rejected_payment: bool = False
    latest_status: Optional[PaymentStatus] = None
    payment_count: int = 0

    @classmethod
    def from_status(cls, status: Optional[PaymentStatus]) -> "PaymentInfo":
        if status is None:
            return cls()
        return cls(
            has_confirmed_payment=status in CONFIRMED_PAYMENT_STATUSES,
            has_pending_payment=status == PaymentStatus.PENDING,
            has_rejected_payment=status == PaymentStatus.REJECTED,
            latest_status=status,
            payment_count=1
        )


class TransitionDecision(BaseModel):
    allowed: bool
    direction: Optional[TransitionDirection] = None
    override: bool = False
    payment_status: Optional[PaymentStatus] = None
    reason: str = ""


class DisplayStatus(BaseModel):
    primary_status: StickerStatus
    secondary_statuses: List[StickerStatus] = []
    description: str = ""


class ConsistencyReport(BaseModel):
    is_consistent: bool
    issues: List[str] = []


CONFIRMED_PAYMENT_STATUSES = frozenset({PaymentStatus.PAID, PaymentStatus.VERIFIED})

MAIN_FLOW = (
    StickerStatus.ORDERED, StickerStatus.PAID, StickerStatus.PRINTING, StickerStatus.SHIPPED, StickerStatus.ACTIVE
)

PAYMENT_STATUS_BY_STICKER_STATUS: Mapping[StickerStatus, PaymentStatus] = MappingProxyType({
    StickerStatus.ORDERED: PaymentStatus.PENDING,
    StickerStatus.PAID: PaymentStatus.VERIFIED,
    StickerStatus.PRINTING: PaymentStatus.PAID,
    StickerStatus.SHIPPED: PaymentStatus.PAID,
    StickerStatus.ACTIVE: PaymentStatus.PAID,
    StickerStatus.LOST: PaymentStatus.PAID,
    StickerStatus.REJECTED: PaymentStatus.REJECTED,
    StickerStatus.CANCELLED: PaymentStatus.CANCELLED,
})

_F = TransitionDirection.FORWARD
_B = TransitionDirection.BACKWARD
_S = TransitionDirection.SPECIAL

TRANSITIONS: Mapping[StickerStatus, Tuple[Transition, ...]] = MappingProxyType({
    StickerStatus.ORDERED: (
        Transition(status=StickerStatus.PAID, direction=_F, description="Marcar como pagada"),
        Transition(status=StickerStatus.REJECTED, direction=_S, description="Marcar como rechazada (pago rechazado)"),
        Transition(status=StickerStatus.CANCELLED, direction=_S, description="Cancelar orden"),
        Transition(status=StickerStatus.LOST, direction=_S, description="Marcar como perdida"),
    ),
    StickerStatus.PAID: (
        Transition(status=StickerStatus.PRINTING, direction=_F,
                   payment_requirement=PaymentRequirement.CONFIRMED, description="Iniciar impresión"),
        Transition(status=StickerStatus.ORDERED, direction=_B, description="Volver a creada"),
        Transition(status=StickerStatus.REJECTED, direction=_S, description="Marcar como rechazada (pago rechazado)"),
        Transition(status=StickerStatus.LOST, direction=_S, description="Marcar como perdida"),
    ),
    StickerStatus.PRINTING: (
        Transition(status=StickerStatus.SHIPPED, direction=_F,
                   payment_requirement=PaymentRequirement.CONFIRMED, description="Marcar como enviada"),
        Transition(status=StickerStatus.PAID, direction=_B, description="Volver a pagada"),
        Transition(status=StickerStatus.LOST, direction=_S, description="Marcar como perdida"),
    ),
    StickerStatus.SHIPPED: (
        Transition(status=StickerStatus.ACTIVE, direction=_F,
                   payment_requirement=PaymentRequirement.SETTLED,
                   description="Marcar como activa (sin pagos pendientes)"),
        Transition(status=StickerStatus.PRINTING, direction=_B, description="Volver a imprimiendo"),
        Transition(status=StickerStatus.LOST, direction=_S, description="Marcar como perdida"),
    ),
    StickerStatus.ACTIVE: (
        Transition(status=StickerStatus.LOST, direction=_S, description="Marcar como perdida"),
        Transition(status=StickerStatus.SHIPPED, direction=_B, description="Volver a enviada"),
    ),
    StickerStatus.LOST: (
        Transition(status=StickerStatus.ORDERED, direction=_F, description="Reiniciar proceso"),
    ),
    StickerStatus.REJECTED: (
        Transition(status=StickerStatus.ORDERED, direction=_F, description="Reintentar pago"),
        Transition(status=StickerStatus.CANCELLED, direction=_S, description="Cancelar orden"),
    ),
    StickerStatus.CANCELLED: (
        Transition(status=StickerStatus.ORDERED, direction=_F, description="Reiniciar proceso"),
    ),
})

PaymentState = Union[PaymentInfo, PaymentStatus, str, None]


def parse_sticker_status(value) -> Optional[StickerStatus]:
    if isinstance(value, StickerStatus):
        return value
    try:
        return StickerStatus(value)
    except ValueError:
        return None


def parse_payment_status(value) -> Optional[PaymentStatus]:
    if isinstance(value, PaymentStatus):
        return value
    try:
        return PaymentStatus(value)
    except ValueError:
        return None


def get_payment_status_for_order_status(order_status) -> Optional[PaymentStatus]:
    """Статус платежа, который должен сопровождать статус стикера. None: ничего не записывать."""
    status = parse_sticker_status(order_status)
    if status is None:
        return None
    return PAYMENT_STATUS_BY_STICKER_STATUS.get(status)


def analyze_payments(payments: Sequence[Payment]) -> PaymentInfo:
    if not payments:
        return PaymentInfo()
    latest = max(payments, key=lambda p: p.created_at)
    return PaymentInfo(
        total_amount=sum(p.amount for p in payments),
        currency=payments[0].currency,
        has_confirmed_payment=any(p.status in CONFIRMED_PAYMENT_STATUSES for p in payments),
        has_pending_payment=any(p.status == PaymentStatus.PENDING for p in payments),
        has_rejected_payment=any(p.status == PaymentStatus.REJECTED for p in payments),
        latest_status=latest.status,
        payment_count=len(payments)
    )


def _as_payment_info(payment_state: PaymentState) -> PaymentInfo:
    if isinstance(payment_state, PaymentInfo):
        return payment_state
    if payment_state is None:
        return PaymentInfo()
    return PaymentInfo.from_status(parse_payment_status(payment_state))


def _requirement_met(requirement: PaymentRequirement, info: PaymentInfo) -> bool:
    if requirement == PaymentRequirement.CONFIRMED:
        return info.has_confirmed_payment
    if requirement == PaymentRequirement.SETTLED:
        return info.has_confirmed_payment and not info.has_pending_payment
    return True


def find_transition(current: StickerStatus, requested: StickerStatus) -> Optional[Transition]:
    return next((t for t in TRANSITIONS.get(current, ()) if t.status == requested), None)


def correction_direction(current: StickerStatus, target: StickerStatus) -> TransitionDirection:
    """Направление исправления: по ребру графа, иначе по позиции в основном потоке"""
    transition = find_transition(current, target)
    if transition:
        return transition.direction
    if current in MAIN_FLOW and target in MAIN_FLOW and MAIN_FLOW.index(target) < MAIN_FLOW.index(current):
        return TransitionDirection.BACKWARD
    return TransitionDirection.SPECIAL


def evaluate_transition(current, requested, payment_state: PaymentState = None) -> TransitionDecision:
    current_status = parse_sticker_status(current)
    requested_status = parse_sticker_status(requested)
    if current_status is None or requested_status is None:
        return TransitionDecision(allowed=False, reason="Estado no válido")

    transition = find_transition(current_status, requested_status)
    if transition is None:
        return TransitionDecision(allowed=False, reason="Transición de estado no válida")

    info = _as_payment_info(payment_state)
    if not _requirement_met(transition.payment_requirement, info):
        reason = "Se requiere un pago confirmado"
        if transition.payment_requirement == PaymentRequirement.SETTLED:
            reason = "Se requiere un pago confirmado y sin pagos pendientes"
        return TransitionDecision(allowed=False, direction=transition.direction, reason=reason)

    return TransitionDecision(
        allowed=True,
        direction=transition.direction,
        override=transition.direction == TransitionDirection.BACKWARD,
        payment_status=get_payment_status_for_order_status(requested_status)
    )


def can_transition(current, requested, payment_state: PaymentState = None) -> bool:
    return evaluate_transition(current, requested, payment_state).allowed


def get_available_transitions(current, payment_info: PaymentInfo) -> List[Transition]:
    status = parse_sticker_status(current)
    if status is None:
        return []
    return [
        t for t in TRANSITIONS.get(status, ())
        if _requirement_met(t.payment_requirement, payment_info)
    ]


def suggest_next_status(current, payment_info: PaymentInfo) -> Optional[StickerStatus]:
    forward = next(
        (t for t in get_available_transitions(current, payment_info) if t.direction == TransitionDirection.FORWARD),
        None
    )
    return forward.status if forward else None


def get_display_status(current: StickerStatus, info: PaymentInfo) -> DisplayStatus:
    """Статус, который следует показывать с учетом платежей. Расхождение с current означает несогласованность."""
    if current == StickerStatus.ACTIVE and info.has_pending_payment:
        return DisplayStatus(primary_status=StickerStatus.SHIPPED, secondary_statuses=[StickerStatus.ACTIVE],
                             description="Inconsistencia: Activa con pagos pendientes")
    if current == StickerStatus.PAID and not info.has_confirmed_payment:
        return DisplayStatus(primary_status=StickerStatus.ORDERED, secondary_statuses=[StickerStatus.PAID],
                             description="Inconsistencia: Pagada sin confirmación de pago")
    if current == StickerStatus.SHIPPED and not info.has_confirmed_payment and info.has_pending_payment:
        return DisplayStatus(primary_status=StickerStatus.ORDERED, secondary_statuses=[StickerStatus.SHIPPED],
                             description="Inconsistencia: Enviada con solo pagos pendientes")
    if current == StickerStatus.SHIPPED and info.payment_count == 0:
        return DisplayStatus(primary_status=StickerStatus.ORDERED, secondary_statuses=[StickerStatus.SHIPPED],
                             description="Inconsistencia: Enviada sin pagos")
    if current == StickerStatus.ACTIVE and info.payment_count == 0:
        return DisplayStatus(primary_status=StickerStatus.ORDERED, secondary_statuses=[StickerStatus.ACTIVE],
                             description="Inconsistencia: Activa sin pagos")
    if current == StickerStatus.ACTIVE and not info.has_confirmed_payment:
        return DisplayStatus(primary_status=StickerStatus.ORDERED, secondary_statuses=[StickerStatus.ACTIVE],
                             description="Inconsistencia: Activa sin pago confirmado")
    if current == StickerStatus.ORDERED and info.has_rejected_payment:
        return DisplayStatus(primary_status=StickerStatus.REJECTED, description="Pago rechazado")
    if current == StickerStatus.ORDERED and info.has_confirmed_payment:
        return DisplayStatus(primary_status=StickerStatus.PAID)
    return DisplayStatus(primary_status=current)


def check_order_consistency(current: StickerStatus, info: PaymentInfo) -> ConsistencyReport:
    issues = []

    if current == StickerStatus.ACTIVE and info.has_pending_payment:
        issues.append("Orden activa con pagos pendientes")
    if current == StickerStatus.PAID and not info.has_confirmed_payment:
        issues.append("Orden marcada como pagada sin confirmación de pago")
    if current == StickerStatus.ORDERED and info.has_confirmed_payment:
        issues.append("Orden creada con pago confirmado (debería estar como pagada)")
    if current == StickerStatus.SHIPPED and not info.has_confirmed_payment and info.has_pending_payment:
        issues.append("Orden enviada con solo pagos pendientes (debería estar como creada)")
    if current == StickerStatus.SHIPPED and info.payment_count == 0:
        issues.append("Orden enviada sin pagos (debería estar como creada)")
    if current == StickerStatus.ACTIVE and info.payment_count == 0:
        issues.append("Orden activa sin pagos (debería estar como creada)")
    if current == StickerStatus.ACTIVE and not info.has_confirmed_payment:
        issues.append("Orden activa sin pago confirmado (debería estar como creada)")
    if current == StickerStatus.ORDERED and info.has_rejected_payment:
        issues.append("Orden creada con pago rechazado (debería estar como rechazada)")

    return ConsistencyReport(is_consistent=not issues, issues=issues)
