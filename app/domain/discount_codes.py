from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel

from app.domain.models import DiscountCode, DiscountCodeType, utcnow
from app.domain.promotions import discount_amount_for

CODE_NOT_FOUND = "Código de descuento no válido"
CODE_INACTIVE = "Código de descuento desactivado"
CODE_EXPIRED = "Código de descuento expirado"
CODE_EXHAUSTED = "Código de descuento agotado"
CODE_BELOW_MINIMUM = "El total del carrito no alcanza el mínimo para este código"
CODE_MISCONFIGURED = "Configuración de descuento inválida"
CODE_APPLIED = "Código aplicado exitosamente"
INTERNAL_ERROR = "Error interno del servidor"


class DiscountValidationResult(BaseModel):
    valid: bool
    message: Optional[str] = None
    discount_amount: Optional[int] = None
    final_total: Optional[int] = None
    type: Optional[DiscountCodeType] = None
    amount: Optional[Decimal] = None
    discount_code_id: Optional[str] = None


def normalize_code(code: str) -> str:
    return code.strip().upper()


def evaluate_discount_code(
    discount_code: Optional[DiscountCode],
    cart_total: int,
    now: Optional[datetime] = None
) -> DiscountValidationResult:
    """Проверяет код против суммы корзины. Отказ возвращается как valid=False, без исключений."""
    now = now or utcnow()

    if not discount_code:
        return DiscountValidationResult(valid=False, message=CODE_NOT_FOUND)
    if not discount_code.active:
        return DiscountValidationResult(valid=False, message=CODE_INACTIVE)
    if discount_code.is_expired(now):
        return DiscountValidationResult(valid=False, message=CODE_EXPIRED)
    if discount_code.is_exhausted():
        return DiscountValidationResult(valid=False, message=CODE_EXHAUSTED)
    if discount_code.min_order_amount is not None and cart_total < discount_code.min_order_amount:
        return DiscountValidationResult(valid=False, message=CODE_BELOW_MINIMUM)
    if discount_code.type == DiscountCodeType.PERCENT and discount_code.amount > 100:
        return DiscountValidationResult(valid=False, message=CODE_MISCONFIGURED)

    applied = discount_amount_for(cart_total, discount_code.type, discount_code.amount)
    return DiscountValidationResult(
        valid=True,
        message=CODE_APPLIED,
        discount_amount=applied,
        final_total=max(0, cart_total - applied),
        type=discount_code.type,
        amount=discount_code.amount,
        discount_code_id=discount_code.id
    )
