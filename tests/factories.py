import uuid
from datetime import datetime, timezone
from decimal import Decimal

from app.domain.models import (
    User, Sticker, Payment, Promotion, DiscountCode, Role, StickerStatus, PaymentStatus,
    PromotionDiscountType, DiscountCodeType, utcnow
)
from app.domain.slug import generate_slug, generate_serial, generate_payment_reference
from app.infrastructure.unit_of_work import UnitOfWork

API_KEY = "test-token"


def auth_headers(user: User) -> dict:
    return {"X-API-Key": API_KEY, "X-User-Email": user.email}


# ---------- сидирование ----------

async def create_user(uow: UnitOfWork, role: Role = Role.USER, email: str | None = None) -> User:
    user = User(
        id=str(uuid.uuid4()),
        email=email or f"{uuid.uuid4().hex[:8]}@safetap.cl",
        name="Test",
        role=role,
        created_at=utcnow(),
    )
    async with uow() as u:
        await u.users.create(user)
        await u.commit()
    return user


async def create_sticker(
    uow: UnitOfWork,
    owner: User,
    status: StickerStatus = StickerStatus.ORDERED,
    payment_status: PaymentStatus | None = PaymentStatus.PENDING,
    group_id: str | None = None,
) -> Sticker:
    now = utcnow()
    sticker = Sticker(
        id=str(uuid.uuid4()),
        slug=generate_slug(),
        serial=generate_serial(),
        owner_id=owner.id,
        group_id=group_id,
        name_on_sticker="Ana",
        flag_code="CL",
        status=status,
        created_at=now,
        updated_at=now,
    )
    async with uow() as u:
        await u.stickers.create(sticker)
        if payment_status is not None:
            await u.payments.create(Payment(
                id=str(uuid.uuid4()),
                user_id=owner.id,
                sticker_id=sticker.id,
                group_id=group_id,
                amount=6990,
                currency="CLP",
                reference=generate_payment_reference(),
                status=payment_status,
                created_at=now,
                updated_at=now,
            ))
        await u.commit()
    return sticker


async def create_promotion(
    uow: UnitOfWork,
    min_quantity: int,
    value: str,
    priority: int = 0,
    discount_type: PromotionDiscountType = PromotionDiscountType.PERCENTAGE,
    **kwargs,
) -> Promotion:
    promotion = Promotion(
        id=kwargs.pop("id", str(uuid.uuid4())),
        name=kwargs.pop("name", f"{value}% x{min_quantity}"),
        min_quantity=min_quantity,
        discount_type=discount_type,
        discount_value=Decimal(value),
        priority=priority,
        created_at=utcnow(),
        **kwargs,
    )
    async with uow() as u:
        await u.promotions.create(promotion)
        await u.commit()
    return promotion


async def create_discount_code(
    uow: UnitOfWork,
    code: str,
    amount: str,
    type: DiscountCodeType = DiscountCodeType.PERCENT,
    **kwargs,
) -> DiscountCode:
    discount_code = DiscountCode(
        id=str(uuid.uuid4()),
        code=code,
        type=type,
        amount=Decimal(amount),
        created_at=utcnow(),
        **kwargs,
    )
    async with uow() as u:
        await u.discount_codes.create(discount_code)
        await u.commit()
    return discount_code


def dt(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)
