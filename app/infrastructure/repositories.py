import uuid
from typing import Optional, List, Sequence
from sqlalchemy import select, insert, update, delete, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models import (
    User, Sticker, Payment, Promotion, DiscountCode,
    StickerStatus, PaymentStatus, Role, PromotionDiscountType, DiscountCodeType,
    utcnow
)
from app.infrastructure.db_schema import (
    users_tbl, stickers_tbl, payments_tbl, promotions_tbl,
    discount_codes_tbl, discount_redemptions_tbl, outbox_events_tbl
)
from app.application.interfaces import (
    UserRepository, StickerRepository, PaymentRepository, PromotionRepository,
    DiscountCodeRepository, OutboxRepository
)


class SQLAlchemyUserRepository(UserRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, user_id: str) -> Optional[User]:
        result = await self._session.execute(
            select(users_tbl).where(users_tbl.c.id == user_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self._session.execute(
            select(users_tbl).where(users_tbl.c.email == email)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def create(self, user: User) -> None:
        stmt = insert(users_tbl).values(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            created_at=user.created_at
        )
        await self._session.execute(stmt)

    def _to_domain(self, row) -> User:
        return User(
            id=row.id,
            email=row.email,
            name=row.name,
            role=Role(row.role),
            created_at=row.created_at
        )


class SQLAlchemyStickerRepository(StickerRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, sticker_id: str) -> Optional[Sticker]:
        result = await self._session.execute(
            select(stickers_tbl).where(stickers_tbl.c.id == sticker_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def get_many(self, sticker_ids: Sequence[str]) -> List[Sticker]:
        if not sticker_ids:
            return []
        result = await self._session.execute(
            select(stickers_tbl).where(stickers_tbl.c.id.in_(list(sticker_ids)))
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def get_by_group_ids(self, group_ids: Sequence[str]) -> List[Sticker]:
        if not group_ids:
            return []
        result = await self._session.execute(
            select(stickers_tbl).where(stickers_tbl.c.group_id.in_(list(group_ids)))
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def list_all(self) -> List[Sticker]:
        result = await self._session.execute(
            select(stickers_tbl).order_by(stickers_tbl.c.created_at.asc())
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def create(self, sticker: Sticker) -> None:
        stmt = insert(stickers_tbl).values(
            id=sticker.id,
            slug=sticker.slug,
            serial=sticker.serial,
            owner_id=sticker.owner_id,
            group_id=sticker.group_id,
            name_on_sticker=sticker.name_on_sticker,
            flag_code=sticker.flag_code,
            color_preset_id=sticker.color_preset_id,
            sticker_color=sticker.sticker_color,
            text_color=sticker.text_color,
            status=sticker.status,
            created_at=sticker.created_at,
            updated_at=sticker.updated_at
        )
        await self._session.execute(stmt)

    async def update_status(self, sticker_id: str, status: StickerStatus) -> None:
        stmt = (
            update(stickers_tbl)
            .where(stickers_tbl.c.id == sticker_id)
            .values(
                status=status,
                updated_at=utcnow()
            )
        )
        await self._session.execute(stmt)

    def _to_domain(self, row) -> Sticker:
        """Трансформация DB → Domain"""
        return Sticker(
            id=row.id,
            slug=row.slug,
            serial=row.serial,
            owner_id=row.owner_id,
            group_id=row.group_id,
            name_on_sticker=row.name_on_sticker,
            flag_code=row.flag_code,
            color_preset_id=row.color_preset_id,
            sticker_color=row.sticker_color,
            text_color=row.text_color,
            status=StickerStatus(row.status),
            created_at=row.created_at,
            updated_at=row.updated_at
        )


class SQLAlchemyPaymentRepository(PaymentRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def list_for_sticker(self, sticker: Sticker) -> List[Payment]:
        condition = payments_tbl.c.sticker_id == sticker.id
        if sticker.group_id:
            condition = or_(condition, payments_tbl.c.group_id == sticker.group_id)
        result = await self._session.execute(
            select(payments_tbl)
            .where(condition)
            .order_by(payments_tbl.c.created_at.desc(), payments_tbl.c.id.desc())
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def create(self, payment: Payment) -> None:
        stmt = insert(payments_tbl).values(
            id=payment.id,
            user_id=payment.user_id,
            sticker_id=payment.sticker_id,
            group_id=payment.group_id,
            quantity=payment.quantity,
            amount=payment.amount,
            original_amount=payment.original_amount,
            discount_amount=payment.discount_amount,
            discount_code_id=payment.discount_code_id,
            promotion_id=payment.promotion_id,
            currency=payment.currency,
            reference=payment.reference,
            status=payment.status,
            received_at=payment.received_at,
            created_at=payment.created_at,
            updated_at=payment.updated_at
        )
        await self._session.execute(stmt)

    async def update_status(self, payment_id: str, status: PaymentStatus) -> None:
        values = {"status": status, "updated_at": utcnow()}
        if status in (PaymentStatus.VERIFIED, PaymentStatus.PAID):
            values["received_at"] = func.coalesce(payments_tbl.c.received_at, utcnow())
        stmt = (
            update(payments_tbl)
            .where(payments_tbl.c.id == payment_id)
            .values(**values)
        )
        await self._session.execute(stmt)

    def _to_domain(self, row) -> Payment:
        return Payment(
            id=row.id,
            user_id=row.user_id,
            sticker_id=row.sticker_id,
            group_id=row.group_id,
            quantity=row.quantity,
            amount=row.amount,
            original_amount=row.original_amount,
            discount_amount=row.discount_amount,
            discount_code_id=row.discount_code_id,
            promotion_id=row.promotion_id,
            currency=row.currency,
            reference=row.reference,
            status=PaymentStatus(row.status),
            received_at=row.received_at,
            created_at=row.created_at,
            updated_at=row.updated_at
        )


class SQLAlchemyPromotionRepository(PromotionRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, promotion_id: str) -> Optional[Promotion]:
        result = await self._session.execute(
            select(promotions_tbl).where(promotions_tbl.c.id == promotion_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def list_page(self, offset: int, limit: int) -> List[Promotion]:
        result = await self._session.execute(
            select(promotions_tbl)
            .order_by(
                promotions_tbl.c.priority.desc(),
                promotions_tbl.c.min_quantity.asc(),
                promotions_tbl.c.created_at.desc()
            )
            .offset(offset)
            .limit(limit)
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(promotions_tbl))
        return result.scalar_one()

    async def list_active(self) -> List[Promotion]:
        # окно дат проверяется в домене
        result = await self._session.execute(
            select(promotions_tbl)
            .where(promotions_tbl.c.active.is_(True))
            .order_by(promotions_tbl.c.priority.desc(), promotions_tbl.c.min_quantity.asc())
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def list_active_with_min_quantity(self, min_quantity: int) -> List[Promotion]:
        result = await self._session.execute(
            select(promotions_tbl).where(
                promotions_tbl.c.active.is_(True),
                promotions_tbl.c.min_quantity == min_quantity
            )
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def create(self, promotion: Promotion) -> None:
        stmt = insert(promotions_tbl).values(**self._to_row(promotion), created_at=promotion.created_at)
        await self._session.execute(stmt)

    async def update(self, promotion: Promotion) -> None:
        stmt = (
            update(promotions_tbl)
            .where(promotions_tbl.c.id == promotion.id)
            .values(**self._to_row(promotion))
        )
        await self._session.execute(stmt)

    async def delete(self, promotion_id: str) -> None:
        await self._session.execute(
            delete(promotions_tbl).where(promotions_tbl.c.id == promotion_id)
        )

    def _to_row(self, promotion: Promotion) -> dict:
        return {
            "id": promotion.id,
            "name": promotion.name,
            "description": promotion.description,
            "min_quantity": promotion.min_quantity,
            "discount_type": promotion.discount_type,
            "discount_value": promotion.discount_value,
            "active": promotion.active,
            "priority": promotion.priority,
            "start_date": promotion.start_date,
            "end_date": promotion.end_date,
        }

    def _to_domain(self, row) -> Promotion:
        return Promotion(
            id=row.id,
            name=row.name,
            description=row.description,
            min_quantity=row.min_quantity,
            discount_type=PromotionDiscountType(row.discount_type),
            discount_value=row.discount_value,
            active=row.active,
            priority=row.priority,
            start_date=row.start_date,
            end_date=row.end_date,
            created_at=row.created_at
        )


class SQLAlchemyDiscountCodeRepository(DiscountCodeRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, discount_code_id: str) -> Optional[DiscountCode]:
        result = await self._session.execute(
            select(discount_codes_tbl).where(discount_codes_tbl.c.id == discount_code_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def get_by_code(self, code: str) -> Optional[DiscountCode]:
        result = await self._session.execute(
            select(discount_codes_tbl).where(discount_codes_tbl.c.code == code)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def list_page(self, offset: int, limit: int) -> List[DiscountCode]:
        result = await self._session.execute(
            select(discount_codes_tbl)
            .order_by(discount_codes_tbl.c.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(discount_codes_tbl))
        return result.scalar_one()

    async def create(self, discount_code: DiscountCode) -> None:
        stmt = insert(discount_codes_tbl).values(
            **self._to_row(discount_code),
            usage_count=discount_code.usage_count,
            created_by_id=discount_code.created_by_id,
            created_at=discount_code.created_at
        )
        await self._session.execute(stmt)

    async def update(self, discount_code: DiscountCode) -> None:
        stmt = (
            update(discount_codes_tbl)
            .where(discount_codes_tbl.c.id == discount_code.id)
            .values(**self._to_row(discount_code))
        )
        await self._session.execute(stmt)

    async def delete(self, discount_code_id: str) -> None:
        await self._session.execute(
            delete(discount_redemptions_tbl).where(discount_redemptions_tbl.c.discount_code_id == discount_code_id)
        )
        await self._session.execute(
            delete(discount_codes_tbl).where(discount_codes_tbl.c.id == discount_code_id)
        )

    async def record_redemption(self, discount_code_id: str, user_id: str) -> None:
        # инкремент на стороне БД, чтобы параллельные погашения не терялись
        await self._session.execute(
            update(discount_codes_tbl)
            .where(discount_codes_tbl.c.id == discount_code_id)
            .values(usage_count=discount_codes_tbl.c.usage_count + 1)
        )
        await self._session.execute(
            insert(discount_redemptions_tbl).values(
                id=str(uuid.uuid4()),
                discount_code_id=discount_code_id,
                user_id=user_id,
                redeemed_at=utcnow()
            )
        )

    def _to_row(self, discount_code: DiscountCode) -> dict:
        return {
            "id": discount_code.id,
            "code": discount_code.code,
            "type": discount_code.type,
            "amount": discount_code.amount,
            "active": discount_code.active,
            "expires_at": discount_code.expires_at,
            "max_redemptions": discount_code.max_redemptions,
            "min_order_amount": discount_code.min_order_amount,
        }

    def _to_domain(self, row) -> DiscountCode:
        return DiscountCode(
            id=row.id,
            code=row.code,
            type=DiscountCodeType(row.type),
            amount=row.amount,
            active=row.active,
            expires_at=row.expires_at,
            max_redemptions=row.max_redemptions,
            usage_count=row.usage_count,
            min_order_amount=row.min_order_amount,
            created_by_id=row.created_by_id,
            created_at=row.created_at
        )


class SQLAlchemyOutboxRepository(OutboxRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, event_type: str, event_data: dict, aggregate_id: str) -> str:
        event_id = str(uuid.uuid4())
        stmt = insert(outbox_events_tbl).values(
            id=event_id,
            event_type=event_type,
            event_data=event_data,  # SQLAlchemy JSON column сериализует автоматически
            aggregate_id=aggregate_id,
            status="pending",
            created_at=utcnow()
        )
        await self._session.execute(stmt)
        return event_id

    async def get_pending(self, limit: int = 10) -> List[dict]:
        result = await self._session.execute(
            select(outbox_events_tbl)
            .where(outbox_events_tbl.c.status == "pending")
            .order_by(outbox_events_tbl.c.created_at.asc())
            .limit(limit)
        )
        rows = result.fetchall()

        return [
            {
                "id": row.id,
                "event_type": row.event_type,
                "event_data": row.event_data,
                "aggregate_id": row.aggregate_id
            }
            for row in rows
        ]

    async def mark_as_published(self, event_id: str) -> None:
        stmt = (
            update(outbox_events_tbl)
            .where(outbox_events_tbl.c.id == event_id)
            .values(status="published")
        )
        await self._session.execute(stmt)
