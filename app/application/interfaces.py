from abc import ABC, abstractmethod
from typing import Optional, List, Sequence
from app.domain.models import (
    User, Sticker, Payment, Promotion, DiscountCode, StickerStatus, PaymentStatus
)


class UserRepository(ABC):
    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def create(self, user: User) -> None:
        pass


class StickerRepository(ABC):
    @abstractmethod
    async def get_by_id(self, sticker_id: str) -> Optional[Sticker]:
        pass

    @abstractmethod
    async def get_many(self, sticker_ids: Sequence[str]) -> List[Sticker]:
        pass

    @abstractmethod
    async def get_by_group_ids(self, group_ids: Sequence[str]) -> List[Sticker]:
        pass

    @abstractmethod
    async def list_all(self) -> List[Sticker]:
        pass

    @abstractmethod
    async def create(self, sticker: Sticker) -> None:
        pass

    @abstractmethod
    async def update_status(self, sticker_id: str, status: StickerStatus) -> None:
        pass


class PaymentRepository(ABC):
    @abstractmethod
    async def list_for_sticker(self, sticker: Sticker) -> List[Payment]:
        """Платежи стикера и его группы, новые первыми"""
        pass

    @abstractmethod
    async def create(self, payment: Payment) -> None:
        pass

    @abstractmethod
    async def update_status(self, payment_id: str, status: PaymentStatus) -> None:
        pass


class PromotionRepository(ABC):
    @abstractmethod
    async def get_by_id(self, promotion_id: str) -> Optional[Promotion]:
        pass

    @abstractmethod
    async def list_page(self, offset: int, limit: int) -> List[Promotion]:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass

    @abstractmethod
    async def list_active(self) -> List[Promotion]:
        pass

    @abstractmethod
    async def list_active_with_min_quantity(self, min_quantity: int) -> List[Promotion]:
        pass

    @abstractmethod
    async def create(self, promotion: Promotion) -> None:
        pass

    @abstractmethod
    async def update(self, promotion: Promotion) -> None:
        pass

    @abstractmethod
    async def delete(self, promotion_id: str) -> None:
        pass


class DiscountCodeRepository(ABC):
    @abstractmethod
    async def get_by_id(self, discount_code_id: str) -> Optional[DiscountCode]:
        pass

    @abstractmethod
    async def get_by_code(self, code: str) -> Optional[DiscountCode]:
        pass

    @abstractmethod
    async def list_page(self, offset: int, limit: int) -> List[DiscountCode]:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass

    @abstractmethod
    async def create(self, discount_code: DiscountCode) -> None:
        pass

    @abstractmethod
    async def update(self, discount_code: DiscountCode) -> None:
        pass

    @abstractmethod
    async def delete(self, discount_code_id: str) -> None:
        pass

    @abstractmethod
    async def record_redemption(self, discount_code_id: str, user_id: str) -> None:
        pass


class OutboxRepository(ABC):
    @abstractmethod
    async def create(self, event_type: str, event_data: dict, aggregate_id: str) -> str:
        pass

    @abstractmethod
    async def get_pending(self, limit: int = 10) -> List[dict]:
        pass

    @abstractmethod
    async def mark_as_published(self, event_id: str) -> None:
        pass


class UnitOfWork(ABC):
    @property
    @abstractmethod
    def users(self) -> UserRepository:
        pass

    @property
    @abstractmethod
    def stickers(self) -> StickerRepository:
        pass

    @property
    @abstractmethod
    def payments(self) -> PaymentRepository:
        pass

    @property
    @abstractmethod
    def promotions(self) -> PromotionRepository:
        pass

    @property
    @abstractmethod
    def discount_codes(self) -> DiscountCodeRepository:
        pass

    @property
    @abstractmethod
    def outbox(self) -> OutboxRepository:
        pass

    @abstractmethod
    async def __call__(self):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


class EventPublisher(ABC):
    @abstractmethod
    async def publish(self, event_type: str, key: str, payload: dict) -> bool:
        pass
