from typing import List, Optional, Tuple

from app.domain.models import Sticker, Payment, User
from app.domain.exceptions import StickerNotFoundError, PermissionDeniedError
from app.domain.permissions import RolePolicy


class GetStickerUseCase:
    def __init__(self, unit_of_work, policy: Optional[RolePolicy] = None):
        self._uow = unit_of_work
        self._policy = policy or RolePolicy()

    async def __call__(self, sticker_id: str, viewer: Optional[User] = None) -> Tuple[Sticker, List[Payment]]:
        async with self._uow() as uow:
            sticker = await uow.stickers.get_by_id(sticker_id)
            if not sticker:
                raise StickerNotFoundError(f"Стикер {sticker_id} не найден")
            if viewer and not sticker.is_owned_by(viewer.id) \
                    and not self._policy.has_permission(viewer.role, "can_manage_orders"):
                raise PermissionDeniedError(f"Пользователь {viewer.id} не может видеть стикер {sticker_id}")
            payments = await uow.payments.list_for_sticker(sticker)
            return sticker, payments
