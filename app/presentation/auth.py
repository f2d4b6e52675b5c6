"""Аутентификация запросов от фронтенда и бэкофиса.

Сессию держит внешний провайдер; он передает сервисный токен в X-API-Key
и email вошедшего пользователя в X-User-Email.
"""
import logging
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.domain.models import User
from app.domain.permissions import ROLE_PERMISSIONS, RolePolicy
from app.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

_role_policy = RolePolicy(ROLE_PERMISSIONS)


def get_role_policy() -> RolePolicy:
    return _role_policy


def verify_api_key(x_api_key: str | None = Header(default=None)) -> None:
    if settings.API_TOKEN and x_api_key != settings.API_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key"
        )


async def get_current_user(
    x_user_email: str | None = Header(default=None),
    _: None = Depends(verify_api_key),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not x_user_email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user"
        )
    async with UnitOfWork(lambda: db)() as uow:
        user = await uow.users.get_by_email(x_user_email.strip().lower())
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user"
        )
    return user


def require_permission(permission: str):
    """Зависимость FastAPI: пускает только роли с указанным правом"""

    async def dependency(
        user: User = Depends(get_current_user),
        policy: RolePolicy = Depends(get_role_policy),
    ) -> User:
        if not policy.has_permission(user.role, permission):
            logger.warning(f"Пользователю {user.id} ({user.role.value}) отказано в {permission}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden"
            )
        return user

    return dependency
