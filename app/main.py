# app/main.py
from fastapi import FastAPI
from contextlib import asynccontextmanager
from app.presentation.api import router
from app.presentation.admin_api import router as admin_router
from app.database import engine
from app.infrastructure.db_schema import metadata
from app.config import settings
import logging

logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    # Схема ведется миграциями Alembic; create_all только дополняет недостающие таблицы
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    logger.info("Таблицы проверены")

    yield

    await engine.dispose()
    logger.info("Приложение останавливается...")

app = FastAPI(
    title="SafeTap Order Service",
    description="Заказы стикеров, акции, коды скидок и статусы заказов",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "SafeTap Order Service работает"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
