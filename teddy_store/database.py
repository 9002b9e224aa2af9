from datetime import datetime, timezone
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from .config import settings

# Создаем асинхронный движок
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    future=True
)

# Фабрика сессий; store-классы получают её, а не готовую сессию
AsyncSessionLocal = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# Базовый класс для моделей
Base = declarative_base()


async def get_db():
    """Dependency для получения сессии базы данных"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def get_session_factory():
    """Dependency для получения фабрики сессий"""
    return AsyncSessionLocal


async def create_tables(bind=None):
    """Создает таблицы всех моделей"""
    # Импорт регистрирует модели в Base.metadata
    from . import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_connection(bind=None) -> bool:
    """Тест подключения к БД"""
    try:
        async with (bind or engine).connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False


def utcnow() -> datetime:
    """Наивное UTC-время с микросекундами (колонки DateTime без tz)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
