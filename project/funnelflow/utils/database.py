# funnelflow/utils/database.py

from datetime import datetime, timezone
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

# ────────────── Base для моделей ──────────────
Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ────────────── Асинхронный движок ──────────────
def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Создаёт асинхронный движок по DATABASE_URL.
    Для SQLite включаются внешние ключи, иначе не работает ON DELETE CASCADE.
    """
    engine = create_async_engine(database_url, echo=echo)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


# ────────────── Фабрика сессий ──────────────
def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: после commit объекты читаются без повторного запроса
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


# ────────────── Инициализация базы данных ──────────────
async def init_db(engine: AsyncEngine):
    """Создаёт все таблицы (если ещё не созданы)."""
    # импорт моделей регистрирует таблицы в Base.metadata
    from funnelflow.models import account, lead  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
