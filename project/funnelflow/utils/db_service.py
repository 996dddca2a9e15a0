# funnelflow/utils/db_service.py

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession


async def ping_database(db: AsyncSession):
    """Проверка соединения: возвращает текущее время сервера БД."""
    result = await db.execute(text("SELECT CURRENT_TIMESTAMP"))
    return result.scalar_one()
