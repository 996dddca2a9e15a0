# funnelflow/middleware/db_middleware.py

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.types import ASGIApp, Receive, Scope, Send


class DBSessionMiddleware:
    """Открывает сессию БД на каждый HTTP-запрос и кладёт её в request.state.db."""

    def __init__(self, app: ASGIApp, session_factory: async_sessionmaker[AsyncSession]):
        self.app = app
        self.session_factory = session_factory

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        state = scope.setdefault("state", {})
        state["db"] = self.session_factory()
        try:
            await self.app(scope, receive, send)
        finally:
            # закрываем сессию только после завершения запроса
            await state["db"].close()
