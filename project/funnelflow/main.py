# funnelflow/main.py

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from funnelflow.config import Settings
from funnelflow.middleware.db_middleware import DBSessionMiddleware
from funnelflow.routes import auth, leads
from funnelflow.utils.database import build_engine, build_session_factory, init_db
from funnelflow.utils.db_service import ping_database
from funnelflow.utils.errors import register_exception_handlers
from funnelflow.utils.log import Log
from funnelflow.utils.mailer import Mailer
from funnelflow.utils.tokens import TokenSigner


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Собирает приложение из явно переданных настроек:
    движок БД, лог, подписчик JWT и почтовый сервис кладутся в app.state.
    """
    settings = settings or Settings()

    engine = build_engine(settings.DATABASE_URL)
    session_factory = build_session_factory(engine)
    log = Log(settings.LOG_DIR, settings.LOG_PRINT)

    # ────────────── Lifespan ──────────────
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_db(engine)
        await log.log_info("startup", "База инициализирована", {"dialect": engine.dialect.name})

        yield

        await log.log_info("shutdown", "Остановка приложения")
        await log.shutdown()
        await engine.dispose()

    app = FastAPI(title="FunnelFlow API", version="1.1.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.log = log
    app.state.tokens = TokenSigner(
        secret_key=settings.AUTH_SECRET_KEY,
        algorithm=settings.AUTH_ALGORITHM,
        expire_minutes=settings.AUTH_TOKEN_EXPIRE_MINUTES,
    )
    app.state.mailer = Mailer(
        api_key=settings.SENDGRID_API_KEY,
        sender=settings.MAIL_FROM_EMAIL,
        sender_name=settings.MAIL_FROM_NAME,
        reset_link_base=settings.RESET_LINK_BASE,
        reset_expire_minutes=settings.RESET_TOKEN_EXPIRE_MINUTES,
        log=log,
    )

    # CORS только для разрешённых источников
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # DB middleware для request.state.db
    app.add_middleware(DBSessionMiddleware, session_factory=session_factory)

    register_exception_handlers(app)

    @app.get("/")
    def read_root():
        return {"message": "FunnelFlow API is running"}

    @app.get("/api/test-db", summary="Проверка соединения с БД")
    async def test_db(request: Request):
        now = await ping_database(request.state.db)
        await log.log_info("db", "Соединение с БД проверено", {"time": now})
        return {"success": True, "time": now}

    # ────────────── Подключение роутов ──────────────
    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(leads.router, prefix="/api/leads", tags=["leads"])

    return app


# ────────────── Запуск uvicorn ──────────────
def run():
    load_dotenv()
    settings = Settings()
    boot_log = Log(settings.LOG_DIR, settings.LOG_PRINT)
    boot_log.log_info_sync(target="startup", message="Запуск uvicorn.run", data={"host": settings.HOST, "port": settings.PORT})
    uvicorn.run(
        "funnelflow.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level="info",
    )


if __name__ == "__main__":
    run()
