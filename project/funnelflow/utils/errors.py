# funnelflow/utils/errors.py

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError


# ────────────── Классы ошибок ──────────────
class ValidationError(HTTPException):
    def __init__(self, detail: str = "Validation error"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(HTTPException):
    """Запрос к данным другого владельца."""

    def __init__(self, detail: str = "Unauthorized access"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str = "Conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


# ────────────── Обработчики ──────────────
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Ошибки валидации тела/пути запроса → 400 (а не 422 по умолчанию)."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def store_exception_handler(request: Request, exc: SQLAlchemyError):
    """
    Любая ошибка хранилища, дошедшая до границы запроса → 500.
    Текст ошибки драйвера отдаётся клиенту только в режиме development.
    """
    log = getattr(request.app.state, "log", None)
    if log:
        await log.log_error("db", f"Ошибка хранилища: {exc}", {"path": request.url.path, "method": request.method})

    content = {"detail": "Internal server error"}
    settings = getattr(request.app.state, "settings", None)
    if settings is not None and settings.is_development:
        content["error"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, store_exception_handler)
