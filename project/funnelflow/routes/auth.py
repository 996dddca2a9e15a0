# funnelflow/routes/auth.py

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jwt import ExpiredSignatureError, InvalidTokenError

from funnelflow.models.account import Account
from funnelflow.schemas.account import (
    AccountCreate,
    AccountCredentials,
    AccountResponse,
    LoginResponse,
    PasswordReset,
    ResetRequest,
)
from funnelflow.schemas.base import MessageResponse
from funnelflow.services.account import (
    authenticate_service,
    issue_reset_token_service,
    read_account_service,
    register_account_service,
    reset_password_service,
)
from funnelflow.utils.errors import AuthenticationError

router = APIRouter()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token")


def issue_token(account: Account, request: Request) -> str:
    return request.app.state.tokens.create_access_token({"sub": str(account.id), "username": account.username})


async def get_current_account(request: Request, token: str = Depends(oauth2_scheme)) -> Account:
    """
    Проверяет JWT и возвращает аккаунт владельца.
    Личность берётся только из подписанного токена, заголовкам клиента не доверяем.

    **Статусы:**
    - 401 Unauthorized – токен истёк, неверный или аккаунт удалён
    """
    log = request.app.state.log
    try:
        payload = request.app.state.tokens.decode_token(token)
        account_id = int(payload.get("sub"))
    except ExpiredSignatureError:
        await log.log_warning("auth", "Токен истёк")
        raise AuthenticationError("Token expired")
    except (InvalidTokenError, TypeError, ValueError):
        await log.log_warning("auth", "Неверный токен")
        raise AuthenticationError("Token invalid")

    account = await read_account_service(account_id, request)
    if account is None:
        await log.log_warning("auth", "Аккаунт из токена не найден", {"id": account_id})
        raise AuthenticationError("User not found")

    return account


# ────────────── Регистрация ──────────────
@router.post(
    "/register",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Регистрация нового пользователя",
    responses={
        201: {"description": "Пользователь успешно зарегистрирован"},
        400: {"description": "Неверные данные (логин, сложность пароля, email)"},
        409: {"description": "Логин уже занят (без учёта регистра)"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def register(data: AccountCreate, request: Request):
    """
    Регистрация нового пользователя.

    - Логин: 3–30 символов, латиница, цифры и `_`.
    - Пароль: от 8 символов, заглавная и строчная буква, цифра, спецсимвол.
    - Пароль хэшируется перед сохранением, в ответе его нет.
    """
    return await register_account_service(data, request)


# ────────────── Вход ──────────────
@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Вход по логину и паролю (JSON)",
    responses={
        200: {
            "description": "Токен выдан",
            "content": {
                "application/json": {
                    "example": {
                        "accessToken": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                        "tokenType": "bearer",
                        "user": {"id": 1, "username": "alice"},
                    }
                }
            },
        },
        400: {"description": "Пустой логин или пароль"},
        401: {"description": "Неверный пароль"},
        404: {"description": "Пользователь не найден"},
    },
)
async def login(credentials: AccountCredentials, request: Request):
    account = await authenticate_service(credentials.username, credentials.password, request)
    return LoginResponse(
        access_token=issue_token(account, request),
        user={"id": account.id, "username": account.username},
    )


@router.post(
    "/token",
    summary="Получение JWT токена (OAuth2 form, для Swagger)",
    responses={
        200: {"description": "Токен выдан"},
        401: {"description": "Неверный пароль"},
        404: {"description": "Пользователь не найден"},
    },
)
async def login_for_access_token(request: Request, form_data: OAuth2PasswordRequestForm = Depends()):
    account = await authenticate_service(form_data.username, form_data.password, request)
    return {"access_token": issue_token(account, request), "token_type": "bearer"}


# ────────────── Сброс пароля ──────────────
@router.post(
    "/request-reset",
    response_model=MessageResponse,
    summary="Запросить ссылку для сброса пароля",
    responses={
        200: {"description": "Ссылка отправлена"},
        404: {"description": "Пользователь не найден"},
    },
)
async def request_reset(data: ResetRequest, request: Request):
    await issue_reset_token_service(data.username, request)
    return {"message": "Reset link sent to your email."}


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Сменить пароль по токену сброса",
    responses={
        200: {"description": "Пароль изменён"},
        400: {"description": "Токен недействителен, истёк или пароль слишком простой"},
    },
)
async def reset_password(data: PasswordReset, request: Request):
    await reset_password_service(data.token, data.password, request)
    return {"message": "Password successfully reset."}
