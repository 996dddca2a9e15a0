# funnelflow/services/account.py

from datetime import timedelta
from fastapi import Request
from starlette.concurrency import run_in_threadpool
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select

from funnelflow.models.account import Account
from funnelflow.schemas.account import AccountCreate
from funnelflow.utils.database import utc_now
from funnelflow.utils.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from funnelflow.utils.security import hash_password, verify_password, generate_reset_token


async def find_account_by_username(username: str, request: Request) -> Account | None:
    """Поиск аккаунта по логину без учёта регистра."""
    db = request.state.db
    result = await db.execute(select(Account).where(func.lower(Account.username) == username.strip().lower()))
    return result.scalar_one_or_none()


async def read_account_service(account_id: int, request: Request) -> Account | None:
    db = request.state.db
    result = await db.execute(select(Account).where(Account.id == account_id))
    return result.scalar_one_or_none()


async def register_account_service(data: AccountCreate, request: Request) -> Account:
    """
    Регистрация нового аккаунта.
    Пароль хэшируется перед сохранением; повтор логина (без учёта регистра) → 409.
    """
    db = request.state.db
    log = request.app.state.log

    if await find_account_by_username(data.username, request) is not None:
        await log.log_warning("auth", "Логин уже занят", {"username": data.username})
        raise ConflictError(f"Username '{data.username}' is already taken")

    # sha256_crypt считается в пуле потоков, чтобы не держать цикл событий
    password_hash = await run_in_threadpool(hash_password, data.password)
    account = Account(
        username=data.username,
        email=data.email,
        password=password_hash,
    )
    db.add(account)
    try:
        await db.commit()
    except IntegrityError:
        # параллельная регистрация того же логина упёрлась в уникальный индекс
        await db.rollback()
        await log.log_warning("auth", "Логин уже занят (уникальный индекс)", {"username": data.username})
        raise ConflictError(f"Username '{data.username}' is already taken")
    await db.refresh(account)

    await log.log_info("auth", "Аккаунт зарегистрирован", {"id": account.id, "username": account.username})
    return account


async def authenticate_service(username: str, password: str, request: Request) -> Account:
    """Проверка логина и пароля: 404 если аккаунта нет, 401 если пароль не совпал."""
    log = request.app.state.log

    account = await find_account_by_username(username, request)
    if account is None:
        await log.log_warning("auth", "Вход: аккаунт не найден", {"username": username})
        raise NotFoundError("User not found")

    if not await run_in_threadpool(verify_password, password, account.password):
        await log.log_warning("auth", "Вход: неверный пароль", {"username": username})
        raise AuthenticationError("Incorrect password")

    await log.log_info("auth", "Пользователь авторизован", {"id": account.id})
    return account


async def issue_reset_token_service(username: str, request: Request) -> str:
    """
    Выпускает токен сброса пароля (срок RESET_TOKEN_EXPIRE_MINUTES) и передаёт его почтовому сервису.
    Ошибка доставки письма только логируется: токен остаётся действительным до истечения срока.
    """
    db = request.state.db
    log = request.app.state.log
    settings = request.app.state.settings

    account = await find_account_by_username(username, request)
    if account is None:
        await log.log_warning("auth", "Сброс пароля: аккаунт не найден", {"username": username})
        raise NotFoundError("User not found")

    token = generate_reset_token()
    account.reset_token = token
    account.reset_expires = utc_now() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    await db.commit()

    sent = await request.app.state.mailer.send_password_reset(account, token)
    await log.log_info("auth", "Токен сброса пароля выпущен", {"id": account.id, "mail_sent": sent})
    return token


async def reset_password_service(token: str, new_password: str, request: Request) -> None:
    """
    Смена пароля по токену одним UPDATE: новый хэш, токен и срок очищаются вместе.
    Если токен не найден или истёк → 400.
    """
    db = request.state.db
    log = request.app.state.log

    password_hash = await run_in_threadpool(hash_password, new_password)
    result = await db.execute(
        update(Account)
        .where(Account.reset_token == token, Account.reset_expires > utc_now())
        .values(password=password_hash, reset_token=None, reset_expires=None)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    if result.rowcount == 0:
        await log.log_warning("auth", "Сброс пароля: токен недействителен или истёк")
        raise ValidationError("Invalid or expired token")

    await log.log_info("auth", "Пароль изменён по токену сброса")
