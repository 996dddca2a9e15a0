# funnelflow/utils/security.py

"""
Хэширование и проверка паролей, генерация токенов сброса.
Используется passlib с sha256_crypt (соль встроена в хэш).
"""

import secrets
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["sha256_crypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Хэширует пароль.

    :param password: строка пароля пользователя
    :return: хэш с солью в виде строки
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Проверяет совпадение пароля с его хэшем.

    :param plain_password: строка пароля пользователя
    :param hashed_password: хэшированный пароль из базы
    :return: True если пароль совпадает с хэшем, иначе False
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def generate_reset_token() -> str:
    """Случайный непрозрачный токен для сброса пароля (64 hex-символа)."""
    return secrets.token_hex(32)
