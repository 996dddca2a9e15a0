# funnelflow/utils/tokens.py

from datetime import datetime, timedelta, timezone
from typing import Optional
from jwt import encode, decode


class TokenSigner:
    """
    Выпуск и проверка JWT.
    Секрет и время жизни передаются явно из Settings при создании приложения.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 15):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """
        Вход: dict (например {"sub": "42", "username": "alice"})
        Выход: JWT строка
        """
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=self.expire_minutes))
        to_encode.update({"exp": expire})
        return encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> dict:
        """Бросает ExpiredSignatureError / InvalidTokenError из PyJWT."""
        return decode(token, self.secret_key, algorithms=[self.algorithm])
