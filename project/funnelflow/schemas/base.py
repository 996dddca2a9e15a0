# funnelflow/schemas/base.py

from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Базовая схема API: наружу поля в camelCase (createdAt, contentStrategies),
    на вход принимаются оба варианта имён.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(BaseModel):
    message: str


def as_utc(value):
    """Время без зоны (так его возвращает SQLite) считается UTC."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
