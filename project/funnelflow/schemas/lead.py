# funnelflow/schemas/lead.py

import json
from datetime import datetime
from typing import List, Optional
from pydantic import AliasChoices, Field, field_validator

from funnelflow.schemas.base import CamelModel, as_utc
from funnelflow.services.stages import Stage, DEFAULT_STAGE, classify

STAGE_ALIASES = AliasChoices("stage", "currentStage", "current_stage")


def normalize_strategies(value) -> List[str]:
    """
    Стратегии контента → упорядоченный список непустых строк без пробелов по краям.
    Принимает список, строку через запятую или JSON-строку со списком.
    """
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                value = json.loads(text)
            except ValueError:
                value = text.split(",")
        else:
            value = text.split(",")
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


class StageMove(CamelModel):
    from_stage: Stage
    to_stage: Stage
    moved_at: datetime

    @field_validator("moved_at")
    @classmethod
    def moved_at_utc(cls, value):
        return as_utc(value)


# ────────────── Входные схемы ──────────────
class LeadBase(CamelModel):
    company: Optional[str] = None
    contact: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    source: Optional[str] = None
    industry: Optional[str] = None
    status: Optional[str] = None
    stage: Optional[str] = Field(None, validation_alias=STAGE_ALIASES)
    notes: Optional[str] = None
    content_strategies: Optional[List[str]] = None
    last_contact: Optional[datetime] = None

    @field_validator("content_strategies", mode="before")
    @classmethod
    def split_strategies(cls, value):
        return None if value is None else normalize_strategies(value)


class LeadCreate(LeadBase):
    # владелец всегда берётся из токена; поле только сверяется с ним
    user_id: Optional[int] = None


class LeadUpdate(LeadBase):
    """Частичное обновление: меняются только переданные поля."""
    pass


# ────────────── Схема для RESPONSE ──────────────
class LeadOut(CamelModel):
    id: int
    user_id: Optional[int] = None
    company: str = ""
    contact: str = ""
    email: str = ""
    phone: str = ""
    source: str = ""
    industry: str = ""
    status: str = ""
    current_stage: Stage = Field(DEFAULT_STAGE, validation_alias=STAGE_ALIASES, serialization_alias="currentStage")
    notes: str = ""
    content_strategies: List[str] = []
    movement_history: List[StageMove] = []
    last_contact: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("company", "contact", "email", "phone", "source", "industry", "status", "notes", mode="before")
    @classmethod
    def empty_if_missing(cls, value):
        return "" if value is None else value

    @field_validator("current_stage", mode="before")
    @classmethod
    def classify_stage(cls, value):
        return classify(value)

    @field_validator("content_strategies", mode="before")
    @classmethod
    def split_strategies(cls, value):
        return normalize_strategies(value)

    @field_validator("movement_history", mode="before")
    @classmethod
    def history_or_empty(cls, value):
        return [] if value is None else value

    @field_validator("last_contact", "created_at", "updated_at")
    @classmethod
    def timestamps_utc(cls, value):
        return as_utc(value)


class GroupedLeads(CamelModel):
    """Лиды по этапам воронки: ровно пять ключей."""
    awareness: List[LeadOut] = []
    interest: List[LeadOut] = []
    intent: List[LeadOut] = []
    evaluation: List[LeadOut] = []
    purchase: List[LeadOut] = []


class DeleteLeadResponse(CamelModel):
    success: bool = True
    deleted_lead: LeadOut
