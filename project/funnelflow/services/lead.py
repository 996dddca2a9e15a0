# funnelflow/services/lead.py

from fastapi import Request
from sqlalchemy.future import select

from funnelflow.models.lead import Lead as LeadModel
from funnelflow.schemas.lead import LeadCreate, LeadUpdate
from funnelflow.services.stages import classify
from funnelflow.utils.database import utc_now
from funnelflow.utils.errors import NotFoundError

PLACEHOLDER_COMPANY = "Untitled Company"
MIN_COMPANY_LENGTH = 2


def clean_company(company: str | None) -> str:
    """Название компании короче 2 символов (или пустое) заменяется заглушкой."""
    company = (company or "").strip()
    return company if len(company) >= MIN_COMPANY_LENGTH else PLACEHOLDER_COMPANY


async def read_leads_service(user_id: int, request: Request) -> list[LeadModel]:
    """
    Все лиды владельца, новые сверху.
    """
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(
        select(LeadModel)
        .where(LeadModel.user_id == user_id)
        .order_by(LeadModel.created_at.desc(), LeadModel.id.desc())
    )
    leads = list(result.scalars().all())

    await log.log_info("lead", f"{len(leads)} лидов загружено", {"user_id": user_id})
    return leads


async def read_owned_lead(lead_id: int, user_id: int, request: Request, action: str = "чтения") -> LeadModel:
    """Лид по ID только в пределах владельца; чужой и несуществующий неразличимы (404)."""
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(
        select(LeadModel).where(LeadModel.id == lead_id, LeadModel.user_id == user_id)
    )
    db_lead = result.scalar_one_or_none()
    if db_lead is None:
        await log.log_error("lead", f"Лид не найден для {action}", {"id": lead_id, "user_id": user_id})
        raise NotFoundError("Lead not found or not owned by user")
    return db_lead


async def create_lead_service(lead: LeadCreate, user_id: int, request: Request) -> LeadModel:
    """
    Создание лида. Этап приводится к каноническому до записи, компания чистится.
    """
    db = request.state.db
    log = request.app.state.log

    data = lead.model_dump(exclude={"user_id", "stage", "company", "content_strategies"})
    db_lead = LeadModel(
        **data,
        user_id=user_id,
        company=clean_company(lead.company),
        stage=classify(lead.stage).value,
        content_strategies=lead.content_strategies or [],
        movement_history=[],
    )
    db.add(db_lead)
    await db.commit()
    await db.refresh(db_lead)

    await log.log_info("lead", "Лид создан", {"id": db_lead.id, "user_id": user_id, "stage": db_lead.stage})
    return db_lead


async def update_lead_service(lead_id: int, lead_update: LeadUpdate, user_id: int, request: Request) -> LeadModel:
    """
    Частичное обновление лида владельца.
    При смене этапа в movement_history добавляется запись {from_stage, to_stage, moved_at}.
    """
    db = request.state.db
    log = request.app.state.log

    db_lead = await read_owned_lead(lead_id, user_id, request, "обновления")
    now = utc_now()

    changes = lead_update.model_dump(exclude_unset=True)
    if "company" in changes:
        changes["company"] = clean_company(changes["company"])
    if "content_strategies" in changes:
        changes["content_strategies"] = changes["content_strategies"] or []

    if "stage" in changes:
        new_stage = classify(changes.pop("stage")).value
        old_stage = classify(db_lead.stage).value
        if new_stage != old_stage:
            # новый список, иначе JSON-колонка не увидит изменения
            db_lead.movement_history = [
                *(db_lead.movement_history or []),
                {"from_stage": old_stage, "to_stage": new_stage, "moved_at": now.isoformat()},
            ]
        db_lead.stage = new_stage

    changes["last_contact"] = changes.get("last_contact") or now
    for key, value in changes.items():
        setattr(db_lead, key, value)
    db_lead.updated_at = now

    await db.commit()
    await log.log_info("lead", "Лид обновлён", {"id": lead_id, "user_id": user_id})
    return db_lead


async def delete_lead_service(lead_id: int, user_id: int, request: Request) -> LeadModel:
    """
    Удаление лида владельца. Возвращает удалённый объект для ответа.
    """
    db = request.state.db
    log = request.app.state.log

    db_lead = await read_owned_lead(lead_id, user_id, request, "удаления")

    await db.delete(db_lead)
    await db.commit()
    await log.log_info("lead", "Лид удалён", {"id": lead_id, "user_id": user_id})
    return db_lead
