# funnelflow/routes/leads.py

from fastapi import APIRouter, Depends, Request, Response, status

from funnelflow.models.account import Account
from funnelflow.routes.auth import get_current_account
from funnelflow.schemas.lead import DeleteLeadResponse, GroupedLeads, LeadCreate, LeadOut, LeadUpdate
from funnelflow.schemas.metrics import MetricsReport
from funnelflow.services.lead import (
    create_lead_service,
    delete_lead_service,
    read_leads_service,
    update_lead_service,
)
from funnelflow.services.metrics import compute_metrics
from funnelflow.services.presenter import group_by_stage, normalize_lead
from funnelflow.utils.errors import ForbiddenError

router = APIRouter()


async def ensure_owner(user_id: int, account: Account, request: Request):
    """Запрошенный владелец должен совпадать с аккаунтом из токена, иначе 403."""
    if user_id != account.id:
        await request.app.state.log.log_warning(
            "lead", "Запрос к чужим лидам", {"requested": user_id, "account": account.id}
        )
        raise ForbiddenError("User ID mismatch")


def no_store(response: Response):
    response.headers["Cache-Control"] = "no-store, max-age=0"


# ────────────── METRICS ──────────────
@router.get(
    "/metrics/{user_id}",
    response_model=MetricsReport,
    summary="Метрики воронки пользователя",
    responses={
        200: {"description": "Метрики рассчитаны"},
        400: {"description": "Некорректный ID"},
        401: {"description": "Некорректный пользователь или токен"},
        403: {"description": "Чужой ID"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def read_metrics(
    user_id: int,
    request: Request,
    response: Response,
    current_account: Account = Depends(get_current_account),
):
    await ensure_owner(user_id, current_account, request)
    try:
        leads = await read_leads_service(user_id, request)
        report = compute_metrics(leads)
        await request.app.state.log.log_info("metrics", "Метрики рассчитаны", {"user_id": user_id, "total": report.total_leads})
        no_store(response)
        return report
    except Exception as e:
        await request.app.state.log.log_error("metrics", f"Ошибка при расчёте метрик: {str(e)}", {"user_id": user_id})
        raise


# ────────────── READ ALL (по этапам) ──────────────
@router.get(
    "/{user_id}",
    response_model=GroupedLeads,
    summary="Лиды пользователя по этапам воронки",
    responses={
        200: {"description": "Лиды сгруппированы по этапам"},
        400: {"description": "Некорректный ID"},
        401: {"description": "Некорректный пользователь или токен"},
        403: {"description": "Чужой ID"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def read_leads(
    user_id: int,
    request: Request,
    response: Response,
    current_account: Account = Depends(get_current_account),
):
    await ensure_owner(user_id, current_account, request)
    try:
        leads = await read_leads_service(user_id, request)
        no_store(response)
        return group_by_stage(leads)
    except Exception as e:
        await request.app.state.log.log_error("lead", f"Ошибка при получении списка лидов: {str(e)}", {"user_id": user_id})
        raise


# ────────────── CREATE ──────────────
@router.post(
    "",
    response_model=GroupedLeads,
    status_code=status.HTTP_201_CREATED,
    summary="Создать лид",
    response_description="Возвращает обновлённый список лидов по этапам",
    responses={
        201: {"description": "Лид успешно создан"},
        400: {"description": "Неверные данные запроса"},
        401: {"description": "Некорректный пользователь или токен"},
        403: {"description": "userId в теле не совпадает с токеном"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def create_lead(
    lead: LeadCreate,
    request: Request,
    response: Response,
    current_account: Account = Depends(get_current_account),
):
    if lead.user_id is not None:
        await ensure_owner(lead.user_id, current_account, request)
    try:
        await create_lead_service(lead, current_account.id, request)
        leads = await read_leads_service(current_account.id, request)
        no_store(response)
        return group_by_stage(leads)
    except Exception as e:
        await request.app.state.log.log_error("lead", f"Ошибка при создании лида: {str(e)}")
        raise


# ────────────── UPDATE ──────────────
@router.put(
    "/{id}",
    response_model=LeadOut,
    summary="Обновить лид",
    response_description="Возвращает обновлённый лид",
    responses={
        200: {"description": "Лид успешно обновлён"},
        400: {"description": "Неверные данные запроса"},
        401: {"description": "Некорректный пользователь или токен"},
        404: {"description": "Лид не найден или принадлежит другому пользователю"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def update_lead(
    id: int,
    lead_update: LeadUpdate,
    request: Request,
    response: Response,
    current_account: Account = Depends(get_current_account),
):
    try:
        updated_lead = await update_lead_service(id, lead_update, current_account.id, request)
        no_store(response)
        return normalize_lead(updated_lead)
    except Exception as e:
        await request.app.state.log.log_error("lead", f"Ошибка при обновлении лида: {str(e)}", {"id": id})
        raise


# ────────────── DELETE ──────────────
@router.delete(
    "/{id}",
    response_model=DeleteLeadResponse,
    summary="Удалить лид",
    responses={
        200: {"description": "Лид удалён"},
        400: {"description": "Некорректный ID"},
        401: {"description": "Некорректный пользователь или токен"},
        404: {"description": "Лид не найден или принадлежит другому пользователю"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def delete_lead(
    id: int,
    request: Request,
    response: Response,
    current_account: Account = Depends(get_current_account),
):
    try:
        deleted = await delete_lead_service(id, current_account.id, request)
        no_store(response)
        return DeleteLeadResponse(deleted_lead=normalize_lead(deleted))
    except Exception as e:
        await request.app.state.log.log_error("lead", f"Ошибка при удалении лида: {str(e)}", {"id": id})
        raise
