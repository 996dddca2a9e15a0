# funnelflow/services/presenter.py

from typing import Iterable

from funnelflow.schemas.lead import LeadOut, GroupedLeads
from funnelflow.services.stages import Stage


def normalize_lead(lead) -> LeadOut:
    """ORM-объект или dict → LeadOut (пустые строки вместо None, каноничный этап, список стратегий)."""
    if isinstance(lead, LeadOut):
        return lead
    return LeadOut.model_validate(lead)


def group_by_stage(leads: Iterable) -> GroupedLeads:
    """
    Раскладывает лиды по пяти этапам воронки.
    Каждый лид попадает ровно в одну группу, порядок внутри группы как во входной последовательности.
    """
    grouped = {stage: [] for stage in Stage}
    for lead in leads:
        item = normalize_lead(lead)
        grouped[item.current_stage].append(item)
    return GroupedLeads(**{stage.value: items for stage, items in grouped.items()})
