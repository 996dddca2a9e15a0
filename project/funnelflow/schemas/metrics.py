# funnelflow/schemas/metrics.py

from datetime import datetime
from typing import Optional

from funnelflow.schemas.base import CamelModel


class StageCounts(CamelModel):
    awareness: int = 0
    interest: int = 0
    intent: int = 0
    evaluation: int = 0
    purchase: int = 0


class MetricsReport(CamelModel):
    """
    Сводка по воронке пользователя.
    Проценты целые (round, половина к чётному), avg_time_in_funnel в днях с одним знаком.
    """
    total_leads: int = 0
    stage_counts: StageCounts = StageCounts()
    stage_distribution: StageCounts = StageCounts()   # проценты от total_leads
    consideration_count: int = 0
    awareness_to_interest: int = 0
    interest_to_consideration: int = 0
    conversion_rate: int = 0
    engagement_rate: int = 0
    recent_leads: int = 0
    hot_leads: int = 0
    stale_leads: int = 0
    avg_time_in_funnel: Optional[float] = None
    generated_at: Optional[datetime] = None
