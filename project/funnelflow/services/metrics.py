# funnelflow/services/metrics.py

from datetime import datetime, timezone
from typing import Iterable, Optional

from funnelflow.schemas.metrics import MetricsReport, StageCounts
from funnelflow.services.stages import Stage, HOT_STAGES, EARLY_STAGES, classify

SECONDS_PER_DAY = 86400
RECENT_DAYS = 7
STALE_DAYS = 14


def _read(lead, name):
    if isinstance(lead, dict):
        return lead.get(name)
    return getattr(lead, name, None)


def _as_utc(moment: datetime) -> datetime:
    # SQLite возвращает время без зоны; храним всегда UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _percent(part: int, whole: int) -> int:
    if not whole:
        return 0
    return round(100 * part / whole)


def compute_metrics(leads: Iterable, now: Optional[datetime] = None) -> MetricsReport:
    """
    Метрики воронки за один проход по лидам.

    :param leads: ORM-лиды, LeadOut или dict с полями stage / created_at
    :param now: момент расчёта (по умолчанию текущее время UTC)
    """
    now = _as_utc(now or datetime.now(timezone.utc))

    counts = {stage: 0 for stage in Stage}
    total = 0
    total_age_days = 0.0
    recent = hot = stale = 0

    for lead in leads:
        stage = classify(_read(lead, "stage") or _read(lead, "current_stage"))
        counts[stage] += 1
        total += 1

        created_at = _read(lead, "created_at")
        age_days = (now - _as_utc(created_at)).total_seconds() / SECONDS_PER_DAY if created_at else 0.0
        total_age_days += age_days

        if age_days <= RECENT_DAYS:
            recent += 1
            if stage in HOT_STAGES:
                hot += 1
        elif age_days > STALE_DAYS and stage in EARLY_STAGES:
            stale += 1

    consideration = counts[Stage.INTENT] + counts[Stage.EVALUATION]

    return MetricsReport(
        total_leads=total,
        stage_counts=StageCounts(**{stage.value: count for stage, count in counts.items()}),
        stage_distribution=StageCounts(**{stage.value: _percent(count, total) for stage, count in counts.items()}),
        consideration_count=consideration,
        awareness_to_interest=_percent(counts[Stage.INTEREST], counts[Stage.AWARENESS]),
        interest_to_consideration=_percent(consideration, counts[Stage.INTEREST]),
        conversion_rate=_percent(counts[Stage.PURCHASE], counts[Stage.AWARENESS]),
        engagement_rate=_percent(recent, total),
        recent_leads=recent,
        hot_leads=hot,
        stale_leads=stale,
        avg_time_in_funnel=round(total_age_days / total, 1) if total else None,
        generated_at=now,
    )
