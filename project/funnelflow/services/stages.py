# funnelflow/services/stages.py

from enum import Enum


class Stage(str, Enum):
    """Этапы воронки в порядке движения лида."""
    AWARENESS = "awareness"
    INTEREST = "interest"
    INTENT = "intent"
    EVALUATION = "evaluation"
    PURCHASE = "purchase"


DEFAULT_STAGE = Stage.AWARENESS

# «горячие» этапы и ранние этапы для метрик
HOT_STAGES = frozenset({Stage.INTENT, Stage.EVALUATION, Stage.PURCHASE})
EARLY_STAGES = frozenset({Stage.AWARENESS, Stage.INTEREST})


def classify(raw_stage) -> Stage:
    """
    Приводит произвольное значение этапа к одному из пяти канонических.
    Сравнение точное, с учётом регистра: "Interest", " interest", None → awareness.
    """
    if isinstance(raw_stage, Stage):
        return raw_stage
    if not isinstance(raw_stage, str):
        return DEFAULT_STAGE
    try:
        return Stage(raw_stage)
    except ValueError:
        return DEFAULT_STAGE
