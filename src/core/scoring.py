"""
Module to score items and topics
"""
import math
from datetime import datetime
from typing import Sequence

from core.entities import Item
from services.config import ScoringConfig


def age_hours(published_at: datetime, now: datetime) -> float:
    """Age in hours; items dated in the future count as brand new."""
    return max((now - published_at).total_seconds() / 3600.0, 0.0)


def recency_decay(published_at: datetime, now: datetime, half_life_hours: float) -> float:
    """
    Halves every `half_life_hours`. Always in (0, 1].
    """
    return 0.5 ** (age_hours(published_at, now) / half_life_hours)


def engagement_score(
    kind: str,
    raw_signal: float,
    published_at: datetime,
    now: datetime,
    config: ScoringConfig,
) -> float:
    """
    Rescales a source-native engagement signal (points, comments)
    onto a common scale.

    Log compression relative to a per-kind reference keeps high-volume
    sources from dominating by magnitude alone; recency decay is applied
    multiplicatively so the result is never negative.
    """
    raw_signal = max(float(raw_signal or 0.0), 0.0)
    compressed = math.log1p(raw_signal) / math.log1p(config.reference_for(kind))
    base = config.baseline + compressed * config.weight_for(kind)
    decay = recency_decay(published_at, now, config.half_life_hours)
    return round(base * decay, 6)


def topic_score(items: Sequence[Item], now: datetime, config: ScoringConfig) -> float:
    """
    Aggregate score of a cluster.

    Member engagement saturates towards `topic_cap` so very large clusters
    cannot grow without bound; distinct corroborating sources and the
    freshest member's age add bonuses on top.
    """
    if not items:
        return 0.0

    total = sum(item.engagement_score for item in items)
    saturated = config.topic_cap * (1.0 - math.exp(-total / config.topic_cap))

    distinct_sources = len({item.source for item in items})
    size_bonus = config.size_weight * math.log1p(distinct_sources - 1)

    newest = max(item.published_at for item in items)
    recency_bonus = config.recency_weight * recency_decay(newest, now, config.half_life_hours)

    return round(saturated + size_bonus + recency_bonus, 6)
