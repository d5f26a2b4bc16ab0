from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Tuple


@dataclass(frozen=True)
class Item:
    """
    Canonical representation of one normalized content item.
    """
    id: str
    title: str
    url: str
    source: str
    summary: str
    published_at: datetime
    engagement_score: float
    # Cleaned full text; used for keywords and topic summaries, never serialized.
    content: str = field(default="", repr=False, compare=False)


@dataclass(frozen=True)
class Topic:
    """
    Cluster of related items with an aggregate score.
    """
    id: str
    label: str
    summary: str
    score: float
    keywords: Tuple[str, ...]
    items: Tuple[Item, ...]


@dataclass(frozen=True)
class AggregationStats:
    total_sources: int
    total_items: int
    filtered_items: int
    generated_at: datetime
    runtime_ms: int


@dataclass(frozen=True)
class AggregationResult:
    """
    Output of one aggregation run. Topics are sorted by descending score.
    """
    topics: Tuple[Topic, ...]
    stats: AggregationStats

    @property
    def item_count(self) -> int:
        return sum(len(topic.items) for topic in self.topics)
