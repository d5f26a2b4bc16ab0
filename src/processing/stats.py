"""
Run-level counters and the stats computed from them.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from core.entities import AggregationStats


@dataclass
class RunCounters:
    """
    Accumulator threaded through the pipeline stages of a single run.
    """
    sources: List[str] = field(default_factory=list)
    total_items: int = 0
    malformed_items: int = 0
    duplicates_removed: int = 0
    noise_removed: int = 0

    @property
    def filtered_items(self) -> int:
        return self.duplicates_removed + self.noise_removed


def build_stats(counters: RunCounters, started_at: datetime, finished_at: datetime) -> AggregationStats:
    runtime = finished_at - started_at
    return AggregationStats(
        total_sources=len(set(counters.sources)),
        total_items=counters.total_items,
        filtered_items=counters.filtered_items,
        generated_at=finished_at,
        runtime_ms=max(int(runtime.total_seconds() * 1000), 0),
    )
