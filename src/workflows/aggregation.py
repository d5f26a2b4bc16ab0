"""
Aggregation Engine - collects from every source and turns the merged
item set into scored, filtered and summarized topics.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence

from core.entities import AggregationResult, Topic
from core.errors import PipelineFailure
from core.scoring import topic_score
from ingestion.base import SourceAdapter, SourceBatch
from ingestion.collector import collect_all
from ingestion.source_factory import create_adapters_from_config
from processing.clustering import TopicCandidate, cluster_items
from processing.deduplicator import deduplicate
from processing.noise_filter import filter_noise
from processing.normalizer import normalize_all
from processing.stats import RunCounters, build_stats
from processing.summarizer import summarize_topic
from services.config import Config, EngineSettings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AggregationEngine:
    """
    Stateless between runs: every call to run_aggregation builds its
    result from scratch, so concurrent calls do not interfere.
    """

    def __init__(
        self,
        adapters: Sequence[SourceAdapter],
        settings: Optional[EngineSettings] = None,
        clock: Clock = utc_now,
    ):
        self.adapters = list(adapters)
        self.settings = settings or EngineSettings()
        self.clock = clock

    async def run_aggregation(self) -> AggregationResult:
        """
        Collect from all sources concurrently, then process the merged
        snapshot. Raises PipelineFailure if a processing stage breaks.
        """
        started_at = self.clock()
        since = started_at - timedelta(hours=self.settings.lookback_hours)

        logger.info(f"Starting aggregation over {len(self.adapters)} sources")
        outcome = await collect_all(
            self.adapters,
            since,
            source_timeout=self.settings.source_timeout_seconds,
            deadline=self.settings.run_timeout_seconds,
        )
        if outcome.failed:
            logger.warning(f"Sources excluded from this run: {', '.join(outcome.failed)}")

        counters = RunCounters(sources=outcome.sources)
        return self.aggregate(outcome.batches, counters=counters, started_at=started_at)

    def aggregate(
        self,
        batches: Sequence[SourceBatch],
        *,
        counters: Optional[RunCounters] = None,
        started_at: Optional[datetime] = None,
    ) -> AggregationResult:
        """
        The sequential processing stage over already-collected batches.
        """
        started_at = started_at or self.clock()
        if counters is None:
            counters = RunCounters(sources=[batch.source for batch in batches])
        settings = self.settings

        stage = "normalize"
        try:
            normalized = normalize_all(batches, now=started_at, settings=settings)
            counters.total_items = len(normalized.items)
            counters.malformed_items = normalized.malformed

            stage = "dedup"
            deduped = deduplicate(normalized.items, title_threshold=settings.dedup_title_threshold)
            counters.duplicates_removed = deduped.removed

            stage = "cluster"
            candidates = cluster_items(
                deduped.items,
                threshold=settings.cluster_similarity_threshold,
                min_shared=settings.cluster_min_shared,
                keyword_limit=settings.item_keyword_limit,
                stemming=settings.stem_keywords,
            )

            stage = "score"
            for candidate in candidates:
                candidate.keywords = candidate.top_keywords(settings.topic_keyword_limit)
                candidate.score = topic_score(candidate.items, started_at, settings.scoring)

            stage = "noise_filter"
            filtered = filter_noise(candidates, settings.noise)
            counters.noise_removed = filtered.removed_items

            stage = "summarize"
            topics = sorted(
                (self._build_topic(candidate) for candidate in filtered.kept),
                key=lambda topic: (-topic.score, topic.id),
            )

            stage = "stats"
            stats = build_stats(counters, started_at, self.clock())
        except Exception as e:
            logger.exception(f"Aggregation failed during {stage}", extra={"stage": stage})
            raise PipelineFailure(stage, f"{type(e).__name__}: {e}") from e

        logger.info(
            f"Aggregation complete: {len(topics)} topics, {stats.total_items} items, "
            f"{stats.filtered_items} filtered, {stats.runtime_ms}ms"
        )
        return AggregationResult(topics=tuple(topics), stats=stats)

    def _build_topic(self, candidate: TopicCandidate) -> Topic:
        summarizer = self.settings.summarizer
        return Topic(
            id=candidate.id,
            label=candidate.label,
            summary=summarize_topic(
                candidate.items,
                candidate.keywords,
                max_sentences=summarizer.topic_summary_sentences,
                max_chars=summarizer.topic_summary_chars,
                stemming=self.settings.stem_keywords,
            ),
            score=candidate.score,
            keywords=tuple(candidate.keywords),
            items=tuple(candidate.items),
        )


def create_engine_from_config(config: Config, clock: Clock = utc_now) -> AggregationEngine:
    adapters: List[SourceAdapter] = create_adapters_from_config(config)
    return AggregationEngine(adapters, config.engine, clock=clock)
