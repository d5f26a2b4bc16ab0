"""
Drops recurring low-value topics (generic chatter about detecting
AI-written text) unless the topic carries a novelty signal.
"""
import logging
import re
import statistics
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from processing.clustering import TopicCandidate
from processing.keywords import tokenize
from services.config import NoiseFilterConfig

logger = logging.getLogger(__name__)


def pattern_match(text: str, patterns: Iterable[str]) -> bool:
    return any(re.search(p, text, re.IGNORECASE) for p in patterns)


def is_low_value(label: str, keywords: Sequence[str], config: NoiseFilterConfig) -> bool:
    """Label matches a noise pattern, or noise terms dominate the keywords."""
    if pattern_match(label, config.patterns):
        return True
    if pattern_match(" ".join(keywords), config.patterns):
        return True
    if not keywords:
        return False

    noise_terms = {k.lower() for k in config.keywords}
    noisy = sum(1 for k in keywords if k.lower() in noise_terms)
    return noisy / len(keywords) >= config.keyword_ratio


def is_novel(
    label: str,
    keywords: Sequence[str],
    score: float,
    median_score: float,
    config: NoiseFilterConfig,
) -> bool:
    """Override keywords present, or score unusually high for this run."""
    overrides = {k.lower() for k in config.override_keywords}
    terms = {k.lower() for k in keywords} | set(tokenize(label))
    if terms & overrides:
        return True
    return score >= config.novelty_multiplier * median_score


@dataclass
class NoiseFilterOutcome:
    kept: List[TopicCandidate] = field(default_factory=list)
    dropped: List[TopicCandidate] = field(default_factory=list)

    @property
    def removed_items(self) -> int:
        return sum(len(c.items) for c in self.dropped)


def filter_noise(
    candidates: Sequence[TopicCandidate],
    config: NoiseFilterConfig,
) -> NoiseFilterOutcome:
    """
    Must run after topic scoring: novelty is judged against the median
    score of all topics in the run. Topics are kept or dropped whole.
    """
    outcome = NoiseFilterOutcome()
    if not candidates:
        return outcome

    median_score = statistics.median(c.score for c in candidates)

    for candidate in candidates:
        if not is_low_value(candidate.label, candidate.keywords, config):
            outcome.kept.append(candidate)
        elif is_novel(candidate.label, candidate.keywords, candidate.score, median_score, config):
            logger.info(f"Keeping low-value topic flagged as novel: {candidate.label}")
            outcome.kept.append(candidate)
        else:
            logger.info(
                f"Dropping low-value topic: {candidate.label} ({len(candidate.items)} items)",
                extra={"stage": "noise_filter", "count": len(candidate.items)},
            )
            outcome.dropped.append(candidate)

    logger.info(
        f"Noise filter: {len(candidates)} -> {len(outcome.kept)} topics",
        extra={"stage": "noise_filter", "count": outcome.removed_items},
    )
    return outcome
