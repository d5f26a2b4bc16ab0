"""
Greedy single-link grouping of deduplicated items into topic candidates.
"""
import hashlib
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Sequence

from core.entities import Item
from processing.keywords import extract_keywords, jaccard

logger = logging.getLogger(__name__)


def anchor_order(item: Item):
    """Descending engagement; newer first on ties; then id."""
    return (-item.engagement_score, -item.published_at.timestamp(), item.id)


@dataclass
class TopicCandidate:
    """
    Working cluster. The anchor is the first (highest-engagement) member.
    """
    anchor: Item
    items: List[Item] = field(default_factory=list)
    keyword_lists: List[List[str]] = field(default_factory=list)
    # Filled in by the topic scoring pass
    keywords: List[str] = field(default_factory=list)
    score: float = 0.0

    @property
    def id(self) -> str:
        return "topic-" + hashlib.sha256(self.anchor.id.encode()).hexdigest()[:12]

    @property
    def label(self) -> str:
        return self.anchor.title

    @property
    def keyword_sets(self) -> List[FrozenSet[str]]:
        return [frozenset(k) for k in self.keyword_lists]

    def add(self, item: Item, keywords: List[str]) -> None:
        self.items.append(item)
        self.keyword_lists.append(keywords)

    def top_keywords(self, limit: int) -> List[str]:
        """
        Member keyword union ranked by frequency; ties keep first-seen
        order, which starts with the anchor's own ranking.
        """
        counts: Dict[str, int] = Counter()
        first_seen: Dict[str, int] = {}
        for keywords in self.keyword_lists:
            for keyword in keywords:
                counts[keyword] += 1
                first_seen.setdefault(keyword, len(first_seen))
        ranked = sorted(counts, key=lambda k: (-counts[k], first_seen[k]))
        return ranked[:limit]

    def matches(self, keywords: FrozenSet[str], threshold: float, min_shared: int) -> bool:
        """Single link: one sufficiently similar member is enough."""
        return any(
            len(keywords & member) >= min_shared and jaccard(keywords, member) > threshold
            for member in self.keyword_sets
        )


def cluster_items(
    items: Sequence[Item],
    *,
    threshold: float,
    min_shared: int,
    keyword_limit: int,
    stemming: bool = False,
) -> List[TopicCandidate]:
    """
    Partition items into topic candidates.

    Items are visited in descending engagement so each cluster forms
    around its strongest story. An item joins the first cluster whose
    overlap with one of its members exceeds `threshold` while sharing at
    least `min_shared` keywords; otherwise it starts a new cluster.
    Every input item ends up in exactly one candidate.
    """
    candidates: List[TopicCandidate] = []

    for item in sorted(items, key=anchor_order):
        keywords = extract_keywords(
            item.title,
            item.content or item.summary,
            limit=keyword_limit,
            stemming=stemming,
        )
        keyword_set = frozenset(keywords)

        target = None
        if keyword_set:
            target = next(
                (c for c in candidates if c.matches(keyword_set, threshold, min_shared)),
                None,
            )

        if target is None:
            target = TopicCandidate(anchor=item)
            candidates.append(target)
        target.add(item, keywords)

    logger.info(
        f"Clustered {len(items)} items into {len(candidates)} topics",
        extra={"stage": "cluster", "count": len(candidates)},
    )
    return candidates
