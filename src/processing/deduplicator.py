"""
Collapses near-duplicate items that refer to the same story.

Duplicates share a canonical URL, or have title token overlap above a
threshold. Grouping compares by canonical key before any tie-break, so
it does not depend on input order. Items sharing a URL keep exactly one
survivor among them.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from core.entities import Item
from processing.keywords import jaccard, token_set

logger = logging.getLogger(__name__)

TRACKING_PARAMS = frozenset({
    "ref",
    "ref_src",
    "spm",
    "fbclid",
    "gclid",
    "igshid",
    "mkt_tok",
    "mc_cid",
    "mc_eid",
    "_hsenc",
    "_hsmi",
})


def canonical_url(url: str) -> str:
    """
    Lowercase scheme/host, no www., no fragment, no tracking parameters,
    sorted query, no trailing slash.
    """
    parsed = urlparse(url.strip())
    if not parsed.scheme:
        return url.strip().rstrip("/")

    netloc = parsed.netloc.lower()
    if netloc.startswith("www."):
        netloc = netloc[4:]

    query = sorted(
        (k, v)
        for k, v in parse_qsl(parsed.query, keep_blank_values=True)
        if not k.lower().startswith("utm_") and k.lower() not in TRACKING_PARAMS
    )
    path = parsed.path.rstrip("/")

    normalized = urlunparse((parsed.scheme.lower(), netloc, path, parsed.params, urlencode(query), ""))
    return normalized.rstrip("/")


def survivor_key(item: Item) -> Tuple:
    """Highest engagement first, then earliest publication, then id."""
    return (-item.engagement_score, item.published_at, item.id, item.url)


class _DisjointSet:
    def __init__(self, size: int):
        self.parent = list(range(size))

    def find(self, i: int) -> int:
        while self.parent[i] != i:
            self.parent[i] = self.parent[self.parent[i]]
            i = self.parent[i]
        return i

    def union(self, a: int, b: int) -> None:
        root_a, root_b = self.find(a), self.find(b)
        if root_a != root_b:
            self.parent[max(root_a, root_b)] = min(root_a, root_b)


@dataclass
class DedupOutcome:
    items: List[Item] = field(default_factory=list)
    removed: int = 0


def deduplicate(items: Sequence[Item], *, title_threshold: float) -> DedupOutcome:
    """
    Returns the survivors ordered by survivor_key.

    Items sharing a canonical URL collapse first, so every URL keeps
    exactly its best item. Title similarity then folds the remaining
    items together. The survivor of a multi-item URL group is never
    folded away by a title match; it absorbs its title duplicates instead.
    """
    by_url: Dict[str, List[Item]] = {}
    for item in sorted(items, key=survivor_key):
        by_url.setdefault(canonical_url(item.url), []).append(item)

    # Sorted so union-find roots, and so the result, ignore input order
    url_groups = sorted(by_url.values(), key=lambda group: survivor_key(group[0]))
    candidates = [group[0] for group in url_groups]
    anchored = [len(group) > 1 for group in url_groups]

    groups = _DisjointSet(len(candidates))
    titles = [token_set(item.title) for item in candidates]
    for i in range(len(candidates)):
        if not titles[i]:
            continue
        for j in range(i + 1, len(candidates)):
            if groups.find(i) == groups.find(j):
                continue
            if jaccard(titles[i], titles[j]) >= title_threshold:
                groups.union(i, j)

    members: Dict[int, List[int]] = {}
    for index in range(len(candidates)):
        members.setdefault(groups.find(index), []).append(index)

    survivors: List[Item] = []
    for indices in members.values():
        kept = [i for i in indices if anchored[i]] or indices[:1]
        survivors.extend(candidates[i] for i in kept)

    outcome = DedupOutcome(
        items=sorted(survivors, key=survivor_key),
        removed=len(items) - len(survivors),
    )
    logger.info(
        f"Dedup: {len(items)} -> {len(outcome.items)} items",
        extra={"stage": "dedup", "count": outcome.removed},
    )
    return outcome
