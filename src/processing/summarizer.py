"""
Extractive summaries for items and topics. Pure and deterministic.
"""
import math
import re
from typing import Dict, List, Sequence, Tuple

from core.entities import Item
from processing.keywords import tokenize

_SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s+(?=[\"'(\[]?[A-Z0-9])")
_MIN_SENTENCE_CHARS = 20


def split_sentences(text: str) -> List[str]:
    text = " ".join((text or "").split())
    if not text:
        return []
    return [s.strip() for s in _SENTENCE_END_RE.split(text) if s.strip()]


def truncate(text: str, max_chars: int) -> str:
    """Cut at a word boundary and mark the cut with an ellipsis."""
    if len(text) <= max_chars:
        return text
    cut = text[: max_chars - 1]
    if " " in cut:
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip(" ,;:-") + "…"


def _join_bounded(sentences: Sequence[str], max_chars: int) -> str:
    summary = ""
    for sentence in sentences:
        candidate = f"{summary} {sentence}".strip()
        if len(candidate) > max_chars:
            break
        summary = candidate
    if not summary and sentences:
        summary = truncate(sentences[0], max_chars)
    return summary


def summarize_item(title: str, content: str, max_chars: int) -> str:
    """
    Leading sentences of the item's own text, falling back to its title.
    """
    sentences = split_sentences(content)
    if not sentences:
        return truncate(" ".join(title.split()), max_chars)
    return _join_bounded(sentences, max_chars)


def summarize_topic(
    items: Sequence[Item],
    keywords: Sequence[str],
    *,
    max_sentences: int,
    max_chars: int,
    stemming: bool = False,
) -> str:
    """
    Select the highest-information sentences across a topic's members.

    A sentence scores by the weight of the topic keywords it mentions
    (earlier keywords weigh more), normalised by its length. Chosen
    sentences are emitted in member order, then sentence order.
    """
    weights: Dict[str, float] = {
        keyword: float(len(keywords) - rank) for rank, keyword in enumerate(keywords)
    }

    candidates: List[Tuple[float, int, int, str]] = []
    seen = set()
    for member_index, item in enumerate(items):
        text = item.content or item.summary
        for sentence_index, sentence in enumerate(split_sentences(text)):
            key = sentence.lower()
            if len(sentence) < _MIN_SENTENCE_CHARS or key in seen:
                continue
            seen.add(key)

            tokens = set(tokenize(sentence, stemming=stemming))
            if not tokens:
                continue
            hits = sum(weights.get(token, 0.0) for token in tokens)
            score = hits / math.sqrt(len(tokens))
            candidates.append((score, member_index, sentence_index, sentence))

    if not candidates:
        titles = [" ".join(item.title.split()) for item in items[:3]]
        return truncate("; ".join(titles), max_chars)

    ranked = sorted(candidates, key=lambda c: (-c[0], c[1], c[2]))[:max_sentences]
    ordered = [c[3] for c in sorted(ranked, key=lambda c: (c[1], c[2]))]
    return _join_bounded(ordered, max_chars)
