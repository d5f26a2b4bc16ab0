"""
Maps raw collector output onto the canonical Item.

One extractor per raw item kind pulls out the source-agnostic fields;
shared validation then decides whether the item is usable.
"""
import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Comment
from pydantic import TypeAdapter, ValidationError

from core.entities import Item
from core.errors import MalformedSourceItem
from core.scoring import engagement_score
from ingestion.base import ArxivEntry, FeedEntry, HackerNewsStory, RawItem, RedditPost, SourceBatch
from processing.summarizer import summarize_item
from services.config import EngineSettings

logger = logging.getLogger(__name__)

_RAW_ITEM_ADAPTER = TypeAdapter(RawItem)


def generate_item_id(source: str, url: str) -> str:
    """Stable item ID from source name and URL."""
    return hashlib.sha256(f"{source}:{url}".encode()).hexdigest()[:16]


def clean_text(text: Optional[str]) -> str:
    """Strip markup, scripts and comments; collapse whitespace."""
    if not text:
        return ""
    soup = BeautifulSoup(text, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    return " ".join(soup.get_text(" ").split())


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_epoch(value: Optional[float]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


@dataclass(frozen=True)
class Extracted:
    """Source-agnostic view of a raw item before validation."""
    title: str
    url: str
    content: str
    published_at: Optional[datetime]
    signal: float = 0.0
    external_id: Optional[str] = None


def _from_hackernews(raw: HackerNewsStory) -> Extracted:
    url = raw.url
    if not url and raw.id is not None:
        url = f"https://news.ycombinator.com/item?id={raw.id}"
    return Extracted(
        title=clean_text(raw.title),
        url=(url or "").strip(),
        content=clean_text(raw.text),
        published_at=_from_epoch(raw.time),
        signal=float((raw.score or 0) + (raw.descendants or 0)),
        external_id=str(raw.id) if raw.id is not None else None,
    )


def _from_reddit(raw: RedditPost) -> Extracted:
    url = raw.url
    if (raw.is_self or not url) and raw.permalink:
        url = f"https://www.reddit.com{raw.permalink}"
    return Extracted(
        title=clean_text(raw.title),
        url=(url or "").strip(),
        content=clean_text(raw.selftext),
        published_at=_from_epoch(raw.created_utc),
        signal=float((raw.score or 0) + (raw.num_comments or 0)),
        external_id=raw.id,
    )


def _from_feed(raw: FeedEntry) -> Extracted:
    return Extracted(
        title=clean_text(raw.title),
        url=(raw.link or "").strip(),
        content=clean_text(raw.summary),
        published_at=_utc(raw.published),
        signal=float(raw.comments or 0),
        external_id=raw.id,
    )


def _from_arxiv(raw: ArxivEntry) -> Extracted:
    # The export API carries no engagement signal; papers rank on baseline and recency
    return Extracted(
        title=clean_text(raw.title),
        url=(raw.link or "").strip(),
        content=clean_text(raw.abstract),
        published_at=_utc(raw.published),
        external_id=raw.id,
    )


_EXTRACTORS: Dict[str, Callable[[Any], Extracted]] = {
    "hackernews": _from_hackernews,
    "reddit": _from_reddit,
    "rss": _from_feed,
    "arxiv": _from_arxiv,
}


def parse_raw_item(source: str, data: Union[RawItem, Dict[str, Any]]) -> RawItem:
    """Accept an already-typed raw item or a tagged dict."""
    if not isinstance(data, dict):
        return data
    try:
        return _RAW_ITEM_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise MalformedSourceItem(source, f"unrecognised raw item: {e.error_count()} errors") from e


def _is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def normalize_item(
    source: str,
    raw: Union[RawItem, Dict[str, Any]],
    *,
    now: datetime,
    settings: EngineSettings,
) -> Item:
    """
    Produce an Item or raise MalformedSourceItem.
    """
    raw = parse_raw_item(source, raw)
    extractor = _EXTRACTORS.get(raw.kind)
    if extractor is None:
        raise MalformedSourceItem(source, f"no normalizer for kind '{raw.kind}'")

    extracted = extractor(raw)

    if not extracted.title:
        raise MalformedSourceItem(source, "missing title", extracted.external_id)
    if not _is_valid_url(extracted.url):
        raise MalformedSourceItem(source, f"invalid url '{extracted.url}'", extracted.external_id)
    if extracted.published_at is None:
        raise MalformedSourceItem(source, "missing publication time", extracted.external_id)

    return Item(
        id=generate_item_id(source, extracted.url),
        title=extracted.title,
        url=extracted.url,
        source=source,
        summary=summarize_item(
            extracted.title,
            extracted.content,
            settings.summarizer.item_summary_chars,
        ),
        published_at=extracted.published_at,
        engagement_score=engagement_score(
            raw.kind,
            extracted.signal,
            extracted.published_at,
            now,
            settings.scoring,
        ),
        content=extracted.content,
    )


@dataclass
class NormalizationOutcome:
    items: List[Item] = field(default_factory=list)
    malformed: int = 0


def normalize_all(
    batches: Sequence[SourceBatch],
    *,
    now: datetime,
    settings: EngineSettings,
) -> NormalizationOutcome:
    """
    Normalize every raw item; malformed ones are logged and skipped.
    """
    outcome = NormalizationOutcome()

    for batch in batches:
        for raw in batch.items:
            try:
                outcome.items.append(normalize_item(batch.source, raw, now=now, settings=settings))
            except MalformedSourceItem as e:
                outcome.malformed += 1
                logger.warning(str(e), extra={"source": batch.source, "outcome": "skipped"})

    logger.info(
        f"Normalized {len(outcome.items)} items ({outcome.malformed} malformed skipped)",
        extra={"stage": "normalize", "count": len(outcome.items)},
    )
    return outcome
