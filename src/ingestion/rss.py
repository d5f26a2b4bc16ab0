"""
Ingestion from RSS and Atom feeds
"""
import calendar
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

import feedparser
import httpx

from core.errors import SourceUnavailable
from ingestion.base import FeedEntry, RawItem, SourceAdapter

logger = logging.getLogger(__name__)


def entry_published(entry: Any) -> Optional[datetime]:
    """Published (or updated) time of a feedparser entry as aware UTC."""
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
    return None


class RSSAdapter(SourceAdapter):
    kind = "rss"

    def __init__(
        self,
        feed_urls: List[str],
        source_name: str,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.feed_urls = feed_urls
        self.name = source_name
        self.client = client

    async def fetch_items(self, since: datetime) -> List[RawItem]:
        try:
            if self.client is not None:
                return await self._fetch(self.client, since)
            async with httpx.AsyncClient(timeout=15, follow_redirects=True) as client:
                return await self._fetch(client, since)
        except httpx.HTTPError as e:
            raise SourceUnavailable(self.name, str(e)) from e

    async def _fetch(self, client: httpx.AsyncClient, since: datetime) -> List[RawItem]:
        items: List[RawItem] = []
        failures = 0

        for url in self.feed_urls:
            try:
                resp = await client.get(url)
                resp.raise_for_status()
            except httpx.HTTPError as e:
                # A multi-feed source survives as long as one feed answers
                failures += 1
                logger.warning(f"Feed {url} failed: {e}", extra={"source": self.name})
                continue

            feed = feedparser.parse(resp.text)

            for entry in feed.entries:
                published = entry_published(entry)
                if published and published < since:
                    continue

                comments = entry.get("slash_comments")
                items.append(
                    FeedEntry(
                        id=entry.get("id"),
                        title=entry.get("title"),
                        link=entry.get("link"),
                        summary=entry.get("summary"),
                        published=published,
                        comments=int(comments) if comments and str(comments).isdigit() else None,
                    )
                )

        if self.feed_urls and failures == len(self.feed_urls):
            raise SourceUnavailable(self.name, "all feeds failed")

        return items
