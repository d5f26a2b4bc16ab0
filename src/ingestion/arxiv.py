"""
Ingest recent papers from the arXiv Atom API
"""
import logging
from datetime import datetime
from typing import List, Optional

import feedparser
import httpx

from core.errors import SourceUnavailable
from ingestion.base import ArxivEntry, RawItem, SourceAdapter
from ingestion.rss import entry_published

logger = logging.getLogger(__name__)


class ArxivAdapter(SourceAdapter):
    API_URL = "https://export.arxiv.org/api/query"
    kind = "arxiv"

    def __init__(
        self,
        category: str,
        name: Optional[str] = None,
        limit: int = 50,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.category = category
        self.name = name or f"arxiv/{category}"
        self.limit = limit
        self.client = client

    async def fetch_items(self, since: datetime) -> List[RawItem]:
        try:
            if self.client is not None:
                return await self._fetch(self.client, since)
            async with httpx.AsyncClient(timeout=20) as client:
                return await self._fetch(client, since)
        except httpx.HTTPError as e:
            raise SourceUnavailable(self.name, str(e)) from e

    async def _fetch(self, client: httpx.AsyncClient, since: datetime) -> List[RawItem]:
        resp = await client.get(
            self.API_URL,
            params={
                "search_query": f"cat:{self.category}",
                "sortBy": "submittedDate",
                "sortOrder": "descending",
                "max_results": self.limit,
            },
        )
        resp.raise_for_status()

        feed = feedparser.parse(resp.text)
        if feed.bozo and not feed.entries:
            raise SourceUnavailable(self.name, f"unparseable feed: {feed.get('bozo_exception')}")

        items: List[RawItem] = []
        for entry in feed.entries:
            published = entry_published(entry)
            if published and published < since:
                continue

            items.append(
                ArxivEntry(
                    id=entry.get("id"),
                    title=entry.get("title"),
                    link=entry.get("link"),
                    abstract=entry.get("summary"),
                    published=published,
                )
            )

        return items
