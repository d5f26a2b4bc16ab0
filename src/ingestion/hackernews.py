"""
Ingest stories from Hacker News
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional

import httpx

from core.errors import SourceUnavailable
from ingestion.base import HackerNewsStory, RawItem, SourceAdapter

logger = logging.getLogger(__name__)


class HackerNewsAdapter(SourceAdapter):
    BASE_URL = "https://hacker-news.firebaseio.com/v0"
    kind = "hackernews"

    def __init__(
        self,
        name: str = "hackernews",
        limit: int = 60,
        concurrency: int = 10,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.name = name
        self.limit = limit
        self.concurrency = concurrency
        self.client = client

    async def fetch_items(self, since: datetime) -> List[RawItem]:
        try:
            if self.client is not None:
                return await self._fetch(self.client, since)
            async with httpx.AsyncClient(timeout=15) as client:
                return await self._fetch(client, since)
        except (httpx.HTTPError, ValueError) as e:
            raise SourceUnavailable(self.name, str(e)) from e

    async def _fetch(self, client: httpx.AsyncClient, since: datetime) -> List[RawItem]:
        resp = await client.get(f"{self.BASE_URL}/topstories.json")
        resp.raise_for_status()
        story_ids = resp.json()[: self.limit]

        semaphore = asyncio.Semaphore(self.concurrency)

        async def fetch_story(sid: int) -> Optional[dict]:
            async with semaphore:
                try:
                    story = await client.get(f"{self.BASE_URL}/item/{sid}.json")
                    story.raise_for_status()
                    return story.json()
                except (httpx.HTTPError, ValueError) as e:
                    # One missing story does not make the source unavailable
                    logger.debug(f"Skipping HN story {sid}: {e}")
                    return None

        payloads = await asyncio.gather(*(fetch_story(sid) for sid in story_ids))

        items: List[RawItem] = []
        for data in payloads:
            if not data or data.get("type") != "story":
                continue
            timestamp = data.get("time")
            if timestamp and datetime.fromtimestamp(timestamp, tz=timezone.utc) < since:
                continue
            items.append(HackerNewsStory.model_validate(data))

        return items
