import logging
from datetime import datetime
from typing import List, Optional

import httpx

from core.errors import SourceUnavailable
from ingestion.base import RawItem, RedditPost, SourceAdapter

logger = logging.getLogger(__name__)


class RedditAdapter(SourceAdapter):
    kind = "reddit"

    def __init__(
        self,
        subreddit: str,
        name: Optional[str] = None,
        limit: int = 50,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.subreddit = subreddit
        self.name = name or f"reddit/{subreddit}"
        self.limit = limit
        self.client = client

    async def fetch_items(self, since: datetime) -> List[RawItem]:
        headers = {"User-Agent": "topic-aggregator/1.0"}

        try:
            if self.client is not None:
                return await self._fetch(self.client, since)
            async with httpx.AsyncClient(timeout=15, headers=headers) as client:
                return await self._fetch(client, since)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            raise SourceUnavailable(self.name, str(e)) from e

    async def _fetch(self, client: httpx.AsyncClient, since: datetime) -> List[RawItem]:
        resp = await client.get(
            f"https://www.reddit.com/r/{self.subreddit}/top.json",
            params={"t": "day", "limit": self.limit},
        )
        resp.raise_for_status()

        posts = resp.json()["data"]["children"]
        cutoff = since.timestamp()

        items: List[RawItem] = []
        for post in posts:
            data = post.get("data") or {}
            created = data.get("created_utc")
            if created is not None and created < cutoff:
                continue
            items.append(RedditPost.model_validate(data))

        logger.debug(f"r/{self.subreddit}: {len(items)} posts since {since.isoformat()}")
        return items
