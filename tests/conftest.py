"""Shared fixtures."""

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytest

from core.entities import Item
from processing.normalizer import generate_item_id
from services.config import EngineSettings

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def settings() -> EngineSettings:
    return EngineSettings()


@pytest.fixture
def make_item() -> Callable[..., Item]:
    def _make(
        title: str = "Open weights model tops reasoning leaderboard",
        url: Optional[str] = None,
        source: str = "hackernews",
        engagement: float = 1.0,
        hours_ago: float = 1.0,
        content: str = "",
        summary: Optional[str] = None,
    ) -> Item:
        url = url or "https://example.com/" + hashlib.sha1(f"{title}{source}{hours_ago}".encode()).hexdigest()[:10]
        return Item(
            id=generate_item_id(source, url),
            title=title,
            url=url,
            source=source,
            summary=summary if summary is not None else title,
            published_at=NOW - timedelta(hours=hours_ago),
            engagement_score=engagement,
            content=content,
        )

    return _make
