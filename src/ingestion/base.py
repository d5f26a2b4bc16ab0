"""
Base classes for Ingestion

Raw items are a tagged union over the known source kinds. Every field
except `kind` is optional: upstream data is kept as delivered and judged
by the normalizer.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class RawModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class HackerNewsStory(RawModel):
    kind: Literal["hackernews"] = "hackernews"
    id: Optional[int] = None
    title: Optional[str] = None
    url: Optional[str] = None
    text: Optional[str] = None
    time: Optional[int] = None
    score: Optional[int] = None
    descendants: Optional[int] = None


class RedditPost(RawModel):
    kind: Literal["reddit"] = "reddit"
    id: Optional[str] = None
    title: Optional[str] = None
    selftext: Optional[str] = None
    url: Optional[str] = None
    permalink: Optional[str] = None
    created_utc: Optional[float] = None
    score: Optional[int] = None
    num_comments: Optional[int] = None
    is_self: bool = False


class FeedEntry(RawModel):
    kind: Literal["rss"] = "rss"
    id: Optional[str] = None
    title: Optional[str] = None
    link: Optional[str] = None
    summary: Optional[str] = None
    published: Optional[datetime] = None
    comments: Optional[int] = None


class ArxivEntry(RawModel):
    kind: Literal["arxiv"] = "arxiv"
    id: Optional[str] = None
    title: Optional[str] = None
    link: Optional[str] = None
    abstract: Optional[str] = None
    published: Optional[datetime] = None


RawItem = Annotated[
    Union[HackerNewsStory, RedditPost, FeedEntry, ArxivEntry],
    Field(discriminator="kind"),
]


@dataclass(frozen=True)
class SourceBatch:
    """
    Raw items returned by one collector that completed successfully.
    """
    source: str
    items: List[RawItem] = field(default_factory=list)


class SourceAdapter(ABC):
    """
    Base interface for all ingestion sources.
    """

    name: str
    kind: str

    @abstractmethod
    async def fetch_items(self, since: datetime) -> List[RawItem]:
        """
        Fetch items published at or after `since`.
        Must raise SourceUnavailable on any failure.
        """
        raise NotImplementedError
