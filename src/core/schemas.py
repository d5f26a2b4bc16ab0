"""
Pydantic schemas for everything that crosses the engine boundary:
the aggregation wire shape and the delivery options/result.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel

from core.entities import AggregationResult, Item, Topic


def format_timestamp(value: datetime) -> str:
    """
    ISO-8601 in UTC with millisecond precision, e.g. 2024-05-01T12:00:00.000Z
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class ItemSchema(WireModel):
    id: str
    title: str
    url: str
    source: str
    summary: str
    published_at: datetime
    engagement_score: float

    @field_serializer("published_at")
    def _serialize_published_at(self, value: datetime) -> str:
        return format_timestamp(value)

    @classmethod
    def from_item(cls, item: Item) -> "ItemSchema":
        return cls(
            id=item.id,
            title=item.title,
            url=item.url,
            source=item.source,
            summary=item.summary,
            published_at=item.published_at,
            engagement_score=item.engagement_score,
        )


class TopicSchema(WireModel):
    id: str
    label: str
    summary: str
    score: float
    keywords: List[str]
    items: List[ItemSchema]

    @classmethod
    def from_topic(cls, topic: Topic) -> "TopicSchema":
        return cls(
            id=topic.id,
            label=topic.label,
            summary=topic.summary,
            score=topic.score,
            keywords=list(topic.keywords),
            items=[ItemSchema.from_item(item) for item in topic.items],
        )


class StatsSchema(WireModel):
    total_sources: int
    total_items: int
    filtered_items: int
    generated_at: datetime
    runtime_ms: int

    @field_serializer("generated_at")
    def _serialize_generated_at(self, value: datetime) -> str:
        return format_timestamp(value)


class AggregationResultSchema(WireModel):
    topics: List[TopicSchema]
    stats: StatsSchema

    @classmethod
    def from_result(cls, result: AggregationResult) -> "AggregationResultSchema":
        stats = result.stats
        return cls(
            topics=[TopicSchema.from_topic(topic) for topic in result.topics],
            stats=StatsSchema(
                total_sources=stats.total_sources,
                total_items=stats.total_items,
                filtered_items=stats.filtered_items,
                generated_at=stats.generated_at,
                runtime_ms=stats.runtime_ms,
            ),
        )


def serialize_aggregation(result: AggregationResult) -> Dict[str, Any]:
    """Render an AggregationResult in its camelCase wire shape."""
    return AggregationResultSchema.from_result(result).model_dump(by_alias=True)


class ChannelOptions(BaseModel):
    enabled: bool


class DeliveryOptions(BaseModel):
    """
    Per-run channel switches. Both channels must be given explicitly;
    defaults belong to the caller.
    """
    telegram: ChannelOptions
    email: ChannelOptions

    def is_enabled(self, channel: str) -> bool:
        options: ChannelOptions = getattr(self, channel)
        return options.enabled


class DeliveryResult(BaseModel):
    """
    A flag is True only if the channel was enabled and its send succeeded.
    """
    telegram: bool = False
    email: bool = False
