"""Tests for core.schemas module."""

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from core.entities import AggregationResult, AggregationStats, Topic
from core.schemas import DeliveryOptions, DeliveryResult, format_timestamp, serialize_aggregation


@pytest.fixture
def aggregation(make_item, now) -> AggregationResult:
    item = make_item(title="Zig 0.12 released", content="Full text stays internal.")
    topic = Topic(
        id="topic-abc",
        label=item.title,
        summary="Zig ships a new release.",
        score=1.5,
        keywords=("zig", "release"),
        items=(item,),
    )
    stats = AggregationStats(
        total_sources=1,
        total_items=1,
        filtered_items=0,
        generated_at=now,
        runtime_ms=12,
    )
    return AggregationResult(topics=(topic,), stats=stats)


class TestFormatTimestamp:
    def test_millisecond_precision_with_z(self) -> None:
        value = datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2024-05-01T12:00:00.123Z"

    def test_naive_is_treated_as_utc(self) -> None:
        assert format_timestamp(datetime(2024, 5, 1)) == "2024-05-01T00:00:00.000Z"


class TestSerializeAggregation:
    def test_wire_key_order(self, aggregation) -> None:
        data = serialize_aggregation(aggregation)

        assert list(data) == ["topics", "stats"]
        assert list(data["topics"][0]) == ["id", "label", "summary", "score", "keywords", "items"]
        assert list(data["topics"][0]["items"][0]) == [
            "id",
            "title",
            "url",
            "source",
            "summary",
            "publishedAt",
            "engagementScore",
        ]
        assert list(data["stats"]) == ["totalSources", "totalItems", "filteredItems", "generatedAt", "runtimeMs"]

    def test_timestamps_and_content(self, aggregation) -> None:
        data = serialize_aggregation(aggregation)
        item = data["topics"][0]["items"][0]

        assert item["publishedAt"] == "2024-05-01T11:00:00.000Z"
        assert data["stats"]["generatedAt"] == "2024-05-01T12:00:00.000Z"
        assert "content" not in item

    def test_is_json_serializable(self, aggregation) -> None:
        decoded = json.loads(json.dumps(serialize_aggregation(aggregation)))
        assert decoded["topics"][0]["keywords"] == ["zig", "release"]


class TestDeliveryOptions:
    def test_both_channels_required(self) -> None:
        with pytest.raises(ValidationError):
            DeliveryOptions.model_validate({"telegram": {"enabled": True}})

    def test_is_enabled(self) -> None:
        options = DeliveryOptions.model_validate({"telegram": {"enabled": True}, "email": {"enabled": False}})
        assert options.is_enabled("telegram")
        assert not options.is_enabled("email")

    def test_result_defaults_to_not_sent(self) -> None:
        assert DeliveryResult().model_dump() == {"telegram": False, "email": False}
