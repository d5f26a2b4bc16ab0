"""Tests for core.scoring module."""

from datetime import timedelta

import pytest

from core.scoring import engagement_score, recency_decay, topic_score
from services.config import ScoringConfig


@pytest.fixture
def config() -> ScoringConfig:
    return ScoringConfig()


class TestRecencyDecay:
    def test_halves_every_half_life(self, now) -> None:
        assert recency_decay(now - timedelta(hours=24), now, 24) == pytest.approx(0.5)
        assert recency_decay(now - timedelta(hours=48), now, 24) == pytest.approx(0.25)

    def test_future_items_do_not_exceed_one(self, now) -> None:
        assert recency_decay(now + timedelta(hours=3), now, 24) == 1.0


class TestEngagementScore:
    def test_non_negative_for_any_signal(self, now, config) -> None:
        for signal in (-5, 0, 1, 10_000):
            assert engagement_score("rss", signal, now - timedelta(days=30), now, config) >= 0

    def test_monotonic_in_signal(self, now, config) -> None:
        published = now - timedelta(hours=2)
        scores = [engagement_score("hackernews", s, published, now, config) for s in (0, 10, 100, 1000)]
        assert scores == sorted(scores)
        assert len(set(scores)) == len(scores)

    def test_newer_scores_higher(self, now, config) -> None:
        fresh = engagement_score("reddit", 200, now - timedelta(hours=1), now, config)
        stale = engagement_score("reddit", 200, now - timedelta(hours=30), now, config)
        assert fresh > stale

    def test_reference_signal_maps_to_baseline_plus_one(self, now, config) -> None:
        assert engagement_score("hackernews", 500, now, now, config) == pytest.approx(1.1)

    def test_unknown_kind_uses_default_reference(self, now, config) -> None:
        assert engagement_score("gopher", 100, now, now, config) == pytest.approx(1.1)


class TestTopicScore:
    def test_empty_topic(self, now, config) -> None:
        assert topic_score([], now, config) == 0.0

    def test_saturates(self, make_item, now, config) -> None:
        items = [make_item(title=f"Story {i}", engagement=5.0, hours_ago=0) for i in range(50)]
        assert topic_score(items, now, config) < config.topic_cap + config.recency_weight + 1e-9

    def test_more_sources_score_higher(self, make_item, now, config) -> None:
        same = [make_item(title="A", source="hackernews"), make_item(title="B", source="hackernews")]
        mixed = [make_item(title="A", source="hackernews"), make_item(title="B", source="blogs")]
        assert topic_score(mixed, now, config) > topic_score(same, now, config)

    def test_adding_members_never_lowers_score(self, make_item, now, config) -> None:
        items = [make_item(title="A", hours_ago=2)]
        before = topic_score(items, now, config)
        items.append(make_item(title="B", hours_ago=5, engagement=0.3))
        assert topic_score(items, now, config) >= before
