"""Tests for processing.normalizer module."""

from datetime import datetime, timedelta

import pytest

from core.errors import MalformedSourceItem
from ingestion.base import ArxivEntry, FeedEntry, HackerNewsStory, RedditPost, SourceBatch
from processing.normalizer import clean_text, generate_item_id, normalize_all, normalize_item


def _hn_story(now: datetime, **overrides) -> HackerNewsStory:
    data = {
        "id": 101,
        "title": "Show HN: A tiny vector database",
        "url": "https://example.com/vectordb",
        "time": int((now - timedelta(hours=2)).timestamp()),
        "score": 120,
        "descendants": 30,
    }
    data.update(overrides)
    return HackerNewsStory(**data)


class TestGenerateItemId:
    def test_deterministic_output(self) -> None:
        assert generate_item_id("hackernews", "https://a.com") == generate_item_id("hackernews", "https://a.com")

    def test_source_is_part_of_the_id(self) -> None:
        assert generate_item_id("hackernews", "https://a.com") != generate_item_id("blogs", "https://a.com")

    def test_returns_16_char_hex_string(self) -> None:
        result = generate_item_id("reddit/rust", "https://a.com")
        assert len(result) == 16
        assert all(c in "0123456789abcdef" for c in result)


class TestCleanText:
    def test_strips_tags_and_entities(self) -> None:
        assert clean_text("<p>Fast &amp; small</p>\n<b>build</b>") == "Fast & small build"

    def test_none_is_empty(self) -> None:
        assert clean_text(None) == ""

    def test_drops_scripts_comments_and_quoted_brackets(self) -> None:
        raw = (
            '<p>Model ships.</p><script>var tracker = "x";</script>'
            '<a title="a > b" href="/">link</a><!-- hidden comment -->'
        )
        assert clean_text(raw) == "Model ships. link"

    def test_drops_style_blocks(self) -> None:
        assert clean_text("<style>p { color: red; }</style><p>Body</p>") == "Body"


class TestNormalizeItem:
    def test_normalizing_twice_yields_identical_ids(self, now, settings) -> None:
        raw = _hn_story(now)
        first = normalize_item("hackernews", raw, now=now, settings=settings)
        second = normalize_item("hackernews", raw, now=now, settings=settings)
        assert first.id == second.id
        assert first.id == generate_item_id("hackernews", "https://example.com/vectordb")

    def test_hackernews_fields(self, now, settings) -> None:
        item = normalize_item("hackernews", _hn_story(now), now=now, settings=settings)
        assert item.source == "hackernews"
        assert item.title == "Show HN: A tiny vector database"
        assert item.published_at == now - timedelta(hours=2)
        assert item.engagement_score > 0

    def test_ask_hn_uses_discussion_url(self, now, settings) -> None:
        item = normalize_item("hackernews", _hn_story(now, url=None), now=now, settings=settings)
        assert item.url == "https://news.ycombinator.com/item?id=101"

    def test_reddit_self_post_uses_permalink(self, now, settings) -> None:
        raw = RedditPost(
            id="abc",
            title="What are you running locally?",
            selftext="Curious about setups.",
            url="https://www.reddit.com/r/LocalLLaMA/comments/abc/",
            permalink="/r/LocalLLaMA/comments/abc/what/",
            created_utc=(now - timedelta(hours=1)).timestamp(),
            score=10,
            num_comments=4,
            is_self=True,
        )
        item = normalize_item("reddit/LocalLLaMA", raw, now=now, settings=settings)
        assert item.url == "https://www.reddit.com/r/LocalLLaMA/comments/abc/what/"
        assert item.content == "Curious about setups."

    def test_feed_entry_without_signal_still_scores_non_negative(self, now, settings) -> None:
        raw = FeedEntry(
            title="Release notes",
            link="https://blog.example.com/notes",
            summary="<p>We shipped things.</p>",
            published=now - timedelta(hours=3),
        )
        item = normalize_item("blogs", raw, now=now, settings=settings)
        assert item.engagement_score >= 0
        assert item.summary == "We shipped things."

    def test_arxiv_ranks_on_baseline_and_recency(self, now, settings) -> None:
        raw = ArxivEntry(
            id="2405.00001",
            title="Sparse attention at scale",
            link="https://arxiv.org/abs/2405.00001",
            abstract="We study <i>sparse</i> attention.",
            published=now - timedelta(hours=1),
        )
        item = normalize_item("arxiv", raw, now=now, settings=settings)
        expected = settings.scoring.baseline * 0.5 ** (1 / settings.scoring.half_life_hours)
        assert item.engagement_score == pytest.approx(expected, abs=1e-6)
        assert item.content == "We study sparse attention."

    def test_naive_timestamp_is_treated_as_utc(self, now, settings) -> None:
        raw = FeedEntry(
            title="Release notes",
            link="https://blog.example.com/notes",
            published=datetime(2024, 5, 1, 8, 0),
        )
        item = normalize_item("blogs", raw, now=now, settings=settings)
        assert item.published_at.utcoffset() == timedelta(0)
        assert item.published_at.hour == 8

    def test_accepts_tagged_dict(self, now, settings) -> None:
        raw = {
            "kind": "rss",
            "title": "Hello",
            "link": "https://blog.example.com/hello",
            "published": "2024-05-01T10:00:00Z",
        }
        item = normalize_item("blogs", raw, now=now, settings=settings)
        assert item.title == "Hello"

    @pytest.mark.parametrize(
        "raw",
        [
            FeedEntry(title="", link="https://a.com/x", published=datetime(2024, 5, 1)),
            FeedEntry(title="No link", link=None, published=datetime(2024, 5, 1)),
            FeedEntry(title="Relative link", link="/x", published=datetime(2024, 5, 1)),
            FeedEntry(title="No date", link="https://a.com/x", published=None),
        ],
    )
    def test_missing_mandatory_fields_raise(self, raw, now, settings) -> None:
        with pytest.raises(MalformedSourceItem):
            normalize_item("blogs", raw, now=now, settings=settings)

    def test_unknown_kind_raises(self, now, settings) -> None:
        with pytest.raises(MalformedSourceItem):
            normalize_item("mystery", {"kind": "gopher", "title": "x"}, now=now, settings=settings)


class TestNormalizeAll:
    def test_skips_and_counts_malformed_items(self, now, settings) -> None:
        batches = [
            SourceBatch("hackernews", [_hn_story(now), _hn_story(now, id=102, title=None)]),
            SourceBatch("blogs", [FeedEntry(title="No date", link="https://a.com/x")]),
        ]
        outcome = normalize_all(batches, now=now, settings=settings)
        assert len(outcome.items) == 1
        assert outcome.malformed == 2
