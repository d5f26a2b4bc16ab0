"""Tests for processing.summarizer module."""

from processing.summarizer import split_sentences, summarize_item, summarize_topic, truncate


class TestSplitSentences:
    def test_splits_on_terminal_punctuation(self) -> None:
        assert split_sentences("One fish. Two fish! Red fish?  Blue fish.") == [
            "One fish.",
            "Two fish!",
            "Red fish?",
            "Blue fish.",
        ]

    def test_does_not_split_version_numbers(self) -> None:
        assert split_sentences("Python 3.12 is out. It is fast.") == ["Python 3.12 is out.", "It is fast."]

    def test_empty(self) -> None:
        assert split_sentences("") == []


class TestTruncate:
    def test_short_text_untouched(self) -> None:
        assert truncate("short", 10) == "short"

    def test_cuts_at_word_boundary(self) -> None:
        result = truncate("the quick brown fox jumps", 12)
        assert result == "the quick…"
        assert len(result) <= 12


class TestSummarizeItem:
    def test_falls_back_to_title(self) -> None:
        assert summarize_item("Just a title", "", 100) == "Just a title"

    def test_keeps_leading_sentences_within_bound(self) -> None:
        content = "First sentence is here. Second one follows. Third."
        assert summarize_item("T", content, 45) == "First sentence is here. Second one follows."

    def test_long_first_sentence_is_truncated(self) -> None:
        summary = summarize_item("T", "word " * 200, 50)
        assert len(summary) <= 50
        assert summary.endswith("…")


class TestSummarizeTopic:
    def _items(self, make_item):
        return [
            make_item(
                title="Mistral ships Mixtral",
                content="Mistral published Mixtral today. The weather in Paris was sunny and warm.",
                engagement=2.0,
            ),
            make_item(
                title="Mixtral weights",
                content="Mixtral weights are on Hugging Face. Download speeds were slow for everyone involved.",
            ),
        ]

    def test_picks_most_keyword_dense_sentence(self, make_item) -> None:
        summary = summarize_topic(self._items(make_item), ["mixtral", "weights"], max_sentences=1, max_chars=600)
        assert summary == "Mixtral weights are on Hugging Face."

    def test_chosen_sentences_keep_member_order(self, make_item) -> None:
        summary = summarize_topic(self._items(make_item), ["mixtral", "weights"], max_sentences=2, max_chars=600)
        assert summary == "Mistral published Mixtral today. Mixtral weights are on Hugging Face."

    def test_is_deterministic(self, make_item) -> None:
        items = self._items(make_item)
        first = summarize_topic(items, ["mixtral"], max_sentences=3, max_chars=600, stemming=True)
        second = summarize_topic(items, ["mixtral"], max_sentences=3, max_chars=600, stemming=True)
        assert first == second

    def test_respects_char_bound(self, make_item) -> None:
        summary = summarize_topic(self._items(make_item), ["mixtral", "weights"], max_sentences=3, max_chars=40)
        assert len(summary) <= 40

    def test_falls_back_to_titles_without_sentences(self, make_item) -> None:
        items = [make_item(title="Short one"), make_item(title="Short two")]
        assert summarize_topic(items, [], max_sentences=3, max_chars=600) == "Short one; Short two"
