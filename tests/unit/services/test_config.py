"""Tests for services.config module."""

import pytest

from services.config import Config, get_enabled_sources, load_config, parse_bool, parse_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("EMAIL_USERNAME", "EMAIL_PASSWORD", "TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID", "AGGREGATOR_CONFIG"):
        monkeypatch.delenv(name, raising=False)


class TestParseBool:
    @pytest.mark.parametrize("value", [True, "true", "Yes", "1", "on"])
    def test_truthy(self, value) -> None:
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", [False, "false", "no", "0", ""])
    def test_falsy(self, value) -> None:
        assert parse_bool(value) is False


class TestParseConfig:
    def test_defaults(self) -> None:
        config = parse_config({})
        assert config.sources == []
        assert config.engine.lookback_hours == 24
        assert config.engine.noise.novelty_multiplier == 2.0
        assert config.delivery.telegram_enabled is True
        assert config.delivery.email_enabled is False
        assert not config.telegram.is_configured

    def test_invalid_sources_are_skipped(self) -> None:
        config = parse_config({
            "sources": [
                {"type": "hackernews"},
                {"type": "gopher"},
                {"name": "untyped"},
                {"type": "reddit", "subreddit": "rust", "enabled": "false"},
            ]
        })
        assert [s.type for s in config.sources] == ["hackernews", "reddit"]
        assert [s.source_name for s in get_enabled_sources(config)] == ["hackernews"]

    def test_engine_overrides(self) -> None:
        config = parse_config({"engine": {"cluster_min_shared": 3, "noise": {"novelty_multiplier": 4}}})
        assert config.engine.cluster_min_shared == 3
        assert config.engine.noise.novelty_multiplier == 4.0
        assert config.engine.dedup_title_threshold == 0.8

    def test_secrets_come_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "42")
        monkeypatch.setenv("EMAIL_PASSWORD", "hunter2")

        config = parse_config({"email": {"smtp_host": "smtp.example.com"}})

        assert config.telegram.is_configured
        assert config.email.password == "hunter2"

    def test_delivery_switches_accept_strings(self) -> None:
        config = parse_config({"delivery": {"telegram_enabled": "no", "email_enabled": "yes"}})
        assert config.delivery.telegram_enabled is False
        assert config.delivery.email_enabled is True

    @pytest.mark.parametrize("engine", [{"dedup_title_threshold": 0}, {"lookback_hours": -1}])
    def test_out_of_range_engine_settings_rejected(self, engine) -> None:
        with pytest.raises(ValueError):
            parse_config({"engine": engine})


class TestLoadConfig:
    def test_reads_yaml_file(self, tmp_path) -> None:
        path = tmp_path / "config.yml"
        path.write_text(
            "sources:\n"
            "  - type: arxiv\n"
            "    category: cs.CL\n"
            "engine:\n"
            "  lookback_hours: 12\n"
            "logging:\n"
            "  level: DEBUG\n",
            encoding="utf-8",
        )

        config = load_config(str(path))

        assert isinstance(config, Config)
        assert config.sources[0].source_name == "arxiv/cs.CL"
        assert config.engine.lookback_hours == 12
        assert config.logging.level == "DEBUG"

    def test_env_var_points_at_config(self, tmp_path, monkeypatch) -> None:
        path = tmp_path / "custom.yml"
        path.write_text("sources: []\n", encoding="utf-8")
        monkeypatch.setenv("AGGREGATOR_CONFIG", str(path))

        assert load_config().sources == []

    def test_empty_file(self, tmp_path) -> None:
        path = tmp_path / "empty.yml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)) == Config()
