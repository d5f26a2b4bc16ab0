"""
Loads and handles config from config.yml
Channel credentials (TELEGRAM_*, EMAIL_USERNAME, EMAIL_PASSWORD) are loaded from .env
"""
import logging
import os
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

SOURCE_TYPES = ("hackernews", "reddit", "rss", "arxiv")


class SourceConfig(BaseModel):
    """Configuration for a single collector."""
    type: str  # hackernews, reddit, rss, arxiv
    enabled: bool = True
    name: Optional[str] = None
    subreddit: Optional[str] = None  # For reddit
    feeds: Optional[List[str]] = None  # For rss
    category: Optional[str] = None  # For arxiv, e.g. cs.AI
    limit: int = 50

    @property
    def source_name(self) -> str:
        if self.name:
            return self.name
        if self.type == "reddit" and self.subreddit:
            return f"reddit/{self.subreddit}"
        if self.type == "arxiv" and self.category:
            return f"arxiv/{self.category}"
        return self.type


class ScoringConfig(BaseModel):
    """Engagement rescaling and topic score weights."""
    half_life_hours: float = Field(24.0, gt=0)
    baseline: float = Field(0.1, ge=0)
    # Raw signal that maps to 1.0 on the common scale, per source kind
    reference: Dict[str, float] = Field(default_factory=lambda: {
        "hackernews": 500.0,
        "reddit": 1000.0,
        "rss": 10.0,
    })
    weights: Dict[str, float] = Field(default_factory=dict)
    topic_cap: float = Field(5.0, gt=0)
    size_weight: float = Field(0.5, ge=0)
    recency_weight: float = Field(0.5, ge=0)

    def reference_for(self, kind: str) -> float:
        return max(self.reference.get(kind, 100.0), 1.0)

    def weight_for(self, kind: str) -> float:
        return self.weights.get(kind, 1.0)


class NoiseFilterConfig(BaseModel):
    """Low-value topic patterns and the signals that override them."""
    patterns: List[str] = Field(default_factory=lambda: [
        r"\bai[- ]detect\w* (tools?|text|essays?|writing|content|software)\b",
        r"\bdetect(ing|s)? (ai|gpt|chatgpt|llm)[- ](generated|written) (text|content|essays?|writing)\b",
        r"\b(gpt|chatgpt|ai|llm)[- ]written\b",
        r"\bwritten (by|with) (ai|chatgpt|gpt)\b",
        r"\bgptzero\b",
    ])
    keywords: List[str] = Field(default_factory=lambda: [
        "ai-detection",
        "ai-detector",
        "ai-detectors",
        "gpt-written",
        "chatgpt-written",
        "ai-written",
        "ai-generated-text",
        "gptzero",
        "plagiarism",
    ])
    override_keywords: List[str] = Field(default_factory=lambda: [
        "watermark",
        "watermarking",
        "regulation",
        "law",
        "legislation",
        "lawsuit",
        "policy",
        "benchmark",
        "breakthrough",
        "open-source",
    ])
    keyword_ratio: float = Field(0.5, gt=0, le=1)
    novelty_multiplier: float = Field(2.0, gt=0)


class SummarizerConfig(BaseModel):
    item_summary_chars: int = Field(280, gt=0)
    topic_summary_sentences: int = Field(3, gt=0)
    topic_summary_chars: int = Field(600, gt=0)


class EngineSettings(BaseModel):
    """
    Tunable policy for one aggregation run.
    """
    lookback_hours: int = Field(24, gt=0)
    source_timeout_seconds: float = Field(20.0, gt=0)
    run_timeout_seconds: float = Field(45.0, gt=0)
    dedup_title_threshold: float = Field(0.8, gt=0, le=1)
    cluster_similarity_threshold: float = Field(0.25, ge=0, lt=1)
    cluster_min_shared: int = Field(2, ge=1)
    item_keyword_limit: int = Field(8, gt=0)
    topic_keyword_limit: int = Field(8, gt=0)
    stem_keywords: bool = True
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    noise: NoiseFilterConfig = Field(default_factory=NoiseFilterConfig)
    summarizer: SummarizerConfig = Field(default_factory=SummarizerConfig)


class DeliveryConfig(BaseModel):
    """Caller-side defaults for the per-run delivery options."""
    telegram_enabled: bool = True
    email_enabled: bool = False
    timeout_seconds: float = Field(30.0, gt=0)


class EmailConfig(BaseModel):
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    sender: Optional[str] = None
    recipient: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.sender and self.recipient)


class TelegramConfig(BaseModel):
    bot_token: Optional[str] = None
    chat_id: Optional[str] = None
    max_topics: int = Field(8, gt=0)

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"  # json or text


class Config(BaseModel):
    sources: List[SourceConfig] = Field(default_factory=list)
    engine: EngineSettings = Field(default_factory=EngineSettings)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def parse_bool(value: str | bool) -> bool:
    """Convert string or bool to boolean."""
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("1", "true", "yes", "on")


def _get_config_path() -> str:
    """Get the path to config.yml, handling different working directories."""
    env_path = os.getenv("AGGREGATOR_CONFIG")
    if env_path:
        if not os.path.exists(env_path):
            raise FileNotFoundError(f"AGGREGATOR_CONFIG points to missing file: {env_path}")
        return env_path

    if os.path.exists("resources/config.yml"):
        return "resources/config.yml"

    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    config_path = os.path.join(project_root, "resources", "config.yml")
    if os.path.exists(config_path):
        return config_path

    raise FileNotFoundError("Cannot find resources/config.yml")


def _parse_source_config(data: Dict[str, Any]) -> SourceConfig:
    """Parse one source definition from YAML data."""
    source_type = str(data.get("type", "")).lower()
    if source_type not in SOURCE_TYPES:
        raise ValueError(f"Unknown source type: {source_type or '<missing>'}")

    return SourceConfig(
        type=source_type,
        enabled=parse_bool(data.get("enabled", True)),
        name=data.get("name"),
        subreddit=data.get("subreddit"),
        feeds=data.get("feeds"),
        category=data.get("category"),
        limit=int(data.get("limit", 50)),
    )


def parse_config(data: Dict[str, Any]) -> Config:
    """Build a Config from already-loaded YAML data plus environment secrets."""
    sources = []
    for index, source_data in enumerate(data.get("sources") or []):
        try:
            sources.append(_parse_source_config(source_data))
        except ValueError as e:
            logger.error(f"Skipping source #{index}: {e}")

    delivery = dict(data.get("delivery") or {})
    email = dict(data.get("email") or {})
    telegram = dict(data.get("telegram") or {})

    for key in ("telegram_enabled", "email_enabled"):
        if key in delivery:
            delivery[key] = parse_bool(delivery[key])

    email.setdefault("username", os.getenv("EMAIL_USERNAME"))
    email.setdefault("password", os.getenv("EMAIL_PASSWORD"))
    telegram.setdefault("bot_token", os.getenv("TELEGRAM_BOT_TOKEN"))
    telegram.setdefault("chat_id", os.getenv("TELEGRAM_CHAT_ID"))

    return Config(
        sources=sources,
        engine=EngineSettings.model_validate(data.get("engine") or {}),
        delivery=DeliveryConfig.model_validate(delivery),
        email=EmailConfig.model_validate(email),
        telegram=TelegramConfig.model_validate(telegram),
        logging=LoggingConfig.model_validate(data.get("logging") or {}),
    )


def load_config(path: Optional[str] = None) -> Config:
    """Load configuration from config.yml and channel credentials from .env."""
    load_dotenv()

    config_path = path or _get_config_path()

    with open(config_path, "r", encoding="utf-8") as file:
        data = yaml.safe_load(file) or {}

    return parse_config(data)


def get_enabled_sources(config: Config) -> List[SourceConfig]:
    """Get only enabled sources."""
    return [src for src in config.sources if src.enabled]
