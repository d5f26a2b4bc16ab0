"""
Source Factory - Creates ingestion adapters from configuration.
"""
import logging
from typing import List

from ingestion.arxiv import ArxivAdapter
from ingestion.base import SourceAdapter
from ingestion.hackernews import HackerNewsAdapter
from ingestion.reddit import RedditAdapter
from ingestion.rss import RSSAdapter
from services.config import Config, SourceConfig, get_enabled_sources

logger = logging.getLogger(__name__)


def create_source_adapter(source_config: SourceConfig) -> SourceAdapter:
    """
    Build the adapter for one configured source.

    Raises ValueError when the type is unknown or a field the type
    needs (subreddit, feeds, category) is missing.
    """
    source_type = source_config.type.lower()
    name = source_config.source_name

    if source_type == "reddit":
        if not source_config.subreddit:
            raise ValueError("Reddit source requires 'subreddit' field")
        return RedditAdapter(source_config.subreddit, name=name, limit=source_config.limit)

    elif source_type == "rss":
        if not source_config.feeds:
            raise ValueError("RSS source requires 'feeds' field")
        return RSSAdapter(feed_urls=source_config.feeds, source_name=name)

    elif source_type == "hackernews":
        return HackerNewsAdapter(name=name, limit=source_config.limit)

    elif source_type == "arxiv":
        if not source_config.category:
            raise ValueError("arXiv source requires 'category' field")
        return ArxivAdapter(source_config.category, name=name, limit=source_config.limit)

    else:
        raise ValueError(f"Unknown source type: {source_type}")


def create_adapters_from_config(config: Config) -> List[SourceAdapter]:
    """
    Create all enabled source adapters. Source names must be unique;
    later duplicates are skipped.
    """
    adapters: List[SourceAdapter] = []
    seen_names = set()

    for source_config in get_enabled_sources(config):
        try:
            adapter = create_source_adapter(source_config)
        except ValueError as e:
            logger.error(f"Failed to create adapter for {source_config.type}: {e}")
            continue

        if adapter.name in seen_names:
            logger.error(f"Duplicate source name '{adapter.name}', skipping")
            continue

        seen_names.add(adapter.name)
        adapters.append(adapter)
        logger.info(f"Created {source_config.type} adapter: {adapter.name}")

    return adapters
