"""
Runs every collector concurrently and gathers what finished in time.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Sequence

from core.errors import SourceUnavailable
from ingestion.base import SourceAdapter, SourceBatch

logger = logging.getLogger(__name__)


@dataclass
class CollectionOutcome:
    batches: List[SourceBatch] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def sources(self) -> List[str]:
        return [batch.source for batch in self.batches]


async def _collect_one(
    adapter: SourceAdapter,
    since: datetime,
    source_timeout: float,
) -> SourceBatch:
    try:
        items = await asyncio.wait_for(adapter.fetch_items(since), timeout=source_timeout)
    except asyncio.TimeoutError as e:
        raise SourceUnavailable(adapter.name, f"timed out after {source_timeout}s") from e
    except SourceUnavailable:
        raise
    except Exception as e:
        # Adapters are external code; anything they raise means "no items"
        raise SourceUnavailable(adapter.name, f"{type(e).__name__}: {e}") from e

    return SourceBatch(source=adapter.name, items=list(items))


async def collect_all(
    adapters: Sequence[SourceAdapter],
    since: datetime,
    *,
    source_timeout: float,
    deadline: float,
) -> CollectionOutcome:
    """
    Fetch from all adapters concurrently.

    Each adapter is bounded by `source_timeout` seconds and the whole
    collection by `deadline` seconds. Tasks still running at the deadline
    are cancelled and their partial results discarded.
    """
    outcome = CollectionOutcome()
    if not adapters:
        return outcome

    tasks: Dict[asyncio.Task, str] = {
        asyncio.create_task(_collect_one(adapter, since, source_timeout)): adapter.name
        for adapter in adapters
    }

    done, pending = await asyncio.wait(tasks.keys(), timeout=deadline)

    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    # Keep configuration order so downstream stages see a stable input
    for task, name in tasks.items():
        if task in pending:
            logger.warning(
                f"Source {name} abandoned at run deadline ({deadline}s)",
                extra={"source": name, "outcome": "abandoned"},
            )
            outcome.failed.append(name)
            continue

        if task.cancelled():
            logger.warning(
                f"Source {name} was cancelled",
                extra={"source": name, "outcome": "unavailable"},
            )
            outcome.failed.append(name)
            continue

        error = task.exception()
        if error is not None:
            logger.warning(str(error), extra={"source": name, "outcome": "unavailable"})
            outcome.failed.append(name)
            continue

        batch = task.result()
        logger.info(
            f"Collected {len(batch.items)} raw items from {name}",
            extra={"source": name, "outcome": "ok", "count": len(batch.items)},
        )
        outcome.batches.append(batch)

    return outcome
