"""
Error taxonomy for the aggregation engine and delivery dispatcher.

Only PipelineFailure is meant to reach callers of run_aggregation;
the others are absorbed and counted where they occur.
"""
from typing import Optional


class AggregatorError(Exception):
    """Base class for all engine errors."""


class SourceUnavailable(AggregatorError):
    """A collector failed or timed out. The source contributes zero items."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Source '{source}' unavailable: {reason}")
        self.source = source
        self.reason = reason


class MalformedSourceItem(AggregatorError):
    """A single raw item could not be normalized and is skipped."""

    def __init__(self, source: str, reason: str, external_id: Optional[str] = None):
        label = f"{source}:{external_id}" if external_id else source
        super().__init__(f"Malformed item from {label}: {reason}")
        self.source = source
        self.reason = reason
        self.external_id = external_id


class PipelineFailure(AggregatorError):
    """An unexpected error in a processing stage. Fatal for the run."""

    def __init__(self, stage: str, message: str):
        super().__init__(f"Pipeline failed during {stage}: {message}")
        self.stage = stage


class ChannelDeliveryFailure(AggregatorError):
    """One delivery channel failed to send."""

    def __init__(self, channel: str, reason: str):
        super().__init__(f"Delivery via {channel} failed: {reason}")
        self.channel = channel
        self.reason = reason
