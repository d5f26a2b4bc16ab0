"""
Module to contain base class for Delivery channels
"""
from abc import ABC, abstractmethod

from core.entities import AggregationResult


class DeliveryChannel(ABC):
    """
    Base interface for all delivery channels.
    """

    name: str

    @abstractmethod
    async def deliver(self, aggregation: AggregationResult) -> None:
        """
        Format and send the digest.
        Must raise exceptions on failure (handled by the dispatcher).
        """
        raise NotImplementedError
