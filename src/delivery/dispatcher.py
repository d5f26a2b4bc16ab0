"""
Delivery Dispatcher - sends one aggregation to every enabled channel.

Channels are attempted concurrently and independently: one channel's
failure never prevents or delays the other's outcome from being recorded.
"""
import asyncio
import logging
from typing import Dict, Mapping, Optional

from core.entities import AggregationResult
from core.errors import ChannelDeliveryFailure
from core.schemas import DeliveryOptions, DeliveryResult
from delivery.base import DeliveryChannel
from delivery.email_delivery import EmailDelivery
from delivery.telegram_delivery import TelegramDelivery
from services.config import Config

logger = logging.getLogger(__name__)

CHANNELS = ("telegram", "email")


class DeliveryDispatcher:
    def __init__(
        self,
        channels: Mapping[str, Optional[DeliveryChannel]],
        timeout: float = 30.0,
    ):
        self.channels: Dict[str, Optional[DeliveryChannel]] = dict(channels)
        self.timeout = timeout

    async def _attempt(self, name: str, aggregation: AggregationResult) -> bool:
        channel = self.channels.get(name)
        try:
            if channel is None:
                raise ChannelDeliveryFailure(name, "channel enabled but not configured")
            try:
                await asyncio.wait_for(channel.deliver(aggregation), timeout=self.timeout)
            except ChannelDeliveryFailure:
                raise
            except asyncio.TimeoutError as e:
                raise ChannelDeliveryFailure(name, f"timed out after {self.timeout}s") from e
            except Exception as e:
                # Channel clients are external; any error is a failed send
                raise ChannelDeliveryFailure(name, f"{type(e).__name__}: {e}") from e
        except ChannelDeliveryFailure as failure:
            logger.error(str(failure), extra={"channel": name, "outcome": "failed"})
            return False

        logger.info(f"Delivered briefing via {name}", extra={"channel": name, "outcome": "sent"})
        return True

    async def deliver(self, aggregation: AggregationResult, options: DeliveryOptions) -> DeliveryResult:
        """
        Returns, per channel, whether it was enabled and its send succeeded.
        Waits for every attempted send before returning.
        """
        attempts = {}
        for name in CHANNELS:
            if options.is_enabled(name):
                attempts[name] = self._attempt(name, aggregation)
            else:
                logger.info(f"Skipping {name}: disabled for this run", extra={"channel": name, "outcome": "skipped"})

        outcomes = await asyncio.gather(*attempts.values())
        results = dict(zip(attempts.keys(), outcomes))

        return DeliveryResult(
            telegram=results.get("telegram", False),
            email=results.get("email", False),
        )


def create_dispatcher_from_config(config: Config) -> DeliveryDispatcher:
    """
    Build channel clients for whichever channels have credentials.
    Unconfigured channels stay None and fail if enabled for a run.
    """
    channels: Dict[str, Optional[DeliveryChannel]] = {"telegram": None, "email": None}

    if config.telegram.is_configured:
        channels["telegram"] = TelegramDelivery(
            bot_token=config.telegram.bot_token,
            chat_id=config.telegram.chat_id,
            max_topics=config.telegram.max_topics,
        )
    else:
        logger.info("Telegram credentials missing; channel unavailable")

    if config.email.is_configured:
        channels["email"] = EmailDelivery(
            smtp_host=config.email.smtp_host,
            smtp_port=config.email.smtp_port,
            username=config.email.username,
            password=config.email.password,
            sender=config.email.sender,
            recipient=config.email.recipient,
        )
    else:
        logger.info("Email settings incomplete; channel unavailable")

    return DeliveryDispatcher(channels, timeout=config.delivery.timeout_seconds)
