import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

from core.errors import PipelineFailure
from core.schemas import ChannelOptions, DeliveryOptions, serialize_aggregation
from delivery.dispatcher import create_dispatcher_from_config
from services.config import Config, parse_bool, load_config
from services.logging import setup_logging
from workflows.aggregation import create_engine_from_config

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="topic-aggregator",
        description="Collect, cluster and summarize topics; optionally send the briefing.",
    )
    parser.add_argument("--config", help="Path to config.yml (default: resources/config.yml)")
    parser.add_argument("--output", help="Write the aggregation JSON here instead of stdout")
    parser.add_argument(
        "--send",
        action="store_true",
        default=None,
        help="Deliver the briefing after aggregation (env: SEND_BRIEFING)",
    )
    parser.add_argument(
        "--telegram",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable Telegram for this run (env: SEND_TELEGRAM)",
    )
    parser.add_argument(
        "--email",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable email for this run (env: SEND_EMAIL)",
    )
    parser.add_argument("--log-level", help="Override the configured log level")
    return parser


def _flag(cli_value: Optional[bool], env_name: str, default: bool) -> bool:
    if cli_value is not None:
        return cli_value
    env_value = os.getenv(env_name)
    if env_value is not None:
        return parse_bool(env_value)
    return default


def resolve_delivery_options(args: argparse.Namespace, config: Config) -> DeliveryOptions:
    """CLI flags win over environment switches, which win over config defaults."""
    return DeliveryOptions(
        telegram=ChannelOptions(
            enabled=_flag(args.telegram, "SEND_TELEGRAM", config.delivery.telegram_enabled)
        ),
        email=ChannelOptions(
            enabled=_flag(args.email, "SEND_EMAIL", config.delivery.email_enabled)
        ),
    )


async def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    setup_logging(args.log_level or config.logging.level, config.logging.format)

    engine = create_engine_from_config(config)

    try:
        aggregation = await engine.run_aggregation()
    except PipelineFailure as e:
        logger.error(f"Collector failed: {e}")
        return 1

    payload = json.dumps(serialize_aggregation(aggregation), indent=2, ensure_ascii=False)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as file:
            file.write(payload)
        logger.info(f"Wrote aggregation to {args.output}")
    else:
        print(payload)

    if _flag(args.send, "SEND_BRIEFING", False):
        dispatcher = create_dispatcher_from_config(config)
        options = resolve_delivery_options(args, config)
        delivery = await dispatcher.deliver(aggregation, options)
        logger.info(f"Delivery: {delivery.model_dump()}")

    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
