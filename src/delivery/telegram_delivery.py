from typing import List

from telegram import Bot, LinkPreviewOptions
from telegram.constants import ParseMode
from telegram.helpers import escape_markdown

from core.entities import AggregationResult, Topic
from delivery.base import DeliveryChannel
from processing.summarizer import split_sentences, truncate

TELEGRAM_MESSAGE_LIMIT = 4096


def _escape(text: str) -> str:
    return escape_markdown(text, version=2)


def _link(text: str, url: str) -> str:
    return f"[{_escape(text)}]({escape_markdown(url, version=2, entity_type='text_link')})"


def _topic_block(rank: int, topic: Topic) -> str:
    lines = [f"*{_escape(f'{rank}. {topic.label}')}* {_escape(f'({topic.score:.2f})')}"]

    sentences = split_sentences(topic.summary)
    if sentences:
        lines.append(_escape(truncate(sentences[0], 280)))

    for item in topic.items[:3]:
        lines.append(f"• {_link(item.source, item.url)}")

    return "\n".join(lines)


def format_digest(aggregation: AggregationResult, max_topics: int) -> str:
    """
    Condensed MarkdownV2 digest that fits in a single Telegram message.
    """
    stats = aggregation.stats
    header = (
        f"*{_escape(f'Topic briefing – {stats.generated_at:%Y-%m-%d %H:%M} UTC')}*\n"
        f"{_escape(f'{len(aggregation.topics)} topics from {stats.total_sources} sources')}"
    )
    if not aggregation.topics:
        return header + "\n\n" + _escape("Nothing new worth reading.")

    blocks: List[str] = [header]
    length = len(header)
    for rank, topic in enumerate(aggregation.topics[:max_topics], 1):
        block = _topic_block(rank, topic)
        if length + len(block) + 2 > TELEGRAM_MESSAGE_LIMIT:
            break
        blocks.append(block)
        length += len(block) + 2

    return "\n\n".join(blocks)


class TelegramDelivery(DeliveryChannel):
    name = "telegram"

    def __init__(self, bot_token: str, chat_id: str, max_topics: int = 8):
        self.bot = Bot(token=bot_token)
        self.chat_id = chat_id
        self.max_topics = max_topics

    async def deliver(self, aggregation: AggregationResult) -> None:
        async with self.bot:
            await self.bot.send_message(
                chat_id=self.chat_id,
                text=format_digest(aggregation, self.max_topics),
                parse_mode=ParseMode.MARKDOWN_V2,
                link_preview_options=LinkPreviewOptions(is_disabled=True),
            )
