"""
Email Delivery channel
"""
import html as html_escape
from email.message import EmailMessage
from typing import Dict, Optional

import aiosmtplib

from core.entities import AggregationResult, Topic
from delivery.base import DeliveryChannel


class EmailDelivery(DeliveryChannel):
    name = "email"

    DEFAULT_COLORS = {
        "primary": "#4f46e5",
        "background": "#f8fafc",
        "card_bg": "#ffffff",
        "text_primary": "#1e293b",
        "text_secondary": "#64748b",
        "border": "#e2e8f0",
        "keyword_bg": "#eef2ff",
    }

    def __init__(
        self,
        *,
        smtp_host: str,
        smtp_port: int,
        username: Optional[str],
        password: Optional[str],
        sender: str,
        recipient: str,
        colors: Optional[Dict[str, str]] = None,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.username = username
        self.password = password
        self.sender = sender
        self.recipient = recipient
        self.colors = {**self.DEFAULT_COLORS, **(colors or {})}

    def _build_topic_card(self, rank: int, topic: Topic) -> str:
        c = self.colors
        esc = html_escape.escape

        keywords = "".join(
            f'<span style="display: inline-block; margin: 2px 6px 2px 0; padding: 2px 8px; '
            f'background-color: {c["keyword_bg"]}; border-radius: 4px; font-size: 12px;">'
            f"{esc(keyword)}</span>"
            for keyword in topic.keywords
        )
        links = "".join(
            f'<li style="margin-bottom: 6px;">'
            f'<a href="{esc(item.url)}" style="color: {c["primary"]}; text-decoration: none;">'
            f"{esc(item.title)}</a> "
            f'<span style="color: {c["text_secondary"]}; font-size: 12px;">({esc(item.source)})</span>'
            f"</li>"
            for item in topic.items
        )

        return f'''
            <div style="background-color: {c['card_bg']}; border-radius: 10px; padding: 20px;
                        margin-bottom: 16px; border: 1px solid {c['border']};
                        border-left: 4px solid {c['primary']};">
                <h2 style="margin: 0 0 4px 0; color: {c['text_primary']}; font-size: 18px;">
                    {rank}. {esc(topic.label)}
                </h2>
                <p style="margin: 0 0 12px 0; color: {c['text_secondary']}; font-size: 13px;">
                    Score {topic.score:.2f} · {len(topic.items)} item(s)
                </p>
                <p style="color: {c['text_primary']}; font-size: 15px; line-height: 1.6; margin: 0 0 12px 0;">
                    {esc(topic.summary)}
                </p>
                <div style="margin-bottom: 12px;">{keywords}</div>
                <ul style="padding-left: 18px; margin: 0;">{links}</ul>
            </div>
            '''

    def _build_html(self, aggregation: AggregationResult) -> str:
        """Build the HTML digest, one card per topic."""
        c = self.colors
        stats = aggregation.stats
        cards = "".join(
            self._build_topic_card(rank, topic)
            for rank, topic in enumerate(aggregation.topics, 1)
        )
        if not cards:
            cards = f'<p style="color: {c["text_secondary"]};">No topics passed the filters this run.</p>'

        return f'''
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Topic Briefing</title>
</head>
<body style="margin: 0; padding: 0; background-color: {c['background']};
             font-family: -apple-system, 'Segoe UI', Roboto, Arial, sans-serif;">
    <div style="max-width: 680px; margin: 0 auto; padding: 20px;">
        <div style="background-color: {c['primary']}; border-radius: 12px 12px 0 0; padding: 24px;
                    text-align: center; color: white;">
            <h1 style="margin: 0; font-size: 24px;">Topic Briefing</h1>
            <p style="margin: 8px 0 0 0; font-size: 14px;">{stats.generated_at:%Y-%m-%d %H:%M} UTC</p>
        </div>
        <div style="padding: 20px 0;">
            {cards}
        </div>
        <p style="text-align: center; color: {c['text_secondary']}; font-size: 12px;">
            {stats.total_items} items from {stats.total_sources} sources ·
            {stats.filtered_items} filtered · generated in {stats.runtime_ms} ms
        </p>
    </div>
</body>
</html>
'''

    def _build_plain_text(self, aggregation: AggregationResult) -> str:
        """Plain text fallback of the digest."""
        stats = aggregation.stats
        lines = [
            "=" * 60,
            f"Topic Briefing - {stats.generated_at:%Y-%m-%d %H:%M} UTC",
            "=" * 60,
            "",
        ]

        for rank, topic in enumerate(aggregation.topics, 1):
            lines.extend([
                f"[{rank}] {topic.label} (score {topic.score:.2f})",
                "-" * 60,
                topic.summary,
                "",
                f"Keywords: {', '.join(topic.keywords)}",
            ])
            for item in topic.items:
                lines.append(f"   - {item.title} ({item.source}): {item.url}")
            lines.append("")

        if not aggregation.topics:
            lines.extend(["No topics passed the filters this run.", ""])

        lines.append(
            f"{stats.total_items} items from {stats.total_sources} sources, "
            f"{stats.filtered_items} filtered, {stats.runtime_ms} ms"
        )
        return "\n".join(lines)

    def build_message(self, aggregation: AggregationResult) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = self.recipient
        msg["Subject"] = (
            f"Topic Briefing – {aggregation.stats.generated_at:%Y-%m-%d} "
            f"({len(aggregation.topics)} topics)"
        )
        msg.set_content(self._build_plain_text(aggregation))
        msg.add_alternative(self._build_html(aggregation), subtype="html")
        return msg

    async def deliver(self, aggregation: AggregationResult) -> None:
        await aiosmtplib.send(
            self.build_message(aggregation),
            hostname=self.smtp_host,
            port=self.smtp_port,
            username=self.username,
            password=self.password,
            start_tls=True,
        )
