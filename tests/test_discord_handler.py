"""
tests/test_discord_handler.py
RenderableMessage -> discord.Embed conversion and delivery.
"""

import asyncio
from datetime import datetime, timezone

from relay.bot.discord_handler import send_message, to_embed
from relay.core.models import ItemType, RenderableMessage


def sample_message(**overrides):
    fields = dict(
        title="From alice",
        body="hello",
        color="#E1306C",
        footer="Received via Instagram DM",
        image_url="https://cdn.example/x.jpg",
        timestamp=datetime(2023, 11, 14, tzinfo=timezone.utc),
        item_type=ItemType.TEXT,
    )
    fields.update(overrides)
    message = RenderableMessage(**fields)
    message.add_field("📥 Received at", "2023-11-14 10:13:20 PM")
    return message


class FakeChannel:
    name = "ig-alice"

    def __init__(self):
        self.sent = []

    async def send(self, **kwargs):
        self.sent.append(kwargs)


class TestToEmbed:
    def test_all_parts_mapped(self):
        embed = to_embed(sample_message())
        assert embed.title == "From alice"
        assert embed.description == "hello"
        assert embed.color.value == 0xE1306C
        assert embed.footer.text == "Received via Instagram DM"
        assert embed.image.url == "https://cdn.example/x.jpg"
        assert embed.timestamp == datetime(2023, 11, 14, tzinfo=timezone.utc)
        assert len(embed.fields) == 1
        assert embed.fields[0].name == "📥 Received at"
        assert embed.fields[0].inline is True

    def test_optional_parts_omitted(self):
        embed = to_embed(sample_message(image_url=None, timestamp=None, color="#2196F3"))
        assert embed.image.url is None
        assert embed.timestamp is None
        assert embed.color.value == 0x2196F3


class TestSendMessage:
    def test_sends_one_embed(self):
        channel = FakeChannel()
        asyncio.run(send_message(channel, sample_message()))
        assert len(channel.sent) == 1
        assert channel.sent[0]["embed"].title == "From alice"
