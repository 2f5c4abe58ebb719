"""
tests/test_channel_router.py
Sender -> Discord channel resolution against a fake guild.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import discord

from relay.bot.channel_router import ChannelRouter, channel_name

GUILD_ID = "1234"


class FakeGuild:
    def __init__(self, text_channels=(), categories=None, create_error=None):
        self.text_channels = list(text_channels)
        self.categories = categories or {}
        self.default_role = MagicMock(name="everyone")
        self.me = MagicMock(name="bot")
        self.create_error = create_error
        self.created = []

    def get_channel(self, channel_id):
        return self.categories.get(channel_id)

    async def create_text_channel(self, name, **kwargs):
        self.created.append((name, kwargs))
        if self.create_error:
            raise self.create_error
        channel = SimpleNamespace(name=name)
        self.text_channels.append(channel)
        return channel


class FakeClient:
    def __init__(self, guild=None):
        self.guild = guild
        self.lookups = 0

    def get_guild(self, guild_id):
        self.lookups += 1
        return self.guild if guild_id == int(GUILD_ID) else None


def resolve(router, username):
    return asyncio.run(router.resolve(username))


class TestChannelName:
    def test_lowercases_and_replaces_invalid_chars(self):
        assert channel_name("Alice.Smith") == "ig-alice-smith"
        assert channel_name("bob_99") == "ig-bob_99"
        assert channel_name("a b!c") == "ig-a-b-c"


class TestChannelRouter:
    def test_no_guild_configured_returns_none_without_creating(self):
        client = FakeClient(FakeGuild())
        router = ChannelRouter(client, {}, guild_id="")
        assert resolve(router, "alice") is None
        assert resolve(router, "alice") is None
        assert client.lookups == 0
        assert client.guild.created == []

    def test_unknown_guild_returns_none(self):
        router = ChannelRouter(FakeClient(FakeGuild()), {}, guild_id="999")
        assert resolve(router, "alice") is None

    def test_invalid_guild_id_returns_none(self):
        router = ChannelRouter(FakeClient(FakeGuild()), {}, guild_id="not-a-number")
        assert resolve(router, "alice") is None

    def test_existing_channel_is_reused(self):
        existing = SimpleNamespace(name="ig-alice")
        guild = FakeGuild(text_channels=[SimpleNamespace(name="general"), existing])
        routes = {}
        router = ChannelRouter(FakeClient(guild), routes, guild_id=GUILD_ID)
        assert resolve(router, "Alice") is existing
        assert guild.created == []
        assert routes == {"alice": existing}

    def test_creates_private_channel_on_first_contact(self):
        guild = FakeGuild()
        router = ChannelRouter(FakeClient(guild), {}, guild_id=GUILD_ID)
        channel = resolve(router, "alice")

        assert channel.name == "ig-alice"
        name, kwargs = guild.created[0]
        assert name == "ig-alice"
        assert kwargs["category"] is None
        assert kwargs["topic"] == "Instagram DMs from @alice"
        overwrites = kwargs["overwrites"]
        assert overwrites[guild.default_role].view_channel is False
        assert overwrites[guild.me].view_channel is True
        assert overwrites[guild.me].send_messages is True

    def test_second_resolve_hits_cache(self):
        guild = FakeGuild()
        client = FakeClient(guild)
        router = ChannelRouter(client, {}, guild_id=GUILD_ID)
        first = resolve(router, "alice")
        second = resolve(router, "ALICE")
        assert first is second
        assert client.lookups == 1
        assert len(guild.created) == 1

    def test_created_under_category(self):
        category = MagicMock(spec=discord.CategoryChannel)
        guild = FakeGuild(categories={77: category})
        router = ChannelRouter(FakeClient(guild), {}, guild_id=GUILD_ID, category_id="77")
        resolve(router, "alice")
        assert guild.created[0][1]["category"] is category

    def test_missing_category_falls_back_to_top_level(self):
        guild = FakeGuild()
        router = ChannelRouter(FakeClient(guild), {}, guild_id=GUILD_ID, category_id="77")
        assert resolve(router, "alice") is not None
        assert guild.created[0][1]["category"] is None

    def test_creation_rejected_returns_none_and_is_not_cached(self):
        error = discord.Forbidden(MagicMock(status=403, reason="Forbidden"), "Missing Permissions")
        guild = FakeGuild(create_error=error)
        routes = {}
        router = ChannelRouter(FakeClient(guild), routes, guild_id=GUILD_ID)
        assert resolve(router, "alice") is None
        assert routes == {}
        assert resolve(router, "alice") is None
        assert len(guild.created) == 2
