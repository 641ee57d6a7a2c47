"""Pytest configuration and shared fixtures."""

import asyncio
import itertools
import logging
import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

# Settings are read on import, so these must be set before any project import
os.environ.setdefault("DISCORD_TOKEN", "test_token")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import hikari
import pytest

from commando.core.client import CommandoClient

# Disable logging during tests
logging.disable(logging.CRITICAL)

BOT_ID = 12345
OWNER_ID = 999999999
USER_ID = 111111111
GUILD_ID = 123456789
CHANNEL_ID = 444444444
DM_CHANNEL_ID = 555555555


@pytest.fixture
def mock_hikari_bot():
    """Mock Hikari bot instance."""
    bot = MagicMock(spec=hikari.GatewayBot)
    bot.cache = MagicMock()
    bot.rest = MagicMock()
    bot.get_me = MagicMock(return_value=MagicMock(id=BOT_ID, username="TestBot", mention=f"<@{BOT_ID}>"))
    bot.heartbeat_latency = 0.05
    bot.wait_for = AsyncMock()

    # Mock cache methods
    bot.cache.get_guild = MagicMock(return_value=None)
    bot.cache.get_member = MagicMock(return_value=None)
    bot.cache.get_guild_channel = MagicMock(return_value=None)
    bot.cache.get_role = MagicMock(return_value=None)
    bot.cache.get_user = MagicMock(return_value=None)
    bot.cache.get_members_view_for_guild = MagicMock(return_value={})
    bot.cache.get_guild_channels_view_for_guild = MagicMock(return_value={})
    bot.cache.get_roles_view_for_guild = MagicMock(return_value={})

    # Mock REST methods; sent and edited messages get fresh IDs
    ids = itertools.count(900000)

    def sent_message(channel, content=hikari.UNDEFINED, **kwargs):
        message = MagicMock()
        message.id = next(ids)
        message.channel_id = int(channel)
        message.content = content
        message.embed = kwargs.get("embed")
        message.created_at = datetime(2024, 1, 1, 12, 0, 0, 250000, tzinfo=timezone.utc)
        message.edited_timestamp = None
        return message

    def edited_message(channel, message, content=hikari.UNDEFINED, **kwargs):
        edited = MagicMock()
        edited.id = int(message)
        edited.channel_id = int(channel)
        edited.content = content
        edited.embed = kwargs.get("embed")
        edited.created_at = datetime(2024, 1, 1, 12, 0, 0, 250000, tzinfo=timezone.utc)
        edited.edited_timestamp = datetime(2024, 1, 1, 12, 5, 0, 400000, tzinfo=timezone.utc)
        return edited

    bot.rest.create_message = AsyncMock(side_effect=sent_message)
    bot.rest.edit_message = AsyncMock(side_effect=edited_message)
    bot.rest.delete_message = AsyncMock()
    bot.rest.create_dm_channel = AsyncMock(return_value=MagicMock(id=DM_CHANNEL_ID))
    bot.rest.fetch_user = AsyncMock()
    bot.rest.fetch_member = AsyncMock()

    return bot


@pytest.fixture
def client(mock_hikari_bot):
    """A client wired to the mocked gateway bot, with the default argument types registered."""
    with patch("commando.core.client.hikari.GatewayBot", return_value=mock_hikari_bot):
        client = CommandoClient(
            token="test_token",
            command_prefix="!",
            owner_ids=[OWNER_ID],
            invite=None,
            command_editable_duration=30,
            non_command_editable=True,
        )
    client.registry.register_default_types()
    return client


@pytest.fixture
def mock_user():
    """Mock Discord user."""
    user = MagicMock(spec=hikari.User)
    user.id = USER_ID
    user.username = "testuser"
    user.display_name = "Test User"
    user.is_bot = False
    user.mention = f"<@{USER_ID}>"
    return user


@pytest.fixture
def mock_member(mock_user):
    """Mock Discord member."""
    member = MagicMock(spec=hikari.Member)
    member.id = mock_user.id
    member.username = mock_user.username
    member.nickname = None
    member.display_name = mock_user.display_name
    member.is_bot = mock_user.is_bot
    member.user = mock_user
    member.role_ids = [222222222]
    return member


@pytest.fixture
def mock_guild():
    """Mock Discord guild."""
    guild = MagicMock(spec=hikari.Guild)
    guild.id = GUILD_ID
    guild.name = "Test Guild"
    guild.owner_id = 987654321
    guild.get_role = MagicMock(return_value=None)
    return guild


@pytest.fixture
def make_message(mock_user, mock_member):
    """Factory for incoming chat messages."""
    ids = itertools.count(700000)

    def factory(
        content,
        *,
        guild_id=GUILD_ID,
        channel_id=CHANNEL_ID,
        author=None,
        member=None,
        message_id=None,
        edited_timestamp=None,
    ):
        message = MagicMock()
        message.id = message_id if message_id is not None else next(ids)
        message.content = content
        message.author = author or mock_user
        message.member = member if member is not None else (mock_member if guild_id is not None else None)
        message.guild_id = guild_id
        message.channel_id = channel_id
        message.created_at = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        message.edited_timestamp = edited_timestamp
        return message

    return factory


@pytest.fixture
def make_answer(mock_hikari_bot):
    """Queue replies to argument prompts; ``None`` makes the wait time out."""

    def factory(*contents):
        events = []
        for content in contents:
            if content is None:
                events.append(asyncio.TimeoutError())
            else:
                event = MagicMock()
                event.message = MagicMock(content=content)
                events.append(event)
        mock_hikari_bot.wait_for.side_effect = events

    return factory


def sent_contents(mock_hikari_bot):
    """Contents of every message created through the mocked REST client."""
    return [c.args[1] for c in mock_hikari_bot.rest.create_message.call_args_list]


@pytest.fixture
def sent(mock_hikari_bot):
    """Callable returning the contents of every message sent so far."""
    return lambda: sent_contents(mock_hikari_bot)


class AsyncContextManager:
    """Helper for mocking async context managers."""

    def __init__(self, return_value=None):
        self.return_value = return_value

    async def __aenter__(self):
        return self.return_value

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass


@pytest.fixture
def async_context_manager():
    """Factory for creating async context managers."""
    return AsyncContextManager
