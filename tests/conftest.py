import random
from unittest import mock

import discord
import pytest
from discord.ext import commands

from qotd_discord.qotd.cog import QotdCog
from qotd_discord.qotd.config import QotdConfig
from qotd_discord.storage.store import QotdStore
from tests.helpers import CHANNEL_ID, GUILD_ID
from tests.storage.fake_postgres import FakeDatabase, FakePool


@pytest.fixture()
def database() -> FakeDatabase:
    """Return an empty in-memory database with a seeded random generator."""
    return FakeDatabase(rng=random.Random(1234))


@pytest.fixture()
def store(database: FakeDatabase) -> QotdStore:
    """Return a store backed by the in-memory database."""
    return QotdStore(FakePool(database), custom_question_limit=3, custom_poll_limit=2)


@pytest.fixture()
def store_mock() -> mock.Mock:
    """Return a store mock whose coroutine methods are `AsyncMock`s."""
    return mock.create_autospec(QotdStore, instance=True)


@pytest.fixture()
def posting_channel() -> mock.Mock:
    """Return a channel mock, messages sent to it accept reactions."""
    channel = mock.Mock(spec=discord.TextChannel)
    channel.id = CHANNEL_ID
    channel.send = mock.AsyncMock(return_value=mock.Mock(add_reaction=mock.AsyncMock()))
    return channel


@pytest.fixture()
def ctx(posting_channel: mock.Mock) -> mock.Mock:
    """Return a command context of an administrator in a guild."""
    context = mock.Mock()
    context.guild.id = GUILD_ID
    context.guild.get_channel = mock.Mock(
        side_effect=lambda channel_id: posting_channel if channel_id == CHANNEL_ID else None
    )
    context.author.mention = "<@42>"
    context.author.roles = []
    context.author.guild_permissions.administrator = True
    context.command = mock.Mock()
    context.command.name = "qotd"
    context.reply = mock.AsyncMock()
    context.send = mock.AsyncMock()
    return context


@pytest.fixture()
def cog(store_mock: mock.Mock) -> QotdCog:
    """Return the QOTD cog with a mocked bot and store."""
    return QotdCog(mock.Mock(spec=commands.Bot), QotdConfig(), store_mock)
