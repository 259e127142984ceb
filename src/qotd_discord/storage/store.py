from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable, Hashable, Iterable, Iterator, Sequence
from importlib import resources
from typing import Any

import asyncpg

from qotd_discord.storage import queries
from qotd_discord.storage.errors import EmptyPoolError, LimitExceededError, StorageError
from qotd_discord.storage.models import (
    ChannelConfig,
    CustomPoll,
    CustomQuestion,
    PingRoleConfig,
    Poll,
    Question,
)

_logger = logging.getLogger(__name__)

DEFAULT_CUSTOM_LIMIT = 100


def load_schema() -> str:
    """Return the SQL which creates all tables used by the bot."""
    return resources.files("qotd_discord.storage").joinpath("schema.sql").read_text()


@contextlib.contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    """Translate driver and connection failures into `StorageError`."""
    try:
        yield
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as error:
        _logger.error("Database error while trying to %s: %s", action, error)
        raise StorageError(f"Failed to {action}") from error


class QotdStore:
    def __init__(
        self,
        pool: asyncpg.Pool,
        *,
        custom_question_limit: int = DEFAULT_CUSTOM_LIMIT,
        custom_poll_limit: int = DEFAULT_CUSTOM_LIMIT,
    ) -> None:
        """Persistent storage of questions, polls and per-guild settings.

        :param pool: The connection pool shared by all commands
        :param custom_question_limit: Maximum number of custom questions
          a single guild may save
        :param custom_poll_limit: Maximum number of custom polls a single
          guild may save
        """
        self._pool = pool
        self.custom_question_limit = custom_question_limit
        self.custom_poll_limit = custom_poll_limit

    async def create_schema(self) -> None:
        with _storage_errors("create the schema"):
            async with self._pool.acquire() as conn:
                await conn.execute(load_schema())
        _logger.info("Database schema created")

    # global pools

    async def draw_question(self) -> Question:
        """Draw a question which was not shown in the current rotation.

        When every question has been shown, the rotation starts over and
        all questions become available again.

        :raise EmptyPoolError: If no question was ever seeded
        :raise StorageError: If the database cannot be read or written
        """
        row = await self._draw(
            table="questions",
            draw=queries.DRAW_QUESTION,
            reset=queries.RESET_QUESTIONS,
            count=queries.COUNT_QUESTIONS,
        )
        return Question.from_row(row)

    async def draw_poll(self) -> Poll:
        """Draw a poll which was not shown in the current rotation.

        Same contract as `draw_question`, applied to the polls table.
        """
        row = await self._draw(
            table="polls",
            draw=queries.DRAW_POLL,
            reset=queries.RESET_POLLS,
            count=queries.COUNT_POLLS,
        )
        return Poll.from_row(row)

    async def _draw(self, *, table: str, draw: str, reset: str, count: str) -> asyncpg.Record:
        with _storage_errors(f"draw from {table}"):
            async with self._pool.acquire() as conn, conn.transaction():
                await conn.execute(queries.ADVISORY_LOCK, table)

                row = await conn.fetchrow(draw)
                if row is not None:
                    return row

                if await conn.fetchval(count) == 0:
                    raise EmptyPoolError(table)

                _logger.info("All rows of %r have been used, starting a new rotation", table)
                await conn.execute(reset)
                return await conn.fetchrow(draw)

    async def reset_questions(self) -> None:
        await self._reset("questions", queries.RESET_QUESTIONS)

    async def reset_polls(self) -> None:
        await self._reset("polls", queries.RESET_POLLS)

    async def _reset(self, table: str, reset: str) -> None:
        with _storage_errors(f"reset {table}"):
            async with self._pool.acquire() as conn, conn.transaction():
                await conn.execute(queries.ADVISORY_LOCK, table)
                await conn.execute(reset)
        _logger.info("Rotation of %r has been reset", table)

    async def seed_questions(self, texts: Iterable[str]) -> int:
        """Add questions to the global pool, skipping those it already holds.

        :return: The number of questions which were added
        """
        return await self._seed(
            "questions",
            "question_string",
            queries.SEEDED_QUESTIONS,
            queries.SEED_QUESTION,
            list(texts),
            key=str,
        )

    async def seed_polls(self, polls: Iterable[Sequence[str]]) -> int:
        """Add polls to the global pool, skipping those it already holds.

        :return: The number of polls which were added
        """
        return await self._seed(
            "polls",
            "poll_string",
            queries.SEEDED_POLLS,
            queries.SEED_POLL,
            [list(options) for options in polls],
            key=tuple,
        )

    async def _seed(
        self,
        table: str,
        column: str,
        seeded: str,
        insert: str,
        entries: list[Any],
        *,
        key: Callable[[Any], Hashable],
    ) -> int:
        with _storage_errors(f"seed {table}"):
            async with self._pool.acquire() as conn, conn.transaction():
                await conn.execute(queries.ADVISORY_LOCK, table)
                present = {key(row[column]) for row in await conn.fetch(seeded)}
                new = []
                for entry in entries:
                    if key(entry) not in present:
                        present.add(key(entry))
                        new.append((entry,))
                await conn.executemany(insert, new)
        _logger.info(
            "Seeded %d %s, skipped %d which were already present",
            len(new),
            table,
            len(entries) - len(new),
        )
        return len(new)

    # guild configuration

    async def set_channel(self, guild_id: str, channel_id: str) -> ChannelConfig:
        with _storage_errors("set the channel"):
            async with self._pool.acquire() as conn:
                await conn.execute(queries.UPSERT_CHANNEL, guild_id, channel_id)
        _logger.info("Channel of guild %s set to %s", guild_id, channel_id)
        return ChannelConfig(guild_id=guild_id, channel_id=channel_id)

    async def get_channel(self, guild_id: str) -> ChannelConfig | None:
        with _storage_errors("get the channel"):
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(queries.SELECT_CHANNEL, guild_id)
        if row is None:
            return None
        return ChannelConfig(guild_id=row["guild_id"], channel_id=row["channel_id"])

    async def set_ping_role(self, guild_id: str, role_id: str) -> PingRoleConfig:
        with _storage_errors("set the ping role"):
            async with self._pool.acquire() as conn:
                await conn.execute(queries.UPSERT_PING_ROLE, guild_id, role_id)
        _logger.info("Ping role of guild %s set to %s", guild_id, role_id)
        return PingRoleConfig(guild_id=guild_id, role_id=role_id)

    async def get_ping_role(self, guild_id: str) -> PingRoleConfig | None:
        with _storage_errors("get the ping role"):
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(queries.SELECT_PING_ROLE, guild_id)
        if row is None:
            return None
        return PingRoleConfig(guild_id=row["guild_id"], role_id=row["ping_role"])

    # custom questions

    async def add_custom_question(self, guild_id: str, text: str) -> CustomQuestion:
        """Save a custom question for a guild.

        :raise LimitExceededError: If the guild already saved the maximum
          number of custom questions
        """
        with _storage_errors("add a custom question"):
            async with self._pool.acquire() as conn, conn.transaction():
                count = await conn.fetchval(queries.COUNT_CUSTOM_QUESTIONS, guild_id)
                if count >= self.custom_question_limit:
                    raise LimitExceededError("custom_questions", self.custom_question_limit)
                row = await conn.fetchrow(queries.INSERT_CUSTOM_QUESTION, guild_id, text)
        return CustomQuestion.from_row(row)

    async def list_custom_questions(self, guild_id: str) -> list[CustomQuestion]:
        with _storage_errors("list custom questions"):
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(queries.LIST_CUSTOM_QUESTIONS, guild_id)
        return [CustomQuestion.from_row(row) for row in rows]

    async def get_custom_question(self, guild_id: str, question_id: int) -> CustomQuestion | None:
        with _storage_errors("get a custom question"):
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(queries.SELECT_CUSTOM_QUESTION, guild_id, question_id)
        return None if row is None else CustomQuestion.from_row(row)

    async def delete_custom_question(self, guild_id: str, question_id: int) -> bool:
        """Delete a custom question if it belongs to the guild."""
        with _storage_errors("delete a custom question"):
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(queries.DELETE_CUSTOM_QUESTION, guild_id, question_id)
        return row is not None

    async def count_custom_questions(self, guild_id: str) -> int:
        with _storage_errors("count custom questions"):
            async with self._pool.acquire() as conn:
                return await conn.fetchval(queries.COUNT_CUSTOM_QUESTIONS, guild_id)

    # custom polls

    async def add_custom_poll(self, guild_id: str, options: Sequence[str]) -> CustomPoll:
        """Save a custom poll for a guild.

        :raise LimitExceededError: If the guild already saved the maximum
          number of custom polls
        """
        with _storage_errors("add a custom poll"):
            async with self._pool.acquire() as conn, conn.transaction():
                count = await conn.fetchval(queries.COUNT_CUSTOM_POLLS, guild_id)
                if count >= self.custom_poll_limit:
                    raise LimitExceededError("custom_polls", self.custom_poll_limit)
                row = await conn.fetchrow(queries.INSERT_CUSTOM_POLL, guild_id, list(options))
        return CustomPoll.from_row(row)

    async def list_custom_polls(self, guild_id: str) -> list[CustomPoll]:
        with _storage_errors("list custom polls"):
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(queries.LIST_CUSTOM_POLLS, guild_id)
        return [CustomPoll.from_row(row) for row in rows]

    async def get_custom_poll(self, guild_id: str, poll_id: int) -> CustomPoll | None:
        with _storage_errors("get a custom poll"):
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(queries.SELECT_CUSTOM_POLL, guild_id, poll_id)
        return None if row is None else CustomPoll.from_row(row)

    async def delete_custom_poll(self, guild_id: str, poll_id: int) -> bool:
        """Delete a custom poll if it belongs to the guild."""
        with _storage_errors("delete a custom poll"):
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(queries.DELETE_CUSTOM_POLL, guild_id, poll_id)
        return row is not None

    async def count_custom_polls(self, guild_id: str) -> int:
        with _storage_errors("count custom polls"):
            async with self._pool.acquire() as conn:
                return await conn.fetchval(queries.COUNT_CUSTOM_POLLS, guild_id)
