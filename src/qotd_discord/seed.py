"""Create the database schema and seed the global question and poll pools."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
import tomllib
from pathlib import Path

import asyncpg
from pydantic import BaseModel, field_validator

from qotd_discord.qotd import formatting
from qotd_discord.storage.store import QotdStore

_logger = logging.getLogger(__name__)


class SeedPool(BaseModel):
    questions: list[str] = []
    polls: list[list[str]] = []

    @field_validator("questions")
    @classmethod
    def questions_can_be_posted(cls, questions: list[str]) -> list[str]:
        for question in questions:
            if not question.strip():
                raise ValueError("Questions must not be blank")
            formatting.check_question_length(question)
        return questions

    @field_validator("polls")
    @classmethod
    def polls_can_be_posted(cls, polls: list[list[str]]) -> list[list[str]]:
        for poll in polls:
            if len(poll) < 3:
                raise ValueError(f"A poll needs a question and at least two options: {poll!r}")
            if len(poll) > len(formatting.OPTION_EMOJIS) + 1:
                raise ValueError(
                    f"A poll can have at most {len(formatting.OPTION_EMOJIS)} options: {poll[0]!r}"
                )
            formatting.check_poll_lengths(poll)
        return polls


def load_seed_pool(pool_file: Path) -> SeedPool:
    return SeedPool(**tomllib.loads(pool_file.read_text()))


async def seed(store: QotdStore, pool: SeedPool, *, create_schema: bool) -> None:
    """Seed the pools, entries already present in the database are skipped."""
    if create_schema:
        await store.create_schema()
    questions = await store.seed_questions(pool.questions)
    polls = await store.seed_polls(pool.polls)
    _logger.info("Added %d new questions and %d new polls", questions, polls)


async def run_seed(database_dsn: str, pool: SeedPool, *, create_schema: bool) -> None:
    async with asyncpg.create_pool(database_dsn, min_size=1, max_size=1) as connection_pool:
        await seed(QotdStore(connection_pool), pool, create_schema=create_schema)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("pool_file", type=Path, help="TOML file with 'questions' and 'polls'")
    parser.add_argument(
        "--create-schema", action="store_true", help="Create the tables before seeding"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    database_dsn = os.getenv("DB_CONNECTION")
    if database_dsn is None:
        raise RuntimeError("'DB_CONNECTION' environment variable is not set")

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO, stream=sys.stderr)

    pool = load_seed_pool(args.pool_file)
    _logger.info(
        "Seeding %d questions and %d polls from %s",
        len(pool.questions),
        len(pool.polls),
        args.pool_file,
    )
    asyncio.run(run_seed(database_dsn, pool, create_schema=args.create_schema))


if __name__ == "__main__":
    main()
