"""Run the rotation against a real PostgreSQL server.

Set ``QOTD_TEST_DATABASE_URL`` to a database the tests may create
temporary schemas in, e.g. ``postgresql://postgres@localhost/qotd_test``.
"""

import asyncio
import os
import uuid
from collections.abc import AsyncIterator

import asyncpg
import pytest

from qotd_discord.storage.errors import EmptyPoolError
from qotd_discord.storage.store import QotdStore

DATABASE_URL = os.getenv("QOTD_TEST_DATABASE_URL")

pytestmark = pytest.mark.skipif(DATABASE_URL is None, reason="QOTD_TEST_DATABASE_URL is not set")


@pytest.fixture
async def postgres_store() -> AsyncIterator[QotdStore]:
    schema = f"qotd_test_{uuid.uuid4().hex}"
    admin = await asyncpg.connect(DATABASE_URL)
    await admin.execute(f"CREATE SCHEMA {schema}")
    try:
        async with asyncpg.create_pool(
            DATABASE_URL, min_size=2, max_size=4, server_settings={"search_path": schema}
        ) as pool:
            store = QotdStore(pool)
            await store.create_schema()
            yield store
    finally:
        await admin.execute(f"DROP SCHEMA {schema} CASCADE")
        await admin.close()


@pytest.mark.asyncio
async def test_rotation_and_reset(postgres_store: QotdStore) -> None:
    await postgres_store.seed_questions(["A", "B", "C"])

    first_rotation = [(await postgres_store.draw_question()).text for _ in range(3)]
    fourth = await postgres_store.draw_question()

    assert sorted(first_rotation) == ["A", "B", "C"]
    assert fourth.text in {"A", "B", "C"}


@pytest.mark.asyncio
async def test_concurrent_draws_are_exclusive(postgres_store: QotdStore) -> None:
    await postgres_store.seed_questions([f"Question {index}" for index in range(4)])

    drawn = await asyncio.gather(*(postgres_store.draw_question() for _ in range(4)))

    assert len({question.id for question in drawn}) == 4


@pytest.mark.asyncio
async def test_empty_pool(postgres_store: QotdStore) -> None:
    with pytest.raises(EmptyPoolError):
        await postgres_store.draw_poll()


@pytest.mark.asyncio
async def test_channel_upsert(postgres_store: QotdStore) -> None:
    await postgres_store.set_channel("123", "456")
    await postgres_store.set_channel("123", "789")

    channel = await postgres_store.get_channel("123")

    assert channel is not None
    assert channel.channel_id == "789"


@pytest.mark.asyncio
async def test_reseeding_skips_present_entries(postgres_store: QotdStore) -> None:
    await postgres_store.seed_questions(["A", "B"])
    await postgres_store.seed_polls([["Q", "Yes", "No"]])

    assert await postgres_store.seed_questions(["A", "B", "C"]) == 1
    assert await postgres_store.seed_polls([["Q", "Yes", "No"]]) == 0
