import asyncpg
import pytest

from qotd_discord.storage.errors import LimitExceededError, StorageError
from qotd_discord.storage.models import ChannelConfig, CustomQuestion, PingRoleConfig
from qotd_discord.storage.store import QotdStore, load_schema
from tests.storage.fake_postgres import FakeDatabase


@pytest.mark.asyncio
async def test_channel_upsert_replaces_previous_channel(
    database: FakeDatabase, store: QotdStore
) -> None:
    await store.set_channel("123", "456")
    await store.set_channel("123", "789")

    assert list(database.tables["channels"].values()) == [
        {"guild_id": "123", "channel_id": "789"}
    ]
    assert await store.get_channel("123") == ChannelConfig(guild_id="123", channel_id="789")


@pytest.mark.asyncio
async def test_get_channel_of_unconfigured_guild(store: QotdStore) -> None:
    assert await store.get_channel("123") is None


@pytest.mark.asyncio
async def test_ping_role_upsert(store: QotdStore) -> None:
    await store.set_ping_role("123", "1")
    await store.set_ping_role("123", "987654321")

    ping_role = await store.get_ping_role("123")

    assert ping_role == PingRoleConfig(guild_id="123", role_id="987654321")
    assert not ping_role.is_off
    assert not ping_role.is_everyone
    assert await store.get_ping_role("999") is None


@pytest.mark.asyncio
async def test_custom_questions_are_scoped_to_their_guild(store: QotdStore) -> None:
    first = await store.add_custom_question("123", "Favourite pizza topping?")
    await store.add_custom_question("999", "Somebody else's question")

    assert await store.list_custom_questions("123") == [
        CustomQuestion(id=first.id, guild_id="123", text="Favourite pizza topping?")
    ]
    assert await store.get_custom_question("123", first.id) == first
    assert await store.get_custom_question("999", first.id) is None
    assert await store.count_custom_questions("123") == 1


@pytest.mark.asyncio
async def test_delete_custom_question_of_other_guild_is_refused(
    database: FakeDatabase, store: QotdStore
) -> None:
    question = await store.add_custom_question("123", "Favourite pizza topping?")

    assert not await store.delete_custom_question("999", question.id)
    assert question.id in database.tables["custom_questions"]

    assert await store.delete_custom_question("123", question.id)
    assert await store.list_custom_questions("123") == []


@pytest.mark.asyncio
async def test_custom_question_limit(store: QotdStore) -> None:
    for index in range(3):
        await store.add_custom_question("123", f"Question {index}")

    with pytest.raises(LimitExceededError) as excinfo:
        await store.add_custom_question("123", "One too many")

    assert excinfo.value.limit == 3
    assert await store.count_custom_questions("123") == 3
    # the limit applies per guild
    await store.add_custom_question("999", "Another guild")


@pytest.mark.asyncio
async def test_custom_polls(store: QotdStore) -> None:
    poll = await store.add_custom_poll("123", ["Which is better?", "Cats", "Dogs"])

    assert poll.options == ("Which is better?", "Cats", "Dogs")
    assert await store.list_custom_polls("123") == [poll]
    assert await store.get_custom_poll("123", poll.id) == poll
    assert await store.count_custom_polls("123") == 1

    await store.add_custom_poll("123", ["Pick a drink", "Coffee", "Tea"])
    with pytest.raises(LimitExceededError):
        await store.add_custom_poll("123", ["Pick a season", "Summer", "Winter"])

    assert not await store.delete_custom_poll("999", poll.id)
    assert await store.delete_custom_poll("123", poll.id)
    assert await store.get_custom_poll("123", poll.id) is None


@pytest.mark.parametrize(
    "failure",
    [
        ConnectionResetError("connection reset by peer"),
        asyncpg.InterfaceError("pool is closed"),
    ],
)
@pytest.mark.asyncio
async def test_database_failures_raise_storage_error(
    database: FakeDatabase, store: QotdStore, failure: Exception
) -> None:
    database.insert_question("A")
    database.failure = failure

    with pytest.raises(StorageError) as excinfo:
        await store.draw_question()

    assert excinfo.value.__cause__ is failure


@pytest.mark.asyncio
async def test_create_schema_executes_packaged_sql(
    database: FakeDatabase, store: QotdStore
) -> None:
    await store.create_schema()

    assert database.schema_created


def test_packaged_schema_defines_all_tables() -> None:
    schema = load_schema()

    tables = ("channels", "questions", "custom_questions", "ping_roles", "polls", "custom_polls")
    for table in tables:
        assert f"CREATE TABLE {table} (" in schema
    assert "poll_string varchar[] NOT NULL" in schema
