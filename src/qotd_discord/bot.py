from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
import tomllib
from pathlib import Path
from typing import Literal

import asyncpg
import discord
from discord.ext import commands
from pydantic import BaseModel, Field

from qotd_discord.qotd.cog import QotdCog
from qotd_discord.qotd.config import DatabaseConfig, QotdConfig
from qotd_discord.storage.store import QotdStore

# silence warning about missing discord voice support
# https://github.com/Rapptz/discord.py/issues/1719#issuecomment-437703581
discord.VoiceClient.warn_nacl = False

_logger = logging.getLogger(__name__)


class Config(BaseModel):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    qotd: QotdConfig = Field(default_factory=QotdConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)


def load_config(config_file: Path) -> Config:
    return Config(**tomllib.loads(config_file.read_text()))


def read_environment() -> tuple[str, str]:
    """Return the Discord bot token and the database connection string."""
    for name in ("DISCORD_TOKEN", "DB_CONNECTION"):
        if name not in os.environ:
            raise RuntimeError(f"Missing environment variable {name!r}")
    return os.environ["DISCORD_TOKEN"], os.environ["DB_CONNECTION"]


class QotdBot(commands.Bot):
    async def on_ready(self) -> None:
        _logger.info("%s online", self.user)


async def run_bot(config: Config, auth_token: str, database_dsn: str) -> None:
    intents = discord.Intents.default()
    intents.message_content = True

    async with asyncpg.create_pool(
        database_dsn,
        min_size=config.database.min_pool_size,
        max_size=config.database.max_pool_size,
    ) as pool:
        store = QotdStore(
            pool,
            custom_question_limit=config.qotd.custom_question_limit,
            custom_poll_limit=config.qotd.custom_poll_limit,
        )

        async with QotdBot(
            intents=intents,
            command_prefix=config.qotd.command_prefix,
            case_insensitive=True,
            help_command=None,
        ) as bot:
            await bot.add_cog(QotdCog(bot, config.qotd, store))
            await bot.start(auth_token)


def main() -> None:
    parser = argparse.ArgumentParser(description="Question of the Day Discord Bot")
    parser.add_argument("--config-file", type=Path, required=True, help="Configuration file")
    args = parser.parse_args()

    bot_auth_token, database_dsn = read_environment()
    config = load_config(args.config_file)

    logging.basicConfig(
        level=config.log_level,
        stream=sys.stdout,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        asyncio.run(run_bot(config, auth_token=bot_auth_token, database_dsn=database_dsn))
    except KeyboardInterrupt:
        _logger.info("Received KeyboardInterrupt, exiting...")


if __name__ == "__main__":
    main()
