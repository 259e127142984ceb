"""Message formatting for questions, polls and custom content lists."""

from __future__ import annotations

import textwrap
from collections.abc import Iterable, Sequence

import discord
from discord.ext import commands

from qotd_discord.storage.models import (
    PING_ROLE_EVERYONE,
    PING_ROLE_OFF,
    CustomPoll,
    CustomQuestion,
    Poll,
)

POLL_OF_THE_DAY = "Poll of the day!"
POLL_SUBMISSION_FORMAT = "submit_poll Question\nOption1\nOption2"
POLL_PARTS = 3

# Discord message and embed limits
MESSAGE_CONTENT_LIMIT = 2000
EMBED_TITLE_LIMIT = 256
EMBED_DESCRIPTION_LIMIT = 4096

# longest ping prefix is a role mention: "<@&" + 20 digit snowflake + "> "
PING_PREFIX_LENGTH = 25
MAX_QUESTION_LENGTH = MESSAGE_CONTENT_LIMIT - PING_PREFIX_LENGTH
MAX_POLL_QUESTION_LENGTH = EMBED_TITLE_LIMIT
MAX_POLL_OPTION_LENGTH = 200
MAX_LIST_LINE_LENGTH = 200

# regional indicators A, B, C, ... used as poll reactions
OPTION_EMOJIS = tuple(chr(0x1F1E6 + index) for index in range(20))


def check_question_length(text: str) -> None:
    """:raise ValueError: If the question does not fit into one message with a ping"""
    if len(text) > MAX_QUESTION_LENGTH:
        raise ValueError(f"Questions can be at most {MAX_QUESTION_LENGTH} characters long")


def check_poll_lengths(parts: Sequence[str]) -> None:
    """:raise ValueError: If the poll question or an option is too long for an embed"""
    question, *options = parts
    if len(question) > MAX_POLL_QUESTION_LENGTH:
        raise ValueError(
            f"Poll questions can be at most {MAX_POLL_QUESTION_LENGTH} characters long"
        )
    if any(len(option) > MAX_POLL_OPTION_LENGTH for option in options):
        raise ValueError(f"Poll options can be at most {MAX_POLL_OPTION_LENGTH} characters long")


def format_with_ping(ping_role: str | None, message: str) -> str:
    """Prefix a message with the mention configured for a guild."""
    if ping_role is None or ping_role == PING_ROLE_OFF:
        return message
    if ping_role == PING_ROLE_EVERYONE:
        return f"@everyone {message}"
    return f"<@&{ping_role}> {message}"


def describe_ping_role(ping_role: str | None) -> str:
    if ping_role is None or ping_role == PING_ROLE_OFF:
        return "0 (off)"
    if ping_role == PING_ROLE_EVERYONE:
        return "1 (everyone)"
    return f"<@&{ping_role}>"


def parse_poll_submission(text: str) -> list[str]:
    """Split a poll submission into its question and two options.

    :raise ValueError: If the submission does not consist of exactly
      three non-empty lines, or if a line is too long to be posted
    """
    parts = [line.strip() for line in text.strip().splitlines()]
    if len(parts) != POLL_PARTS or not all(parts):
        raise ValueError(f"Expected {POLL_PARTS} non-empty lines, got {len(parts)}")
    check_poll_lengths(parts)
    return parts


def _paginate(header: str, lines: Iterable[str]) -> list[str]:
    # every page repeats the header and fits into one embed description
    paginator = commands.Paginator(prefix=header, suffix=None, max_size=EMBED_DESCRIPTION_LIMIT)
    for line in lines:
        paginator.add_line(textwrap.shorten(line, width=MAX_LIST_LINE_LENGTH))
    return paginator.pages


def render_question_list(questions: Sequence[CustomQuestion]) -> list[str]:
    return _paginate(
        "ID - Question", (f"{question.id} - {question.text}" for question in questions)
    )


def render_poll_list(polls: Sequence[CustomPoll]) -> list[str]:
    return _paginate("ID - Poll Question", (f"{poll.id} - {poll.question}" for poll in polls))


def poll_embed(poll: Poll | CustomPoll, *, color: discord.Color) -> discord.Embed:
    answers = poll.answers[: len(OPTION_EMOJIS)]
    description = "\n".join(
        f"{emoji} - {textwrap.shorten(answer, width=MAX_POLL_OPTION_LENGTH)}"
        for emoji, answer in zip(OPTION_EMOJIS, answers, strict=False)
    )
    title = textwrap.shorten(poll.question, width=EMBED_TITLE_LIMIT)
    return discord.Embed(title=title, description=description, color=color)


def poll_reactions(poll: Poll | CustomPoll) -> tuple[str, ...]:
    return OPTION_EMOJIS[: len(poll.answers)]


def help_embed(prefix: str) -> discord.Embed:
    commands_help = [
        f"**Current command prefix:** {prefix}",
        "**qotd** - Sends a random question of the day!",
        "**custom_qotd <Optional: id>** - Sends a question from the list of custom questions!",
        "**set_channel <channel>** - Sets which channel is used for questions of the day.",
        "**channel** - Shows which channel is currently used for questions of the day.",
        "**submit_qotd <question>** - Submit a custom question.",
        "**delete_question <id>** - Deletes the specified custom question.",
        "**list_qotd** - Lists all custom questions saved for the server.",
        "**ping_role <0 (default)/1/<role>>** - Sets the ping setting for question of the day.",
        "**poll** - Sends a random poll of the day!",
        "**submit_poll <question, option, option on separate lines>** - Submit a custom poll.",
        "**custom_poll <Optional: id>** - Sends a poll from the list of custom polls!",
        "**list_polls** - Lists all custom polls saved for the server.",
        "**delete_poll <id>** - Deletes the specified custom poll.",
        "**help** - Brings up this message!",
    ]
    return discord.Embed(
        title="Help", description="\n".join(commands_help), color=discord.Color.dark_green()
    )
