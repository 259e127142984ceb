from __future__ import annotations

import logging

import discord
from discord.ext import commands
from discord.utils import get as discord_get

from qotd_discord.qotd import formatting
from qotd_discord.qotd.config import QotdConfig
from qotd_discord.qotd.picker import CustomContentPicker
from qotd_discord.storage.errors import EmptyPoolError, LimitExceededError, StorageError
from qotd_discord.storage.models import PING_ROLE_EVERYONE, PING_ROLE_OFF, CustomPoll, Poll
from qotd_discord.storage.store import QotdStore

_logger = logging.getLogger(__name__)

CHANNEL_NOT_SET = "Channel not set!"
SOMETHING_WENT_WRONG = "Something went wrong!"


class QotdCog(commands.Cog):
    """Question and poll of the day commands."""

    def __init__(self, bot: commands.Bot, config: QotdConfig, store: QotdStore) -> None:
        self.bot = bot
        self.config = config
        self.store = store
        self.picker = CustomContentPicker(allow_repeats=config.allow_custom_repeats)
        _logger.info("Cog 'QOTD' has been initialized")

    async def cog_check(self, ctx: commands.Context) -> bool:
        """Only administrators and members with the QOTD admin role may use the bot."""
        if ctx.guild is None:
            raise commands.NoPrivateMessage
        if ctx.author.guild_permissions.administrator:
            return True
        if discord_get(ctx.author.roles, name=self.config.admin_role_name) is not None:
            return True

        _logger.info(
            "%s (%r) tried to run %r in guild %r without permission",
            ctx.author.display_name,
            ctx.author.id,
            ctx.command.name,
            ctx.guild.id,
        )
        raise commands.CheckFailure(
            f"Only administrators and members with the {self.config.admin_role_name!r} role "
            "can use this command."
        )

    async def cog_command_error(self, ctx: commands.Context, error: Exception) -> None:
        """Reply to the invoking user with a description of the error."""
        if isinstance(error, commands.CommandInvokeError):
            error = error.original

        if isinstance(error, EmptyPoolError):
            _logger.error("Pool %r is empty, it has to be seeded", error.table)
            await ctx.reply(
                f"There is nothing in the {error.table} pool yet. "
                "Please ask the bot operator to seed it."
            )
        elif isinstance(error, LimitExceededError):
            await ctx.reply(
                f"Too many entries saved (limit is {error.limit})! "
                "Please delete some before adding more!"
            )
        elif isinstance(error, StorageError):
            _logger.error("Storage error in command %r", ctx.command.name, exc_info=error)
            await ctx.reply(SOMETHING_WENT_WRONG)
        elif isinstance(error, commands.NoPrivateMessage):
            await ctx.reply("This command can only be used in a server.")
        elif isinstance(error, commands.CheckFailure):
            await ctx.reply(str(error))
        elif isinstance(error, commands.UserInputError):
            await ctx.reply(f"{error} Use `{self.config.command_prefix}help` for usage.")
        else:
            _logger.error(
                "An error occurred while running command %r:", ctx.command.name, exc_info=error
            )
            await ctx.reply(SOMETHING_WENT_WRONG)

    @commands.command(name="help")
    async def show_help(self, ctx: commands.Context) -> None:
        """List all commands."""
        await ctx.send(
            content=ctx.author.mention, embed=formatting.help_embed(self.config.command_prefix)
        )

    # configuration

    @commands.command(name="set_channel")
    async def set_channel(self, ctx: commands.Context, channel: discord.TextChannel) -> None:
        """Set the channel questions and polls are posted to."""
        if channel.guild.id != ctx.guild.id:
            await ctx.reply("Channel not found on this server!")
            return
        await self.store.set_channel(str(ctx.guild.id), str(channel.id))
        await ctx.reply("Channel set!")

    @commands.command(name="channel")
    async def channel(self, ctx: commands.Context) -> None:
        """Show the channel questions and polls are posted to."""
        channel_config = await self.store.get_channel(str(ctx.guild.id))
        if channel_config is None:
            await ctx.reply(CHANNEL_NOT_SET)
        else:
            await ctx.reply(f"Channel is set to <#{channel_config.channel_id}>")

    @commands.command(name="ping_role")
    async def ping_role(self, ctx: commands.Context, setting: str | None = None) -> None:
        """Set the role mentioned with each post: 0 for none, 1 for everyone, or a role."""
        guild_id = str(ctx.guild.id)
        if setting is None:
            current = await self.store.get_ping_role(guild_id)
            embed = discord.Embed(
                title="Parameters",
                description="<role> - Specific role\n1 - Everyone\n0 - Off (default)",
            )
            await ctx.send(
                content=(
                    f"{ctx.author.mention} Use this command to set the role to be pinged "
                    "when posting a qotd\nCurrent setting is "
                    f"{formatting.describe_ping_role(current.role_id if current else None)}"
                ),
                embed=embed,
            )
            return

        if setting in (PING_ROLE_OFF, PING_ROLE_EVERYONE):
            role_id = setting
        else:
            role = await commands.RoleConverter().convert(ctx, setting)
            role_id = str(role.id)

        await self.store.set_ping_role(guild_id, role_id)
        await ctx.reply("Ping role updated!")

    # global pools

    @commands.command(name="qotd")
    async def qotd(self, ctx: commands.Context) -> None:
        """Post the next question of the day."""
        target = await self._target_channel(ctx)
        if target is None:
            return
        question = await self.store.draw_question()
        _logger.info("Posting question %d to guild %d", question.id, ctx.guild.id)
        await target.send(await self._with_ping(ctx, question.text))

    @commands.command(name="poll")
    async def poll(self, ctx: commands.Context) -> None:
        """Post the next poll of the day."""
        target = await self._target_channel(ctx)
        if target is None:
            return
        poll = await self.store.draw_poll()
        _logger.info("Posting poll %d to guild %d", poll.id, ctx.guild.id)
        await self._post_poll(ctx, target, poll, color=discord.Color.orange())

    # custom questions

    @commands.command(name="custom_qotd")
    async def custom_qotd(self, ctx: commands.Context, question_id: int | None = None) -> None:
        """Post a custom question, either the one with the given id or a random one."""
        guild_id = str(ctx.guild.id)
        target = await self._target_channel(ctx)
        if target is None:
            return

        if question_id is not None:
            question = await self.store.get_custom_question(guild_id, question_id)
            if question is None:
                await ctx.reply("Question does not exist!")
                return
        else:
            questions = await self.store.list_custom_questions(guild_id)
            question = self.picker.pick("questions", guild_id, questions)
            if question is None:
                await ctx.reply("No custom questions found!")
                return

        await target.send(await self._with_ping(ctx, question.text))

    @commands.command(name="submit_qotd")
    async def submit_qotd(self, ctx: commands.Context, *, question: str) -> None:
        """Save a custom question for this server."""
        question = question.strip()
        if not question:
            await ctx.reply("Question not accepted")
            return
        try:
            formatting.check_question_length(question)
        except ValueError as error:
            await ctx.reply(f"Question not accepted. {error}.")
            return
        saved = await self.store.add_custom_question(str(ctx.guild.id), question)
        _logger.info("Custom question %d saved for guild %d", saved.id, ctx.guild.id)
        await ctx.reply(f"Question Submitted (ID {saved.id})")

    @commands.command(name="delete_question")
    async def delete_question(self, ctx: commands.Context, question_id: int | None = None) -> None:
        """Delete a custom question. Without an id, list the saved questions."""
        guild_id = str(ctx.guild.id)
        if question_id is None:
            await self._list_questions(ctx, "Please specify the ID of question")
            return

        if await self.store.delete_custom_question(guild_id, question_id):
            await ctx.reply("Question deleted!")
        else:
            await ctx.reply("Question not found!")

    @commands.command(name="list_qotd")
    async def list_qotd(self, ctx: commands.Context) -> None:
        """List all custom questions of this server."""
        await self._list_questions(ctx, "Here's a list of all saved custom questions")

    # custom polls

    @commands.command(name="custom_poll")
    async def custom_poll(self, ctx: commands.Context, poll_id: int | None = None) -> None:
        """Post a custom poll, either the one with the given id or a random one."""
        guild_id = str(ctx.guild.id)
        target = await self._target_channel(ctx)
        if target is None:
            return

        if poll_id is not None:
            poll = await self.store.get_custom_poll(guild_id, poll_id)
            if poll is None:
                await ctx.reply("Poll does not exist!")
                return
        else:
            polls = await self.store.list_custom_polls(guild_id)
            poll = self.picker.pick("polls", guild_id, polls)
            if poll is None:
                await ctx.reply("No custom polls saved!\nAdd some with submit_poll!")
                return

        await self._post_poll(ctx, target, poll, color=discord.Color.red())

    @commands.command(name="submit_poll")
    async def submit_poll(self, ctx: commands.Context, *, submission: str) -> None:
        """Save a custom poll: the question and two options on separate lines."""
        try:
            options = formatting.parse_poll_submission(submission)
        except ValueError as error:
            await ctx.send(
                content=(
                    f"{ctx.author.mention} {error}. "
                    "Follow this format when submitting new polls!"
                ),
                embed=discord.Embed(
                    title="Custom poll format",
                    description=formatting.POLL_SUBMISSION_FORMAT,
                    color=discord.Color.dark_blue(),
                ),
            )
            return

        saved = await self.store.add_custom_poll(str(ctx.guild.id), options)
        _logger.info("Custom poll %d saved for guild %d", saved.id, ctx.guild.id)
        await ctx.reply(f"Poll Submitted (ID {saved.id})")

    @commands.command(name="delete_poll")
    async def delete_poll(self, ctx: commands.Context, poll_id: int | None = None) -> None:
        """Delete a custom poll. Without an id, list the saved polls."""
        guild_id = str(ctx.guild.id)
        if poll_id is None:
            await self._list_polls(ctx, "Please specify the ID of poll")
            return

        if await self.store.delete_custom_poll(guild_id, poll_id):
            await ctx.reply("Poll deleted!")
        else:
            await ctx.reply("Poll not found!")

    @commands.command(name="list_polls")
    async def list_polls(self, ctx: commands.Context) -> None:
        """List all custom polls of this server."""
        await self._list_polls(ctx, "Here's a list of all saved custom polls")

    # helpers

    async def _target_channel(self, ctx: commands.Context) -> discord.abc.Messageable | None:
        """Get the configured posting channel, replying to the user if there is none."""
        channel_config = await self.store.get_channel(str(ctx.guild.id))
        channel = None
        if channel_config is not None:
            channel = ctx.guild.get_channel(int(channel_config.channel_id))
        if channel is None:
            await ctx.reply(CHANNEL_NOT_SET)
        return channel

    async def _with_ping(self, ctx: commands.Context, message: str) -> str:
        ping_role = await self.store.get_ping_role(str(ctx.guild.id))
        return formatting.format_with_ping(ping_role.role_id if ping_role else None, message)

    async def _post_poll(
        self,
        ctx: commands.Context,
        target: discord.abc.Messageable,
        poll: Poll | CustomPoll,
        *,
        color: discord.Color,
    ) -> None:
        message = await target.send(
            content=await self._with_ping(ctx, formatting.POLL_OF_THE_DAY),
            embed=formatting.poll_embed(poll, color=color),
        )
        for emoji in formatting.poll_reactions(poll):
            await message.add_reaction(emoji)

    async def _list_questions(self, ctx: commands.Context, header: str) -> None:
        questions = await self.store.list_custom_questions(str(ctx.guild.id))
        if not questions:
            await ctx.reply("No custom questions found!")
            return
        await self._send_pages(
            ctx,
            header,
            "Questions",
            formatting.render_question_list(questions),
            color=discord.Color.dark_blue(),
        )

    async def _list_polls(self, ctx: commands.Context, header: str) -> None:
        polls = await self.store.list_custom_polls(str(ctx.guild.id))
        if not polls:
            await ctx.reply("No custom polls found!")
            return
        await self._send_pages(
            ctx, header, "Polls", formatting.render_poll_list(polls), color=discord.Color.red()
        )

    async def _send_pages(
        self,
        ctx: commands.Context,
        header: str,
        title: str,
        pages: list[str],
        *,
        color: discord.Color,
    ) -> None:
        """Send one embed per page, the first one together with the header."""
        for number, page in enumerate(pages, start=1):
            if len(pages) > 1:
                page_title = f"{title} ({number}/{len(pages)})"
            else:
                page_title = title
            await ctx.send(
                content=f"{ctx.author.mention} {header}" if number == 1 else None,
                embed=discord.Embed(title=page_title, description=page, color=color),
            )
