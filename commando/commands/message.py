"""The command-aware wrapper around an incoming chat message."""

from __future__ import annotations

import asyncio
import logging
import math
import re
import time
from typing import TYPE_CHECKING, Any

import hikari

from ..core.utils import build_usage, calculate_member_permissions, format_permissions, split_message
from ..errors import CommandFormatError, FriendlyError

if TYPE_CHECKING:
    from ..core.client import CommandoClient
    from .base import Command

logger = logging.getLogger(__name__)

_ARG_RE = re.compile(r"""\s*(?:("|')(.*?)\1|(\S+))\s*""", re.DOTALL)
_ARG_RE_DOUBLE = re.compile(r"""\s*(?:(")(.*?)"|(\S+))\s*""", re.DOTALL)
_WRAPPED_RE = re.compile(r"""^("|')(.*)\1$""", re.DOTALL)
_WRAPPED_RE_DOUBLE = re.compile(r"""^(")(.*)"$""", re.DOTALL)


class CommandMessage:
    """A message that invoked (or tried to invoke) a command.

    Responses sent through :meth:`say`, :meth:`reply`, :meth:`direct` and
    :meth:`code` are tracked so that, when the triggering message is edited
    and the command runs again, earlier responses are edited in place rather
    than sent anew.
    """

    def __init__(
        self,
        client: CommandoClient,
        message: hikari.Message,
        command: Command | None = None,
        arg_string: str | None = None,
        pattern_matches: re.Match[str] | None = None,
    ) -> None:
        self.client = client
        self.message = message
        self.command = command
        self.arg_string = arg_string
        self.pattern_matches = pattern_matches
        self.responses: list[hikari.Message] = []
        self._previous_responses: list[hikari.Message] = []
        self._previous_index = 0

    @property
    def author(self) -> hikari.User:
        return self.message.author

    @property
    def member(self) -> hikari.Member | None:
        return getattr(self.message, "member", None)

    @property
    def guild_id(self) -> hikari.Snowflake | None:
        return self.message.guild_id

    @property
    def channel_id(self) -> hikari.Snowflake:
        return self.message.channel_id

    @property
    def guild(self) -> hikari.GatewayGuild | None:
        if self.guild_id is None:
            return None
        return self.client.cache.get_guild(self.guild_id)

    @property
    def channel(self) -> hikari.GuildChannel | None:
        if self.guild_id is None:
            return None
        return self.client.cache.get_guild_channel(self.channel_id)

    @property
    def command_prefix(self) -> str | None:
        if self.guild_id is None:
            return self.client.command_prefix
        return self.client.guild_state(self.guild_id).command_prefix

    def usage(
        self,
        arg_string: str | None = None,
        prefix: str | None | hikari.UndefinedType = hikari.UNDEFINED,
        user: hikari.User | None | hikari.UndefinedType = hikari.UNDEFINED,
    ) -> str:
        if prefix is hikari.UNDEFINED:
            prefix = self.command_prefix
        return self.command.usage(arg_string, prefix, user)

    def any_usage(
        self,
        command: str,
        prefix: str | None | hikari.UndefinedType = hikari.UNDEFINED,
        user: hikari.User | None | hikari.UndefinedType = hikari.UNDEFINED,
    ) -> str:
        if self.guild_id is None:
            return build_usage(command, None, None)
        if prefix is hikari.UNDEFINED:
            prefix = self.command_prefix
        if user is hikari.UNDEFINED:
            user = self.client.user
        return build_usage(command, prefix, user)

    def parse_args(self) -> str | list[str]:
        arg_string = self.arg_string or ""
        if self.command.args_type == "single":
            wrapped = _WRAPPED_RE if self.command.args_single_quotes else _WRAPPED_RE_DOUBLE
            return wrapped.sub(r"\2", arg_string.strip())
        if self.command.args_type == "multiple":
            return self.parse_arg_string(arg_string, self.command.args_count, self.command.args_single_quotes)
        raise ValueError(f'Unknown args_type "{self.command.args_type}".')

    @staticmethod
    def parse_arg_string(arg_string: str, arg_count: float = 0, allow_single_quote: bool = True) -> list[str]:
        """
        Split an argument string into at most ``arg_count`` arguments.

        Quoted runs are kept together without their quotes. Once the limit is
        reached the final argument receives the rest of the string as-is.
        """
        pattern = _ARG_RE if allow_single_quote else _ARG_RE_DOUBLE
        remaining = arg_count or len(arg_string)
        result: list[str] = []
        position = 0
        matched = True

        while True:
            remaining -= 1
            if remaining == 0:
                break
            match = pattern.match(arg_string, position)
            if match is None:
                matched = False
                break
            result.append(match.group(2) if match.group(2) is not None else match.group(3))
            position = match.end()

        if matched and position < len(arg_string):
            wrapped = _WRAPPED_RE if allow_single_quote else _WRAPPED_RE_DOUBLE
            result.append(wrapped.sub(r"\2", arg_string[position:]))
        return result

    async def run(self) -> list[hikari.Message] | None:
        command = self.command

        if command.guild_only and self.guild_id is None:
            return await self._block("guildOnly")

        permission = command.has_permission(self)
        if permission is not True:
            return await self._block(
                "permission", {"response": permission if isinstance(permission, str) else None}
            )

        if self.guild_id is not None and command.client_permissions:
            missing = self._missing_client_permissions(command.client_permissions)
            if missing:
                return await self._block("clientPermissions", {"missing": missing})

        throttle = command.throttle(self.author.id)
        if throttle is not None and throttle.usages + 1 > command.throttling["usages"]:
            remaining = throttle.start + command.throttling["duration"] - time.monotonic()
            return await self._block("throttling", {"throttle": throttle, "remaining": remaining})

        args: Any = self.pattern_matches
        if args is None and command.args_collector is not None:
            collector_args = command.args_collector.args
            count = math.inf if collector_args[-1].infinite else len(collector_args)
            provided = self.parse_arg_string((self.arg_string or "").strip(), count, command.args_single_quotes)
            result = await command.args_collector.obtain(self, provided)
            if result.cancelled:
                if not result.prompts:
                    await self.reply(str(CommandFormatError(self)))
                else:
                    await self.reply("Cancelled command.")
                return self.responses
            args = result.values
        if args is None:
            args = self.parse_args()
        from_pattern = self.pattern_matches is not None

        if throttle is not None:
            throttle.usages += 1

        try:
            logger.debug(f"Running command {command.qualified_name}.")
            await self.client.events.emit("command_run", command, self, args, from_pattern)
            await command.run(self, args, from_pattern)
        except Exception as e:
            await self.client.events.emit("command_error", command, e, self, args, from_pattern)
            if isinstance(e, FriendlyError):
                await self.reply(str(e))
            else:
                logger.error(f"Error in command {command.qualified_name}: {e}")
                await command.on_error(e, self, args, from_pattern)

        return self.responses

    async def _block(self, reason: str, data: dict[str, Any] | None = None) -> list[hikari.Message]:
        logger.debug(f"Command {self.command.qualified_name} blocked; {reason}")
        await self.client.events.emit("command_block", self, reason, data)
        await self.command.on_block(self, reason, data)
        return self.responses

    def _missing_client_permissions(self, required: hikari.Permissions) -> list[str]:
        me = self.client.user
        guild = self.guild
        if me is None or guild is None:
            return []
        bot_member = self.client.cache.get_member(self.guild_id, me.id)
        if bot_member is None:
            return []
        actual = calculate_member_permissions(bot_member, guild, self.channel)
        return format_permissions(required & ~actual)

    async def say(self, content: str | None = None, *, embed: hikari.Embed | None = None) -> hikari.Message:
        """Send a plain response to the channel the command came from."""
        return await self._respond(self.channel_id, content, embed)

    async def reply(self, content: str | None = None, *, embed: hikari.Embed | None = None) -> hikari.Message:
        """Respond mentioning the author (in guilds) or plainly (in DMs)."""
        if content is not None and self.guild_id is not None:
            content = f"{self.author.mention}, {content}"
        return await self._respond(self.channel_id, content, embed)

    async def direct(self, content: str | None = None, *, embed: hikari.Embed | None = None) -> hikari.Message:
        """Send the response to the author's DMs."""
        dm_channel = await self.client.rest.create_dm_channel(self.author.id)
        return await self._respond(dm_channel.id, content, embed)

    async def code(self, lang: str, content: str) -> hikari.Message:
        escaped = content.replace("```", "`\u200b``")
        return await self.say(f"```{lang}\n{escaped}\n```")

    async def edit_response(
        self, response: hikari.Message, content: str | None = None, *, embed: hikari.Embed | None = None
    ) -> hikari.Message:
        edited = await self.client.rest.edit_message(response.channel_id, response.id, content, embed=embed)
        for index, existing in enumerate(self.responses):
            if existing.id == response.id:
                self.responses[index] = edited
        return edited

    async def _respond(
        self, channel_id: hikari.Snowflakeish, content: str | None, embed: hikari.Embed | None
    ) -> hikari.Message:
        chunks: list[str | None] = split_message(content) if content else [None]
        sent = None
        for index, chunk in enumerate(chunks):
            sent = await self._send_or_edit(channel_id, chunk, embed if index == len(chunks) - 1 else None)
        return sent

    async def _send_or_edit(
        self, channel_id: hikari.Snowflakeish, content: str | None, embed: hikari.Embed | None
    ) -> hikari.Message:
        rest = self.client.rest
        if self._previous_index < len(self._previous_responses):
            previous = self._previous_responses[self._previous_index]
            self._previous_index += 1
            if previous.channel_id == channel_id:
                response = await rest.edit_message(channel_id, previous.id, content, embed=embed)
                self.responses.append(response)
                return response
            await rest.delete_message(previous.channel_id, previous.id)

        response = await rest.create_message(
            channel_id,
            content if content is not None else hikari.UNDEFINED,
            embed=embed if embed is not None else hikari.UNDEFINED,
        )
        self.responses.append(response)
        return response

    def adopt_responses(self, previous: CommandMessage) -> None:
        """Reuse the responses of an earlier run of the same (edited) message."""
        self._previous_responses = list(previous.responses)
        self._previous_index = 0

    async def finalize(self) -> None:
        """Delete responses of an earlier run that this run didn't reuse."""
        leftovers = self._previous_responses[self._previous_index :]
        self._previous_responses = []
        self._previous_index = 0
        for response in leftovers:
            try:
                await self.client.rest.delete_message(response.channel_id, response.id)
            except hikari.NotFoundError:
                logger.debug(f"Response {response.id} was already deleted")

    async def wait_for_response(self, timeout: float | None) -> hikari.Message | None:
        """Wait for the author's next message in the same channel."""
        author_id = self.author.id
        channel_id = self.channel_id
        try:
            event = await self.client.hikari_bot.wait_for(
                hikari.MessageCreateEvent,
                timeout=timeout,
                predicate=lambda e: e.author_id == author_id and e.channel_id == channel_id,
            )
        except asyncio.TimeoutError:
            return None
        return event.message

    async def delete_responses(self) -> None:
        """Delete every response sent while running this message."""
        responses, self.responses = self.responses, []
        for response in responses:
            try:
                await self.client.rest.delete_message(response.channel_id, response.id)
            except hikari.NotFoundError:
                logger.debug(f"Response {response.id} was already deleted")
