"""Turns incoming and edited chat messages into command runs."""

from __future__ import annotations

import inspect
import logging
import re
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Union

import hikari

from ..commands.message import CommandMessage

if TYPE_CHECKING:
    from ..commands.registry import CommandRegistry
    from .client import CommandoClient

logger = logging.getLogger(__name__)

InhibitorResult = Union[str, tuple[str, str], None]
Inhibitor = Callable[[CommandMessage], Union[InhibitorResult, Awaitable[InhibitorResult]]]

_PREFIXLESS_PATTERN = re.compile(r"^([^\s]+)", re.IGNORECASE)


class CommandDispatcher:
    """Parses messages into commands, applies inhibitors and runs them.

    Results of handled messages are kept for the client's
    ``command_editable_duration`` so that editing the triggering message
    runs the command again, editing the earlier responses in place.
    """

    def __init__(self, client: CommandoClient, registry: CommandRegistry) -> None:
        self.client = client
        self.registry = registry
        self.inhibitors: list[Inhibitor] = []
        # (author id, channel id) pairs currently answering an argument prompt
        self.awaiting: set[tuple[int, int]] = set()
        self._command_patterns: dict[str | None, re.Pattern[str]] = {}
        self._results: dict[int, tuple[CommandMessage | None, float]] = {}

    def add_inhibitor(self, inhibitor: Inhibitor) -> bool:
        """
        Add a function that may block commands from running.

        An inhibitor receives the :class:`CommandMessage` and returns ``None``
        to let it through, a reason string to block it silently, or a
        ``(reason, response)`` tuple to block it and reply with ``response``.
        It may be a plain function or a coroutine function.
        """
        if not callable(inhibitor):
            raise TypeError("The inhibitor must be a function.")
        if inhibitor in self.inhibitors:
            return False
        self.inhibitors.append(inhibitor)
        return True

    def remove_inhibitor(self, inhibitor: Inhibitor) -> bool:
        if inhibitor not in self.inhibitors:
            return False
        self.inhibitors.remove(inhibitor)
        return True

    async def handle_message(self, message: hikari.Message) -> None:
        if not self.should_handle(message):
            return
        await self._handle(message, edited=False)

    async def handle_edit(self, message: hikari.PartialMessage, old_message: hikari.PartialMessage | None = None) -> None:
        if not self.should_handle(message, old_message):
            return
        await self._handle(message, edited=True)

    def should_handle(self, message: Any, old_message: Any = None) -> bool:
        author = message.author
        if not author or author.is_bot:
            return False
        me = self.client.user
        if me is not None and author.id == me.id:
            return False
        if (author.id, message.channel_id) in self.awaiting:
            return False
        if not message.content:
            return False
        if old_message is not None and old_message.content == message.content:
            return False
        return True

    async def _handle(self, message: Any, edited: bool) -> None:
        self._sweep_results()

        old_cmd_msg = None
        if edited:
            if message.id not in self._results:
                return
            old_cmd_msg = self._results[message.id][0]

        cmd_msg = self.parse_message(message)
        if cmd_msg is None:
            if old_cmd_msg is not None:
                await old_cmd_msg.delete_responses()
            self._cache_result(message, edited, None)
            return

        if old_cmd_msg is not None:
            cmd_msg.adopt_responses(old_cmd_msg)

        inhibited = await self.inhibit(cmd_msg)
        if inhibited is not None:
            _, response = inhibited
            if response:
                await cmd_msg.reply(response)
        elif cmd_msg.command is None:
            logger.debug(f"Unknown command in message {message.id}")
            await self.client.events.emit("unknown_command", cmd_msg)
        elif not cmd_msg.command.is_enabled_in(message.guild_id):
            if cmd_msg.command.unknown:
                await self.client.events.emit("unknown_command", cmd_msg)
            else:
                await cmd_msg.reply(f"The `{cmd_msg.command.name}` command is disabled.")
        else:
            await cmd_msg.run()

        await cmd_msg.finalize()
        self._cache_result(message, edited, cmd_msg)

    async def inhibit(self, cmd_msg: CommandMessage) -> tuple[str, str | None] | None:
        """Run the inhibitors; return ``(reason, response)`` for the first one that blocks."""
        for inhibitor in self.inhibitors:
            result = inhibitor(cmd_msg)
            if inspect.isawaitable(result):
                result = await result
            if not result:
                continue

            if isinstance(result, tuple):
                reason, response = result
            else:
                reason, response = result, None
            logger.debug(f"Command message {cmd_msg.message.id} inhibited: {reason}")
            await self.client.events.emit("command_block", cmd_msg, reason, None)
            return reason, response
        return None

    def parse_message(self, message: Any) -> CommandMessage | None:
        """Find the command a message invokes, if any."""
        content = message.content

        for command in self.registry.commands.values():
            if not command.patterns:
                continue
            for pattern in command.patterns:
                match = pattern.search(content)
                if match:
                    return CommandMessage(self.client, message, command, None, match)

        if message.guild_id is not None:
            prefix = self.client.guild_state(message.guild_id).command_prefix
        else:
            prefix = self.client.command_prefix

        pattern = self._build_command_pattern(prefix)
        cmd_msg = self._match_default(message, pattern, 2) if pattern is not None else None
        if cmd_msg is None and message.guild_id is None:
            cmd_msg = self._match_default(message, _PREFIXLESS_PATTERN, 1)
        return cmd_msg

    def _match_default(self, message: Any, pattern: re.Pattern[str], name_index: int) -> CommandMessage | None:
        content = message.content
        match = pattern.match(content)
        if match is None:
            return None

        arg_string = content[match.end(name_index) :]
        commands = self.registry.find_commands(match.group(name_index), exact=True)
        if len(commands) != 1 or not commands[0].default_handling:
            return CommandMessage(self.client, message, self.registry.unknown_command, arg_string)
        return CommandMessage(self.client, message, commands[0], arg_string)

    def _build_command_pattern(self, prefix: str | None) -> re.Pattern[str] | None:
        me = self.client.user
        if prefix in self._command_patterns:
            return self._command_patterns[prefix]
        if me is None and not prefix:
            return None

        escaped = re.escape(prefix) if prefix else None
        if escaped and me is not None:
            source = rf"^(<@!?{me.id}>\s+(?:{escaped}\s*)?|{escaped}\s*)([^\s]+)"
        elif escaped:
            source = rf"^({escaped}\s*)([^\s]+)"
        else:
            source = rf"(^<@!?{me.id}>\s+)([^\s]+)"

        pattern = re.compile(source, re.IGNORECASE)
        if me is not None:
            self._command_patterns[prefix] = pattern
        return pattern

    def _cache_result(self, message: Any, edited: bool, cmd_msg: CommandMessage | None) -> None:
        duration = self.client.command_editable_duration
        if duration <= 0:
            return
        if cmd_msg is None and not self.client.non_command_editable:
            self._results.pop(message.id, None)
            return

        # edits keep the expiry of the original message
        if edited and message.id in self._results:
            expiry = self._results[message.id][1]
        else:
            expiry = time.monotonic() + duration
        self._results[message.id] = (cmd_msg, expiry)

    def _sweep_results(self) -> None:
        now = time.monotonic()
        for message_id in [mid for mid, (_, expiry) in self._results.items() if expiry <= now]:
            del self._results[message_id]
