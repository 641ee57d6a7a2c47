from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import hikari

from ...commands.base import Command
from ...core.utils import build_usage, disambiguation

if TYPE_CHECKING:
    from ...commands.message import CommandMessage

logger = logging.getLogger(__name__)


class HelpCommand(Command):
    def __init__(self, client: Any) -> None:
        super().__init__(
            client,
            name="help",
            group="util",
            member_name="help",
            aliases=["commands"],
            description="Displays a list of available commands, or detailed information for a specified command.",
            details=(
                "The command may be part of a command name or a whole command name.\n"
                "If it isn't specified, all available commands will be listed."
            ),
            examples=["help", "help prefix"],
            guarded=True,
            args=[
                {
                    "key": "command",
                    "prompt": "Which command would you like to view the help for?",
                    "type": "string",
                    "default": "",
                }
            ],
        )

    async def run(self, message: CommandMessage, args: dict[str, Any], from_pattern: bool) -> Any:
        search = args["command"]
        show_all = search.lower() == "all"
        if search and not show_all:
            commands = self.client.registry.find_commands(search, False, message)
            if len(commands) == 1:
                return await self._send_help(message, self._command_help(message, commands[0]))
            if len(commands) > 15:
                return await message.reply("Multiple commands found. Please be more specific.")
            if len(commands) > 1:
                return await message.reply(disambiguation(commands, "commands"))
            return await message.reply(
                f"Unable to identify command. Use {message.usage(None, None, None)} to view the list of all commands."
            )

        return await self._send_help(message, self._command_list(message, show_all))

    def _command_help(self, message: CommandMessage, command: Command) -> str:
        usage_format = f"{command.name} {command.format}" if command.format else command.name
        lines = [
            f"__Command **{command.name}**:__ {command.description}"
            f"{' (Usable only in servers)' if command.guild_only else ''}",
            "",
            f"**Format:** {message.any_usage(usage_format)}",
        ]
        if command.aliases:
            lines.append(f"**Aliases:** {', '.join(command.aliases)}")
        lines.append(f"**Group:** {command.group.name} (`{command.qualified_name}`)")
        if command.details:
            lines.append(f"**Details:** {command.details}")
        if command.examples:
            lines.append("**Examples:**")
            lines.extend(command.examples)
        return "\n".join(lines)

    def _command_list(self, message: CommandMessage, show_all: bool) -> str:
        guild = message.guild
        where = guild.name if guild is not None else "any server"
        prefix = message.command_prefix if message.guild_id is not None else self.client.command_prefix
        user = self.client.user
        if show_all:
            heading = "All commands"
        else:
            heading = f"Available commands in {guild.name if guild is not None else 'this DM'}"

        sections = []
        for group in self.client.registry.groups.values():
            visible = [
                cmd
                for cmd in group.commands.values()
                if not cmd.hidden and (show_all or cmd.is_usable(message))
            ]
            if visible:
                entries = "\n".join(f"**{cmd.name}:** {cmd.description}" for cmd in visible)
                sections.append(f"__{group.name}__\n{entries}")

        return (
            f"To run a command in {where}, use {build_usage('command', prefix, user)}. "
            f"For example, {build_usage('prefix', prefix, user)}.\n"
            f"To run a command in this DM, simply use {build_usage('command')} with no prefix.\n\n"
            f"Use {self.usage('<command>', None, None)} to view detailed information about a specific command.\n"
            f"Use {self.usage('all', None, None)} to view a list of *all* commands, not just available ones.\n\n"
            f"__**{heading}**__\n\n" + "\n\n".join(sections)
        )

    async def _send_help(self, message: CommandMessage, text: str) -> list[hikari.Message]:
        messages = []
        try:
            messages.append(await message.direct(text))
            if message.guild_id is not None:
                messages.append(await message.reply("Sent you a DM with information."))
        except hikari.ForbiddenError:
            logger.debug(f"Unable to DM help to {message.author.id}")
            messages.append(await message.reply("Unable to send you the help DM. You probably have DMs disabled."))
        return messages
