from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...commands.base import Command
from ..checks import is_admin

if TYPE_CHECKING:
    from ...commands.message import CommandMessage


class PrefixCommand(Command):
    def __init__(self, client: Any) -> None:
        super().__init__(
            client,
            name="prefix",
            group="util",
            member_name="prefix",
            description="Shows or sets the command prefix.",
            format='[prefix/"default"/"none"]',
            details=(
                "If no prefix is provided, the current prefix will be shown. "
                'If the prefix is "default", the prefix will be reset to the bot\'s default prefix. '
                'If the prefix is "none", the prefix will be removed entirely, only allowing mentions to run commands. '
                "Only administrators may change the prefix."
            ),
            examples=["prefix", "prefix -", "prefix omg!", "prefix default", "prefix none"],
            args=[
                {
                    "key": "prefix",
                    "prompt": "What would you like to set the bot's prefix to?",
                    "type": "string",
                    "max": 15,
                    "default": "",
                }
            ],
        )

    async def run(self, message: CommandMessage, args: dict[str, Any], from_pattern: bool) -> Any:
        requested = args["prefix"]
        if not requested:
            prefix = message.command_prefix
            current = f"The command prefix is `{prefix}`." if prefix else "There is no command prefix."
            return await message.reply(f"{current}\nTo run commands, use {message.any_usage('command')}.")

        if message.guild_id is not None:
            if not is_admin(message) and not self.client.is_owner(message.author):
                return await message.reply("Only administrators may change the command prefix.")
        elif not self.client.is_owner(message.author):
            return await message.reply("Only the bot owner(s) may change the global command prefix.")

        lowercase = requested.lower()
        if lowercase == "default":
            await self._set_prefix(message, None)
            default = self.client.command_prefix
            current = f"`{default}`" if default else "no prefix"
            response = f"Reset the command prefix to the default (currently {current})."
        else:
            prefix = "" if lowercase == "none" else requested
            await self._set_prefix(message, prefix)
            response = f"Set the command prefix to `{requested}`." if prefix else "Removed the command prefix entirely."

        return await message.reply(f"{response} To run commands, use {message.any_usage('command')}.")

    async def _set_prefix(self, message: CommandMessage, prefix: str | None) -> None:
        if message.guild_id is not None:
            await self.client.guild_state(message.guild_id).set_command_prefix(prefix)
        else:
            await self.client.set_command_prefix(prefix)
