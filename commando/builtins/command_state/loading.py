"""Owner-only commands that load, reload and unload commands at runtime."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...commands.base import Command
from ...errors import CommandoError

if TYPE_CHECKING:
    from ...commands.argument import Argument
    from ...commands.message import CommandMessage


class ReloadCommand(Command):
    def __init__(self, client: Any) -> None:
        super().__init__(
            client,
            name="reload",
            group="commands",
            member_name="reload",
            aliases=["reload-command"],
            description="Reloads a command or command group.",
            details=(
                "The argument must be the name/ID (partial or whole) of a command or command group. "
                "Providing a command group will reload all of the commands in that group. "
                "Only the bot owner(s) may use this command."
            ),
            examples=["reload some-command"],
            owner_only=True,
            guarded=True,
            args=[
                {
                    "key": "cmd_or_grp",
                    "label": "command/group",
                    "prompt": "Which command or group would you like to reload?",
                    "type": "group|command",
                }
            ],
        )

    async def run(self, message: CommandMessage, args: dict[str, Any], from_pattern: bool) -> Any:
        target = args["cmd_or_grp"]
        target.reload()
        if isinstance(target, Command):
            return await message.reply(f"Reloaded the `{target.name}` command.")
        return await message.reply(f"Reloaded all of the commands in the `{target.name}` group.")


class LoadCommand(Command):
    def __init__(self, client: Any) -> None:
        super().__init__(
            client,
            name="load",
            group="commands",
            member_name="load",
            aliases=["load-command"],
            description="Loads a new command.",
            details=(
                "The argument must be full name of the command in the format of `group:memberName`. "
                "Only the bot owner(s) may use this command."
            ),
            examples=["load some-command"],
            owner_only=True,
            guarded=True,
            args=[
                {
                    "key": "command",
                    "prompt": "Which command would you like to load?",
                    "validator": self._validate_command_path,
                    "parser": self._parse_command_path,
                }
            ],
        )

    def _validate_command_path(self, value: str, message: CommandMessage, arg: Argument) -> bool | str:
        parts = value.lower().split(":")
        if len(parts) != 2:
            return False
        if self.client.registry.find_commands(value):
            return "That command is already registered."
        try:
            return self.client.registry.resolve_command_path(*parts).is_file()
        except CommandoError:
            return False

    def _parse_command_path(self, value: str, message: CommandMessage, arg: Argument) -> Any:
        return self.client.registry.resolve_command_path(*value.lower().split(":"))

    async def run(self, message: CommandMessage, args: dict[str, Any], from_pattern: bool) -> Any:
        commands = self.client.registry.register_commands_from_file(args["command"])
        names = ", ".join(f"`{command.name}`" for command in commands)
        return await message.reply(f"Loaded {names} command.")


class UnloadCommand(Command):
    def __init__(self, client: Any) -> None:
        super().__init__(
            client,
            name="unload",
            group="commands",
            member_name="unload",
            aliases=["unload-command"],
            description="Unloads a command.",
            details=(
                "The argument must be the name/ID (partial or whole) of a command. "
                "Only the bot owner(s) may use this command."
            ),
            examples=["unload some-command"],
            owner_only=True,
            guarded=True,
            args=[{"key": "command", "prompt": "Which command would you like to unload?", "type": "command"}],
        )

    async def run(self, message: CommandMessage, args: dict[str, Any], from_pattern: bool) -> Any:
        command = args["command"]
        command.unload()
        return await message.reply(f"Unloaded `{command.name}` command.")
