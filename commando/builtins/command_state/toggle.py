"""Enabling and disabling commands and groups."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...commands.base import Command
from ..checks import is_admin_or_owner

if TYPE_CHECKING:
    from ...commands.group import CommandGroup
    from ...commands.message import CommandMessage

COMMAND_OR_GROUP_DETAILS = (
    "The argument must be the name/ID (partial or whole) of a command or command group. "
    "Only administrators may use this command."
)


def _kind(target: Command | CommandGroup) -> str:
    return "command" if isinstance(target, Command) else "group"


def _enabled(target: Command | CommandGroup, guild_id: int | None) -> bool:
    if isinstance(target, Command):
        return target.is_enabled_in(guild_id, bypass_group=True)
    return target.is_enabled_in(guild_id)


def _disabled_group_note(target: Command | CommandGroup, guild_id: int | None) -> str:
    if isinstance(target, Command) and target.group is not None and not target.group.is_enabled_in(guild_id):
        return f", but the `{target.group.name}` group is disabled, so it still can't be used"
    return ""


class EnableCommand(Command):
    def __init__(self, client: Any) -> None:
        super().__init__(
            client,
            name="enable",
            group="commands",
            member_name="enable",
            aliases=["enable-command", "cmd-on", "command-on"],
            description="Enables a command or command group.",
            details=COMMAND_OR_GROUP_DETAILS,
            examples=["enable util", "enable Utility", "enable prefix"],
            guarded=True,
            args=[
                {
                    "key": "cmd_or_grp",
                    "label": "command/group",
                    "prompt": "Which command or group would you like to enable?",
                    "type": "group|command",
                }
            ],
        )

    def has_permission(self, message: CommandMessage) -> bool | str:
        return is_admin_or_owner(message)

    async def run(self, message: CommandMessage, args: dict[str, Any], from_pattern: bool) -> Any:
        target = args["cmd_or_grp"]
        guild_id = message.guild_id
        if _enabled(target, guild_id):
            return await message.reply(
                f"The `{target.name}` {_kind(target)} is already enabled{_disabled_group_note(target, guild_id)}."
            )

        await target.set_enabled_in(guild_id, True)
        return await message.reply(
            f"Enabled the `{target.name}` {_kind(target)}{_disabled_group_note(target, guild_id)}."
        )


class DisableCommand(Command):
    def __init__(self, client: Any) -> None:
        super().__init__(
            client,
            name="disable",
            group="commands",
            member_name="disable",
            aliases=["disable-command", "cmd-off", "command-off"],
            description="Disables a command or command group.",
            details=COMMAND_OR_GROUP_DETAILS,
            examples=["disable util", "disable Utility", "disable prefix"],
            guarded=True,
            args=[
                {
                    "key": "cmd_or_grp",
                    "label": "command/group",
                    "prompt": "Which command or group would you like to disable?",
                    "type": "group|command",
                }
            ],
        )

    def has_permission(self, message: CommandMessage) -> bool | str:
        return is_admin_or_owner(message)

    async def run(self, message: CommandMessage, args: dict[str, Any], from_pattern: bool) -> Any:
        target = args["cmd_or_grp"]
        guild_id = message.guild_id
        if not _enabled(target, guild_id):
            return await message.reply(f"The `{target.name}` {_kind(target)} is already disabled.")
        if target.guarded:
            return await message.reply(f"You cannot disable the `{target.name}` {_kind(target)}.")

        await target.set_enabled_in(guild_id, False)
        return await message.reply(f"Disabled the `{target.name}` {_kind(target)}.")
