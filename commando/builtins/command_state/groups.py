from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...commands.base import Command
from ..checks import is_admin_or_owner

if TYPE_CHECKING:
    from ...commands.message import CommandMessage


class ListGroupsCommand(Command):
    def __init__(self, client: Any) -> None:
        super().__init__(
            client,
            name="groups",
            group="commands",
            member_name="groups",
            aliases=["list-groups", "show-groups"],
            description="Lists all command groups.",
            details="Only administrators may use this command.",
            guarded=True,
        )

    def has_permission(self, message: CommandMessage) -> bool | str:
        return is_admin_or_owner(message)

    async def run(self, message: CommandMessage, args: Any, from_pattern: bool) -> Any:
        lines = [
            f"**{group.name}:** {'Enabled' if group.is_enabled_in(message.guild_id) else 'Disabled'}"
            for group in self.client.registry.groups.values()
        ]
        return await message.reply("__**Groups**__\n" + "\n".join(lines))
