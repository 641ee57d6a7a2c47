from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...commands.base import Command

if TYPE_CHECKING:
    from ...commands.message import CommandMessage


class UnknownCommandCommand(Command):
    def __init__(self, client: Any) -> None:
        super().__init__(
            client,
            name="unknown-command",
            group="util",
            member_name="unknown-command",
            description="Displays help information for when an unknown command is used.",
            examples=["unknown-command kickeverybodyever"],
            unknown=True,
            hidden=True,
        )

    async def run(self, message: CommandMessage, args: Any, from_pattern: bool) -> Any:
        return await message.reply(
            f"Unknown command. Use {message.any_usage('help')} to view the command list."
        )
