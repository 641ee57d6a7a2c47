from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from ...commands.base import Command

if TYPE_CHECKING:
    from ...commands.message import CommandMessage


class PingCommand(Command):
    def __init__(self, client: Any) -> None:
        super().__init__(
            client,
            name="ping",
            group="util",
            member_name="ping",
            description="Checks the bot's ping to the Discord server.",
            throttling={"usages": 5, "duration": 10},
        )

    async def run(self, message: CommandMessage, args: Any, from_pattern: bool) -> Any:
        ping_message = await message.reply("Pinging...")
        # an edit re-run edits the earlier response, so compare edit times when present
        sent_at = ping_message.edited_timestamp or ping_message.created_at
        invoked_at = message.message.edited_timestamp or message.message.created_at
        round_trip = (sent_at - invoked_at).total_seconds() * 1000

        heartbeat = self.client.hikari_bot.heartbeat_latency
        heartbeat_text = "" if math.isnan(heartbeat) else f" The heartbeat ping is {round(heartbeat * 1000)}ms."
        mention = f"{message.author.mention}, " if message.guild_id is not None else ""
        return await message.edit_response(
            ping_message, f"{mention}Pong! The message round-trip took {round(round_trip)}ms.{heartbeat_text}"
        )
