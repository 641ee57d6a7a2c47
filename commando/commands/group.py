from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..core.client import CommandoClient
    from .base import Command

logger = logging.getLogger(__name__)


class CommandGroup:
    """A named bucket of related commands that can be enabled or disabled as a whole."""

    def __init__(
        self,
        client: CommandoClient,
        id: str,
        name: str | None = None,
        guarded: bool = False,
        commands: dict[str, Command] | None = None,
    ) -> None:
        if client is None:
            raise ValueError("A client must be specified.")
        if not isinstance(id, str):
            raise TypeError("Group ID must be a string.")
        if id != id.lower():
            raise ValueError("Group ID must be lowercase.")
        if name is not None and not isinstance(name, str):
            raise TypeError("Group name must be a string.")

        self.client = client
        self.id = id
        self.name = name or id
        self.guarded = guarded
        self.commands: dict[str, Command] = dict(commands or {})
        self._global_enabled = True

    async def set_enabled_in(self, guild: Any, enabled: bool) -> None:
        """Enable or disable the group in a guild, or globally when ``guild`` is ``None``."""
        if self.guarded:
            raise ValueError("The group is guarded.")

        if guild is None:
            self._global_enabled = enabled
            await self.client.events.emit("group_status_change", None, self, enabled)
            return
        await self.client.guild_state(guild).set_group_enabled(self, enabled)

    def is_enabled_in(self, guild: Any) -> bool:
        if self.guarded:
            return True
        if guild is None:
            return self._global_enabled
        return self.client.guild_state(guild).is_group_enabled(self)

    def reload(self) -> None:
        for command in list(self.commands.values()):
            command.reload()

    def __repr__(self) -> str:
        return f"<CommandGroup {self.id}>"
