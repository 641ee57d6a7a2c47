"""Per-guild command state: prefix, enabled commands and groups, and settings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import hikari

from ..errors import CommandoError
from .utils import build_usage

if TYPE_CHECKING:
    from ..commands.base import Command
    from ..commands.group import CommandGroup
    from .client import CommandoClient

logger = logging.getLogger(__name__)


class GuildSettingsHelper:
    """Shortcut to the settings provider for a single guild."""

    def __init__(self, client: CommandoClient, guild_id: int | None) -> None:
        self.client = client
        self.guild_id = guild_id

    def _provider(self) -> Any:
        if self.client.provider is None:
            raise CommandoError("No settings provider is available.")
        return self.client.provider

    def get(self, key: str, default: Any = None) -> Any:
        return self._provider().get(self.guild_id, key, default)

    async def set(self, key: str, value: Any) -> Any:
        return await self._provider().set(self.guild_id, key, value)

    async def remove(self, key: str) -> Any:
        return await self._provider().remove(self.guild_id, key)

    async def clear(self) -> None:
        await self._provider().clear(self.guild_id)


class GuildState:
    """Command-related state the client keeps for one guild."""

    def __init__(self, client: CommandoClient, guild_id: int) -> None:
        self.client = client
        self.guild_id = guild_id
        self._command_prefix: str | None = None
        self.commands_enabled: dict[str, bool] = {}
        self.groups_enabled: dict[str, bool] = {}
        self.settings = GuildSettingsHelper(client, guild_id)

    @property
    def command_prefix(self) -> str | None:
        """The guild's prefix, falling back to the client's when none is set."""
        if self._command_prefix is None:
            return self.client.command_prefix
        return self._command_prefix

    async def set_command_prefix(self, prefix: str | None) -> None:
        """Set the prefix; ``None`` falls back to the client's, ``""`` allows mentions only."""
        self._command_prefix = prefix
        logger.debug(f"Command prefix for guild {self.guild_id} set to {prefix!r}")
        await self.client.events.emit("command_prefix_change", self.guild_id, prefix)

    async def set_command_enabled(self, command: Command | str, enabled: bool) -> None:
        command = self.client.registry.resolve_command(command)
        if command.guarded:
            raise ValueError("The command is guarded.")
        self.commands_enabled[command.name] = bool(enabled)
        await self.client.events.emit("command_status_change", self.guild_id, command, bool(enabled))

    def is_command_enabled(self, command: Command | str) -> bool:
        command = self.client.registry.resolve_command(command)
        if command.guarded:
            return True
        enabled = self.commands_enabled.get(command.name)
        if enabled is None:
            return command._global_enabled
        return enabled

    async def set_group_enabled(self, group: CommandGroup | str, enabled: bool) -> None:
        group = self.client.registry.resolve_group(group)
        if group.guarded:
            raise ValueError("The group is guarded.")
        self.groups_enabled[group.id] = bool(enabled)
        await self.client.events.emit("group_status_change", self.guild_id, group, bool(enabled))

    def is_group_enabled(self, group: CommandGroup | str) -> bool:
        group = self.client.registry.resolve_group(group)
        if group.guarded:
            return True
        enabled = self.groups_enabled.get(group.id)
        if enabled is None:
            return group._global_enabled
        return enabled

    def command_usage(self, command: str | None = None, user: hikari.User | None | hikari.UndefinedType = hikari.UNDEFINED) -> str:
        """Usage hint for ``command`` with this guild's prefix."""
        if user is hikari.UNDEFINED:
            user = self.client.user
        return build_usage(command or "", self.command_prefix, user)
