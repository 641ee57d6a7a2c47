import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert

from ..commands.base import Command
from ..commands.group import CommandGroup
from ..database import DatabaseManager, GuildSetting, db_manager
from .base import GLOBAL_GUILD_KEY, SettingProvider

logger = logging.getLogger(__name__)


class SQLiteProvider(SettingProvider):
    """
    Keeps every guild's settings as a JSON document in the ``settings`` table.

    Besides arbitrary keys, three kinds of keys are applied to the client on
    load and kept up to date afterwards:

    - ``prefix``: the command prefix
    - ``cmd-<command name>``: whether a command is enabled
    - ``grp-<group id>``: whether a group is enabled
    """

    def __init__(self, db: DatabaseManager | None = None) -> None:
        self.db = db or db_manager
        self.client: Any = None
        self.settings: dict[int, dict[str, Any]] = {}
        self._listeners: list[tuple[str, Callable]] = []

    async def init(self, client: Any) -> None:
        self.client = client
        await self.db.create_tables()

        async with self.db.session() as session:
            result = await session.execute(select(GuildSetting))
            rows = result.scalars().all()

        for row in rows:
            settings = dict(row.settings or {})
            self.settings[row.guild] = settings
            self._setup_guild(row.guild, settings)
        logger.info(f"Loaded settings for {len(rows)} guild(s)")

        self._listeners = [
            ("command_prefix_change", self._on_prefix_change),
            ("command_status_change", self._on_command_status_change),
            ("group_status_change", self._on_group_status_change),
        ]
        for event_name, listener in self._listeners:
            client.events.add_listener(event_name, listener)

    async def destroy(self) -> None:
        for event_name, listener in self._listeners:
            self.client.events.remove_listener(event_name, listener)
        self._listeners = []
        await self.db.close()

    def get(self, guild: Any, key: str, default: Any = None) -> Any:
        settings = self.settings.get(self.guild_key(guild))
        if settings is None:
            return default
        return settings.get(key, default)

    async def set(self, guild: Any, key: str, value: Any) -> Any:
        guild_key = self.guild_key(guild)
        settings = self.settings.setdefault(guild_key, {})
        settings[key] = value
        await self._save(guild_key, settings)
        return value

    async def remove(self, guild: Any, key: str) -> Any:
        guild_key = self.guild_key(guild)
        settings = self.settings.get(guild_key)
        if not settings or key not in settings:
            return None

        value = settings.pop(key)
        await self._save(guild_key, settings)
        return value

    async def clear(self, guild: Any) -> None:
        guild_key = self.guild_key(guild)
        if self.settings.pop(guild_key, None) is None:
            return

        async with self.db.session() as session:
            await session.execute(delete(GuildSetting).where(GuildSetting.guild == guild_key))
        logger.debug(f"Cleared settings for guild {guild_key}")

    async def _save(self, guild_key: int, settings: dict[str, Any]) -> None:
        statement = insert(GuildSetting).values(guild=guild_key, settings=dict(settings))
        statement = statement.on_conflict_do_update(
            index_elements=[GuildSetting.guild],
            set_={"settings": statement.excluded.settings},
        )
        async with self.db.session() as session:
            await session.execute(statement)

    def _setup_guild(self, guild_key: int, settings: dict[str, Any]) -> None:
        if "prefix" in settings:
            if guild_key == GLOBAL_GUILD_KEY:
                self.client._command_prefix = settings["prefix"]
            else:
                self.client.guild_state(guild_key)._command_prefix = settings["prefix"]

        for command in self.client.registry.commands.values():
            self._setup_command(guild_key, command, settings)
        for group in self.client.registry.groups.values():
            self._setup_group(guild_key, group, settings)

    def _setup_command(self, guild_key: int, command: Command, settings: dict[str, Any]) -> None:
        key = f"cmd-{command.name}"
        if key not in settings or command.guarded:
            return
        if guild_key == GLOBAL_GUILD_KEY:
            command._global_enabled = settings[key]
        else:
            self.client.guild_state(guild_key).commands_enabled[command.name] = settings[key]

    def _setup_group(self, guild_key: int, group: CommandGroup, settings: dict[str, Any]) -> None:
        key = f"grp-{group.id}"
        if key not in settings or group.guarded:
            return
        if guild_key == GLOBAL_GUILD_KEY:
            group._global_enabled = settings[key]
        else:
            self.client.guild_state(guild_key).groups_enabled[group.id] = settings[key]

    async def _on_prefix_change(self, guild_id: int | None, prefix: str | None) -> None:
        if prefix is None:
            await self.remove(guild_id, "prefix")
        else:
            await self.set(guild_id, "prefix", prefix)

    async def _on_command_status_change(self, guild_id: int | None, command: Command, enabled: bool) -> None:
        await self.set(guild_id, f"cmd-{command.name}", enabled)

    async def _on_group_status_change(self, guild_id: int | None, group: CommandGroup, enabled: bool) -> None:
        await self.set(guild_id, f"grp-{group.id}", enabled)
