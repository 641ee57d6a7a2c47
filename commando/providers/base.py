from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from ..core.utils import guild_id_of

if TYPE_CHECKING:
    from ..core.client import CommandoClient

GLOBAL_GUILD_KEY = 0


class SettingProvider(ABC):
    """Loads and stores settings for guilds, and for the client as a whole under :data:`GLOBAL_GUILD_KEY`."""

    @abstractmethod
    async def init(self, client: CommandoClient) -> None:
        """Load stored settings into the client and start persisting changes."""

    @abstractmethod
    async def destroy(self) -> None:
        """Stop persisting changes and release resources."""

    @abstractmethod
    def get(self, guild: Any, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    async def set(self, guild: Any, key: str, value: Any) -> Any:
        pass

    @abstractmethod
    async def remove(self, guild: Any, key: str) -> Any:
        pass

    @abstractmethod
    async def clear(self, guild: Any) -> None:
        pass

    @staticmethod
    def guild_key(guild: Any) -> int:
        """Storage key for a guild; ``None`` maps to the global settings."""
        guild_id = guild_id_of(guild)
        return GLOBAL_GUILD_KEY if guild_id is None else guild_id
