from .base import GLOBAL_GUILD_KEY, SettingProvider
from .sqlite import SQLiteProvider

__all__ = ["GLOBAL_GUILD_KEY", "SettingProvider", "SQLiteProvider"]
