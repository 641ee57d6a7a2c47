from .manager import DatabaseManager, db_manager
from .models import Base, GuildSetting

__all__ = [
    "DatabaseManager",
    "db_manager",
    "Base",
    "GuildSetting",
]
