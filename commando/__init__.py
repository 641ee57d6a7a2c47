"""A command framework for hikari bots: groups, arguments with prompting, and per-guild settings."""

from .commands import (
    Argument,
    ArgumentType,
    Command,
    CommandBuilder,
    CommandGroup,
    CommandMessage,
    CommandRegistry,
    command,
)
from .core.client import CommandoClient
from .core.dispatcher import CommandDispatcher
from .core.event_system import EventSystem
from .core.guild import GuildSettingsHelper, GuildState
from .errors import CommandFormatError, CommandoError, FriendlyError, RegistrationError, ResolutionError
from .providers import SettingProvider, SQLiteProvider

__version__ = "0.1.0"

__all__ = [
    "Argument",
    "ArgumentType",
    "Command",
    "CommandBuilder",
    "CommandDispatcher",
    "CommandFormatError",
    "CommandGroup",
    "CommandMessage",
    "CommandRegistry",
    "CommandoClient",
    "CommandoError",
    "EventSystem",
    "FriendlyError",
    "GuildSettingsHelper",
    "GuildState",
    "RegistrationError",
    "ResolutionError",
    "SQLiteProvider",
    "SettingProvider",
    "command",
]
