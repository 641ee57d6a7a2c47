"""Commands every client can register with ``registry.register_default_commands()``."""

from .command_state import (
    DisableCommand,
    EnableCommand,
    ListGroupsCommand,
    LoadCommand,
    ReloadCommand,
    UnloadCommand,
)
from .util import EvalCommand, HelpCommand, PingCommand, PrefixCommand, UnknownCommandCommand

COMMAND_STATE_COMMANDS = (
    ListGroupsCommand,
    EnableCommand,
    DisableCommand,
    ReloadCommand,
    LoadCommand,
    UnloadCommand,
)

__all__ = [
    "COMMAND_STATE_COMMANDS",
    "DisableCommand",
    "EnableCommand",
    "EvalCommand",
    "HelpCommand",
    "ListGroupsCommand",
    "LoadCommand",
    "PingCommand",
    "PrefixCommand",
    "ReloadCommand",
    "UnknownCommandCommand",
    "UnloadCommand",
]
