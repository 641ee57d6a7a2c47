"""Exception types raised by the command framework."""

from __future__ import annotations

from typing import TYPE_CHECKING

import hikari

if TYPE_CHECKING:
    from .commands.message import CommandMessage


class CommandoError(Exception):
    """Base class for all framework errors."""


class FriendlyError(CommandoError):
    """An error whose message is safe to show to the user that ran the command."""


class CommandFormatError(FriendlyError):
    """Raised when a command is used with an invalid argument format."""

    def __init__(self, message: CommandMessage) -> None:
        command = message.command
        # In DMs the usage hint is shown without a prefix or mention
        context = None if message.guild_id is None else hikari.UNDEFINED
        usage = message.usage(command.format, context, context)
        help_usage = message.any_usage(f"help {command.name}", context, context)
        super().__init__(
            f"Invalid command usage. The `{command.name}` command's accepted format is: {usage}. "
            f"Use {help_usage} for more information."
        )
        self.command_message = message


class RegistrationError(CommandoError):
    """Raised when a command, alias or group conflicts with an existing registration."""


class ResolutionError(CommandoError):
    """Raised when a command or group cannot be resolved unambiguously."""
