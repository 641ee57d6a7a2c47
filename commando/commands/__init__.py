"""Commands, groups, arguments and the registry that holds them."""

from .argument import Argument, ArgumentCollector, ArgumentResult, CollectorResult
from .base import Command, Throttle
from .builder import CommandBuilder, FunctionCommand, command
from .group import CommandGroup
from .message import CommandMessage
from .registry import CommandRegistry
from .types import ArgumentType, UnionArgumentType

__all__ = [
    "Argument",
    "ArgumentCollector",
    "ArgumentResult",
    "ArgumentType",
    "CollectorResult",
    "Command",
    "CommandBuilder",
    "CommandGroup",
    "CommandMessage",
    "CommandRegistry",
    "FunctionCommand",
    "Throttle",
    "UnionArgumentType",
    "command",
]
