"""Building commands from plain functions instead of subclasses."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import hikari

from .base import Command

if TYPE_CHECKING:
    from ..core.client import CommandoClient
    from .message import CommandMessage
    from .registry import CommandRegistry

RunFunction = Callable[..., Awaitable[Any]]


class FunctionCommand(Command):
    """A command whose behaviour is a plain coroutine function."""

    def __init__(self, client: CommandoClient, run: RunFunction, **info: Any) -> None:
        super().__init__(client, **info)
        self._run = run
        self._pass_from_pattern = len(inspect.signature(run).parameters) >= 3

    async def run(self, message: CommandMessage, args: Any, from_pattern: bool) -> Any:
        if self._pass_from_pattern:
            return await self._run(message, args, from_pattern)
        return await self._run(message, args)


class CommandBuilder:
    """
    Collects command info step by step.

    Obtained from ``registry.build_command()`` (which allows a final
    ``.register()``) or produced by the :func:`command` decorator, in which
    case the registry builds it when registered::

        registry.build_command(group="util").name("hello").description("Says hello.") \\
            .run(say_hello).register()
    """

    def __init__(self, info: dict[str, Any] | None = None, registry: CommandRegistry | None = None) -> None:
        self.info: dict[str, Any] = dict(info or {})
        self.registry = registry
        self._run: RunFunction | None = None

    def name(self, name: str) -> CommandBuilder:
        self.info["name"] = name
        self.info.setdefault("member_name", name)
        return self

    def group(self, group: str) -> CommandBuilder:
        self.info["group"] = group
        return self

    def member_name(self, member_name: str) -> CommandBuilder:
        self.info["member_name"] = member_name
        return self

    def description(self, description: str) -> CommandBuilder:
        self.info["description"] = description
        return self

    def aliases(self, *aliases: str) -> CommandBuilder:
        self.info["aliases"] = list(aliases)
        return self

    def format(self, format: str) -> CommandBuilder:
        self.info["format"] = format
        return self

    def details(self, details: str) -> CommandBuilder:
        self.info["details"] = details
        return self

    def examples(self, *examples: str) -> CommandBuilder:
        self.info["examples"] = list(examples)
        return self

    def guild_only(self, guild_only: bool = True) -> CommandBuilder:
        self.info["guild_only"] = guild_only
        return self

    def owner_only(self, owner_only: bool = True) -> CommandBuilder:
        self.info["owner_only"] = owner_only
        return self

    def client_permissions(self, permissions: hikari.Permissions) -> CommandBuilder:
        self.info["client_permissions"] = permissions
        return self

    def user_permissions(self, permissions: hikari.Permissions) -> CommandBuilder:
        self.info["user_permissions"] = permissions
        return self

    def throttling(self, usages: int, duration: float) -> CommandBuilder:
        self.info["throttling"] = {"usages": usages, "duration": duration}
        return self

    def arg(self, key: str, prompt: str, **options: Any) -> CommandBuilder:
        self.info.setdefault("args", []).append({"key": key, "prompt": prompt, **options})
        return self

    def patterns(self, *patterns: Any) -> CommandBuilder:
        self.info["patterns"] = list(patterns)
        return self

    def hidden(self, hidden: bool = True) -> CommandBuilder:
        self.info["hidden"] = hidden
        return self

    def guarded(self, guarded: bool = True) -> CommandBuilder:
        self.info["guarded"] = guarded
        return self

    def set(self, **info: Any) -> CommandBuilder:
        """Set any other command keyword (``args_type``, ``default_handling``...)."""
        self.info.update(info)
        return self

    def run(self, func: RunFunction) -> CommandBuilder:
        if not inspect.iscoroutinefunction(func):
            raise TypeError("Command run function must be a coroutine function.")
        self._run = func
        return self

    __call__ = run

    def build(self, client: CommandoClient) -> Command:
        if self._run is None:
            raise TypeError(f"Command {self.info.get('name')!r} has no run function.")
        info = dict(self.info)
        info.setdefault("member_name", info.get("name"))
        info.setdefault("description", "")
        return FunctionCommand(client, self._run, **info)

    def register(self) -> Command:
        if self.registry is None:
            raise TypeError("This builder is not bound to a registry.")
        command = self.build(self.registry.client)
        self.registry.register_command(command)
        return command


def command(**info: Any) -> Callable[[RunFunction], CommandBuilder]:
    """
    Turn a coroutine function into a command.

    The decorated name refers to a :class:`CommandBuilder`, which
    ``register_commands_in`` picks up from command modules::

        @command(name="add", group="math", description="Adds numbers.",
                 args=[{"key": "numbers", "prompt": "Which numbers?", "type": "float", "infinite": True}])
        async def add(message, args):
            await message.reply(str(sum(args["numbers"])))
    """

    def decorator(func: RunFunction) -> CommandBuilder:
        info.setdefault("name", func.__name__.lower().replace("_", "-"))
        info.setdefault("description", (inspect.getdoc(func) or "").split("\n")[0])
        return CommandBuilder(info).run(func)

    return decorator
