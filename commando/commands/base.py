"""Base class for every command registered with the framework."""

from __future__ import annotations

import logging
import math
import re
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import hikari

from ..core.utils import build_usage, calculate_member_permissions, format_permissions
from .argument import Argument, ArgumentCollector

if TYPE_CHECKING:
    from ..core.client import CommandoClient
    from .group import CommandGroup
    from .message import CommandMessage

logger = logging.getLogger(__name__)

ARGS_TYPES = ("single", "multiple")


@dataclass
class Throttle:
    """Usage window of one user for one command."""

    start: float
    usages: int = 0


class Command:
    """A named handler bound to a command group.

    Subclasses pass their metadata to ``super().__init__`` and implement
    :meth:`run`::

        class AddCommand(Command):
            def __init__(self, client):
                super().__init__(
                    client,
                    name="add",
                    group="math",
                    member_name="add",
                    description="Adds numbers together.",
                    args=[{"key": "numbers", "prompt": "What numbers?", "type": "float", "infinite": True}],
                )

            async def run(self, message, args, from_pattern):
                await message.reply(str(sum(args["numbers"])))
    """

    def __init__(
        self,
        client: CommandoClient,
        *,
        name: str,
        group: str,
        member_name: str,
        description: str,
        aliases: Sequence[str] | None = None,
        auto_aliases: bool = False,
        format: str | None = None,
        details: str | None = None,
        examples: Sequence[str] | None = None,
        guild_only: bool = False,
        owner_only: bool = False,
        client_permissions: hikari.Permissions | None = None,
        user_permissions: hikari.Permissions | None = None,
        default_handling: bool = True,
        throttling: dict[str, int] | None = None,
        args: Sequence[Argument | dict[str, Any]] | None = None,
        args_prompt_limit: float = math.inf,
        args_type: str = "single",
        args_count: int = 0,
        args_single_quotes: bool = True,
        patterns: Sequence[re.Pattern[str] | str] | None = None,
        guarded: bool = False,
        hidden: bool = False,
        unknown: bool = False,
    ) -> None:
        self._validate_info(
            client,
            name=name,
            group=group,
            member_name=member_name,
            description=description,
            aliases=aliases,
            format=format,
            details=details,
            examples=examples,
            client_permissions=client_permissions,
            user_permissions=user_permissions,
            throttling=throttling,
            args=args,
            args_type=args_type,
            args_count=args_count,
            patterns=patterns,
        )

        self.client = client
        self.name = name
        self.aliases: list[str] = list(aliases or [])
        if auto_aliases:
            if "-" in name:
                self.aliases.append(name.replace("-", ""))
            for alias in list(self.aliases):
                if "-" in alias:
                    self.aliases.append(alias.replace("-", ""))
        self.group_id = group
        self.group: CommandGroup | None = None
        self.member_name = member_name
        self.description = description
        self.format = format
        self.details = details
        self.examples = list(examples) if examples else None
        self.guild_only = guild_only
        self.owner_only = owner_only
        self.client_permissions = client_permissions
        self.user_permissions = user_permissions
        self.default_handling = default_handling
        self.throttling = throttling
        self.args_collector = ArgumentCollector(client, args, args_prompt_limit) if args else None
        if self.args_collector is not None and format is None:
            self.format = " ".join(
                f"{'<' if arg.default is None else '['}{arg.label}{'...' if arg.infinite else ''}"
                f"{'>' if arg.default is None else ']'}"
                for arg in self.args_collector.args
            )
        self.args_type = args_type
        self.args_count = args_count
        self.args_single_quotes = args_single_quotes
        self.patterns = [re.compile(p) if isinstance(p, str) else p for p in patterns] if patterns else None
        self.guarded = guarded
        self.hidden = hidden
        self.unknown = unknown

        self.source_path: Path | None = None

        self._global_enabled = True
        self._throttles: dict[int, Throttle] = {}

    @property
    def qualified_name(self) -> str:
        return f"{self.group_id}:{self.member_name}"

    def has_permission(self, message: CommandMessage) -> bool | str:
        """Return ``True`` if the author may run the command, otherwise the refusal text."""
        if not self.owner_only and not self.user_permissions:
            return True
        if self.owner_only and not self.client.is_owner(message.author):
            return f"The `{self.name}` command can only be used by the bot owner."

        if message.guild_id is not None and self.user_permissions:
            guild = message.guild
            member = message.member
            if guild is not None and member is not None:
                actual = calculate_member_permissions(member, guild, message.channel)
                missing = format_permissions(self.user_permissions & ~actual)
                if len(missing) == 1:
                    return f'The `{self.name}` command requires you to have the "{missing[0]}" permission.'
                if missing:
                    return (
                        f"The `{self.name}` command requires you to have the following permissions: "
                        f"{', '.join(missing)}"
                    )
        return True

    async def run(self, message: CommandMessage, args: Any, from_pattern: bool) -> Any:
        raise NotImplementedError(f"{self.__class__.__name__} doesn't have a run() method.")

    async def on_block(self, message: CommandMessage, reason: str, data: dict[str, Any] | None = None) -> Any:
        """Reply to the author explaining why the command didn't run."""
        data = data or {}
        if reason == "guildOnly":
            return await message.reply(f"The `{self.name}` command must be used in a server channel.")
        if reason == "permission":
            if data.get("response"):
                return await message.reply(data["response"])
            return await message.reply(f"You do not have permission to use the `{self.name}` command.")
        if reason == "clientPermissions":
            missing = data.get("missing", [])
            if len(missing) == 1:
                return await message.reply(
                    f'I need the "{missing[0]}" permission for the `{self.name}` command to work.'
                )
            return await message.reply(
                f"I need the following permissions for the `{self.name}` command to work: {', '.join(missing)}"
            )
        if reason == "throttling":
            return await message.reply(
                f"You may not use the `{self.name}` command again for another "
                f"{data.get('remaining', 0):.1f} seconds."
            )
        return None

    async def on_error(self, error: Exception, message: CommandMessage, args: Any, from_pattern: bool) -> Any:
        """Reply to the author when the command raised an unexpected exception."""
        owners = [f"<@{owner_id}>" for owner_id in self.client.owner_ids]
        contact = " or ".join(owners) if owners else "the bot owner"
        invite = self.client.invite
        return await message.reply(
            f"An error occurred while running the command: `{type(error).__name__}: {error}`\n"
            "You shouldn't ever receive an error like this.\n"
            f"Please contact {contact}{f' in this server: {invite}' if invite else '.'}"
        )

    def throttle(self, user_id: int) -> Throttle | None:
        """Return the user's current throttle window, or ``None`` if not throttled."""
        if not self.throttling or self.client.is_owner(user_id):
            return None

        now = time.monotonic()
        throttle = self._throttles.get(user_id)
        if throttle is None or now - throttle.start >= self.throttling["duration"]:
            throttle = Throttle(start=now)
            self._throttles[user_id] = throttle
        return throttle

    async def set_enabled_in(self, guild: Any, enabled: bool) -> None:
        """Enable or disable the command in a guild, or globally when ``guild`` is ``None``."""
        if self.guarded:
            raise ValueError("The command is guarded.")

        if guild is None:
            self._global_enabled = enabled
            await self.client.events.emit("command_status_change", None, self, enabled)
            return
        await self.client.guild_state(guild).set_command_enabled(self, enabled)

    def is_enabled_in(self, guild: Any, bypass_group: bool = False) -> bool:
        if self.guarded:
            return True
        if guild is None:
            group_enabled = bypass_group or self.group is None or self.group._global_enabled
            return group_enabled and self._global_enabled

        state = self.client.guild_state(guild)
        group_enabled = bypass_group or self.group is None or state.is_group_enabled(self.group)
        return group_enabled and state.is_command_enabled(self)

    def is_usable(self, message: CommandMessage | None = None) -> bool:
        if message is None:
            return self._global_enabled
        if self.guild_only and message.guild_id is None:
            return False
        permission = self.has_permission(message)
        return self.is_enabled_in(message.guild_id) and permission is True

    def usage(
        self,
        arg_string: str | None = None,
        prefix: str | None | hikari.UndefinedType = hikari.UNDEFINED,
        user: hikari.User | None | hikari.UndefinedType = hikari.UNDEFINED,
    ) -> str:
        if prefix is hikari.UNDEFINED:
            prefix = self.client.command_prefix
        if user is hikari.UNDEFINED:
            user = self.client.user
        return build_usage(f"{self.name}{f' {arg_string}' if arg_string else ''}", prefix, user)

    def reload(self) -> None:
        """Re-import the module this command came from and swap the new instance in."""
        new_command = self.client.registry.load_command_from_source(self)
        self.client.registry.reregister_command(new_command, self)

    def unload(self) -> None:
        self.client.registry.unregister_command(self)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.qualified_name}>"

    @staticmethod
    def _validate_info(client: CommandoClient, **info: Any) -> None:
        if client is None:
            raise ValueError("A client must be specified.")

        name = info["name"]
        if not isinstance(name, str):
            raise TypeError("Command name must be a string.")
        if name != name.lower():
            raise ValueError("Command name must be lowercase.")

        aliases = info["aliases"]
        if aliases is not None:
            if isinstance(aliases, str) or not all(isinstance(alias, str) for alias in aliases):
                raise TypeError("Command aliases must be a list of strings.")
            if any(alias != alias.lower() for alias in aliases):
                raise ValueError("Command aliases must be lowercase.")

        for field_name in ("group", "member_name"):
            value = info[field_name]
            if not isinstance(value, str):
                raise TypeError(f"Command {field_name} must be a string.")
            if value != value.lower():
                raise ValueError(f"Command {field_name} must be lowercase.")

        if not isinstance(info["description"], str):
            raise TypeError("Command description must be a string.")
        for field_name in ("format", "details"):
            if info[field_name] is not None and not isinstance(info[field_name], str):
                raise TypeError(f"Command {field_name} must be a string.")

        examples = info["examples"]
        if examples is not None and (
            isinstance(examples, str) or not all(isinstance(example, str) for example in examples)
        ):
            raise TypeError("Command examples must be a list of strings.")

        for field_name in ("client_permissions", "user_permissions"):
            value = info[field_name]
            if value is not None and not isinstance(value, hikari.Permissions):
                raise TypeError(f"Command {field_name} must be hikari.Permissions.")

        throttling = info["throttling"]
        if throttling is not None:
            if not isinstance(throttling, dict):
                raise TypeError("Command throttling must be a dict.")
            usages = throttling.get("usages")
            duration = throttling.get("duration")
            if not isinstance(usages, int) or usages < 1:
                raise ValueError("Command throttling usages must be a positive integer.")
            if not isinstance(duration, (int, float)) or duration < 1:
                raise ValueError("Command throttling duration must be at least one second.")

        args = info["args"]
        if args is not None and not isinstance(args, (list, tuple)):
            raise TypeError("Command args must be a list.")

        args_type = info["args_type"]
        if args_type not in ARGS_TYPES:
            raise ValueError(f"Command args_type must be one of {', '.join(ARGS_TYPES)}.")
        if args_type == "multiple" and info["args_count"] and info["args_count"] < 2:
            raise ValueError("Command args_count must be at least 2.")

        patterns = info["patterns"]
        if patterns is not None and (
            isinstance(patterns, str) or not all(isinstance(p, (str, re.Pattern)) for p in patterns)
        ):
            raise TypeError("Command patterns must be a list of regular expressions.")
