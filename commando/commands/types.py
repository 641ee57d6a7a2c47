"""Argument types using strategy pattern."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

import hikari

from ..core.utils import disambiguation, escape_markdown

if TYPE_CHECKING:
    from ..core.client import CommandoClient
    from .argument import Argument
    from .message import CommandMessage

logger = logging.getLogger(__name__)

MAX_DISAMBIGUATION = 15

_USER_MENTION = re.compile(r"^(?:<@!?)?([0-9]+)>?$")
_ROLE_MENTION = re.compile(r"^(?:<@&)?([0-9]+)>?$")
_CHANNEL_MENTION = re.compile(r"^(?:<#)?([0-9]+)>?$")
_INTEGER = re.compile(r"^[+-]?[0-9]+$")


class ArgumentType(ABC):
    """Base class for argument types.

    ``validate`` returns ``True`` when the value can be parsed, ``False`` when
    it cannot, or a string explaining why it cannot.
    """

    def __init__(self, client: CommandoClient, type_id: str) -> None:
        if not type_id or type_id != type_id.lower():
            raise ValueError("Argument type ID must be lowercase.")
        self.client = client
        self.id = type_id

    @abstractmethod
    async def validate(self, value: str, message: CommandMessage, arg: Argument) -> bool | str:
        """Check whether a raw string is acceptable for this type."""

    @abstractmethod
    async def parse(self, value: str, message: CommandMessage, arg: Argument) -> Any:
        """Convert a validated raw string into its value."""

    def is_empty(self, value: Any, message: CommandMessage, arg: Argument) -> bool:
        if isinstance(value, list):
            return len(value) == 0
        return not value


class StringArgumentType(ArgumentType):
    def __init__(self, client: CommandoClient) -> None:
        super().__init__(client, "string")

    async def validate(self, value: str, message: CommandMessage, arg: Argument) -> bool | str:
        if arg.one_of and value.lower() not in arg.one_of:
            return f"Please enter one of the following options: {', '.join(arg.one_of)}"
        if arg.min is not None and len(value) < arg.min:
            return f"Please keep the {arg.label} above or exactly {arg.min} characters."
        if arg.max is not None and len(value) > arg.max:
            return f"Please keep the {arg.label} below or exactly {arg.max} characters."
        return True

    async def parse(self, value: str, message: CommandMessage, arg: Argument) -> Any:
        return value


class IntegerArgumentType(ArgumentType):
    def __init__(self, client: CommandoClient) -> None:
        super().__init__(client, "integer")

    async def validate(self, value: str, message: CommandMessage, arg: Argument) -> bool | str:
        if not _INTEGER.match(value.strip()):
            return False
        return _check_number(int(value), arg)

    async def parse(self, value: str, message: CommandMessage, arg: Argument) -> Any:
        return int(value)


class FloatArgumentType(ArgumentType):
    def __init__(self, client: CommandoClient) -> None:
        super().__init__(client, "float")

    async def validate(self, value: str, message: CommandMessage, arg: Argument) -> bool | str:
        try:
            number = float(value)
        except ValueError:
            return False
        if number != number or number in (float("inf"), float("-inf")):
            return False
        return _check_number(number, arg)

    async def parse(self, value: str, message: CommandMessage, arg: Argument) -> Any:
        return float(value)


class BooleanArgumentType(ArgumentType):
    TRUTHY = frozenset({"true", "t", "yes", "y", "on", "enable", "enabled", "1", "+"})
    FALSY = frozenset({"false", "f", "no", "n", "off", "disable", "disabled", "0", "-"})

    def __init__(self, client: CommandoClient) -> None:
        super().__init__(client, "boolean")

    async def validate(self, value: str, message: CommandMessage, arg: Argument) -> bool | str:
        lowercase = value.lower()
        return lowercase in self.TRUTHY or lowercase in self.FALSY

    async def parse(self, value: str, message: CommandMessage, arg: Argument) -> Any:
        lowercase = value.lower()
        if lowercase in self.TRUTHY:
            return True
        if lowercase in self.FALSY:
            return False
        raise ValueError("Unknown boolean value.")


class UserArgumentType(ArgumentType):
    def __init__(self, client: CommandoClient) -> None:
        super().__init__(client, "user")

    async def validate(self, value: str, message: CommandMessage, arg: Argument) -> bool | str:
        match = _USER_MENTION.match(value)
        if match:
            try:
                await self.client.rest.fetch_user(int(match.group(1)))
                return True
            except hikari.ClientHTTPResponseError:
                return False

        if message.guild_id is None:
            return False
        members = _members_of(self.client, message.guild_id)
        return _validate_search(members, value, _member_names, "users", _member_label)

    async def parse(self, value: str, message: CommandMessage, arg: Argument) -> Any:
        match = _USER_MENTION.match(value)
        if match:
            user_id = int(match.group(1))
            return self.client.cache.get_user(user_id) or await self.client.rest.fetch_user(user_id)

        if message.guild_id is None:
            return None
        member = _parse_search(_members_of(self.client, message.guild_id), value, _member_names)
        return member.user if member else None


class MemberArgumentType(ArgumentType):
    def __init__(self, client: CommandoClient) -> None:
        super().__init__(client, "member")

    async def validate(self, value: str, message: CommandMessage, arg: Argument) -> bool | str:
        if message.guild_id is None:
            return False

        match = _USER_MENTION.match(value)
        if match:
            try:
                await self._fetch_member(message.guild_id, int(match.group(1)))
                return True
            except hikari.ClientHTTPResponseError:
                return False

        members = _members_of(self.client, message.guild_id)
        return _validate_search(members, value, _member_names, "users", _member_label)

    async def parse(self, value: str, message: CommandMessage, arg: Argument) -> Any:
        if message.guild_id is None:
            return None

        match = _USER_MENTION.match(value)
        if match:
            return await self._fetch_member(message.guild_id, int(match.group(1)))
        return _parse_search(_members_of(self.client, message.guild_id), value, _member_names)

    async def _fetch_member(self, guild_id: int, user_id: int) -> hikari.Member:
        member = self.client.cache.get_member(guild_id, user_id)
        if member is None:
            member = await self.client.rest.fetch_member(guild_id, user_id)
        return member


class RoleArgumentType(ArgumentType):
    def __init__(self, client: CommandoClient) -> None:
        super().__init__(client, "role")

    async def validate(self, value: str, message: CommandMessage, arg: Argument) -> bool | str:
        if message.guild_id is None:
            return False

        match = _ROLE_MENTION.match(value)
        if match:
            return self._role_by_id(message.guild_id, int(match.group(1))) is not None

        roles = self.client.cache.get_roles_view_for_guild(message.guild_id).values()
        return _validate_search(roles, value, _named, "roles", _name_label)

    async def parse(self, value: str, message: CommandMessage, arg: Argument) -> Any:
        if message.guild_id is None:
            return None

        match = _ROLE_MENTION.match(value)
        if match:
            return self._role_by_id(message.guild_id, int(match.group(1)))
        roles = self.client.cache.get_roles_view_for_guild(message.guild_id).values()
        return _parse_search(roles, value, _named)

    def _role_by_id(self, guild_id: int, role_id: int) -> hikari.Role | None:
        role = self.client.cache.get_role(role_id)
        if role is not None and role.guild_id == guild_id:
            return role
        return None


class ChannelArgumentType(ArgumentType):
    def __init__(self, client: CommandoClient) -> None:
        super().__init__(client, "channel")

    async def validate(self, value: str, message: CommandMessage, arg: Argument) -> bool | str:
        if message.guild_id is None:
            return False

        match = _CHANNEL_MENTION.match(value)
        if match:
            return self._channel_by_id(message.guild_id, int(match.group(1))) is not None

        channels = self.client.cache.get_guild_channels_view_for_guild(message.guild_id).values()
        return _validate_search(channels, value, _named, "channels", _name_label)

    async def parse(self, value: str, message: CommandMessage, arg: Argument) -> Any:
        if message.guild_id is None:
            return None

        match = _CHANNEL_MENTION.match(value)
        if match:
            return self._channel_by_id(message.guild_id, int(match.group(1)))
        channels = self.client.cache.get_guild_channels_view_for_guild(message.guild_id).values()
        return _parse_search(channels, value, _named)

    def _channel_by_id(self, guild_id: int, channel_id: int) -> hikari.GuildChannel | None:
        channel = self.client.cache.get_guild_channel(channel_id)
        if channel is not None and channel.guild_id == guild_id:
            return channel
        return None


class CommandArgumentType(ArgumentType):
    def __init__(self, client: CommandoClient) -> None:
        super().__init__(client, "command")

    async def validate(self, value: str, message: CommandMessage, arg: Argument) -> bool | str:
        commands = self.client.registry.find_commands(value)
        if len(commands) == 1:
            return True
        if not commands:
            return False
        if len(commands) <= MAX_DISAMBIGUATION:
            return f"{disambiguation(commands, 'commands')}\n"
        return "Multiple commands found. Please be more specific."

    async def parse(self, value: str, message: CommandMessage, arg: Argument) -> Any:
        return self.client.registry.find_commands(value)[0]


class GroupArgumentType(ArgumentType):
    def __init__(self, client: CommandoClient) -> None:
        super().__init__(client, "group")

    async def validate(self, value: str, message: CommandMessage, arg: Argument) -> bool | str:
        groups = self.client.registry.find_groups(value)
        if len(groups) == 1:
            return True
        if not groups:
            return False
        if len(groups) <= MAX_DISAMBIGUATION:
            return f"{disambiguation(groups, 'groups', 'name')}\n"
        return "Multiple groups found. Please be more specific."

    async def parse(self, value: str, message: CommandMessage, arg: Argument) -> Any:
        return self.client.registry.find_groups(value)[0]


class UnionArgumentType(ArgumentType):
    """Accepts a value if any of its member types accepts it, e.g. ``group|command``."""

    def __init__(self, client: CommandoClient, type_id: str) -> None:
        super().__init__(client, type_id)
        self.types: list[ArgumentType] = []
        for member_id in type_id.split("|"):
            member = client.registry.types.get(member_id)
            if member is None:
                raise ValueError(f'Argument type "{member_id}" is not registered.')
            self.types.append(member)

    async def validate(self, value: str, message: CommandMessage, arg: Argument) -> bool | str:
        results = [await member.validate(value, message, arg) for member in self.types]
        if any(result is True for result in results):
            return True
        errors = [result for result in results if isinstance(result, str)]
        return "\n".join(errors) if errors else False

    async def parse(self, value: str, message: CommandMessage, arg: Argument) -> Any:
        for member in self.types:
            if await member.validate(value, message, arg) is True:
                return await member.parse(value, message, arg)
        raise ValueError(f"Couldn't parse value \"{value}\" with union type {self.id}.")

    def is_empty(self, value: Any, message: CommandMessage, arg: Argument) -> bool:
        return all(member.is_empty(value, message, arg) for member in self.types)


DEFAULT_TYPES: tuple[type[ArgumentType], ...] = (
    StringArgumentType,
    IntegerArgumentType,
    FloatArgumentType,
    BooleanArgumentType,
    UserArgumentType,
    MemberArgumentType,
    RoleArgumentType,
    ChannelArgumentType,
    CommandArgumentType,
    GroupArgumentType,
)


def _check_number(number: float, arg: Argument) -> bool | str:
    if arg.one_of and str(number) not in arg.one_of:
        return f"Please enter one of the following options: {', '.join(arg.one_of)}"
    if arg.min is not None and number < arg.min:
        return f"Please enter a number above or exactly {arg.min}."
    if arg.max is not None and number > arg.max:
        return f"Please enter a number below or exactly {arg.max}."
    return True


def _members_of(client: CommandoClient, guild_id: int) -> Iterable[hikari.Member]:
    return client.cache.get_members_view_for_guild(guild_id).values()


def _member_names(member: hikari.Member) -> list[str]:
    names = [member.username]
    if member.nickname:
        names.append(member.nickname)
    return names


def _member_label(member: hikari.Member) -> str:
    return escape_markdown(member.username)


def _named(item: Any) -> list[str]:
    return [item.name] if getattr(item, "name", None) else []


def _name_label(item: Any) -> str:
    return escape_markdown(item.name)


def _search(
    items: Iterable[Any], value: str, names: Callable[[Any], list[str]]
) -> tuple[list[Any], list[Any]]:
    """Return ``(inexact, exact)`` case-insensitive name matches."""
    search = value.lower()
    inexact = [item for item in items if any(search in name.lower() for name in names(item))]
    exact = [item for item in inexact if any(search == name.lower() for name in names(item))]
    return inexact, exact


def _validate_search(
    items: Iterable[Any],
    value: str,
    names: Callable[[Any], list[str]],
    label: str,
    describe: Callable[[Any], str],
) -> bool | str:
    inexact, exact = _search(items, value, names)
    if not inexact:
        return False
    if len(inexact) == 1 or len(exact) == 1:
        return True

    matches = exact or inexact
    if len(matches) <= MAX_DISAMBIGUATION:
        return f"{disambiguation([describe(item) for item in matches], label, None)}\n"
    return f"Multiple {label} found. Please be more specific."


def _parse_search(items: Iterable[Any], value: str, names: Callable[[Any], list[str]]) -> Any:
    inexact, exact = _search(items, value, names)
    if len(inexact) == 1:
        return inexact[0]
    if len(exact) == 1:
        return exact[0]
    return None
