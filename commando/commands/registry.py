"""Command, group, argument type and eval object registration."""

from __future__ import annotations

import importlib
import importlib.util
import inspect
import logging
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any

from ..errors import CommandoError, RegistrationError, ResolutionError
from .base import Command
from .builder import CommandBuilder
from .group import CommandGroup
from .message import CommandMessage
from .types import DEFAULT_TYPES, ArgumentType

if TYPE_CHECKING:
    from ..core.client import CommandoClient

logger = logging.getLogger(__name__)

COMMAND_MODULE_PREFIX = "commando_commands"

DEFAULT_GROUPS: tuple[tuple[str, str, bool], ...] = (
    ("commands", "Commands", True),
    ("util", "Utility", False),
)


class CommandRegistry:
    """Holds every group, command and argument type known to a client."""

    def __init__(self, client: CommandoClient) -> None:
        self.client = client
        self.commands: dict[str, Command] = {}
        self.groups: dict[str, CommandGroup] = {}
        self.types: dict[str, ArgumentType] = {}
        self.eval_objects: dict[str, Any] = {}
        self.commands_path: Path | None = None
        self.unknown_command: Command | None = None

    # Groups

    def register_group(self, group: Any, name: str | None = None, guarded: bool = False) -> CommandRegistry:
        """
        Register a single group.

        ``group`` may be a :class:`CommandGroup` instance or subclass, an
        ``(id, name, guarded)`` tuple, a dict of constructor keywords or a
        plain group ID.
        """
        if isinstance(group, str):
            group = CommandGroup(self.client, group, name, guarded)
        elif inspect.isclass(group) and issubclass(group, CommandGroup):
            group = group(self.client)
        elif isinstance(group, (tuple, list)):
            group = CommandGroup(self.client, *group)
        elif isinstance(group, dict):
            group = CommandGroup(self.client, **group)
        elif not isinstance(group, CommandGroup):
            raise TypeError(f"Invalid group object to register: {group!r}")

        existing = self.groups.get(group.id)
        if existing is not None:
            existing.name = group.name
            logger.debug(f"Group {group.id} is already registered; renamed it to {group.name}.")
            return self

        self.groups[group.id] = group
        logger.debug(f"Registered group {group.id}.")
        return self

    def register_groups(self, groups: Iterable[Any]) -> CommandRegistry:
        for group in groups:
            self.register_group(group)
        return self

    # Commands

    def register_command(self, command: Any) -> CommandRegistry:
        """Register a command instance, a :class:`Command` subclass or a :class:`CommandBuilder`.

        Any other object is skipped with a warning.
        """
        if not _is_command_like(command):
            logger.warning(f"Attempting to register an invalid command object: {command!r}; skipping.")
            return self
        command = self._instantiate(command)

        names = [command.name, *command.aliases]
        for other in self.commands.values():
            other_names = {other.name, *other.aliases}
            for name in names:
                if name in other_names:
                    raise RegistrationError(f'A command with the name/alias "{name}" is already registered.')

        group = self.groups.get(command.group_id)
        if group is None:
            raise RegistrationError(f'Group "{command.group_id}" is not registered.')
        if any(cmd.member_name == command.member_name for cmd in group.commands.values()):
            raise RegistrationError(
                f'A command with the member name "{command.member_name}" is already registered in {group.id}'
            )
        if command.unknown and self.unknown_command is not None:
            raise RegistrationError("An unknown command is already registered.")

        command.group = group
        group.commands[command.name] = command
        self.commands[command.name] = command
        if command.unknown:
            self.unknown_command = command

        logger.debug(f"Registered command {command.qualified_name}.")
        return self

    def register_commands(self, commands: Iterable[Any]) -> CommandRegistry:
        for command in commands:
            self.register_command(command)
        return self

    def register_commands_in(self, path: str | Path) -> CommandRegistry:
        """
        Register every command found under ``path``.

        Commands are laid out as ``<path>/<group id>/<member name>.py``. Each
        module may define :class:`Command` subclasses, module-level
        :class:`CommandBuilder` objects (e.g. from the ``@command`` decorator)
        or a ``setup(client)`` function returning a command.
        """
        path = Path(path)
        if not path.is_dir():
            raise CommandoError(f"Commands directory does not exist: {path}")
        self.commands_path = path

        for group_dir in sorted(path.iterdir()):
            if not group_dir.is_dir() or group_dir.name.startswith("_"):
                continue
            for file_path in sorted(group_dir.glob("*.py")):
                if file_path.name.startswith("_"):
                    continue
                self.register_commands_from_file(file_path)

        logger.info(f"Registered commands from {path}")
        return self

    def register_commands_from_file(self, file_path: str | Path) -> list[Command]:
        file_path = Path(file_path)
        module = self._load_module(file_path)
        registered = []
        for candidate in self._extract_commands(module):
            command = self._instantiate(candidate)
            command.source_path = file_path
            self.register_command(command)
            registered.append(command)
        if not registered:
            logger.warning(f"No commands found in {file_path}")
        return registered

    def reregister_command(self, command: Any, old_command: Command) -> None:
        """Swap a registered command for a freshly loaded version of itself."""
        command = self._instantiate(command)
        if command.group_id != old_command.group_id:
            raise RegistrationError("Command group cannot change.")
        if command.member_name != old_command.member_name:
            raise RegistrationError("Command member name cannot change.")
        if command.name != old_command.name:
            raise RegistrationError("Command name cannot change.")
        if command.unknown and self.unknown_command not in (None, old_command):
            raise RegistrationError("An unknown command is already registered.")

        command.group = old_command.group
        if command.source_path is None:
            command.source_path = old_command.source_path
        if command.group is not None:
            command.group.commands[command.name] = command
        self.commands[command.name] = command
        if self.unknown_command is old_command:
            self.unknown_command = None
        if command.unknown:
            self.unknown_command = command

        logger.debug(f"Reregistered command {command.qualified_name}.")

    def unregister_command(self, command: Command) -> None:
        self.commands.pop(command.name, None)
        if command.group is not None:
            command.group.commands.pop(command.name, None)
        if self.unknown_command is command:
            self.unknown_command = None
        logger.debug(f"Unregistered command {command.qualified_name}.")

    def load_command_from_source(self, command: Command) -> Command:
        """Import the current source of ``command`` again and build a new instance of it."""
        if command.source_path is not None:
            module = self._load_module(Path(command.source_path))
            candidates = [self._instantiate(c) for c in self._extract_commands(module)]
            for candidate in candidates:
                if candidate.member_name == command.member_name:
                    candidate.source_path = command.source_path
                    return candidate
            raise CommandoError(f"{command.source_path} no longer defines the {command.name} command.")

        module_name = type(command).__module__
        module = sys.modules.get(module_name)
        if module is None or module_name.startswith(f"{__package__}."):
            raise CommandoError(f"The {command.name} command cannot be reloaded.")
        module = importlib.reload(module)
        return getattr(module, type(command).__name__)(self.client)

    def resolve_command_path(self, group_id: str, member_name: str) -> Path:
        if self.commands_path is None:
            raise CommandoError("No commands directory has been registered.")
        return self.commands_path / group_id / f"{member_name}.py"

    def build_command(self, **info: Any) -> CommandBuilder:
        """Start building a command that registers itself with this registry."""
        return CommandBuilder(info, registry=self)

    # Types

    def register_type(self, type_: Any) -> CommandRegistry:
        if inspect.isclass(type_) and issubclass(type_, ArgumentType):
            type_ = type_(self.client)
        if not isinstance(type_, ArgumentType):
            raise TypeError(f"Invalid argument type object to register: {type_!r}")
        if type_.id in self.types:
            raise RegistrationError(f'An argument type with the ID "{type_.id}" is already registered.')

        self.types[type_.id] = type_
        logger.debug(f"Registered argument type {type_.id}.")
        return self

    def register_types(self, types: Iterable[Any]) -> CommandRegistry:
        for type_ in types:
            self.register_type(type_)
        return self

    def register_types_in(self, path: str | Path) -> CommandRegistry:
        """Register every :class:`ArgumentType` subclass defined by the modules in ``path``."""
        path = Path(path)
        if not path.is_dir():
            raise CommandoError(f"Argument types directory does not exist: {path}")

        for file_path in sorted(path.glob("*.py")):
            if file_path.name.startswith("_"):
                continue
            module = self._load_module(file_path)
            for _, obj in inspect.getmembers(module, inspect.isclass):
                if (
                    issubclass(obj, ArgumentType)
                    and obj.__module__ == module.__name__
                    and not inspect.isabstract(obj)
                ):
                    self.register_type(obj)

        logger.info(f"Registered argument types from {path}")
        return self

    def register_default_types(self) -> CommandRegistry:
        return self.register_types(DEFAULT_TYPES)

    # Defaults

    def register_defaults(self) -> CommandRegistry:
        self.register_default_types()
        self.register_default_groups()
        self.register_default_commands()
        return self

    def register_default_groups(self) -> CommandRegistry:
        return self.register_groups(DEFAULT_GROUPS)

    def register_default_commands(
        self,
        help: bool = True,
        prefix: bool = True,
        ping: bool = True,
        eval_: bool = True,
        unknown_command: bool = True,
        command_state: bool = True,
    ) -> CommandRegistry:
        from .. import builtins

        if help:
            self.register_command(builtins.HelpCommand)
        if prefix:
            self.register_command(builtins.PrefixCommand)
        if ping:
            self.register_command(builtins.PingCommand)
        if eval_:
            self.register_command(builtins.EvalCommand)
        if unknown_command:
            self.register_command(builtins.UnknownCommandCommand)
        if command_state:
            self.register_commands(builtins.COMMAND_STATE_COMMANDS)
        return self

    # Eval objects

    def register_eval_object(self, key: str, obj: Any) -> CommandRegistry:
        self.eval_objects[key] = obj
        return self

    def register_eval_objects(self, objects: Mapping[str, Any]) -> CommandRegistry:
        for key, obj in objects.items():
            self.register_eval_object(key, obj)
        return self

    # Lookup

    def find_groups(self, search: str | None = None, exact: bool = False) -> list[CommandGroup]:
        """Find groups whose ID or name matches ``search``; exact matches win over partial ones."""
        if not search:
            return list(self.groups.values())

        lowered = search.lower()
        matched = [g for g in self.groups.values() if g.id == lowered or g.name.lower() == lowered]
        if exact or matched:
            return matched
        return [g for g in self.groups.values() if lowered in g.id or lowered in g.name.lower()]

    def resolve_group(self, group: CommandGroup | str) -> CommandGroup:
        if isinstance(group, CommandGroup):
            return group
        if isinstance(group, str):
            groups = self.find_groups(group, exact=True)
            if len(groups) == 1:
                return groups[0]
        raise ResolutionError("Unable to resolve group.")

    def find_commands(
        self, search: str | None = None, exact: bool = False, message: CommandMessage | None = None
    ) -> list[Command]:
        """Find commands by name, alias or ``group:member``; exact matches win over partial ones."""
        if not search:
            return [cmd for cmd in self.commands.values() if message is None or cmd.is_usable(message)]

        lowered = search.lower()
        matched = [
            cmd
            for cmd in self.commands.values()
            if cmd.name == lowered or lowered in cmd.aliases or cmd.qualified_name == lowered
        ]
        if not exact and not matched:
            matched = [
                cmd
                for cmd in self.commands.values()
                if lowered in cmd.name
                or any(lowered in alias for alias in cmd.aliases)
                or cmd.qualified_name == lowered
            ]
        if message is not None:
            matched = [cmd for cmd in matched if cmd.is_usable(message)]
        return matched

    def resolve_command(self, command: Command | CommandMessage | str) -> Command:
        if isinstance(command, Command):
            return command
        if isinstance(command, CommandMessage) and command.command is not None:
            return command.command
        if isinstance(command, str):
            commands = self.find_commands(command, exact=True)
            if len(commands) == 1:
                return commands[0]
        raise ResolutionError("Unable to resolve command.")

    # Loading

    def _instantiate(self, command: Any) -> Command:
        if isinstance(command, CommandBuilder):
            return command.build(self.client)
        if inspect.isclass(command) and issubclass(command, Command):
            return command(self.client)
        if isinstance(command, Command):
            return command
        raise TypeError(f"Invalid command object to register: {command!r}")

    def _load_module(self, file_path: Path) -> ModuleType:
        module_name = f"{COMMAND_MODULE_PREFIX}.{file_path.parent.name}.{file_path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, file_path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Command module {file_path} not found")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        spec.loader.exec_module(module)
        return module

    def _extract_commands(self, module: ModuleType) -> list[Any]:
        found: list[Any] = []
        for _, obj in inspect.getmembers(module):
            if (
                inspect.isclass(obj)
                and issubclass(obj, Command)
                and obj is not Command
                and obj.__module__ == module.__name__
            ):
                found.append(obj)
            elif isinstance(obj, CommandBuilder):
                found.append(obj)

        if not found and hasattr(module, "setup"):
            found.append(module.setup(self.client))
        return found


def _is_command_like(obj: Any) -> bool:
    return isinstance(obj, (Command, CommandBuilder)) or (inspect.isclass(obj) and issubclass(obj, Command))
