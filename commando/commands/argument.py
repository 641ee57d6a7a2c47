"""Command argument definitions and the collector that obtains their values."""

from __future__ import annotations

import inspect
import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import hikari

from ..core.utils import escape_markdown
from .types import ArgumentType, UnionArgumentType

if TYPE_CHECKING:
    from ..core.client import CommandoClient
    from .message import CommandMessage

logger = logging.getLogger(__name__)

CANCEL_KEYWORD = "cancel"
FINISH_KEYWORD = "finish"


@dataclass
class ArgumentResult:
    """Outcome of obtaining a single argument."""

    value: Any = None
    cancelled: str | None = None
    prompts: list[hikari.Message] = field(default_factory=list)
    answers: list[hikari.Message] = field(default_factory=list)


@dataclass
class CollectorResult:
    """Outcome of obtaining every argument of a command."""

    values: dict[str, Any] | None = None
    cancelled: str | None = None
    prompts: list[hikari.Message] = field(default_factory=list)
    answers: list[hikari.Message] = field(default_factory=list)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class Argument:
    """A single argument of a command.

    An argument is required when ``default`` is ``None``. Values are checked
    with the argument's type (or a custom ``validator``) and, when missing or
    invalid, the author is prompted for a new value in the same channel.
    """

    def __init__(
        self,
        client: CommandoClient,
        key: str,
        prompt: str,
        type: str | None = None,
        label: str | None = None,
        default: Any = None,
        infinite: bool = False,
        one_of: Sequence[Any] | None = None,
        min: float | None = None,
        max: float | None = None,
        wait: float | None = 30,
        error: str | None = None,
        validator: Callable[..., Any] | None = None,
        parser: Callable[..., Any] | None = None,
        empty_checker: Callable[..., Any] | None = None,
    ) -> None:
        if not isinstance(key, str) or not key:
            raise TypeError("Argument key must be a non-empty string.")
        if label is not None and not isinstance(label, str):
            raise TypeError("Argument label must be a string.")
        if not isinstance(prompt, str) or not prompt:
            raise TypeError("Argument prompt must be a non-empty string.")
        if one_of is not None and not isinstance(one_of, (list, tuple)):
            raise TypeError("Argument one_of must be a list.")
        if type is None and (validator is None or parser is None):
            raise TypeError("Argument type must be set when a validator and parser are not both provided.")
        if wait is not None and wait <= 0:
            raise ValueError("Argument wait must be a positive number of seconds.")

        self.client = client
        self.key = key
        self.label = label or key
        self.prompt = prompt
        self.error = error
        self.type: ArgumentType | None = self._resolve_type(client, type) if type else None
        self.max = max
        self.min = min
        self.default = default
        self.one_of = [str(option).lower() for option in one_of] if one_of else None
        self.infinite = infinite
        self.validator = validator
        self.parser = parser
        self.empty_checker = empty_checker
        self.wait = wait

    async def obtain(
        self, message: CommandMessage, value: Any = None, prompt_limit: float = math.inf
    ) -> ArgumentResult:
        empty = self.is_empty(value, message)
        if empty and self.default is not None:
            default = self.default(message, self) if callable(self.default) else self.default
            return ArgumentResult(value=await _maybe_await(default))

        if self.infinite:
            return await self._obtain_infinite(message, value, prompt_limit)

        result = ArgumentResult()
        valid: bool | str = False if empty else await self.validate(value, message)
        while not valid or isinstance(valid, str):
            if len(result.prompts) >= prompt_limit:
                result.cancelled = "promptLimit"
                return result

            if empty:
                text = self.prompt
            elif isinstance(valid, str):
                text = valid
            else:
                text = f"You provided an invalid {self.label}. Please try again."
            result.prompts.append(await message.reply(self._prompt_text(text, "`cancel` to cancel the command.")))

            answer = await message.wait_for_response(self.wait)
            if answer is None:
                result.cancelled = "time"
                return result
            result.answers.append(answer)
            value = answer.content or ""

            if value.lower() == CANCEL_KEYWORD:
                result.cancelled = "user"
                return result

            empty = self.is_empty(value, message)
            valid = await self.validate(value, message)

        result.value = await self.parse(value, message)
        return result

    async def _obtain_infinite(
        self, message: CommandMessage, values: list[str] | None, prompt_limit: float
    ) -> ArgumentResult:
        result = ArgumentResult()
        parsed: list[Any] = []
        current = 0

        while True:
            value = values[current] if values and current < len(values) else None
            valid: bool | str = await self.validate(value, message) if value else False
            attempts = 0

            while not valid or isinstance(valid, str):
                attempts += 1
                if attempts > prompt_limit:
                    result.cancelled = "promptLimit"
                    return result

                if value:
                    escaped = escape_markdown(value).replace("@", "@\u200b")
                    shown = escaped if len(escaped) < 1850 else "[too long to show]"
                    text = valid if isinstance(valid, str) else (
                        f'You provided an invalid {self.label}, "{shown}". Please try again.'
                    )
                    result.prompts.append(
                        await message.reply(
                            self._prompt_text(text, "`cancel` to cancel the command, or `finish` to finish entry up to this point.")
                        )
                    )
                elif not parsed:
                    result.prompts.append(
                        await message.reply(
                            self._prompt_text(self.prompt, "`cancel` to cancel the command, or `finish` to finish entry.")
                        )
                    )

                answer = await message.wait_for_response(self.wait)
                if answer is None:
                    result.cancelled = "time"
                    return result
                result.answers.append(answer)
                value = answer.content or ""

                lowercase = value.lower()
                if lowercase == FINISH_KEYWORD:
                    if parsed:
                        result.value = parsed
                    else:
                        result.cancelled = "user"
                    return result
                if lowercase == CANCEL_KEYWORD:
                    result.cancelled = "user"
                    return result

                valid = await self.validate(value, message)

            parsed.append(await self.parse(value, message))
            if values is not None:
                current += 1
                if current == len(values):
                    result.value = parsed
                    return result

    def _prompt_text(self, text: str, respond_with: str) -> str:
        lines = [text, f"Respond with {respond_with}"]
        if self.wait:
            lines.append(f"The command will automatically be cancelled in {self.wait:g} seconds.")
        return "\n".join(lines)

    async def validate(self, value: str, message: CommandMessage) -> bool | str:
        if self.validator is not None:
            valid = await _maybe_await(self.validator(value, message, self))
        else:
            valid = await self.type.validate(value, message, self)
        if not valid or isinstance(valid, str):
            return self.error or valid
        return valid

    async def parse(self, value: str, message: CommandMessage) -> Any:
        if self.parser is not None:
            return await _maybe_await(self.parser(value, message, self))
        return await self.type.parse(value, message, self)

    def is_empty(self, value: Any, message: CommandMessage) -> bool:
        if self.empty_checker is not None:
            return bool(self.empty_checker(value, message, self))
        if self.type is not None:
            return self.type.is_empty(value, message, self)
        if isinstance(value, list):
            return len(value) == 0
        return not value

    @staticmethod
    def _resolve_type(client: CommandoClient, type_id: str) -> ArgumentType:
        types = client.registry.types
        if type_id in types:
            return types[type_id]
        if "|" in type_id:
            union = UnionArgumentType(client, type_id)
            types[type_id] = union
            return union
        raise ValueError(f'Argument type "{type_id}" is not registered.')


class ArgumentCollector:
    """Obtains, validates and prompts for a command's arguments in order."""

    def __init__(
        self,
        client: CommandoClient,
        args: Sequence[Argument | dict[str, Any]],
        prompt_limit: float = math.inf,
    ) -> None:
        if not args:
            raise TypeError("Collector args must be a non-empty list.")

        self.client = client
        self.args: list[Argument] = []
        self.prompt_limit = prompt_limit

        has_infinite = False
        has_optional = False
        for arg in args:
            if has_infinite:
                raise ValueError("No other argument may come after an infinite argument.")
            if isinstance(arg, dict):
                arg = Argument(client, **arg)
            if arg.default is not None:
                has_optional = True
            elif has_optional:
                raise ValueError("Required arguments may not come after optional arguments.")
            if arg.infinite:
                has_infinite = True
            self.args.append(arg)

    async def obtain(
        self,
        message: CommandMessage,
        provided: Sequence[str] | None = None,
        prompt_limit: float | None = None,
    ) -> CollectorResult:
        provided = list(provided or [])
        if prompt_limit is None:
            prompt_limit = self.prompt_limit

        waiter = (message.author.id, message.channel_id)
        self.client.dispatcher.awaiting.add(waiter)
        values: dict[str, Any] = {}
        results: list[ArgumentResult] = []
        try:
            for index, arg in enumerate(self.args):
                if arg.infinite:
                    value = provided[index:]
                else:
                    value = provided[index] if index < len(provided) else None
                result = await arg.obtain(message, value, prompt_limit)
                results.append(result)

                if result.cancelled:
                    return CollectorResult(
                        values=None,
                        cancelled=result.cancelled,
                        prompts=[prompt for res in results for prompt in res.prompts],
                        answers=[answer for res in results for answer in res.answers],
                    )
                values[arg.key] = result.value
        finally:
            self.client.dispatcher.awaiting.discard(waiter)

        return CollectorResult(
            values=values,
            prompts=[prompt for res in results for prompt in res.prompts],
            answers=[answer for res in results for answer in res.answers],
        )
