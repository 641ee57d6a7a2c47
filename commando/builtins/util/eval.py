from __future__ import annotations

import ast
import inspect
import logging
import re
import time
from typing import TYPE_CHECKING, Any

import hikari

from ...commands.base import Command
from ...core.utils import split_message

if TYPE_CHECKING:
    from ...commands.message import CommandMessage

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^\s*```(?:py|python)?|```\s*$")
_SNIPPED = "--snip--"
_MAX_RESULT_LENGTH = 1900


class EvalCommand(Command):
    def __init__(self, client: Any) -> None:
        super().__init__(
            client,
            name="eval",
            group="util",
            member_name="eval",
            description="Executes Python code.",
            details=(
                "Only the bot owner(s) may use this command. Top-level `await` is allowed, and "
                "`message`, `client`, `hikari` and `last_result` are available along with any registered eval objects."
            ),
            owner_only=True,
            args=[{"key": "script", "prompt": "What code would you like to evaluate?", "type": "string"}],
        )
        self.last_result: Any = None

    async def run(self, message: CommandMessage, args: dict[str, Any], from_pattern: bool) -> Any:
        script = _CODE_FENCE.sub("", args["script"]).strip()
        env = {
            **self.client.registry.eval_objects,
            "message": message,
            "client": self.client,
            "hikari": hikari,
            "last_result": self.last_result,
        }

        started = time.perf_counter()
        try:
            result = await self._evaluate(script, env)
        except Exception as e:
            logger.debug(f"Eval by {message.author.id} raised {type(e).__name__}")
            return await message.reply(f"Error while evaluating: `{self._redact(f'{type(e).__name__}: {e}')}`")
        elapsed = (time.perf_counter() - started) * 1000

        self.last_result = result
        inspected = self._redact(repr(result))
        chunks = split_message(inspected, _MAX_RESULT_LENGTH)
        responses = [await message.reply(f"*Executed in {elapsed:.2f}ms.*")]
        for chunk in chunks:
            responses.append(await message.code("py", chunk))
        return responses

    @staticmethod
    async def _evaluate(script: str, env: dict[str, Any]) -> Any:
        try:
            code = compile(script, "<eval>", "eval", flags=ast.PyCF_ALLOW_TOP_LEVEL_AWAIT)
        except SyntaxError:
            code = compile(script, "<eval>", "exec", flags=ast.PyCF_ALLOW_TOP_LEVEL_AWAIT)
        result = eval(code, env)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _redact(self, text: str) -> str:
        token = self.client._token
        if not token:
            return text
        return re.sub(re.escape(token), _SNIPPED, text, flags=re.IGNORECASE)
