"""Tests for commando/core/dispatcher.py"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from commando.commands.base import Command
from tests.conftest import BOT_ID, CHANNEL_ID, USER_ID


class EchoCommand(Command):
    def __init__(self, client, **overrides):
        info = {"name": "echo", "group": "test", "member_name": "echo", "description": "Echoes."}
        info.update(overrides)
        super().__init__(client, **info)
        self.calls = []

    async def run(self, message, args, from_pattern):
        self.calls.append(args)
        await message.say(args or "(nothing)")


@pytest.fixture
def echo(client):
    client.registry.register_group("test")
    command = EchoCommand(client, aliases=["say"])
    client.registry.register_command(command)
    return command


@pytest.fixture
def dispatcher(client, echo):
    return client.dispatcher


class TestShouldHandle:
    """Test which messages are considered at all."""

    def test_regular_message(self, dispatcher, make_message):
        assert dispatcher.should_handle(make_message("!echo hi")) is True

    def test_bot_author(self, dispatcher, make_message):
        bot = MagicMock(id=5, is_bot=True)

        assert dispatcher.should_handle(make_message("!echo", author=bot)) is False

    def test_own_message(self, dispatcher, make_message):
        me = MagicMock(id=BOT_ID, is_bot=False)

        assert dispatcher.should_handle(make_message("!echo", author=me)) is False

    def test_awaiting_author(self, dispatcher, make_message):
        dispatcher.awaiting.add((USER_ID, CHANNEL_ID))

        assert dispatcher.should_handle(make_message("!echo")) is False

    def test_empty_content(self, dispatcher, make_message):
        assert dispatcher.should_handle(make_message("")) is False
        assert dispatcher.should_handle(make_message(None)) is False

    def test_unchanged_edit(self, dispatcher, make_message):
        message = make_message("!echo hi")

        assert dispatcher.should_handle(message, MagicMock(content="!echo hi")) is False
        assert dispatcher.should_handle(message, MagicMock(content="!echo hey")) is True


class TestParseMessage:
    """Test finding the command a message invokes."""

    @pytest.mark.parametrize(
        "content, arg_string",
        [
            ("!echo hi there", " hi there"),
            ("! echo hi", " hi"),
            ("!ECHO hi", " hi"),
            ("!say hi", " hi"),
            (f"<@{BOT_ID}> echo hi", " hi"),
            (f"<@!{BOT_ID}> !echo hi", " hi"),
        ],
    )
    def test_prefix_and_mention(self, dispatcher, echo, make_message, content, arg_string):
        cmd_msg = dispatcher.parse_message(make_message(content))

        assert cmd_msg.command is echo
        assert cmd_msg.arg_string == arg_string

    def test_not_a_command(self, dispatcher, make_message):
        assert dispatcher.parse_message(make_message("hello everyone")) is None

    def test_unknown_command(self, dispatcher, make_message):
        cmd_msg = dispatcher.parse_message(make_message("!nothing here"))

        assert cmd_msg is not None
        assert cmd_msg.command is None
        assert cmd_msg.arg_string == " here"

    def test_dm_without_prefix(self, dispatcher, echo, make_message):
        cmd_msg = dispatcher.parse_message(make_message("echo hi", guild_id=None))

        assert cmd_msg.command is echo
        assert cmd_msg.arg_string == " hi"

    def test_guild_prefix(self, client, dispatcher, echo, make_message):
        client.guild_state(make_message("x").guild_id)._command_prefix = "$$"

        assert dispatcher.parse_message(make_message("$$echo hi")).command is echo
        assert dispatcher.parse_message(make_message("!echo hi")) is None

    def test_mention_only_prefix(self, client, dispatcher, echo, make_message):
        client.guild_state(make_message("x").guild_id)._command_prefix = ""

        assert dispatcher.parse_message(make_message("!echo hi")) is None
        assert dispatcher.parse_message(make_message(f"<@{BOT_ID}> echo hi")).command is echo

    def test_pattern_commands(self, client, dispatcher, make_message):
        greet = EchoCommand(client, name="greet", member_name="greet", patterns=[r"^good (morning|night)"])
        client.registry.register_command(greet)

        cmd_msg = dispatcher.parse_message(make_message("good morning all"))

        assert cmd_msg.command is greet
        assert cmd_msg.pattern_matches.group(1) == "morning"

    def test_default_handling_disabled(self, client, dispatcher, make_message):
        client.registry.register_command(
            EchoCommand(client, name="quiet", member_name="quiet", default_handling=False)
        )

        assert dispatcher.parse_message(make_message("!quiet")).command is None


class TestHandleMessage:
    """Test handling new messages end to end."""

    @pytest.mark.asyncio
    async def test_runs_command(self, dispatcher, echo, make_message, sent):
        await dispatcher.handle_message(make_message("!echo hi"))

        assert echo.calls == ["hi"]
        assert sent() == ["hi"]

    @pytest.mark.asyncio
    async def test_unknown_command_event(self, client, dispatcher, make_message, sent):
        listener = AsyncMock()
        client.events.add_listener("unknown_command", listener)

        await dispatcher.handle_message(make_message("!nothing"))

        listener.assert_called_once()
        assert sent() == []

    @pytest.mark.asyncio
    async def test_unknown_command_command(self, client, dispatcher, make_message, sent):
        client.registry.register_group("util")
        client.registry.register_default_commands(help=False, prefix=False, ping=False, eval_=False, command_state=False)

        await dispatcher.handle_message(make_message("!nothing"))

        assert sent() == [f"<@{USER_ID}>, Unknown command. Use `!help` or `@TestBot\xa0help` to view the command list."]

    @pytest.mark.asyncio
    async def test_disabled_command(self, client, dispatcher, echo, make_message, sent):
        await echo.set_enabled_in(None, False)

        await dispatcher.handle_message(make_message("!echo hi"))

        assert echo.calls == []
        assert sent() == [f"<@{USER_ID}>, The `echo` command is disabled."]

    @pytest.mark.asyncio
    async def test_inhibitor_with_response(self, client, dispatcher, echo, make_message, sent):
        listener = AsyncMock()
        client.events.add_listener("command_block", listener)
        dispatcher.add_inhibitor(lambda cmd_msg: ("blacklisted", "You may not use commands."))

        await dispatcher.handle_message(make_message("!echo hi"))

        assert echo.calls == []
        assert sent() == [f"<@{USER_ID}>, You may not use commands."]
        assert listener.call_args.args[1:] == ("blacklisted", None)

    @pytest.mark.asyncio
    async def test_async_inhibitor_without_response(self, dispatcher, echo, make_message, sent):
        async def inhibitor(cmd_msg):
            return "maintenance"

        dispatcher.add_inhibitor(inhibitor)

        await dispatcher.handle_message(make_message("!echo hi"))

        assert echo.calls == []
        assert sent() == []

    @pytest.mark.asyncio
    async def test_passing_inhibitor(self, dispatcher, echo, make_message):
        dispatcher.add_inhibitor(lambda cmd_msg: None)

        await dispatcher.handle_message(make_message("!echo hi"))

        assert echo.calls == ["hi"]

    def test_inhibitor_management(self, dispatcher):
        def inhibitor(cmd_msg):
            return None

        assert dispatcher.add_inhibitor(inhibitor) is True
        assert dispatcher.add_inhibitor(inhibitor) is False
        assert dispatcher.remove_inhibitor(inhibitor) is True
        assert dispatcher.remove_inhibitor(inhibitor) is False
        with pytest.raises(TypeError):
            dispatcher.add_inhibitor("not callable")


class TestHandleEdit:
    """Test re-running commands when their message is edited."""

    @pytest.mark.asyncio
    async def test_edit_reruns_and_edits_response(self, dispatcher, echo, make_message, mock_hikari_bot):
        message = make_message("!echo hi", message_id=1)
        await dispatcher.handle_message(message)
        first_response = mock_hikari_bot.rest.create_message.await_args_list[0]

        edited = make_message("!echo bye", message_id=1)
        await dispatcher.handle_edit(edited, message)

        assert echo.calls == ["hi", "bye"]
        assert mock_hikari_bot.rest.create_message.await_count == 1
        mock_hikari_bot.rest.edit_message.assert_awaited_once()
        assert mock_hikari_bot.rest.edit_message.await_args.args[2] == "bye"
        assert first_response.args[1] == "hi"

    @pytest.mark.asyncio
    async def test_edit_of_unseen_message_is_ignored(self, dispatcher, echo, make_message):
        await dispatcher.handle_edit(make_message("!echo hi", message_id=2), MagicMock(content="!echo"))

        assert echo.calls == []

    @pytest.mark.asyncio
    async def test_edit_into_command(self, dispatcher, echo, make_message):
        original = make_message("!ecoh hi", message_id=3)
        await dispatcher.handle_message(original)

        await dispatcher.handle_edit(make_message("!echo hi", message_id=3), original)

        assert echo.calls == ["hi"]

    @pytest.mark.asyncio
    async def test_plain_message_edit_ignored_when_not_editable(self, client, dispatcher, echo, make_message):
        client.non_command_editable = False
        original = make_message("hello", message_id=4)
        await dispatcher.handle_message(original)

        await dispatcher.handle_edit(make_message("!echo hi", message_id=4), original)

        assert echo.calls == []

    @pytest.mark.asyncio
    async def test_edit_out_of_command_deletes_responses(self, dispatcher, echo, make_message, mock_hikari_bot):
        original = make_message("!echo hi", message_id=5)
        await dispatcher.handle_message(original)

        await dispatcher.handle_edit(make_message("just chatting", message_id=5), original)

        mock_hikari_bot.rest.delete_message.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_edit_after_expiry_is_ignored(self, dispatcher, echo, make_message):
        original = make_message("!echo hi", message_id=6)
        with patch("commando.core.dispatcher.time.monotonic", return_value=1000.0):
            await dispatcher.handle_message(original)
        with patch("commando.core.dispatcher.time.monotonic", return_value=1031.0):
            await dispatcher.handle_edit(make_message("!echo bye", message_id=6), original)

        assert echo.calls == ["hi"]

    @pytest.mark.asyncio
    async def test_results_not_cached_without_duration(self, client, dispatcher, echo, make_message):
        client.command_editable_duration = 0
        original = make_message("!echo hi", message_id=7)
        await dispatcher.handle_message(original)

        await dispatcher.handle_edit(make_message("!echo bye", message_id=7), original)

        assert echo.calls == ["hi"]
