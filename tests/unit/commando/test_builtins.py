"""Tests for the built-in commands in commando/builtins/"""

import textwrap
from datetime import datetime, timezone
from unittest.mock import patch

import hikari
import pytest

from tests.conftest import DM_CHANNEL_ID, GUILD_ID, OWNER_ID, USER_ID

MENTION = f"<@{USER_ID}>, "
OWNER_MENTION = f"<@{OWNER_ID}>, "


@pytest.fixture
def client(client):
    client.registry.register_default_groups()
    client.registry.register_default_commands()
    return client


@pytest.fixture
def run(client, make_message):
    """Send ``content`` through the dispatcher as a new message."""

    async def send(content, **kwargs):
        await client.dispatcher.handle_message(make_message(content, **kwargs))

    return send


@pytest.fixture
def as_owner(mock_user):
    mock_user.id = OWNER_ID
    mock_user.mention = f"<@{OWNER_ID}>"
    return mock_user


class TestHelp:
    """Test the help command."""

    @pytest.mark.asyncio
    async def test_command_details_are_sent_in_dm(self, run, mock_hikari_bot, sent):
        await run("!help prefix")

        dm_call, reply_call = mock_hikari_bot.rest.create_message.await_args_list
        assert dm_call.args[0] == DM_CHANNEL_ID
        assert dm_call.args[1].startswith("__Command **prefix**:__ Shows or sets the command prefix.")
        assert "**Group:** Utility (`util:prefix`)" in dm_call.args[1]
        assert reply_call.args[1] == f"{MENTION}Sent you a DM with information."

    @pytest.mark.asyncio
    async def test_command_list(self, run, mock_hikari_bot):
        await run("!help")

        listing = mock_hikari_bot.rest.create_message.await_args_list[0].args[1]
        assert "__Utility__" in listing
        assert "**ping:** Checks the bot's ping to the Discord server." in listing
        # hidden and unusable commands are left out
        assert "unknown-command" not in listing
        assert "**eval:**" not in listing

    @pytest.mark.asyncio
    async def test_all_commands(self, run, mock_hikari_bot):
        await run("!help all")

        listing = mock_hikari_bot.rest.create_message.await_args_list[0].args[1]
        assert "__**All commands**__" in listing
        assert "**eval:**" in listing

    @pytest.mark.asyncio
    async def test_unknown_search(self, run, sent):
        await run("!help zzz")

        assert sent() == [f"{MENTION}Unable to identify command. Use `help` to view the list of all commands."]

    @pytest.mark.asyncio
    async def test_ambiguous_search(self, run, sent, as_owner):
        await run("!help able")

        assert sent()[0].startswith(f"{OWNER_MENTION}Multiple commands found, please be more specific: ")
        assert '"enable"' in sent()[0] and '"disable"' in sent()[0]

    @pytest.mark.asyncio
    async def test_dms_disabled(self, run, mock_hikari_bot, sent):
        mock_hikari_bot.rest.create_dm_channel.side_effect = hikari.ForbiddenError("url", {}, b"")

        await run("!help ping")

        assert sent() == [f"{MENTION}Unable to send you the help DM. You probably have DMs disabled."]


class TestPrefix:
    """Test the prefix command."""

    @pytest.mark.asyncio
    async def test_show_prefix(self, run, sent):
        await run("!prefix")

        assert sent() == [
            f"{MENTION}The command prefix is `!`.\nTo run commands, use `!command` or `@TestBot\xa0command`."
        ]

    @pytest.mark.asyncio
    async def test_members_cannot_change_prefix(self, client, run, sent):
        await run("!prefix ?")

        assert sent() == [f"{MENTION}Only administrators may change the command prefix."]
        assert client.guild_state(GUILD_ID).command_prefix == "!"

    @pytest.mark.asyncio
    async def test_admin_sets_guild_prefix(self, client, run, sent):
        with patch(
            "commando.builtins.checks.calculate_member_permissions", return_value=hikari.Permissions.ADMINISTRATOR
        ):
            client.cache.get_guild.return_value = object()
            await run("!prefix ?")

        assert client.guild_state(GUILD_ID).command_prefix == "?"
        assert client.command_prefix == "!"
        assert sent() == [
            f"{MENTION}Set the command prefix to `?`. To run commands, use `?command` or `@TestBot\xa0command`."
        ]

    @pytest.mark.asyncio
    async def test_reset_and_remove(self, client, run, sent, as_owner):
        await client.guild_state(GUILD_ID).set_command_prefix("?")

        await run("?prefix default")
        assert client.guild_state(GUILD_ID)._command_prefix is None

        await run("!prefix none")
        assert client.guild_state(GUILD_ID).command_prefix == ""

        assert sent() == [
            f"{OWNER_MENTION}Reset the command prefix to the default (currently `!`). "
            "To run commands, use `!command` or `@TestBot\xa0command`.",
            f"{OWNER_MENTION}Removed the command prefix entirely. To run commands, use `@TestBot\xa0command`.",
        ]

    @pytest.mark.asyncio
    async def test_global_prefix_in_dm(self, client, run, sent, as_owner):
        await run("prefix >>", guild_id=None)

        assert client.command_prefix == ">>"
        assert sent() == ["Set the command prefix to `>>`. To run commands, use `command`."]

    @pytest.mark.asyncio
    async def test_global_prefix_needs_owner(self, client, run, sent):
        await run("prefix >>", guild_id=None)

        assert client.command_prefix == "!"
        assert sent() == ["Only the bot owner(s) may change the global command prefix."]


class TestPing:
    """Test the ping command."""

    @pytest.mark.asyncio
    async def test_ping(self, run, mock_hikari_bot, sent):
        await run("!ping")

        assert sent() == [f"{MENTION}Pinging..."]
        content = mock_hikari_bot.rest.edit_message.await_args.args[2]
        assert content == f"{MENTION}Pong! The message round-trip took 250ms. The heartbeat ping is 50ms."

    @pytest.mark.asyncio
    async def test_ping_without_heartbeat(self, run, mock_hikari_bot):
        mock_hikari_bot.heartbeat_latency = float("nan")

        await run("!ping")

        content = mock_hikari_bot.rest.edit_message.await_args.args[2]
        assert content.endswith("round-trip took 250ms.")

    @pytest.mark.asyncio
    async def test_ping_rerun_after_edit_uses_edit_times(self, client, make_message, mock_hikari_bot):
        """Test an edited ping measures from the edit, not the original send."""
        original = make_message("!ping", message_id=1)
        await client.dispatcher.handle_message(original)

        edited = make_message(
            "!ping  ",
            message_id=1,
            edited_timestamp=datetime(2024, 1, 1, 12, 5, 0, tzinfo=timezone.utc),
        )
        await client.dispatcher.handle_edit(edited, original)

        # the earlier response is edited in place rather than sent again
        assert mock_hikari_bot.rest.create_message.await_count == 1
        content = mock_hikari_bot.rest.edit_message.await_args.args[2]
        assert content == f"{MENTION}Pong! The message round-trip took 400ms. The heartbeat ping is 50ms."


class TestEval:
    """Test the eval command."""

    @pytest.mark.asyncio
    async def test_non_owner_is_refused(self, run, sent):
        await run("!eval 1 + 1")

        assert sent() == [f"{MENTION}The `eval` command can only be used by the bot owner."]

    @pytest.mark.asyncio
    async def test_expression(self, client, run, sent, as_owner):
        client.registry.register_eval_object("answer", 21)

        await run("!eval answer * 2")

        assert sent()[0].startswith(f"{OWNER_MENTION}*Executed in ")
        assert sent()[1] == "```py\n42\n```"

    @pytest.mark.asyncio
    async def test_code_block_and_await(self, run, sent, as_owner):
        await run("!eval ```py\nawait message.say('hi')\n```")

        assert sent()[0] == "hi"

    @pytest.mark.asyncio
    async def test_error(self, run, sent, as_owner):
        await run("!eval 1 / 0")

        assert sent() == [f"{OWNER_MENTION}Error while evaluating: `ZeroDivisionError: division by zero`"]

    @pytest.mark.asyncio
    async def test_token_is_redacted(self, run, sent, as_owner):
        await run("!eval client._token")

        assert sent()[1] == "```py\n'--snip--'\n```"

    @pytest.mark.asyncio
    async def test_last_result(self, run, sent, as_owner):
        await run("!eval 5")
        await run("!eval last_result + 1")

        assert sent()[-1] == "```py\n6\n```"


class TestUnknownCommand:
    """Test the unknown command reply."""

    @pytest.mark.asyncio
    async def test_guild(self, run, sent):
        await run("!whatever")

        assert sent() == [f"{MENTION}Unknown command. Use `!help` or `@TestBot\xa0help` to view the command list."]

    @pytest.mark.asyncio
    async def test_dm(self, run, sent):
        await run("whatever", guild_id=None)

        assert sent() == ["Unknown command. Use `help` to view the command list."]


class TestCommandState:
    """Test listing, enabling and disabling groups and commands."""

    @pytest.mark.asyncio
    async def test_groups(self, run, sent, as_owner):
        await run("!groups")

        assert sent() == [f"{OWNER_MENTION}__**Groups**__\n**Commands:** Enabled\n**Utility:** Enabled"]

    @pytest.mark.asyncio
    async def test_groups_requires_admin(self, run, sent):
        await run("!groups")

        assert sent() == [f"{MENTION}You do not have permission to use the `groups` command."]

    @pytest.mark.asyncio
    async def test_disable_and_enable_command(self, client, run, sent, as_owner):
        ping = client.registry.commands["ping"]

        await run("!disable ping")
        assert ping.is_enabled_in(GUILD_ID) is False
        assert ping.is_enabled_in(None) is True

        await run("!disable ping")
        await run("!enable ping")
        assert ping.is_enabled_in(GUILD_ID) is True

        assert sent() == [
            f"{OWNER_MENTION}Disabled the `ping` command.",
            f"{OWNER_MENTION}The `ping` command is already disabled.",
            f"{OWNER_MENTION}Enabled the `ping` command.",
        ]

    @pytest.mark.asyncio
    async def test_disable_group(self, client, run, sent, as_owner):
        await run("!disable util")
        await run("!enable ping")

        assert client.registry.groups["util"].is_enabled_in(GUILD_ID) is False
        assert sent() == [
            f"{OWNER_MENTION}Disabled the `Utility` group.",
            f"{OWNER_MENTION}The `ping` command is already enabled, "
            "but the `Utility` group is disabled, so it still can't be used.",
        ]

    @pytest.mark.asyncio
    async def test_guarded_cannot_be_disabled(self, run, sent, as_owner):
        await run("!disable help")

        assert sent() == [f"{OWNER_MENTION}You cannot disable the `help` command."]


class TestLoading:
    """Test reloading, loading and unloading commands."""

    @pytest.mark.asyncio
    async def test_reload_builtin(self, client, run, sent, as_owner):
        old = client.registry.commands["ping"]

        await run("!reload ping")

        assert client.registry.commands["ping"] is not old
        assert client.registry.commands["ping"].group is old.group
        assert sent() == [f"{OWNER_MENTION}Reloaded the `ping` command."]

    @pytest.mark.asyncio
    async def test_unload(self, client, run, sent, as_owner):
        await run("!unload ping")

        assert "ping" not in client.registry.commands
        assert sent() == [f"{OWNER_MENTION}Unloaded `ping` command."]

    @pytest.mark.asyncio
    async def test_load(self, client, run, sent, as_owner, tmp_path):
        (tmp_path / "math").mkdir()
        (tmp_path / "math" / "double.py").write_text(
            textwrap.dedent(
                '''
                from commando import command


                @command(group="math", args=[{"key": "number", "prompt": "Number?", "type": "integer"}])
                async def double(message, args):
                    """Doubles a number."""
                    await message.say(str(args["number"] * 2))
                '''
            )
        )
        client.registry.register_group("math", "Math")
        client.registry.commands_path = tmp_path

        await run("!load math:double")
        await run("!double 21")

        assert client.registry.commands["double"].qualified_name == "math:double"
        assert sent() == [f"{OWNER_MENTION}Loaded `double` command.", "42"]

    @pytest.mark.asyncio
    async def test_load_existing(self, client, run, sent, as_owner, make_answer):
        make_answer("cancel")

        await run("!load util:ping")

        assert sent()[0].startswith(f"{OWNER_MENTION}That command is already registered.")
