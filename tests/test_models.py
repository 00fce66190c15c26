"""Tests for CommandInstance binding and execution."""

import pytest

from commands.errors import CommandError, MissingRequiredArgument
from commands.flags import FlagSpec
from commands.models import CommandInstance
from constants import INVALID_FLAG_REPLY, MISSING_ARGUMENT_REPLY, MessageType

from .fakes import FakeBot, make_session


def recording_handler(calls, reply=None):
    def handler(args, bot, session):
        calls.append(args)
        return reply

    return handler


class TestDeclaration:
    def test_fields_from_signature(self):
        command = CommandInstance("cmd <a> <b> [c]", "desc")
        assert command.name == "cmd"
        assert command.required_params == ["a", "b"]
        assert command.optional_params == ["c"]
        assert command.description == "desc"
        assert command.aliases == []

    def test_empty_signature_is_rejected(self):
        with pytest.raises(ValueError):
            CommandInstance("   ")

    def test_alias_ignores_duplicates_and_own_name(self):
        command = CommandInstance("cmd", aliases=("c", "c", "cmd"))
        assert command.alias("k") is command
        assert command.aliases == ["c", "k"]
        assert command.matches("cmd")
        assert command.matches("k")
        assert not command.matches("CMD")

    def test_action_works_as_decorator(self):
        command = CommandInstance("cmd")

        @command.action
        def handler(args, bot, session):
            return "ok"

        assert command.handler is handler


class TestBind:
    def test_all_positionals(self):
        command = CommandInstance("cmd <a> <b> [c]")
        assert command.bind(["1", "2", "3"]) == {"a": "1", "b": "2", "c": "3"}

    def test_optional_left_unset(self):
        command = CommandInstance("cmd <a> <b> [c]")
        bound = command.bind(["1", "2"])
        assert bound == {"a": "1", "b": "2"}
        assert "c" not in bound

    def test_extra_positionals_are_ignored(self):
        command = CommandInstance("cmd <a> [b]")
        assert command.bind(["1", "2", "3"]) == {"a": "1", "b": "2"}

    def test_required_bound_before_optional(self):
        command = CommandInstance("cmd [opt] <req>")
        assert command.bind(["1", "2"]) == {"req": "1", "opt": "2"}

    def test_shortfall_raises(self):
        command = CommandInstance("cmd <a> <b> [c]")
        with pytest.raises(MissingRequiredArgument) as info:
            command.bind(["1"])
        assert info.value.missing == ["b"]


class TestExecute:
    async def test_missing_argument_reply(self):
        calls = []
        bot = FakeBot()
        command = CommandInstance("cmd <a> <b> [c]")
        command.action(recording_handler(calls, "never"))

        result = await command.execute("1", bot, make_session("!cmd 1", msg_id="m7"))

        assert result is None
        assert calls == []
        assert len(bot.sent) == 1
        assert bot.sent[0].content == MISSING_ARGUMENT_REPLY
        assert bot.sent[0].quote == "m7"

    async def test_reply_is_sent_to_channel(self):
        calls = []
        bot = FakeBot()
        command = CommandInstance("greet <name>")
        command.action(recording_handler(calls, "hi"))

        result = await command.execute("Alice", bot, make_session("!greet Alice", channel_id="c9"))

        assert result == "hi"
        assert calls == [{"_": ["Alice"], "unknown_flags": {}, "name": "Alice"}]
        assert len(bot.sent) == 1
        assert bot.sent[0].channel_id == "c9"
        assert bot.sent[0].content == "hi"
        assert bot.sent[0].quote is None
        assert bot.sent[0].msg_type == MessageType.TEXT

    async def test_async_handler(self):
        bot = FakeBot()
        command = CommandInstance("echo [text]")

        async def handler(args, bot, session):
            return args.get("text", "")

        command.action(handler)
        assert await command.execute('"a b"', bot, make_session("!echo")) == "a b"
        assert bot.texts == ["a b"]

    @pytest.mark.parametrize("reply", [None, ""])
    async def test_empty_reply_sends_nothing(self, reply):
        calls = []
        bot = FakeBot()
        command = CommandInstance("quiet")
        command.action(recording_handler(calls, reply))

        assert await command.execute("", bot, make_session("!quiet")) is None
        assert len(calls) == 1
        assert bot.sent == []

    async def test_flags_merged_with_params(self):
        calls = []
        command = CommandInstance("greet <name>", flags={"loud": FlagSpec(bool, default=False, alias="l")})
        command.action(recording_handler(calls))

        await command.execute("-l Bob", FakeBot(), make_session("!greet -l Bob"))
        assert calls == [{"_": ["Bob"], "unknown_flags": {}, "loud": True, "name": "Bob"}]

    async def test_repeated_command_name_is_removed(self):
        calls = []
        command = CommandInstance("greet [name]")
        command.action(recording_handler(calls))

        await command.execute("greet Alice", FakeBot(), make_session("!greet greet Alice"))
        assert calls[0]["name"] == "Alice"
        assert calls[0]["_"] == ["Alice"]

    async def test_rest_positionals_and_unknown_flags_reach_handler(self):
        calls = []
        command = CommandInstance("echo <text>")
        command.action(recording_handler(calls))

        await command.execute("hello world --color=red -v -- --raw", FakeBot(), make_session("!echo"))

        args = calls[0]
        assert args["text"] == "hello"
        assert args["_"] == ["hello", "world", "--raw"]
        assert args["unknown_flags"] == {"color": ["red"], "v": [True]}

    async def test_declared_names_win_over_reserved_keys(self):
        calls = []
        command = CommandInstance("tag <_>", flags={"unknown_flags": str})
        command.action(recording_handler(calls))

        await command.execute("x --unknown-flags=y", FakeBot(), make_session("!tag"))
        assert calls[0]["_"] == "x"
        assert calls[0]["unknown_flags"] == "y"

    async def test_invalid_flag_value_reply(self):
        calls = []
        bot = FakeBot()
        command = CommandInstance("roll", flags={"times": int})
        command.action(recording_handler(calls))

        await command.execute("--times many", bot, make_session("!roll --times many"))
        assert calls == []
        assert bot.sent[0].content.startswith(INVALID_FLAG_REPLY)
        assert bot.sent[0].quote == "m1"

    async def test_handler_error_propagates(self):
        command = CommandInstance("boom")

        def handler(args, bot, session):
            raise RuntimeError("boom")

        command.action(handler)
        with pytest.raises(RuntimeError):
            await command.execute("", FakeBot(), make_session("!boom"))

    async def test_without_handler(self):
        with pytest.raises(CommandError):
            await CommandInstance("idle").execute("", FakeBot(), make_session("!idle"))
