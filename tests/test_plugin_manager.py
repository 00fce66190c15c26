"""Tests for plugin loading and the bundled plugins."""

import logging
import random

import pytest

from bot.app import BotApp
from bot.config import BotConfig
from bot.events import EventType
from bot.plugin_manager import CommandPlugin, EventPlugin, PluginInfo
from constants import NO_MATCH_REPLY
from plugins.greet_plugin import GreetPlugin

from .fakes import FakeBot, make_session


def make_app(plugin_configs=None, enabled=("plugins.greet_plugin", "plugins.dice_plugin")):
    config = BotConfig(
        command_prefix="!",
        plugins_enabled=list(enabled),
        plugin_configs=plugin_configs or {},
    )
    app = BotApp(config)
    app.plugin_manager.load_plugins()
    return app


async def send(app, content, **kwargs):
    bot = FakeBot()
    await app.dispatch(bot, make_session(content, **kwargs))
    return bot.texts


class AuditPlugin(EventPlugin):
    @property
    def info(self):
        return PluginInfo(name="audit", version="0.1", description="审计", author="test")

    def get_event_handlers(self):
        return {EventType.COMMAND_BEFORE_EXECUTE: [self.deny]}

    def deny(self, command, bot, session):
        if command.name == "greet":
            return "暂停使用"
        return None


class NeedsOther(CommandPlugin):
    @property
    def info(self):
        return PluginInfo(name="needy", version="0.1", description="", author="test",
                          dependencies=["other"])

    def register_commands(self, commander):
        commander.command("needy", scope=self.scope)


class TestLoading:
    def test_load_enabled_plugins(self):
        app = make_app()
        assert app.plugin_manager.get_loaded_plugins() == ["plugins.greet_plugin", "plugins.dice_plugin"]
        assert app.plugin_manager.get_plugin_info("plugins.dice_plugin").name == "dice"
        names = [command.name for command in app.commander.all_commands()]
        assert names == ["help", "greet", "roll"]

    def test_missing_module_is_logged(self, caplog):
        with caplog.at_level(logging.ERROR, logger="bot.plugin_manager"):
            app = make_app(enabled=["plugins.does_not_exist"])
        assert app.plugin_manager.get_loaded_plugins() == []
        assert "plugins.does_not_exist" in caplog.text

    def test_missing_dependency(self, app):
        with pytest.raises(ValueError):
            app.plugin_manager.load_plugin_class(NeedsOther, "needy")
        assert app.plugin_manager.get_loaded_plugins() == []
        assert [scope.name for scope in app.scope.children] == []
        assert "needy" not in [command.name for command in app.commander.all_commands()]

    def test_double_load(self, app):
        app.plugin_manager.load_plugin_class(GreetPlugin, "greet")
        with pytest.raises(ValueError):
            app.plugin_manager.load_plugin_class(GreetPlugin, "greet")

    async def test_unload_removes_commands(self):
        app = make_app()
        app.plugin_manager.unload_plugin("plugins.greet_plugin")
        app.plugin_manager.unload_plugin("plugins.greet_plugin")

        assert app.plugin_manager.get_loaded_plugins() == ["plugins.dice_plugin"]
        assert await send(app, "!greet Alice") == [NO_MATCH_REPLY]

    async def test_reload(self):
        app = make_app()
        app.plugin_manager.reload_plugin("plugins.greet_plugin")
        assert await send(app, "!greet Alice") == ["Hello, Alice"]

    def test_cleanup(self):
        app = make_app()
        app.plugin_manager.cleanup()
        assert app.plugin_manager.get_loaded_plugins() == []
        assert [command.name for command in app.commander.all_commands()] == ["help"]


class TestScopes:
    async def test_channels_narrow_plugin(self):
        app = make_app({"plugins.greet_plugin": {"channels": ["c2"]}})

        assert await send(app, "!greet Alice", channel_id="c1") == [NO_MATCH_REPLY]
        assert await send(app, "!greet Alice", channel_id="c2") == ["Hello, Alice"]

    async def test_unload_narrowed_plugin(self):
        app = make_app({"plugins.greet_plugin": {"guilds": ["g1"], "users": ["u1"]}})
        assert await send(app, "!greet Alice") == ["Hello, Alice"]

        app.plugin_manager.unload_plugin("plugins.greet_plugin")
        assert app.scope.children == [app.plugin_manager.get_plugin("plugins.dice_plugin").scope]

    async def test_event_plugin_handlers(self, app):
        app.plugin_manager.load_plugin_class(GreetPlugin, "greet")
        app.plugin_manager.load_plugin_class(AuditPlugin, "audit")

        assert await send(app, "!greet Alice") == ["暂停使用"]
        assert (await send(app, "!help"))[0].startswith("🤖 指令列表 🤖")

        app.plugin_manager.unload_plugin("audit")
        assert await send(app, "!greet Alice") == ["Hello, Alice"]


class TestGreet:
    async def test_greet(self):
        app = make_app()
        assert await send(app, "!greet Alice") == ["Hello, Alice"]
        assert await send(app, "!hi -s Bob") == ["HELLO, BOB"]
        assert await send(app, "!greet --shout Bob") == ["HELLO, BOB"]

    async def test_custom_greeting(self):
        app = make_app({"plugins.greet_plugin": {"greeting": "你好"}})
        assert await send(app, "!greet 小明") == ["你好, 小明"]


class TestDice:
    async def test_default_roll(self):
        app = make_app({"plugins.dice_plugin": {"seed": 7}})
        expected = random.Random(7).randint(1, 6)
        assert await send(app, "!roll") == [f"🎲 user-u1 掷出了 {expected} (d6)"]

    async def test_many_rolls(self):
        app = make_app({"plugins.dice_plugin": {"seed": 3}})
        rng = random.Random(3)
        rolls = [rng.randint(1, 10) for _ in range(3)]
        expected = f"🎲 user-u1 掷出了 {', '.join(map(str, rolls))}, 合计 {sum(rolls)} (d10)"
        assert await send(app, "!掷骰子 -t 3 10") == [expected]

    @pytest.mark.parametrize("content", ["!roll 1", "!roll abc", "!roll 21"])
    async def test_bad_sides(self, content):
        app = make_app({"plugins.dice_plugin": {"max_sides": 20}})
        assert await send(app, content) == ["骰子面数必须是 2 到 20 之间的整数"]

    async def test_too_many_times(self):
        app = make_app()
        assert await send(app, "!roll --times 30") == ["一次最多掷 20 次"]

    async def test_times_must_be_number(self):
        app = make_app()
        texts = await send(app, "!roll -t lots")
        assert len(texts) == 1
        assert texts[0].startswith("参数格式错误")
