# -*- coding: utf-8 -*-

"""
打招呼插件
"""

from typing import Any, Dict

from bot.plugin_manager import CommandPlugin, PluginInfo
from commands.flags import FlagSpec


class GreetPlugin(CommandPlugin):
    """打招呼插件"""

    @property
    def info(self) -> PluginInfo:
        return PluginInfo(
            name="greet",
            version="1.0.0",
            description="打招呼插件",
            author="Bot"
        )

    def register_commands(self, commander) -> None:
        command = commander.command(
            "greet <name>",
            "向某人打招呼",
            {"shout": FlagSpec(bool, default=False, alias="s", description="大写输出")},
            scope=self.scope,
            aliases=("hi",),
        )
        command.action(self._handle_greet)

    def _handle_greet(self, args: Dict[str, Any], bot, session) -> str:
        greeting = self.plugin_config.get("greeting", "Hello")
        text = f"{greeting}, {args['name']}"
        return text.upper() if args.get("shout") else text
