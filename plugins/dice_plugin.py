# -*- coding: utf-8 -*-

"""
掷骰子插件
"""

import random
from typing import Any, Dict

from bot.plugin_manager import CommandPlugin, PluginInfo
from commands.flags import FlagSpec

DEFAULT_SIDES = 6
MAX_TIMES = 20


class DicePlugin(CommandPlugin):
    """掷骰子插件"""

    @property
    def info(self) -> PluginInfo:
        return PluginInfo(
            name="dice",
            version="1.0.0",
            description="掷骰子",
            author="Bot"
        )

    def on_load(self) -> None:
        self.max_sides = int(self.plugin_config.get("max_sides", 100))
        self.random = random.Random(self.plugin_config.get("seed"))

    def register_commands(self, commander) -> None:
        commander.command(
            "roll [sides]",
            "掷骰子, 默认 6 面",
            {"times": FlagSpec(int, default=1, alias="t", description="掷几次")},
            scope=self.scope,
            aliases=("掷骰子",),
        ).action(self._handle_roll)

    async def _handle_roll(self, args: Dict[str, Any], bot, session) -> str:
        sides_text = args.get("sides", str(DEFAULT_SIDES))
        if not sides_text.isdigit() or not 2 <= int(sides_text) <= self.max_sides:
            return f"骰子面数必须是 2 到 {self.max_sides} 之间的整数"

        times = args["times"]
        if not 1 <= times <= MAX_TIMES:
            return f"一次最多掷 {MAX_TIMES} 次"

        sides = int(sides_text)
        rolls = [self.random.randint(1, sides) for _ in range(times)]
        if times == 1:
            return f"🎲 {session.author.username} 掷出了 {rolls[0]} (d{sides})"
        return f"🎲 {session.author.username} 掷出了 {', '.join(map(str, rolls))}, 合计 {sum(rolls)} (d{sides})"
